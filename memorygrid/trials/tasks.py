"""
Huey background tasks for session submission.

The task posts the session and retries once after three seconds. When the
retry also fails, the error signal handler marks the local backup as failed.
"""
import logging

from huey.contrib.djhuey import signal
from huey.contrib.djhuey import task
from huey.signals import SIGNAL_ERROR

from memorygrid.trials.submission import STATUS_SUBMITTED
from memorygrid.trials.submission import SubmissionError
from memorygrid.trials.submission import handle_submission_failure
from memorygrid.trials.submission import mark_backup
from memorygrid.trials.submission import post_session

logger = logging.getLogger(__name__)

SUBMISSION_RETRIES = 1
SUBMISSION_RETRY_DELAY_SECONDS = 3


@task(retries=SUBMISSION_RETRIES, retry_delay=SUBMISSION_RETRY_DELAY_SECONDS)
def submit_session_task(payload: dict, endpoint_url: str, backup_path: str) -> dict:
    """
    POST the session payload and mark the backup as submitted.

    Raises SubmissionError so Huey schedules the retry.
    """
    try:
        response = post_session(payload, endpoint_url)
    except SubmissionError:
        logger.exception("submit_session_task: submission to %s failed", endpoint_url)
        raise
    mark_backup(backup_path, STATUS_SUBMITTED, server_id=response.get("id"))
    logger.info("submit_session_task: stored as %s", response.get("id"))
    return response


@signal(SIGNAL_ERROR)
def record_submission_failure(signal_name, task_instance, exc=None):
    # Fires on every failed attempt; only the last one has no retries left.
    if not isinstance(task_instance, submit_session_task.task_class):
        return
    if task_instance.retries:
        return
    backup_path = task_instance.args[2]
    handle_submission_failure(backup_path, exc)
