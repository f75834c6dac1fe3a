"""
Session submission: local JSON backup plus a POST to the session store.

The backup is written before anything touches the network, so a participant's
data survives a failed save. Its ``submission_status`` moves from ``pending``
to ``submitted`` or ``failed``; a failed backup carries the notice shown to the
participant.

Delivery is at-least-once: a POST that times out after the server stored the
session and is then retried creates a second row.
"""
import json
import logging
import urllib.error
import urllib.request
import uuid
from pathlib import Path

from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_SUBMISSION_URL = "http://localhost:8000/api/participants/"

STATUS_PENDING = "pending"
STATUS_SUBMITTED = "submitted"
STATUS_FAILED = "failed"

SUBMISSION_FAILED_NOTICE = "Data save retry failed. Please contact the researcher and save your session ID."


class SubmissionError(Exception):
    """Raised when the session store cannot be reached or rejects a session."""


def get_submission_url() -> str:
    return getattr(settings, "MEMORYGRID_SUBMISSION_URL", DEFAULT_SUBMISSION_URL)


def post_session(payload: dict, endpoint_url: str, timeout: float = 10) -> dict:
    """
    POST a finalized session payload as JSON.

    Returns:
        The parsed JSON response, e.g. {"message": ..., "id": ...}.

    Raises:
        SubmissionError: on a non-2xx status or when the server is unreachable.
    """
    request = urllib.request.Request(
        endpoint_url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json; charset=utf-8"},
        method="POST",
    )
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            return json.loads(response.read().decode("utf-8"))
    except urllib.error.HTTPError as exc:
        error_body = exc.read().decode("utf-8", errors="replace")
        raise SubmissionError(f"Session store returned HTTP {exc.code}: {error_body}") from exc
    except (urllib.error.URLError, TimeoutError) as exc:
        raise SubmissionError(f"Session store unreachable: {exc}") from exc


# ─────────────────────────────────────────────────────────────────────────────
# Local backup
# ─────────────────────────────────────────────────────────────────────────────


def write_local_backup(path, payload: dict, session_key: str | None = None) -> dict:
    """Write a pending backup for *payload* and return the stored document."""
    path = Path(path)
    document = {
        "session_key": session_key or uuid.uuid4().hex,
        "submission_status": STATUS_PENDING,
        "notice": "",
        "server_id": None,
        "session": payload,
    }
    _save(path, document)
    return document


def load_local_backup(path) -> dict:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def mark_backup(path, status: str, **fields) -> dict:
    """Update the submission status (and any extra fields) of an existing backup."""
    path = Path(path)
    document = load_local_backup(path)
    document["submission_status"] = status
    document.update(fields)
    _save(path, document)
    return document


def _save(path: Path, document: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, ensure_ascii=False, indent=2), encoding="utf-8")


def handle_submission_failure(backup_path, exc: BaseException) -> dict:
    """Record a terminal submission failure on the backup and return it."""
    document = mark_backup(
        backup_path,
        STATUS_FAILED,
        notice=SUBMISSION_FAILED_NOTICE,
        error=str(exc),
    )
    logger.error(
        "Session %s could not be submitted: %s (backup kept at %s)",
        document["session_key"],
        exc,
        backup_path,
    )
    return document


# ─────────────────────────────────────────────────────────────────────────────
# Entry point
# ─────────────────────────────────────────────────────────────────────────────


def finalize_and_submit(session, backup_path, endpoint_url: str | None = None):
    """
    Finalize *session*, back it up locally and queue its submission.

    Returns the Huey result handle of the queued task.
    """
    from memorygrid.trials.tasks import submit_session_task

    session.finalize()
    payload = session.as_payload()
    document = write_local_backup(backup_path, payload)
    logger.info("Queued submission of session %s", document["session_key"])
    return submit_session_task(payload, endpoint_url or get_submission_url(), str(backup_path))
