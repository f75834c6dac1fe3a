"""
Repair of sessions that stored more rounds than one run produces.

A restarted test appends a fresh run to the rounds already stored, so the
valid run is the trailing one. ``truncate_rounds`` and ``locate_session_start``
are pure; ``repair_session`` applies them to one stored session under a row
lock.
"""
import logging
from dataclasses import dataclass

from django.conf import settings
from django.db import transaction

from memorygrid.participants.helpers.aggregation import compute_session_results
from memorygrid.trials.constants import ROUNDS_PER_CONDITION
from memorygrid.trials.constants import starting_condition

logger = logging.getLogger(__name__)

DEFAULT_EXPECTED_ROUNDS = 2 * ROUNDS_PER_CONDITION

NEEDS_REVIEW_FLAG = "session_start_not_found"


class MalformedSessionError(Exception):
    """Raised when no round marks the start of the declared starting condition."""


def get_expected_rounds() -> int:
    return getattr(settings, "MEMORYGRID_EXPECTED_ROUNDS", DEFAULT_EXPECTED_ROUNDS)


def locate_session_start(rounds: list, expected_condition: str) -> int:
    """Return the index of the first round 1 of *expected_condition*."""
    for index, round_ in enumerate(rounds):
        if round_.get("condition") == expected_condition and round_.get("round_number") == 1:
            return index
    raise MalformedSessionError(f"No round 1 of condition '{expected_condition}' found.")


def truncate_rounds(rounds: list, started_with_color: bool, expected_rounds: int = DEFAULT_EXPECTED_ROUNDS):
    """
    Keep the trailing *expected_rounds* rounds, starting at the declared condition.

    Returns ``(rounds, needs_review)``. When the retained rounds do not begin
    with the declared starting condition and no round 1 of that condition can
    be found, every retained round is kept and ``needs_review`` is True.
    """
    retained = list(rounds[-expected_rounds:]) if expected_rounds > 0 else list(rounds)
    if not retained:
        return retained, False

    expected_condition = starting_condition(started_with_color)
    if retained[0].get("condition") == expected_condition:
        return retained, False

    try:
        start = locate_session_start(retained, expected_condition)
    except MalformedSessionError as exc:
        logger.warning("Keeping all %d retained rounds: %s", len(retained), exc)
        return retained, True
    return retained[start:], False


@dataclass(frozen=True)
class RepairOutcome:
    session_id: str
    rounds_before: int
    rounds_after: int
    changed: bool
    needs_review: bool
    dry_run: bool


def repair_session(session, dry_run: bool = False, expected_rounds: int | None = None) -> RepairOutcome:
    """
    Truncate and re-aggregate one stored session inside a transaction.

    Sessions with no more than the expected number of rounds are left as they are.
    With ``dry_run`` the outcome is computed but nothing is written.
    """
    from memorygrid.participants.models import ParticipantSession

    if expected_rounds is None:
        expected_rounds = get_expected_rounds()

    with transaction.atomic():
        locked = ParticipantSession.objects.select_for_update().get(pk=session.pk)
        rounds = list(locked.rounds or [])
        before = len(rounds)
        if before <= expected_rounds:
            return RepairOutcome(str(locked.pk), before, before, False, False, dry_run)

        cleaned, needs_review = truncate_rounds(rounds, locked.started_with_color, expected_rounds)
        outcome = RepairOutcome(str(locked.pk), before, len(cleaned), True, needs_review, dry_run)
        if dry_run:
            logger.info("[dry run] Session %s: %d -> %d rounds", locked.pk, before, len(cleaned))
            return outcome

        locked.rounds = cleaned
        locked.results = compute_session_results(cleaned)
        update_fields = ["rounds", "results"]
        if needs_review:
            locked.needs_review = True
            flags = list(locked.quality_flags or [])
            if NEEDS_REVIEW_FLAG not in flags:
                flags.append(NEEDS_REVIEW_FLAG)
            locked.quality_flags = flags
            update_fields += ["needs_review", "quality_flags"]
        locked.save(update_fields=update_fields)
        logger.info("Session %s repaired: %d -> %d rounds", locked.pk, before, len(cleaned))
    return outcome
