"""Management command to truncate sessions that stored more than one run."""
import logging

from django.core.management.base import BaseCommand

from memorygrid.participants.helpers.repair import get_expected_rounds
from memorygrid.participants.helpers.repair import repair_session
from memorygrid.participants.models import ParticipantSession

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Keep only the trailing run of rounds for over-long sessions and recompute their results."

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report what would change without writing anything.",
        )
        parser.add_argument(
            "--expected-rounds",
            type=int,
            default=None,
            help="Rounds in one complete run. Defaults to MEMORYGRID_EXPECTED_ROUNDS.",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        expected_rounds = options["expected_rounds"] or get_expected_rounds()
        sessions = list(ParticipantSession.objects.order_by("timestamp"))
        self.stdout.write(f"Checking {len(sessions)} session(s) against {expected_rounds} rounds…")

        fixed = 0
        for session in sessions:
            outcome = repair_session(session, dry_run=dry_run, expected_rounds=expected_rounds)
            if not outcome.changed:
                continue
            fixed += 1
            prefix = "[DRY RUN] would truncate" if dry_run else "Truncated"
            line = f"{prefix} {outcome.session_id}: {outcome.rounds_before} -> {outcome.rounds_after} rounds"
            if outcome.needs_review:
                line += " (start not found, flagged for review)"
            self.stdout.write(line)

        logger.info("repair_sessions: %d of %d session(s) %s", fixed, len(sessions), "would change" if dry_run else "repaired")
        self.stdout.write(self.style.SUCCESS(f"Done: {fixed} of {len(sessions)} session(s) {'would be ' if dry_run else ''}repaired."))
