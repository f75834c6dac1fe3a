"""Management command to write every export table and the XLSX workbook to a directory."""
import logging
from pathlib import Path

from django.core.management.base import BaseCommand
from django.utils import timezone

from memorygrid.export.helpers.tables import click_table
from memorygrid.export.helpers.tables import round_table
from memorygrid.export.helpers.tables import summary_table
from memorygrid.export.helpers.tables import write_csv
from memorygrid.export.helpers.workbook import build_workbook
from memorygrid.participants.helpers.serialization import load_session_dicts

logger = logging.getLogger(__name__)

CSV_EXPORTS = [
    ("sessions.csv", summary_table),
    ("rounds.csv", round_table),
    ("clicks.csv", click_table),
]


class Command(BaseCommand):
    help = "Export stored participant sessions as CSV tables and an XLSX workbook."

    def add_arguments(self, parser):
        parser.add_argument(
            "--output-dir",
            type=Path,
            default=Path("."),
            help="Directory to write into (created if missing).",
        )

    def handle(self, *args, **options):
        output_dir = options["output_dir"]
        output_dir.mkdir(parents=True, exist_ok=True)
        sessions = load_session_dicts()
        self.stdout.write(f"Exporting {len(sessions)} session(s) to {output_dir}…")

        for filename, builder in CSV_EXPORTS:
            path = output_dir / filename
            with path.open("w", newline="", encoding="utf-8") as stream:
                rows = write_csv(stream, *builder(sessions))
            self.stdout.write(f"  {filename}: {rows} row(s)")

        workbook_path = output_dir / f"participant_data_export_{timezone.now().date().isoformat()}.xlsx"
        build_workbook(sessions).save(workbook_path)
        self.stdout.write(f"  {workbook_path.name}")

        logger.info("export_sessions: %d session(s) written to %s", len(sessions), output_dir)
        self.stdout.write(self.style.SUCCESS("Export complete."))
