"""Management command to run the click-time analysis and write its CSV and HTML report."""
import logging
from pathlib import Path

from django.core.management.base import BaseCommand
from django.core.management.base import CommandError

from memorygrid.analysis.helpers.click_analysis import analyze_click_times
from memorygrid.analysis.helpers.statistics import DimensionMismatchError
from memorygrid.analysis.helpers.statistics import InsufficientDataError
from memorygrid.export.helpers.report import build_conclusions
from memorygrid.export.helpers.report import render_analysis_report
from memorygrid.export.helpers.tables import click_table
from memorygrid.export.helpers.tables import write_csv
from memorygrid.participants.helpers.serialization import load_session_dicts

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Compare click times between conditions and click positions; write click_data.csv and the HTML report."

    def add_arguments(self, parser):
        parser.add_argument(
            "--output-dir",
            type=Path,
            default=Path("."),
            help="Directory to write click_data.csv and click_time_analysis.html into.",
        )

    def handle(self, *args, **options):
        output_dir = options["output_dir"]
        sessions = load_session_dicts()
        self.stdout.write(f"Analysing {len(sessions)} session(s)…")

        try:
            analysis = analyze_click_times(sessions)
        except (InsufficientDataError, DimensionMismatchError) as exc:
            raise CommandError(f"Not enough data for the analysis: {exc}") from exc

        output_dir.mkdir(parents=True, exist_ok=True)
        with (output_dir / "click_data.csv").open("w", newline="", encoding="utf-8") as stream:
            write_csv(stream, *click_table(sessions))
        (output_dir / "click_time_analysis.html").write_text(render_analysis_report(analysis), encoding="utf-8")

        for condition in ("color", "monochrome"):
            summary = analysis[condition]
            self.stdout.write(
                f"{condition.capitalize()}: mean={summary['mean']:.2f}ms sd={summary['sd']:.2f}ms n={summary['n']}"
            )
        for line in build_conclusions(analysis):
            self.stdout.write(line)

        logger.info("analyze_click_times: %d click(s) analysed", analysis["click_count"])
        self.stdout.write(self.style.SUCCESS(f"Report written to {output_dir}"))
