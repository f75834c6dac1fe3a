from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from memorygrid.participants.tests.factories import ParticipantSessionFactory
from memorygrid.participants.tests.factories import full_run


@pytest.mark.django_db
class TestAnalyzeClickTimesCommand:
    def test_writes_csv_and_report(self, tmp_path):
        ParticipantSessionFactory(rounds=full_run(times=(300, 250, 200)))
        ParticipantSessionFactory(rounds=full_run(times=(320, 260, 240)))
        out = StringIO()
        call_command("analyze_click_times", "--output-dir", str(tmp_path), stdout=out)

        csv_lines = (tmp_path / "click_data.csv").read_text(encoding="utf-8").splitlines()
        assert csv_lines[0].startswith("session_id,condition,round_number")
        assert len(csv_lines) == 1 + 2 * 14 * 3
        assert "Click Time Analysis" in (tmp_path / "click_time_analysis.html").read_text(encoding="utf-8")
        output = out.getvalue()
        assert "Color: mean=" in output
        assert "Report written to" in output

    def test_empty_database_raises_command_error(self, tmp_path):
        with pytest.raises(CommandError, match="Not enough data"):
            call_command("analyze_click_times", "--output-dir", str(tmp_path), stdout=StringIO())
        assert not (tmp_path / "click_data.csv").exists()
