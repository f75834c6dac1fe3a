"""Tests for research data export views."""
import csv
import io

import pytest
from django.urls import reverse
from openpyxl import load_workbook

from memorygrid.participants.models import ParticipantSession
from memorygrid.participants.tests.factories import ParticipantSessionFactory
from memorygrid.participants.tests.factories import UserFactory
from memorygrid.participants.tests.factories import full_run

EXPORT_VIEWS = ["export:session_csv", "export:round_csv", "export:click_csv", "export:workbook", "export:report"]


def _superuser():
    return UserFactory(is_superuser=True, is_staff=True)


def _csv_rows(response):
    return list(csv.reader(io.StringIO(response.content.decode("utf-8"))))


# ─────────────────────────────────────────────────────────────────────────────
# Access control (common to all export views)
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.django_db
class TestExportAccessControl:
    @pytest.mark.parametrize("view_name", EXPORT_VIEWS)
    def test_anonymous_redirected(self, client, view_name):
        response = client.get(reverse(view_name))
        assert response.status_code == 302

    @pytest.mark.parametrize("view_name", EXPORT_VIEWS)
    def test_regular_user_forbidden(self, client, view_name):
        client.force_login(UserFactory())
        response = client.get(reverse(view_name))
        assert response.status_code == 403

    def test_staff_without_permission_forbidden(self, client):
        client.force_login(UserFactory(is_staff=True))
        response = client.get(reverse("export:session_csv"))
        assert response.status_code == 403


# ─────────────────────────────────────────────────────────────────────────────
# CSV and workbook exports
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.django_db
class TestCsvExports:
    def test_session_csv(self, client):
        ParticipantSessionFactory.create_batch(2)
        client.force_login(_superuser())
        response = client.get(reverse("export:session_csv"))
        assert response.status_code == 200
        assert response["Content-Type"] == "text/csv"
        assert 'filename="sessions_' in response["Content-Disposition"]
        rows = _csv_rows(response)
        assert rows[0][0] == "session_id"
        assert len(rows) == 3

    def test_round_csv(self, client):
        ParticipantSessionFactory()
        client.force_login(_superuser())
        rows = _csv_rows(client.get(reverse("export:round_csv")))
        assert len(rows) == 1 + 14

    def test_click_csv(self, client):
        ParticipantSessionFactory()
        client.force_login(_superuser())
        rows = _csv_rows(client.get(reverse("export:click_csv")))
        assert len(rows) == 1 + 14 * 3

    def test_date_filter(self, client):
        old = ParticipantSessionFactory()
        ParticipantSessionFactory()
        ParticipantSession.objects.filter(pk=old.pk).update(timestamp="2020-01-15T10:00:00Z")
        client.force_login(_superuser())
        rows = _csv_rows(client.get(reverse("export:session_csv"), {"to_date": "2020-12-31"}))
        assert [row[0] for row in rows[1:]] == [str(old.pk)]
        rows = _csv_rows(client.get(reverse("export:session_csv"), {"from_date": "2021-01-01"}))
        assert len(rows) == 2

    def test_empty_database_gives_header_only(self, client):
        client.force_login(_superuser())
        assert len(_csv_rows(client.get(reverse("export:session_csv")))) == 1


@pytest.mark.django_db
class TestWorkbookExport:
    def test_xlsx_sheets(self, client):
        ParticipantSessionFactory()
        client.force_login(_superuser())
        response = client.get(reverse("export:workbook"))
        assert response.status_code == 200
        assert ".xlsx" in response["Content-Disposition"]
        wb = load_workbook(io.BytesIO(response.content))
        assert "Summary Data" in wb.sheetnames
        assert "Participant 1" in wb.sheetnames


# ─────────────────────────────────────────────────────────────────────────────
# Analysis report
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.django_db
class TestAnalysisReportView:
    def test_renders_html(self, client):
        ParticipantSessionFactory(rounds=full_run(times=(300, 250, 200)))
        ParticipantSessionFactory(rounds=full_run(times=(330, 260, 210)))
        client.force_login(_superuser())
        response = client.get(reverse("export:report"))
        assert response.status_code == 200
        assert response["Content-Type"].startswith("text/html")
        assert b"Click Time Analysis" in response.content

    def test_insufficient_data_returns_422(self, client):
        ParticipantSessionFactory()
        client.force_login(_superuser())
        response = client.get(reverse("export:report"))
        assert response.status_code == 422
        assert "error" in response.json()
