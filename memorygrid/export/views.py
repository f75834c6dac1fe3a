"""Research data export views.

Access restricted to superusers and staff with the ``export_data`` permission.
Every view reads the stored sessions once, builds its table or report from
that snapshot and logs the requesting user with the row count.
"""
import io
import logging

from django.contrib.auth.mixins import LoginRequiredMixin
from django.contrib.auth.mixins import UserPassesTestMixin
from django.http import HttpResponse
from django.http import JsonResponse
from django.utils import timezone
from django.views import View

from memorygrid.analysis.helpers.click_analysis import analyze_click_times
from memorygrid.analysis.helpers.statistics import DimensionMismatchError
from memorygrid.analysis.helpers.statistics import InsufficientDataError
from memorygrid.export.helpers.report import render_analysis_report
from memorygrid.export.helpers.tables import click_table
from memorygrid.export.helpers.tables import round_table
from memorygrid.export.helpers.tables import summary_table
from memorygrid.export.helpers.tables import write_csv
from memorygrid.export.helpers.workbook import workbook_bytes
from memorygrid.participants.helpers.serialization import load_session_dicts
from memorygrid.participants.models import ParticipantSession

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class ExportAccessMixin(LoginRequiredMixin, UserPassesTestMixin):
    """Allow access only to superusers or staff with export_data permission."""

    def test_func(self):
        user = self.request.user
        return user.is_superuser or (user.is_staff and user.has_perm("auth.export_data"))


def load_sessions(request) -> list[dict]:
    """
    Snapshot of stored sessions as dicts, oldest first.

    Query params:
        from_date  YYYY-MM-DD  inclusive lower bound on timestamp
        to_date    YYYY-MM-DD  inclusive upper bound on timestamp
    """
    qs = ParticipantSession.objects.order_by("timestamp")
    from_date = request.GET.get("from_date")
    to_date = request.GET.get("to_date")
    if from_date:
        qs = qs.filter(timestamp__date__gte=from_date)
    if to_date:
        qs = qs.filter(timestamp__date__lte=to_date)
    return load_session_dicts(qs)


def _attachment(response, stem: str, extension: str):
    response["Content-Disposition"] = (
        f'attachment; filename="{stem}_{timezone.now().date().isoformat()}.{extension}"'
    )
    return response


class CsvExportView(ExportAccessMixin, View):
    """One CSV table over all stored sessions; subclasses pick the table."""

    label = ""
    table_builder = None

    def get(self, request):
        sessions = load_sessions(request)
        output = io.StringIO()
        row_count = write_csv(output, *self.table_builder(sessions))
        response = HttpResponse(output.getvalue(), content_type="text/csv")
        logger.info("%s CSV export by user=%s rows=%d", self.label.capitalize(), request.user.pk, row_count)
        return _attachment(response, self.label, "csv")


class SessionCsvExportView(CsvExportView):
    label = "sessions"
    table_builder = staticmethod(summary_table)


class RoundCsvExportView(CsvExportView):
    label = "rounds"
    table_builder = staticmethod(round_table)


class ClickCsvExportView(CsvExportView):
    label = "clicks"
    table_builder = staticmethod(click_table)


class WorkbookExportView(ExportAccessMixin, View):
    def get(self, request):
        sessions = load_sessions(request)
        response = HttpResponse(workbook_bytes(sessions), content_type=XLSX_CONTENT_TYPE)
        logger.info("Workbook export by user=%s sessions=%d", request.user.pk, len(sessions))
        return _attachment(response, "participant_data_export", "xlsx")


class AnalysisReportView(ExportAccessMixin, View):
    """
    Click-time analysis rendered as a static HTML page.

    Returns 422 with the reason when the stored data cannot support the
    statistics (too few clicks or participants).
    """

    def get(self, request):
        sessions = load_sessions(request)
        try:
            analysis = analyze_click_times(sessions)
        except (InsufficientDataError, DimensionMismatchError) as exc:
            logger.warning("Analysis report by user=%s failed: %s", request.user.pk, exc)
            return JsonResponse({"error": str(exc)}, status=422)
        logger.info("Analysis report by user=%s clicks=%d", request.user.pk, analysis["click_count"])
        return HttpResponse(render_analysis_report(analysis), content_type="text/html")


session_csv_export_view = SessionCsvExportView.as_view()
round_csv_export_view = RoundCsvExportView.as_view()
click_csv_export_view = ClickCsvExportView.as_view()
workbook_export_view = WorkbookExportView.as_view()
analysis_report_view = AnalysisReportView.as_view()
