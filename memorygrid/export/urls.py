from django.urls import path

from .views import analysis_report_view
from .views import click_csv_export_view
from .views import round_csv_export_view
from .views import session_csv_export_view
from .views import workbook_export_view

app_name = "export"

urlpatterns = [
    path("sessions.csv", session_csv_export_view, name="session_csv"),
    path("rounds.csv", round_csv_export_view, name="round_csv"),
    path("clicks.csv", click_csv_export_view, name="click_csv"),
    path("workbook.xlsx", workbook_export_view, name="workbook"),
    path("report.html", analysis_report_view, name="report"),
]
