"""XLSX export: one workbook with summary, round, wide-format and per-participant sheets."""
import io

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from memorygrid.export.helpers.tables import ROUND_COLUMNS
from memorygrid.export.helpers.tables import aggregated_statistics
from memorygrid.export.helpers.tables import cell_value
from memorygrid.export.helpers.tables import round_table
from memorygrid.export.helpers.tables import summary_table
from memorygrid.export.helpers.tables import wide_table
from memorygrid.participants.helpers.aggregation import RESULT_FIELDS

MIN_COL_WIDTH = 10
MAX_COL_WIDTH = 40
COL_PADDING_CHARS = 2

SHEET_SUMMARY = "Summary Data"
SHEET_ROUNDS = "Round Data"
SHEET_WIDE = "Participants-Wide Format"
SHEET_AGGREGATED = "Aggregated Statistics"

PROPERTY_FIELDS = [
    ("Participant ID", "id"),
    ("Name", "name"),
    ("Timestamp", "timestamp"),
    ("Started With Color", "started_with_color"),
    ("Library", "library"),
    ("Candy", "candy"),
    ("Calibration Level", "calibration_level"),
    ("Test Level", "test_level"),
]


def _write_table(ws, header: list, rows: list, start_row: int = 1) -> None:
    for col_idx, title in enumerate(header, start=1):
        ws.cell(row=start_row, column=col_idx, value=title).font = Font(bold=True)
    for row_offset, row in enumerate(rows, start=1):
        for col_idx, value in enumerate(row, start=1):
            ws.cell(row=start_row + row_offset, column=col_idx, value=value)


def _fit_columns(ws) -> None:
    for col_idx in range(1, ws.max_column + 1):
        max_len = 0
        for row_idx in range(1, ws.max_row + 1):
            value = ws.cell(row=row_idx, column=col_idx).value
            if value is not None:
                max_len = max(max_len, len(str(value)))
        width = max(MIN_COL_WIDTH, min(MAX_COL_WIDTH, max_len + COL_PADDING_CHARS))
        ws.column_dimensions[get_column_letter(col_idx)].width = width


def _participant_sheet(ws, session: dict) -> None:
    properties = [[label, cell_value(session.get(key))] for label, key in PROPERTY_FIELDS]
    results = session.get("results") or {}
    properties += [[field, cell_value(results.get(field))] for field in RESULT_FIELDS]
    _write_table(ws, ["Property", "Value"], properties)

    rounds = session.get("rounds") or []
    if rounds:
        title_row = len(properties) + 3
        ws.cell(row=title_row, column=1, value="Rounds Data").font = Font(bold=True)
        rows = [[cell_value(r.get(col)) for col in ROUND_COLUMNS] for r in rounds]
        _write_table(ws, ROUND_COLUMNS, rows, start_row=title_row + 1)


def build_workbook(sessions: list) -> Workbook:
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_SUMMARY
    _write_table(ws, *summary_table(sessions))

    for title, builder in (
        (SHEET_ROUNDS, round_table),
        (SHEET_WIDE, wide_table),
        (SHEET_AGGREGATED, aggregated_statistics),
    ):
        _write_table(wb.create_sheet(title), *builder(sessions))

    for index, session in enumerate(sessions, start=1):
        _participant_sheet(wb.create_sheet(f"Participant {index}"), session)

    for sheet in wb.worksheets:
        _fit_columns(sheet)
    return wb


def workbook_bytes(sessions: list) -> bytes:
    buffer = io.BytesIO()
    build_workbook(sessions).save(buffer)
    return buffer.getvalue()
