"""
Flat tables built from a batch of session dicts.

Every builder returns ``(header, rows)`` where rows are lists aligned with the
header, ready for ``csv.writer`` or an openpyxl worksheet. List-valued round
fields are joined with commas.
"""
import csv

from memorygrid.analysis.helpers.click_analysis import CLICK_COLUMNS
from memorygrid.analysis.helpers.click_analysis import extract_clicks
from memorygrid.participants.helpers.aggregation import RESULT_FIELDS

IDENTITY_COLUMNS = [
    "session_id",
    "name",
    "timestamp",
    "started_with_color",
    "library",
    "candy",
    "calibration_level",
    "test_level",
]

ROUND_COLUMNS = [
    "condition",
    "round_number",
    "pattern",
    "correct_selections",
    "incorrect_selections",
    "error_rate",
    "selection_times",
    "average_selection_time",
    "total_time",
    "effective_time",
    "time_including_dead_time",
]

WIDE_ROUND_METRICS = [
    ("error_rate", "ErrorRate"),
    ("average_selection_time", "AvgSelectionTime"),
    ("total_time", "TotalTime"),
    ("effective_time", "EffectiveTime"),
    ("time_including_dead_time", "TimeIncludingDeadTime"),
    ("correct_selections", "CorrectSelections"),
    ("incorrect_selections", "IncorrectSelections"),
]

AGGREGATED_RESULT_FIELDS = [
    "monochrome_error_rate",
    "color_error_rate",
    "monochrome_avg_click_time",
    "color_avg_click_time",
    "total_test_time",
]


def join_list(values) -> str:
    return ",".join(str(v) for v in values or [])


def cell_value(value):
    if isinstance(value, list):
        return join_list(value)
    return "" if value is None else value


def _identity(session: dict) -> list:
    return [
        session.get("id"),
        session.get("name", ""),
        session.get("timestamp"),
        session.get("started_with_color"),
        session.get("library"),
        session.get("candy"),
        session.get("calibration_level"),
        session.get("test_level"),
    ]


def summary_table(sessions: list):
    """One row per session: identity, every result field, round count."""
    header = IDENTITY_COLUMNS + list(RESULT_FIELDS) + ["round_count"]
    rows = []
    for session in sessions:
        results = session.get("results") or {}
        rows.append(
            _identity(session)
            + [cell_value(results.get(field)) for field in RESULT_FIELDS]
            + [len(session.get("rounds") or [])]
        )
    return header, rows


def round_table(sessions: list):
    """One row per stored round."""
    header = ["session_id", "name"] + ROUND_COLUMNS + ["started_with_color", "calibration_level", "test_level"]
    rows = []
    for session in sessions:
        for round_ in session.get("rounds") or []:
            rows.append(
                [session.get("id"), session.get("name", "")]
                + [cell_value(round_.get(col)) for col in ROUND_COLUMNS]
                + [session.get("started_with_color"), session.get("calibration_level"), session.get("test_level")]
            )
    return header, rows


def click_table(sessions: list):
    """One row per selection time, with first/middle/last position flags."""
    rows = [[click[col] for col in CLICK_COLUMNS] for click in extract_clicks(sessions)]
    return list(CLICK_COLUMNS), rows


def wide_table(sessions: list):
    """
    One row per session with every round spread into columns.

    Round columns are named ``Round{n}_{condition}_{Metric}`` and appear in the
    order they are first met across the batch.
    """
    result_columns = [f"Result_{field}" for field in RESULT_FIELDS]
    round_columns = []
    seen = set()
    records = []
    for session in sessions:
        results = session.get("results") or {}
        record = {f"Result_{field}": cell_value(results.get(field)) for field in RESULT_FIELDS}
        for round_ in session.get("rounds") or []:
            prefix = f"Round{round_.get('round_number')}_{round_.get('condition')}_"
            for key, suffix in WIDE_ROUND_METRICS:
                column = prefix + suffix
                if column not in seen:
                    seen.add(column)
                    round_columns.append(column)
                record[column] = cell_value(round_.get(key))
        records.append((session, record))

    header = IDENTITY_COLUMNS + result_columns + round_columns
    rows = [
        _identity(session) + [record.get(col, "") for col in result_columns + round_columns]
        for session, record in records
    ]
    return header, rows


def _average(values):
    numbers = [v for v in values if isinstance(v, (int, float)) and not isinstance(v, bool)]
    return sum(numbers) / len(numbers) if numbers else None


def aggregated_statistics(sessions: list):
    """Participant counts by starting condition and means of selected result fields."""
    color_first = sum(1 for s in sessions if s.get("started_with_color"))
    rows = [
        ["total_participants", len(sessions)],
        ["started_with_color", color_first],
        ["started_with_monochrome", len(sessions) - color_first],
    ]
    for field in AGGREGATED_RESULT_FIELDS:
        rows.append([f"average_{field}", _average((s.get("results") or {}).get(field) for s in sessions)])
    return ["statistic", "value"], rows


def write_csv(stream, header: list, rows: list) -> int:
    """Write a table to *stream*; returns the number of data rows written."""
    writer = csv.writer(stream)
    writer.writerow(header)
    writer.writerows(rows)
    return len(rows)
