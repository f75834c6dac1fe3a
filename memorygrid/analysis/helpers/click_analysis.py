"""
Click-time analysis over a batch of stored sessions.

Every inter-selection interval of every round becomes one click record. The
analysis compares colour against monochrome (paired over per-participant
means) and first, middle and last clicks within a round (independent
samples). Input is a list of session dicts as produced by
``session_to_dict``; nothing here touches the ORM.
"""
from dataclasses import asdict

from memorygrid.analysis.helpers.statistics import describe
from memorygrid.analysis.helpers.statistics import independent_t_test
from memorygrid.analysis.helpers.statistics import mean
from memorygrid.analysis.helpers.statistics import paired_t_test
from memorygrid.trials.constants import COLOR
from memorygrid.trials.constants import MONOCHROME

CLICK_COLUMNS = [
    "session_id",
    "condition",
    "round_number",
    "click_index",
    "click_time",
    "is_first",
    "is_last",
    "is_middle",
    "is_selected_middle",
    "total_clicks",
]


def extract_clicks(sessions: list) -> list[dict]:
    """
    One record per selection time, in session/round/click order.

    ``is_middle`` marks every click that is neither first nor last;
    ``is_selected_middle`` marks the single click at index ``total // 2`` that
    stands for the middle of the round in position comparisons.
    """
    clicks = []
    for session in sessions:
        for round_ in session.get("rounds") or []:
            times = round_.get("selection_times") or []
            total = len(times)
            for index, click_time in enumerate(times):
                is_first = index == 0
                is_last = index == total - 1
                clicks.append(
                    {
                        "session_id": session.get("id"),
                        "condition": round_.get("condition"),
                        "round_number": round_.get("round_number"),
                        "click_index": index,
                        "click_time": click_time,
                        "is_first": is_first,
                        "is_last": is_last,
                        "is_middle": not is_first and not is_last,
                        "is_selected_middle": index == total // 2,
                        "total_clicks": total,
                    }
                )
    return clicks


def participant_condition_means(sessions: list) -> list[dict]:
    """Per-session mean click time in each condition, for sessions with clicks in both."""
    means = []
    for session in sessions:
        times = {COLOR: [], MONOCHROME: []}
        for round_ in session.get("rounds") or []:
            if round_.get("condition") in times:
                times[round_["condition"]].extend(round_.get("selection_times") or [])
        if times[COLOR] and times[MONOCHROME]:
            means.append(
                {
                    "session_id": session.get("id"),
                    "color_avg": mean(times[COLOR]),
                    "monochrome_avg": mean(times[MONOCHROME]),
                }
            )
    return means


def analyze_click_times(sessions: list) -> dict:
    """
    Run the full click-time analysis.

    Returns a JSON-friendly dict with keys ``click_count``, ``participants``,
    ``color``, ``monochrome`` (mean/sd/n), ``color_vs_monochrome`` (paired
    test), ``positions`` (first/middle/last mean/sd/n) and ``position_tests``
    (independent tests first_vs_last, first_vs_middle, middle_vs_last).

    Raises InsufficientDataError when a group has too few clicks or fewer
    than two sessions have clicks in both conditions.
    """
    clicks = extract_clicks(sessions)
    by_condition = {
        condition: [c["click_time"] for c in clicks if c["condition"] == condition]
        for condition in (COLOR, MONOCHROME)
    }
    first = [c["click_time"] for c in clicks if c["is_first"]]
    middle = [c["click_time"] for c in clicks if c["is_selected_middle"]]
    last = [c["click_time"] for c in clicks if c["is_last"]]

    participant_means = participant_condition_means(sessions)
    paired = paired_t_test(
        [p["color_avg"] for p in participant_means],
        [p["monochrome_avg"] for p in participant_means],
    )

    return {
        "click_count": len(clicks),
        "participants": len(participant_means),
        "color": describe(by_condition[COLOR]),
        "monochrome": describe(by_condition[MONOCHROME]),
        "color_vs_monochrome": asdict(paired),
        "positions": {
            "first": describe(first),
            "middle": describe(middle),
            "last": describe(last),
        },
        "position_tests": {
            "first_vs_last": asdict(independent_t_test(first, last)),
            "first_vs_middle": asdict(independent_t_test(first, middle)),
            "middle_vs_last": asdict(independent_t_test(middle, last)),
        },
    }
