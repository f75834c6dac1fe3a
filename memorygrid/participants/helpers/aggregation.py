"""
Session results: per-condition summaries folded from the stored rounds.

Pure functions over round dicts (the JSON document shape); no ORM. The same
function runs on the client when a session is finalized, on the server when a
session is submitted, and during repair.
"""
import statistics

from memorygrid.trials.constants import CONDITIONS

RESULT_METRICS = (
    "error_rate",
    "correct_total",
    "incorrect_total",
    "avg_click_time",
    "avg_round_time",
    "avg_effective_time",
)

RESULT_FIELDS = tuple(
    f"{condition}_{metric}" for metric in RESULT_METRICS for condition in CONDITIONS
) + ("total_test_time",)


def _mean_or_zero(values) -> float:
    return statistics.mean(values) if values else 0


def summarize_condition(rounds: list) -> dict:
    """
    Summarise the rounds of a single condition.

    Returns dict with:
      error_rate        : mean of the per-round error rates (percent)
      correct_total     : number of correct selections over all rounds
      incorrect_total   : number of incorrect selections over all rounds
      avg_click_time    : mean of every inter-selection interval, pooled
      avg_round_time    : mean of per-round total_time
      avg_effective_time: mean of per-round effective_time
    All values are 0 for an empty list.
    """
    click_times = [t for r in rounds for t in (r.get("selection_times") or [])]
    return {
        "error_rate": _mean_or_zero([r.get("error_rate", 0) for r in rounds]),
        "correct_total": sum(len(r.get("correct_selections") or []) for r in rounds),
        "incorrect_total": sum(len(r.get("incorrect_selections") or []) for r in rounds),
        "avg_click_time": _mean_or_zero(click_times),
        "avg_round_time": _mean_or_zero([r.get("total_time", 0) for r in rounds]),
        "avg_effective_time": _mean_or_zero([r.get("effective_time", 0) for r in rounds]),
    }


def compute_session_results(rounds: list) -> dict:
    """Return the flat results dict (``RESULT_FIELDS``) for a list of round dicts."""
    results = {}
    for condition in CONDITIONS:
        summary = summarize_condition([r for r in rounds if r.get("condition") == condition])
        for metric, value in summary.items():
            results[f"{condition}_{metric}"] = value
    results["total_test_time"] = sum(r.get("total_time", 0) for r in rounds)
    return results
