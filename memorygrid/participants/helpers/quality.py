"""
Quality flag computation for submitted ParticipantSessions.

All functions are pure (no ORM calls). Flag strings are snake_case
identifiers stored in ParticipantSession.quality_flags (a list of strings).
"""
from collections import Counter

from memorygrid.trials.constants import starting_condition


def flag_round_count(rounds: list, expected_rounds: int) -> bool:
    """Return True if the session does not hold exactly *expected_rounds* rounds."""
    return len(rounds) != expected_rounds


def flag_condition_order(rounds: list, started_with_color: bool) -> bool:
    """Return True if the first round is not in the declared starting condition."""
    if not rounds:
        return False
    return rounds[0].get("condition") != starting_condition(started_with_color)


def flag_duplicate_rounds(rounds: list) -> bool:
    """Return True if any (condition, round_number) pair occurs more than once."""
    counts = Counter((r.get("condition"), r.get("round_number")) for r in rounds)
    return any(n > 1 for n in counts.values())


def flag_negative_timing(rounds: list) -> bool:
    """Return True if any round carries a negative duration or selection interval."""
    for r in rounds:
        if (r.get("total_time") or 0) < 0:
            return True
        if any(t < 0 for t in (r.get("selection_times") or [])):
            return True
    return False


def find_metric_discrepancies(client_results: dict, server_results: dict, tolerance: float = 0.05) -> list[str]:
    """
    Compare client-reported results against the server recomputation.

    Returns one ``metric_discrepancy_<field>`` flag per field whose relative
    difference exceeds *tolerance*. Fields missing on either side, non-numeric
    values and server values of 0 are skipped.
    """
    flags = []
    for key, server_val in server_results.items():
        client_val = client_results.get(key)
        if server_val is None or client_val is None:
            continue
        try:
            if server_val != 0 and abs((server_val - client_val) / server_val) > tolerance:
                flags.append(f"metric_discrepancy_{key}")
        except TypeError:
            continue
    return flags


def compute_quality_flags(data: dict, expected_rounds: int) -> list[str]:
    """
    Compute all structural quality flags for a submitted session payload.

    Flags:
      "unexpected_round_count":   round count differs from the expected count
      "condition_order_mismatch": first round not in the declared start condition
      "duplicate_round_numbers":  a condition repeats a round number
      "negative_timing":          a negative duration or interval
    """
    rounds = data.get("rounds") or []
    flags = []
    if flag_round_count(rounds, expected_rounds):
        flags.append("unexpected_round_count")
    if flag_condition_order(rounds, bool(data.get("started_with_color"))):
        flags.append("condition_order_mismatch")
    if flag_duplicate_rounds(rounds):
        flags.append("duplicate_round_numbers")
    if flag_negative_timing(rounds):
        flags.append("negative_timing")
    return flags
