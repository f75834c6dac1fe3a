"""Unit tests for the pure quality flag helpers."""
from memorygrid.participants.helpers.quality import compute_quality_flags
from memorygrid.participants.helpers.quality import find_metric_discrepancies
from memorygrid.participants.helpers.quality import flag_condition_order
from memorygrid.participants.helpers.quality import flag_duplicate_rounds
from memorygrid.participants.helpers.quality import flag_negative_timing
from memorygrid.participants.helpers.quality import flag_round_count
from memorygrid.participants.tests.factories import full_run
from memorygrid.participants.tests.factories import make_round
from memorygrid.trials.constants import COLOR
from memorygrid.trials.constants import MONOCHROME


# ─────────────────────────────────────────────────────────────────────────────
# Structural flags
# ─────────────────────────────────────────────────────────────────────────────


class TestStructuralFlags:
    def test_round_count(self):
        assert not flag_round_count(full_run(), 14)
        assert flag_round_count(full_run()[:13], 14)

    def test_condition_order(self):
        assert not flag_condition_order(full_run(started_with_color=True), True)
        assert flag_condition_order(full_run(started_with_color=False), True)
        assert not flag_condition_order([], True)

    def test_duplicate_rounds(self):
        assert not flag_duplicate_rounds(full_run())
        rounds = [make_round(COLOR, 1), make_round(MONOCHROME, 1), make_round(COLOR, 1)]
        assert flag_duplicate_rounds(rounds)

    def test_negative_timing(self):
        assert not flag_negative_timing(full_run())
        assert flag_negative_timing([make_round(COLOR, 1, times=(200, -5, 200))])
        bad_total = make_round(COLOR, 1)
        bad_total["total_time"] = -1
        assert flag_negative_timing([bad_total])


class TestComputeQualityFlags:
    def test_clean_session_has_no_flags(self):
        data = {"started_with_color": False, "rounds": full_run()}
        assert compute_quality_flags(data, 14) == []

    def test_collects_every_flag(self):
        rounds = [make_round(MONOCHROME, 1, times=(-1,)), make_round(MONOCHROME, 1)]
        flags = compute_quality_flags({"started_with_color": True, "rounds": rounds}, 14)
        assert flags == [
            "unexpected_round_count",
            "condition_order_mismatch",
            "duplicate_round_numbers",
            "negative_timing",
        ]


# ─────────────────────────────────────────────────────────────────────────────
# Client/server metric discrepancies
# ─────────────────────────────────────────────────────────────────────────────


class TestFindMetricDiscrepancies:
    def test_within_tolerance(self):
        assert find_metric_discrepancies({"a": 104}, {"a": 100}) == []

    def test_beyond_tolerance(self):
        assert find_metric_discrepancies({"a": 106}, {"a": 100}) == ["metric_discrepancy_a"]

    def test_skips_missing_zero_and_non_numeric(self):
        client = {"b": 5, "c": "fast"}
        server = {"a": 100, "b": 0, "c": 10}
        assert find_metric_discrepancies(client, server) == []

    def test_custom_tolerance(self):
        assert find_metric_discrepancies({"a": 104}, {"a": 100}, tolerance=0.01) == ["metric_discrepancy_a"]
