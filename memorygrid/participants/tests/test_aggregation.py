"""Unit tests for session results aggregation."""
import pytest

from memorygrid.participants.helpers.aggregation import RESULT_FIELDS
from memorygrid.participants.helpers.aggregation import compute_session_results
from memorygrid.participants.tests.factories import full_run
from memorygrid.participants.tests.factories import make_round
from memorygrid.trials.constants import COLOR
from memorygrid.trials.constants import MONOCHROME


def _color_round(n, error_rate):
    r = make_round(COLOR, n)
    r["error_rate"] = error_rate
    return r


class TestComputeSessionResults:
    def test_every_field_present(self):
        results = compute_session_results(full_run())
        assert set(results) == set(RESULT_FIELDS)

    def test_error_rate_is_mean_of_round_rates(self):
        rounds = [_color_round(n, rate) for n, rate in enumerate([0, 10, 20, 0, 10], start=1)]
        results = compute_session_results(rounds)
        assert results["color_error_rate"] == pytest.approx(8)
        assert results["monochrome_error_rate"] == 0
        assert results["monochrome_correct_total"] == 0

    def test_empty_rounds_are_all_zero(self):
        results = compute_session_results([])
        assert all(value == 0 for value in results.values())

    def test_click_time_pools_all_selections(self):
        rounds = [
            make_round(MONOCHROME, 1, times=(100, 200)),
            make_round(MONOCHROME, 2, times=(400,)),
        ]
        results = compute_session_results(rounds)
        assert results["monochrome_avg_click_time"] == pytest.approx(700 / 3)

    def test_totals_and_times(self):
        rounds = [
            make_round(COLOR, 1, pattern=(0, 1, 2), correct=(0, 1), incorrect=(5,), times=(300, 300, 300)),
            make_round(COLOR, 2, times=(100, 100, 100)),
            make_round(MONOCHROME, 1, times=(200, 200, 200)),
        ]
        results = compute_session_results(rounds)
        assert results["color_correct_total"] == 5
        assert results["color_incorrect_total"] == 1
        assert results["color_avg_round_time"] == pytest.approx(600)
        assert results["color_avg_effective_time"] == pytest.approx(-400)
        assert results["total_test_time"] == 900 + 300 + 600

    def test_idempotent(self):
        rounds = full_run(times=(150, 250, 350))
        assert compute_session_results(rounds) == compute_session_results(rounds)
        assert compute_session_results(list(rounds)) == compute_session_results(rounds)
