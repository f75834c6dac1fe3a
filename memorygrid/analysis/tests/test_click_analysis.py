"""Tests for click extraction and the full click-time analysis."""
import pytest

from memorygrid.analysis.helpers.click_analysis import CLICK_COLUMNS
from memorygrid.analysis.helpers.click_analysis import analyze_click_times
from memorygrid.analysis.helpers.click_analysis import extract_clicks
from memorygrid.analysis.helpers.click_analysis import participant_condition_means
from memorygrid.analysis.helpers.statistics import InsufficientDataError
from memorygrid.participants.tests.factories import make_round
from memorygrid.trials.constants import COLOR
from memorygrid.trials.constants import MONOCHROME


def _session(session_id, color_times, monochrome_times):
    return {
        "id": session_id,
        "rounds": [
            make_round(COLOR, 1, times=color_times),
            make_round(MONOCHROME, 1, times=monochrome_times),
        ],
    }


def _sessions():
    return [
        _session("a", (300, 320, 340), (200, 230, 260)),
        _session("b", (410, 400, 420), (250, 270, 230)),
        _session("c", (350, 380, 330), (300, 280, 330)),
    ]


class TestExtractClicks:
    def test_one_record_per_selection_time(self):
        clicks = extract_clicks([_session("a", (1, 2, 3, 4), (5,))])
        assert len(clicks) == 5
        assert set(clicks[0]) == set(CLICK_COLUMNS)

    def test_position_flags_in_a_four_click_round(self):
        clicks = extract_clicks([_session("a", (1, 2, 3, 4), (5,))])[:4]
        assert [c["is_first"] for c in clicks] == [True, False, False, False]
        assert [c["is_last"] for c in clicks] == [False, False, False, True]
        assert [c["is_middle"] for c in clicks] == [False, True, True, False]
        assert [c["is_selected_middle"] for c in clicks] == [False, False, True, False]
        assert all(c["total_clicks"] == 4 for c in clicks)

    def test_single_click_round_is_first_and_last(self):
        click = extract_clicks([_session("a", (1, 2), (5,))])[-1]
        assert click["is_first"] and click["is_last"]
        assert not click["is_middle"]


class TestParticipantConditionMeans:
    def test_skips_sessions_missing_a_condition(self):
        sessions = _sessions() + [{"id": "d", "rounds": [make_round(COLOR, 1)]}]
        means = participant_condition_means(sessions)
        assert [m["session_id"] for m in means] == ["a", "b", "c"]
        assert means[0]["color_avg"] == pytest.approx(320)
        assert means[0]["monochrome_avg"] == pytest.approx(230)


class TestAnalyzeClickTimes:
    def test_summary_shape(self):
        analysis = analyze_click_times(_sessions())
        assert analysis["click_count"] == 18
        assert analysis["participants"] == 3
        assert analysis["color"]["n"] == 9
        assert analysis["monochrome"]["n"] == 9
        assert analysis["positions"]["first"]["n"] == 6
        assert analysis["positions"]["middle"]["n"] == 6
        assert set(analysis["position_tests"]) == {"first_vs_last", "first_vs_middle", "middle_vs_last"}

    def test_color_slower_than_monochrome(self):
        paired = analyze_click_times(_sessions())["color_vs_monochrome"]
        assert paired["mean_diff"] > 0
        assert paired["df"] == 2

    def test_first_vs_last_difference(self):
        test = analyze_click_times(_sessions())["position_tests"]["first_vs_last"]
        first = [300, 200, 410, 250, 350, 300]
        last = [340, 260, 420, 230, 330, 330]
        assert test["difference"] == pytest.approx(sum(first) / 6 - sum(last) / 6)

    def test_single_participant_is_insufficient(self):
        with pytest.raises(InsufficientDataError):
            analyze_click_times(_sessions()[:1])

    def test_no_sessions_is_insufficient(self):
        with pytest.raises(InsufficientDataError):
            analyze_click_times([])
