"""Tests for the calibration machine."""
import random

from memorygrid.trials.calibration import PHASE_COMPLETE
from memorygrid.trials.calibration import PHASE_LEVEL_COMPLETE
from memorygrid.trials.calibration import PHASE_PREPARING
from memorygrid.trials.calibration import PHASE_RETRYING
from memorygrid.trials.calibration import PHASE_REVEALING
from memorygrid.trials.calibration import PHASE_SELECTING
from memorygrid.trials.calibration import CalibrationRunner
from memorygrid.trials.clock import ManualClock


def _runner(seed=5, **kwargs):
    clock = ManualClock()
    return CalibrationRunner(clock=clock, rng=random.Random(seed), **kwargs), clock


def _settle(runner, clock):
    # Nothing is pending while selecting, so a long advance always lands there.
    clock.advance(10_000)
    runner.poll()
    assert runner.phase == PHASE_SELECTING


def _wrong_cells(state):
    return [i for i in range(state.side * state.side) if i not in state.pattern]


def _pass_level(runner, clock):
    _settle(runner, clock)
    for cell in runner.state.pattern:
        runner.select_cell(cell)
    assert runner.phase == PHASE_LEVEL_COMPLETE


def _lose_life(runner, clock):
    _settle(runner, clock)
    for cell in _wrong_cells(runner.state)[:3]:
        runner.select_cell(cell)


class TestCalibrationTiming:
    def test_prep_then_reveal_then_selecting(self):
        runner, clock = _runner()
        runner.start()
        assert runner.phase == PHASE_PREPARING
        assert runner.state.level == 1
        assert len(runner.state.pattern) == 3

        clock.advance(300)
        runner.poll()
        assert runner.phase == PHASE_REVEALING
        clock.advance(999)
        runner.poll()
        assert runner.phase == PHASE_REVEALING
        clock.advance(1)
        runner.poll()
        assert runner.phase == PHASE_SELECTING


    def test_tap_after_reveal_elapsed_without_poll_is_accepted(self):
        runner, clock = _runner()
        runner.start()
        clock.advance(300 + 1000 + 150)
        runner.select_cell(runner.state.pattern[0])
        assert runner.phase == PHASE_SELECTING
        assert runner.state.selected == (runner.state.pattern[0],)

class TestCalibrationLevels:
    def test_passing_a_level_moves_to_the_next(self):
        runner, clock = _runner()
        runner.start()
        _pass_level(runner, clock)
        clock.advance(500)
        runner.poll()
        assert runner.state.level == 2
        assert len(runner.state.pattern) == 4

    def test_repeat_taps_are_noops(self):
        runner, clock = _runner()
        runner.start()
        _settle(runner, clock)
        wrong = _wrong_cells(runner.state)[0]
        runner.select_cell(wrong)
        runner.select_cell(wrong)
        assert runner.state.mistakes == 1

    def test_three_mistakes_cost_a_life_and_restart_level(self):
        runner, clock = _runner()
        runner.start()
        _lose_life(runner, clock)
        assert runner.phase == PHASE_RETRYING
        assert runner.state.lives == 2

        clock.advance(300)
        runner.poll()
        assert runner.phase == PHASE_PREPARING
        assert runner.state.level == 1
        assert runner.state.mistakes == 0
        assert runner.state.selected == ()

    def test_losing_all_lives_ends_one_level_below(self):
        results = []
        runner, clock = _runner(on_complete=results.append)
        runner.start()
        _pass_level(runner, clock)
        _pass_level(runner, clock)
        assert runner.state.level == 2
        for _ in range(3):
            _lose_life(runner, clock)
        assert runner.phase == PHASE_COMPLETE
        assert runner.state.level == 3
        assert runner.calibration_level == 2
        assert results == [2]

    def test_calibration_level_never_below_one(self):
        runner, clock = _runner()
        runner.start()
        for _ in range(3):
            _lose_life(runner, clock)
        assert runner.calibration_level == 1

    def test_input_ignored_after_completion(self):
        runner, clock = _runner()
        runner.start()
        for _ in range(3):
            _lose_life(runner, clock)
        state = runner.state
        runner.select_cell(0)
        assert runner.state == state
