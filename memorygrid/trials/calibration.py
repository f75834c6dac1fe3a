"""
Calibration: finds the level a participant can hold before the main test.

Same shape as the main test machine: a pure ``step`` over a frozen state plus a
``CalibrationRunner`` host. Levels start at 1; each level shows ``level + 2``
cells. Three wrong taps in a level cost a life and restart the level; losing the
last of three lives ends calibration one level below the level being played.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from dataclasses import replace
from typing import Callable

from memorygrid.trials.constants import CALIBRATION_LEVEL_PAUSE_MS
from memorygrid.trials.constants import CALIBRATION_LIVES
from memorygrid.trials.constants import CALIBRATION_MISTAKES_PER_LIFE
from memorygrid.trials.constants import CALIBRATION_PREP_MS
from memorygrid.trials.constants import CALIBRATION_RETRY_MS
from memorygrid.trials.constants import DISPLAY_TIME_MS
from memorygrid.trials.machine import Begin
from memorygrid.trials.machine import CancelTimer
from memorygrid.trials.machine import CellSelected
from memorygrid.trials.machine import StartTimer
from memorygrid.trials.machine import Teardown
from memorygrid.trials.machine import TimerFired
from memorygrid.trials.machine import TimerHost
from memorygrid.trials.patterns import generate_pattern
from memorygrid.trials.patterns import grid_side

logger = logging.getLogger(__name__)

PHASE_IDLE = "idle"
PHASE_PREPARING = "preparing"
PHASE_REVEALING = "revealing"
PHASE_SELECTING = "selecting"
PHASE_LEVEL_COMPLETE = "level_complete"
PHASE_RETRYING = "retrying"
PHASE_COMPLETE = "complete"
PHASE_TORN_DOWN = "torn_down"

TIMER_PREP = "prep"
TIMER_REVEAL = "reveal"
TIMER_NEXT_LEVEL = "next_level"
TIMER_RETRY = "retry"


@dataclass(frozen=True)
class CalibrationComplete:
    calibration_level: int


@dataclass(frozen=True)
class CalibrationState:
    phase: str = PHASE_IDLE
    level: int = 1
    lives: int = CALIBRATION_LIVES
    mistakes: int = 0
    side: int = 3
    pattern: tuple[int, ...] = ()
    selected: tuple[int, ...] = ()
    pending_timer: str | None = None
    calibration_level: int | None = None

    @property
    def correct_count(self) -> int:
        return sum(1 for i in self.selected if i in self.pattern)


def step(state: CalibrationState, event, rng: random.Random) -> tuple[CalibrationState, list]:
    if isinstance(event, Teardown):
        effects = [CancelTimer(state.pending_timer)] if state.pending_timer else []
        return replace(state, phase=PHASE_TORN_DOWN, pending_timer=None), effects

    if state.phase in (PHASE_COMPLETE, PHASE_TORN_DOWN):
        return state, []

    if isinstance(event, Begin):
        if state.phase != PHASE_IDLE:
            return state, []
        return _prepare_level(state, rng)

    if isinstance(event, TimerFired):
        if event.name != state.pending_timer:
            return state, []
        if event.name == TIMER_PREP:
            return replace(state, phase=PHASE_REVEALING, pending_timer=TIMER_REVEAL), [
                StartTimer(TIMER_REVEAL, DISPLAY_TIME_MS)
            ]
        if event.name == TIMER_REVEAL:
            return replace(state, phase=PHASE_SELECTING, pending_timer=None), []
        if event.name == TIMER_NEXT_LEVEL:
            return _prepare_level(replace(state, level=state.level + 1), rng)
        if event.name == TIMER_RETRY:
            return _prepare_level(state, rng)
        raise ValueError(f"Unknown timer: {event.name!r}")

    if isinstance(event, CellSelected):
        return _select(state, event.index)

    raise ValueError(f"Unknown event: {event!r}")


def _prepare_level(state: CalibrationState, rng: random.Random) -> tuple[CalibrationState, list]:
    side = grid_side(state.level)
    state = replace(
        state,
        phase=PHASE_PREPARING,
        side=side,
        pattern=generate_pattern(rng, state.level, side),
        selected=(),
        mistakes=0,
        pending_timer=TIMER_PREP,
    )
    return state, [StartTimer(TIMER_PREP, CALIBRATION_PREP_MS)]


def _select(state: CalibrationState, index: int) -> tuple[CalibrationState, list]:
    if state.phase != PHASE_SELECTING:
        return state, []
    if not 0 <= index < state.side * state.side or index in state.selected:
        return state, []

    state = replace(state, selected=state.selected + (index,))
    if index in state.pattern:
        if state.correct_count == len(state.pattern):
            state = replace(state, phase=PHASE_LEVEL_COMPLETE, pending_timer=TIMER_NEXT_LEVEL)
            return state, [StartTimer(TIMER_NEXT_LEVEL, CALIBRATION_LEVEL_PAUSE_MS)]
        return state, []

    mistakes = state.mistakes + 1
    if mistakes < CALIBRATION_MISTAKES_PER_LIFE:
        return replace(state, mistakes=mistakes), []

    lives = state.lives - 1
    if lives > 0:
        state = replace(state, mistakes=mistakes, lives=lives, phase=PHASE_RETRYING, pending_timer=TIMER_RETRY)
        return state, [StartTimer(TIMER_RETRY, CALIBRATION_RETRY_MS)]

    level = max(1, state.level - 1)
    state = replace(
        state,
        mistakes=mistakes,
        lives=0,
        phase=PHASE_COMPLETE,
        pending_timer=None,
        calibration_level=level,
    )
    return state, [CalibrationComplete(level)]


class CalibrationRunner(TimerHost):
    """Drives calibration and reports the level reached through ``on_complete``."""

    def __init__(self, clock=None, rng: random.Random | None = None, on_complete: Callable[[int], None] | None = None):
        super().__init__(clock=clock, rng=rng)
        self.on_complete = on_complete
        self.state = CalibrationState()

    @property
    def phase(self) -> str:
        return self.state.phase

    @property
    def calibration_level(self) -> int | None:
        return self.state.calibration_level

    def start(self) -> None:
        self._dispatch(Begin(at_ms=self.clock.now_ms()))

    def select_cell(self, index: int) -> None:
        self._dispatch_input(CellSelected, index=index)

    def _step(self, event):
        return step(self.state, event, self.rng)

    def _apply(self, effect) -> None:
        if not isinstance(effect, CalibrationComplete):
            raise ValueError(f"Unknown effect: {effect!r}")
        logger.info("Calibration finished at level %d", effect.calibration_level)
        if self.on_complete:
            self.on_complete(effect.calibration_level)
