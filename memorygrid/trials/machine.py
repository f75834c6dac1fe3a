"""State machine for the timed memory test.

The test is modelled as a pure transition function::

    step(state, event, rng) -> (new_state, effects)

``state`` is a frozen ``TrialState`` tagged by its ``phase``; ``effects`` is a
list of instructions for whoever hosts the machine (start or cancel a named
timer, emit a finished round, report session completion). The machine never
reads a clock: every event carries the time it happened at.

``TrialRunner`` is the imperative host used by a UI loop. It owns the
participant session for the duration of the run, keeps the pending timers,
and fires them from ``poll()`` against an injected clock.

Phases::

    idle -> counting -> revealing -> selecting -> round_complete
    round_complete -> revealing            (next round, same condition)
    round_complete -> break -> break_counting -> revealing   (switch condition)
    round_complete -> complete             (both conditions done)
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace
from typing import Callable

from memorygrid.trials.clock import MonotonicClock
from memorygrid.trials.constants import BREAK_SECONDS
from memorygrid.trials.constants import COUNTDOWN_SECONDS
from memorygrid.trials.constants import DISPLAY_TIME_MS
from memorygrid.trials.constants import ROUND_COMPLETE_PAUSE_MS
from memorygrid.trials.constants import ROUNDS_PER_CONDITION
from memorygrid.trials.constants import TICK_MS
from memorygrid.trials.constants import other_condition
from memorygrid.trials.constants import starting_condition
from memorygrid.trials.patterns import cell_colors
from memorygrid.trials.patterns import generate_pattern
from memorygrid.trials.patterns import grid_side
from memorygrid.trials.records import ParticipantSession
from memorygrid.trials.records import Round
from memorygrid.trials.records import SelectionEvent

logger = logging.getLogger(__name__)

PHASE_IDLE = "idle"
PHASE_COUNTING = "counting"
PHASE_REVEALING = "revealing"
PHASE_SELECTING = "selecting"
PHASE_ROUND_COMPLETE = "round_complete"
PHASE_BREAK = "break"
PHASE_BREAK_COUNTING = "break_counting"
PHASE_COMPLETE = "complete"
PHASE_TORN_DOWN = "torn_down"

TIMER_COUNTDOWN = "countdown"
TIMER_REVEAL = "reveal"
TIMER_ADVANCE = "advance"
TIMER_BREAK = "break"


# ─────────────────────────────────────────────────────────────────────────────
# Events
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Begin:
    at_ms: int


@dataclass(frozen=True)
class TimerFired:
    name: str
    at_ms: int


@dataclass(frozen=True)
class CellSelected:
    index: int
    at_ms: int


@dataclass(frozen=True)
class SkipBreak:
    at_ms: int


@dataclass(frozen=True)
class Teardown:
    at_ms: int = 0


# ─────────────────────────────────────────────────────────────────────────────
# Effects
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class StartTimer:
    name: str
    delay_ms: int


@dataclass(frozen=True)
class CancelTimer:
    name: str


@dataclass(frozen=True)
class EmitRound:
    round: Round


@dataclass(frozen=True)
class SessionComplete:
    pass


# ─────────────────────────────────────────────────────────────────────────────
# State
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TrialState:
    phase: str
    started_with_color: bool
    test_level: int
    condition: str
    side: int
    round_number: int = 1
    countdown_remaining: int = 0
    break_remaining: int = 0
    pattern: tuple[int, ...] = ()
    lit_cells: dict[int, str] = field(default_factory=dict)
    selections: tuple[SelectionEvent, ...] = ()
    initiated_ms: int = 0
    selecting_started_ms: int = 0
    last_selection_ms: int = 0
    pending_timer: str | None = None

    @property
    def correct_count(self) -> int:
        return sum(1 for s in self.selections if s.was_correct)

    def is_selected(self, index: int) -> bool:
        return any(s.cell_index == index for s in self.selections)


def initial_state(started_with_color: bool, test_level: int) -> TrialState:
    return TrialState(
        phase=PHASE_IDLE,
        started_with_color=started_with_color,
        test_level=test_level,
        condition=starting_condition(started_with_color),
        side=grid_side(test_level),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Transitions
# ─────────────────────────────────────────────────────────────────────────────


def step(state: TrialState, event, rng: random.Random) -> tuple[TrialState, list]:
    """Apply *event* to *state* and return the new state plus the effects to run.

    Events that do not apply to the current phase (a tap while the pattern is
    showing, a timer whose name is no longer pending) leave the state as is.
    """
    if isinstance(event, Teardown):
        effects = [CancelTimer(state.pending_timer)] if state.pending_timer else []
        return replace(state, phase=PHASE_TORN_DOWN, pending_timer=None), effects

    if state.phase in (PHASE_COMPLETE, PHASE_TORN_DOWN):
        return state, []

    if isinstance(event, Begin):
        if state.phase != PHASE_IDLE:
            return state, []
        return _start_countdown(state, PHASE_COUNTING)

    if isinstance(event, SkipBreak):
        if state.phase != PHASE_BREAK:
            return state, []
        state, effects = _start_countdown(replace(state, break_remaining=0), PHASE_BREAK_COUNTING)
        return state, [CancelTimer(TIMER_BREAK), *effects]

    if isinstance(event, CellSelected):
        return _select(state, event)

    if isinstance(event, TimerFired):
        if event.name != state.pending_timer:
            return state, []
        return _on_timer(state, event, rng)

    raise ValueError(f"Unknown event: {event!r}")


def _start_countdown(state: TrialState, phase: str) -> tuple[TrialState, list]:
    state = replace(
        state,
        phase=phase,
        countdown_remaining=COUNTDOWN_SECONDS,
        pending_timer=TIMER_COUNTDOWN,
    )
    return state, [StartTimer(TIMER_COUNTDOWN, TICK_MS)]


def _start_round(state: TrialState, at_ms: int, rng: random.Random) -> tuple[TrialState, list]:
    pattern = generate_pattern(rng, state.test_level, state.side)
    state = replace(
        state,
        phase=PHASE_REVEALING,
        pattern=pattern,
        lit_cells=cell_colors(rng, pattern, state.condition),
        selections=(),
        initiated_ms=at_ms,
        selecting_started_ms=0,
        last_selection_ms=0,
        pending_timer=TIMER_REVEAL,
    )
    return state, [StartTimer(TIMER_REVEAL, DISPLAY_TIME_MS)]


def _on_timer(state: TrialState, event: TimerFired, rng: random.Random) -> tuple[TrialState, list]:
    if event.name == TIMER_COUNTDOWN:
        remaining = state.countdown_remaining - 1
        if remaining > 0:
            return replace(state, countdown_remaining=remaining), [StartTimer(TIMER_COUNTDOWN, TICK_MS)]
        return _start_round(replace(state, countdown_remaining=0), event.at_ms, rng)

    if event.name == TIMER_REVEAL:
        state = replace(
            state,
            phase=PHASE_SELECTING,
            lit_cells={},
            selecting_started_ms=event.at_ms,
            last_selection_ms=event.at_ms,
            pending_timer=None,
        )
        return state, []

    if event.name == TIMER_ADVANCE:
        if state.round_number < ROUNDS_PER_CONDITION:
            return _start_round(replace(state, round_number=state.round_number + 1), event.at_ms, rng)
        if state.condition == starting_condition(state.started_with_color):
            state = replace(
                state,
                phase=PHASE_BREAK,
                condition=other_condition(state.condition),
                round_number=1,
                break_remaining=BREAK_SECONDS,
                pattern=(),
                selections=(),
                pending_timer=TIMER_BREAK,
            )
            return state, [StartTimer(TIMER_BREAK, TICK_MS)]
        return replace(state, phase=PHASE_COMPLETE, pending_timer=None), [SessionComplete()]

    if event.name == TIMER_BREAK:
        remaining = state.break_remaining - 1
        if remaining > 0:
            return replace(state, break_remaining=remaining), [StartTimer(TIMER_BREAK, TICK_MS)]
        return _start_countdown(replace(state, break_remaining=0), PHASE_BREAK_COUNTING)

    raise ValueError(f"Unknown timer: {event.name!r}")


def _select(state: TrialState, event: CellSelected) -> tuple[TrialState, list]:
    if state.phase != PHASE_SELECTING:
        return state, []
    if not 0 <= event.index < state.side * state.side:
        return state, []
    if state.is_selected(event.index) or len(state.selections) >= len(state.pattern):
        return state, []

    selection = SelectionEvent(
        cell_index=event.index,
        time_since_last_event=event.at_ms - state.last_selection_ms,
        was_correct=event.index in state.pattern,
    )
    state = replace(
        state,
        selections=state.selections + (selection,),
        last_selection_ms=event.at_ms,
    )
    # A round ends once as many cells have been accepted as were shown,
    # whether or not every one of them was correct.
    if len(state.selections) < len(state.pattern):
        return state, []

    finished = Round.build(
        condition=state.condition,
        round_number=state.round_number,
        pattern=state.pattern,
        selections=list(state.selections),
        selecting_started_ms=state.selecting_started_ms,
        initiated_ms=state.initiated_ms,
        finished_ms=event.at_ms,
    )
    state = replace(state, phase=PHASE_ROUND_COMPLETE, pending_timer=TIMER_ADVANCE)
    return state, [EmitRound(finished), StartTimer(TIMER_ADVANCE, ROUND_COMPLETE_PAUSE_MS)]


# ─────────────────────────────────────────────────────────────────────────────
# Hosts
# ─────────────────────────────────────────────────────────────────────────────


class TimerHost:
    """
    Keeps named timers for a pure state machine and fires them on ``poll()``.

    Subclasses provide ``_step(event)`` returning ``(state, effects)`` and
    ``_apply(effect)`` for effects other than timer bookkeeping.
    """

    def __init__(self, clock=None, rng: random.Random | None = None):
        self.clock = clock or MonotonicClock()
        self.rng = rng or random.Random()
        self._timers: dict[str, int] = {}

    @property
    def pending_timers(self) -> dict[str, int]:
        return dict(self._timers)

    def poll(self) -> None:
        """Fire every timer that is due, earliest first, at its due time."""
        now = self.clock.now_ms()
        while True:
            due = [(at, name) for name, at in self._timers.items() if at <= now]
            if not due:
                return
            at, name = min(due)
            del self._timers[name]
            self._dispatch(TimerFired(name=name, at_ms=at))

    def teardown(self) -> None:
        self._dispatch(Teardown(at_ms=self.clock.now_ms()))
        self._timers.clear()

    def _dispatch_input(self, event_type, **fields) -> None:
        """Fire due timers, then dispatch a user event stamped with the current time."""
        self.poll()
        self._dispatch(event_type(at_ms=self.clock.now_ms(), **fields))

    def _dispatch(self, event) -> None:
        self.state, effects = self._step(event)
        for effect in effects:
            if isinstance(effect, StartTimer):
                self._timers[effect.name] = event.at_ms + effect.delay_ms
            elif isinstance(effect, CancelTimer):
                self._timers.pop(effect.name, None)
            else:
                self._apply(effect)

    def _step(self, event):
        raise NotImplementedError

    def _apply(self, effect) -> None:
        raise NotImplementedError


class TrialRunner(TimerHost):
    """Runs the memory test for one participant session."""

    def __init__(
        self,
        session: ParticipantSession,
        clock=None,
        rng: random.Random | None = None,
        on_round: Callable[[Round], None] | None = None,
        on_complete: Callable[[ParticipantSession], None] | None = None,
    ):
        super().__init__(clock=clock, rng=rng)
        self.session = session
        self.on_round = on_round
        self.on_complete = on_complete
        self.state = initial_state(session.started_with_color, session.test_level)

    @property
    def phase(self) -> str:
        return self.state.phase

    def start(self) -> None:
        self._dispatch(Begin(at_ms=self.clock.now_ms()))

    def select_cell(self, index: int) -> None:
        self._dispatch_input(CellSelected, index=index)

    def skip_break(self) -> None:
        self._dispatch_input(SkipBreak)

    def _step(self, event):
        return step(self.state, event, self.rng)

    def _apply(self, effect) -> None:
        if isinstance(effect, EmitRound):
            self.session.add_round(effect.round)
            logger.debug(
                "Round %s/%s (%s) complete: error_rate=%.1f",
                effect.round.round_number,
                ROUNDS_PER_CONDITION,
                effect.round.condition,
                effect.round.error_rate,
            )
            if self.on_round:
                self.on_round(effect.round)
        elif isinstance(effect, SessionComplete):
            self.session.finalize()
            logger.info("Session for %s complete with %d rounds", self.session.name, len(self.session.rounds))
            if self.on_complete:
                self.on_complete(self.session)
        else:
            raise ValueError(f"Unknown effect: {effect!r}")
