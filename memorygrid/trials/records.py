"""Value records produced by the trial runners.

A ``Round`` is built once, from the pattern and the accepted selections, and
is frozen from then on. A ``ParticipantSession`` collects rounds while the
runner owns it; ``finalize()`` computes the results and closes it.
"""
from __future__ import annotations

from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import field

from memorygrid.participants.helpers.aggregation import compute_session_results
from memorygrid.trials.constants import CONDITIONS
from memorygrid.trials.constants import DISPLAY_TIME_MS


class SessionFinalizedError(Exception):
    """Raised when a finalized session is asked to accept more rounds."""


@dataclass(frozen=True)
class SelectionEvent:
    cell_index: int
    time_since_last_event: int
    was_correct: bool


@dataclass(frozen=True)
class Round:
    condition: str
    round_number: int
    pattern: tuple[int, ...]
    correct_selections: tuple[int, ...]
    incorrect_selections: tuple[int, ...]
    error_rate: float
    selection_times: tuple[int, ...]
    average_selection_time: float
    total_time: int
    effective_time: int
    time_including_dead_time: int

    @classmethod
    def build(
        cls,
        condition: str,
        round_number: int,
        pattern,
        selections: list[SelectionEvent],
        selecting_started_ms: int,
        initiated_ms: int,
        finished_ms: int,
        display_time_ms: int = DISPLAY_TIME_MS,
    ) -> "Round":
        """Derive every round metric from the raw selections and timestamps."""
        if condition not in CONDITIONS:
            raise ValueError(f"Unknown condition: {condition!r}")
        correct = tuple(s.cell_index for s in selections if s.was_correct)
        incorrect = tuple(s.cell_index for s in selections if not s.was_correct)
        times = tuple(s.time_since_last_event for s in selections)
        total_time = finished_ms - selecting_started_ms
        return cls(
            condition=condition,
            round_number=round_number,
            pattern=tuple(pattern),
            correct_selections=correct,
            incorrect_selections=incorrect,
            error_rate=(len(incorrect) / len(selections)) * 100 if selections else 0.0,
            selection_times=times,
            average_selection_time=sum(times) / len(times) if times else 0.0,
            total_time=total_time,
            effective_time=total_time - display_time_ms,
            time_including_dead_time=finished_ms - initiated_ms,
        )

    @property
    def selection_count(self) -> int:
        return len(self.correct_selections) + len(self.incorrect_selections)

    def as_dict(self) -> dict:
        data = asdict(self)
        for key in ("pattern", "correct_selections", "incorrect_selections", "selection_times"):
            data[key] = list(data[key])
        return data


@dataclass
class ParticipantSession:
    name: str
    started_with_color: bool
    calibration_level: int
    test_level: int
    library: str = "Other"
    candy: str = ""
    rounds: list[Round] = field(default_factory=list)
    results: dict | None = None

    @property
    def is_finalized(self) -> bool:
        return self.results is not None

    def add_round(self, round_: Round) -> None:
        if self.is_finalized:
            raise SessionFinalizedError("Session already finalized; rounds are read-only.")
        self.rounds.append(round_)

    def rounds_for(self, condition: str) -> list[Round]:
        return [r for r in self.rounds if r.condition == condition]

    def finalize(self) -> dict:
        """Compute the session results from the collected rounds and close the session."""
        if self.results is None:
            self.results = compute_session_results([r.as_dict() for r in self.rounds])
        return self.results

    def as_payload(self) -> dict:
        """Return the JSON document submitted to the session store."""
        return {
            "name": self.name,
            "started_with_color": self.started_with_color,
            "library": self.library,
            "candy": self.candy,
            "calibration_level": self.calibration_level,
            "test_level": self.test_level,
            "rounds": [r.as_dict() for r in self.rounds],
            "results": dict(self.results) if self.results is not None else {},
        }
