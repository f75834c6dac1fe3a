"""Conversion between stored sessions and their JSON document shape."""
from memorygrid.trials.constants import CONDITIONS

ROUND_REQUIRED_FIELDS = frozenset(
    {
        "condition",
        "round_number",
        "pattern",
        "correct_selections",
        "incorrect_selections",
        "selection_times",
        "total_time",
    }
)

_ROUND_LIST_FIELDS = ("pattern", "correct_selections", "incorrect_selections", "selection_times")

_ROUND_OPTIONAL_NUMERIC_FIELDS = (
    "error_rate",
    "average_selection_time",
    "effective_time",
    "time_including_dead_time",
)


def is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_rounds(rounds) -> str | None:
    """Return an error message for the first invalid round, or None if all are valid."""
    if not isinstance(rounds, list):
        return "rounds must be a list"
    for position, round_ in enumerate(rounds):
        if not isinstance(round_, dict):
            return f"Round {position} is not an object"
        missing = ROUND_REQUIRED_FIELDS - set(round_.keys())
        if missing:
            return f"Round {position} missing fields: {', '.join(sorted(missing))}"
        if round_["condition"] not in CONDITIONS:
            return f"Round {position} has unknown condition: '{round_['condition']}'"
        if not isinstance(round_["round_number"], int) or isinstance(round_["round_number"], bool) or round_["round_number"] < 1:
            return f"Round {position} has invalid round_number"
        for key in _ROUND_LIST_FIELDS:
            if not isinstance(round_[key], list):
                return f"Round {position} field {key} must be a list"
        if not is_number(round_["total_time"]):
            return f"Round {position} field total_time must be a number"
        for key in _ROUND_OPTIONAL_NUMERIC_FIELDS:
            if key in round_ and not is_number(round_[key]):
                return f"Round {position} field {key} must be a number"
        if not all(is_number(t) for t in round_["selection_times"]):
            return f"Round {position} selection_times must hold only numbers"
    return None


def session_to_dict(session, include_name: bool = True) -> dict:
    data = {
        "id": str(session.id),
        "started_with_color": session.started_with_color,
        "timestamp": session.timestamp.isoformat() if session.timestamp else None,
        "library": session.library,
        "candy": session.candy,
        "calibration_level": session.calibration_level,
        "test_level": session.test_level,
        "rounds": session.rounds or [],
        "results": session.results or {},
        "quality_flags": session.quality_flags or [],
        "needs_review": session.needs_review,
    }
    if include_name:
        data["name"] = session.name
    return data


def load_session_dicts(queryset=None) -> list[dict]:
    """Read stored sessions once, oldest first, as a list of dicts."""
    from memorygrid.participants.models import ParticipantSession

    if queryset is None:
        queryset = ParticipantSession.objects.order_by("timestamp")
    return [session_to_dict(s) for s in queryset]
