import json
import logging

from django.conf import settings
from django.db import DatabaseError
from django.db import connection
from django.http import JsonResponse
from django.utils import timezone
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from memorygrid.participants.helpers.aggregation import compute_session_results
from memorygrid.participants.helpers.quality import compute_quality_flags
from memorygrid.participants.helpers.quality import find_metric_discrepancies
from memorygrid.participants.helpers.repair import get_expected_rounds
from memorygrid.participants.helpers.serialization import session_to_dict
from memorygrid.participants.helpers.serialization import validate_rounds
from memorygrid.participants.models import ParticipantSession

logger = logging.getLogger(__name__)


def _discrepancy_tolerance() -> float:
    return getattr(settings, "MEMORYGRID_DISCREPANCY_TOLERANCE", 0.05)


class HealthView(View):
    def get(self, request):
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
        except DatabaseError:
            logger.exception("Health check: database unavailable")
            return JsonResponse(
                {"status": "error", "db_connected": False, "timestamp": timezone.now().isoformat()},
                status=500,
            )
        return JsonResponse({"status": "ok", "db_connected": True, "timestamp": timezone.now().isoformat()})


class TestStatsView(View):
    """
    Counts of participants by starting condition, used to balance assignment.

    The recommendation is advisory: two clients reading at once may both be
    told the same condition.
    """

    def get(self, request):
        total = ParticipantSession.objects.count()
        color_first = ParticipantSession.objects.filter(started_with_color=True).count()
        monochrome_first = total - color_first
        return JsonResponse(
            {
                "total_participants": total,
                "color_first_count": color_first,
                "monochrome_first_count": monochrome_first,
                "recommended_start_with_color": monochrome_first > color_first,
            }
        )


@method_decorator(csrf_exempt, name="dispatch")
class ParticipantSubmitView(View):
    """
    Receives, validates and stores a finalized ParticipantSession payload.

    Results are always recomputed from the rounds; client-reported results
    that differ by more than the tolerance are recorded as quality flags.

    Returns:
        201 {"message": "...", "id": "<uuid>"}
        422 on invalid JSON, missing fields or malformed rounds
    """

    REQUIRED_FIELDS = frozenset(
        {
            "name",
            "started_with_color",
            "calibration_level",
            "test_level",
            "rounds",
        }
    )

    def post(self, request):
        try:
            data = json.loads(request.body)
        except (json.JSONDecodeError, ValueError):
            return JsonResponse({"error": "Invalid JSON"}, status=422)
        if not isinstance(data, dict):
            return JsonResponse({"error": "Expected a JSON object"}, status=422)

        missing = self.REQUIRED_FIELDS - set(data.keys())
        if missing:
            return JsonResponse(
                {"error": f"Missing fields: {', '.join(sorted(missing))}"},
                status=422,
            )

        rounds_error = validate_rounds(data["rounds"])
        if rounds_error:
            return JsonResponse({"error": rounds_error}, status=422)

        for key in ("calibration_level", "test_level"):
            if not isinstance(data[key], int) or isinstance(data[key], bool) or data[key] < 0:
                return JsonResponse({"error": f"{key} must be a non-negative integer"}, status=422)

        rounds = data["rounds"]
        server_results = compute_session_results(rounds)
        client_results = data.get("results") or {}

        quality_flags = compute_quality_flags(data, get_expected_rounds())
        quality_flags += find_metric_discrepancies(client_results, server_results, _discrepancy_tolerance())

        session = ParticipantSession.objects.create(
            name=data["name"],
            started_with_color=bool(data["started_with_color"]),
            library=data.get("library") or "Other",
            candy=data.get("candy") or "",
            calibration_level=data["calibration_level"],
            test_level=data["test_level"],
            rounds=rounds,
            results=server_results,
            quality_flags=quality_flags,
        )
        if quality_flags:
            logger.warning("Session %s stored with quality flags: %s", session.pk, ", ".join(quality_flags))
        else:
            logger.info("Session %s stored (%d rounds)", session.pk, len(rounds))

        return JsonResponse({"message": "Participant data saved successfully", "id": str(session.id)}, status=201)


class ResultsView(View):
    """All stored sessions, most recent first, without participant names."""

    def get(self, request):
        sessions = ParticipantSession.objects.order_by("-timestamp")
        return JsonResponse([session_to_dict(s, include_name=False) for s in sessions], safe=False)


health_view = HealthView.as_view()
test_stats_view = TestStatsView.as_view()
participant_submit_view = ParticipantSubmitView.as_view()
results_view = ResultsView.as_view()
