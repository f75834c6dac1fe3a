from uuid import uuid4

from django.db import models
from django.db.models import BooleanField
from django.db.models import CharField
from django.db.models import DateTimeField
from django.db.models import JSONField
from django.db.models import Model
from django.db.models import PositiveSmallIntegerField
from django.db.models import UUIDField
from django.utils import timezone


class ParticipantSession(Model):
    id = UUIDField(primary_key=True, default=uuid4, editable=False)
    name = CharField(max_length=200)
    started_with_color = BooleanField()
    timestamp = DateTimeField(default=timezone.now)
    # Testing location; free text so sites outside the preset list can be entered.
    library = CharField(max_length=100, default="Other")
    candy = CharField(max_length=100, blank=True, default="")
    calibration_level = PositiveSmallIntegerField()
    test_level = PositiveSmallIntegerField()
    rounds = JSONField(default=list)
    results = JSONField(default=dict)
    quality_flags = JSONField(default=list)
    needs_review = BooleanField(default=False)

    class Meta:
        ordering = ["-timestamp"]
        indexes = [
            models.Index(fields=["timestamp"], name="participant_timestamp_idx"),
            models.Index(fields=["started_with_color"], name="participant_started_color_idx"),
        ]

    def __str__(self) -> str:
        return f"Session {self.id}: {self.name}"

    @property
    def round_count(self) -> int:
        return len(self.rounds or [])
