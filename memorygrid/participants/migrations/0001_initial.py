import uuid

import django.utils.timezone
from django.db import migrations
from django.db import models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ParticipantSession",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200)),
                ("started_with_color", models.BooleanField()),
                ("timestamp", models.DateTimeField(default=django.utils.timezone.now)),
                ("library", models.CharField(default="Other", max_length=100)),
                ("candy", models.CharField(blank=True, default="", max_length=100)),
                ("calibration_level", models.PositiveSmallIntegerField()),
                ("test_level", models.PositiveSmallIntegerField()),
                ("rounds", models.JSONField(default=list)),
                ("results", models.JSONField(default=dict)),
                ("quality_flags", models.JSONField(default=list)),
                ("needs_review", models.BooleanField(default=False)),
            ],
            options={
                "ordering": ["-timestamp"],
                "indexes": [
                    models.Index(fields=["timestamp"], name="participant_timestamp_idx"),
                    models.Index(fields=["started_with_color"], name="participant_started_color_idx"),
                ],
            },
        ),
    ]
