from django.contrib import admin

from .models import ParticipantSession


@admin.register(ParticipantSession)
class ParticipantSessionAdmin(admin.ModelAdmin):
    list_display = ["id", "name", "timestamp", "started_with_color", "test_level", "needs_review"]
    list_filter = ["started_with_color", "needs_review", "library"]
    search_fields = ["name", "id"]
    ordering = ["-timestamp"]
    readonly_fields = ["results", "quality_flags"]
