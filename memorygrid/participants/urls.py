from django.urls import path

from .views import health_view
from .views import participant_submit_view
from .views import results_view
from .views import test_stats_view

app_name = "participants"
urlpatterns = [
    path("health/", view=health_view, name="health"),
    path("test-stats/", view=test_stats_view, name="test_stats"),
    path("participants/", view=participant_submit_view, name="submit"),
    path("results/", view=results_view, name="results"),
]
