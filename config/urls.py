from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("memorygrid.participants.urls", namespace="participants")),
    path("export/", include("memorygrid.export.urls", namespace="export")),
]
