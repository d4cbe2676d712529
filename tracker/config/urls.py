from django.urls import include, path

from apps.core.views import HealthCheckView, ReadinessCheckView

urlpatterns = [
    path("health/", HealthCheckView.as_view(), name="health"),
    path("ready/", ReadinessCheckView.as_view(), name="ready"),
    path("api/v1/", include("api.v1.urls")),
]
