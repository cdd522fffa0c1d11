"""API URL configuration."""
from __future__ import annotations

from django.urls import path

from weatherlink.api.views import HealthView, ObservationView

urlpatterns = [
    path("obs", ObservationView.as_view(), name="obs"),
    path("health", HealthView.as_view(), name="health"),
]
