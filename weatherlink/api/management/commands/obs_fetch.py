"""Management command to fetch the current observation using the same stack as the API."""
from __future__ import annotations

import json
from typing import Any

from django.core.management.base import BaseCommand, CommandError

from weatherlink.api.views import _serialize_result, get_observation_service
from weatherlink.core.services.observation_service import ObservationPipelineError


class Command(BaseCommand):
    help = "Fetch the current observation (primary feed, then NWS fallback) and print it as JSON"

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        try:
            result = get_observation_service().get_current_observation()
        except ObservationPipelineError as exc:
            raise CommandError(f"Observation failed at {exc.step}: {exc.message}") from exc

        self.stdout.write(json.dumps(_serialize_result(result)))
