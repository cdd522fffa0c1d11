"""REST API views for the current observation."""
from __future__ import annotations

import logging
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict

from django.conf import settings
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from weatherlink.core.entities import CanonicalObservation, ObservationResult, StationDescriptor
from weatherlink.core.providers.base import RequestConfig
from weatherlink.core.providers.nws import NWSProvider
from weatherlink.core.providers.primary import PrimaryFeedProvider
from weatherlink.core.services.observation_service import ObservationPipelineError, ObservationService


logger = logging.getLogger(__name__)

# Names the fallback in the response; the UI only distinguishes the two.
USED_LABELS = {"primary": "primary", "fallback": "nws"}


@lru_cache(maxsize=1)
def get_observation_service() -> ObservationService:
    timeout_ms = settings.WEATHERLINK_TIMEOUT_MS
    primary = None
    if settings.PRIMARY_WEATHER_JSON_URL:
        primary = PrimaryFeedProvider(
            settings.PRIMARY_WEATHER_JSON_URL,
            zip_code=settings.WEATHERLINK_ZIP,
            request_config=RequestConfig(timeout_ms=timeout_ms, retries=0),
        )
    fallback = NWSProvider(
        user_agent=settings.NWS_USER_AGENT or None,
        base_url=settings.NWS_BASE_URL,
        request_config=RequestConfig(timeout_ms=timeout_ms, retries=1),
    )
    return ObservationService(
        primary=primary,
        fallback=fallback,
        latitude=settings.WEATHERLINK_LAT,
        longitude=settings.WEATHERLINK_LON,
    )


def _format_timestamp(value: datetime) -> str:
    return value.astimezone(settings.DEFAULT_TIMEZONE).isoformat().replace("+00:00", "Z")


def _serialize_observation(observation: CanonicalObservation) -> Dict[str, Any]:
    return {
        "tempF": observation.temp_f,
        "rh": observation.rh,
        "dryBulbF": observation.dry_bulb_f,
        "wetBulbF": observation.wet_bulb_f,
        "windMph": observation.wind_mph,
        "windDirDeg": observation.wind_dir_deg,
        "windDirTxt": observation.wind_dir_txt,
        "pressureInHg": observation.pressure_in_hg,
        "timestamp": _format_timestamp(observation.timestamp),
    }


def _serialize_station(station: StationDescriptor) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"id": station.id, "name": station.name}
    if station.url is not None:
        payload["url"] = station.url
    return payload


def _serialize_result(result: ObservationResult) -> Dict[str, Any]:
    return {
        "ok": True,
        "data": _serialize_observation(result.data),
        "station": _serialize_station(result.station),
        "used": USED_LABELS[result.source],
    }


class ObservationView(APIView):
    """Serve the current observation, primary feed first."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):  # noqa: D401
        try:
            result = get_observation_service().get_current_observation()
        except ObservationPipelineError as exc:
            return Response(
                {"ok": False, "step": exc.step, "error": exc.message},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        except Exception as exc:  # noqa: BLE001 - reported as a 500 payload
            logger.exception("unexpected observation failure")
            return Response(
                {"ok": False, "step": "start", "error": str(exc) or exc.__class__.__name__},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return Response(_serialize_result(result), status=status.HTTP_200_OK)


class HealthView(APIView):
    """Report which parts of the configuration are present."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):  # noqa: D401
        return Response(
            {
                "ok": True,
                "env": {
                    "primaryConfigured": bool(settings.PRIMARY_WEATHER_JSON_URL),
                    "userAgentConfigured": bool(settings.NWS_USER_AGENT),
                },
            },
            status=status.HTTP_200_OK,
        )
