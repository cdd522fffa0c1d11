"""Observation service: primary feed first, NWS nearest station as fallback."""
from __future__ import annotations

import logging
from typing import Optional

from ..entities import ObservationResult
from ..providers.base import ProviderError
from ..providers.nws import NWSProvider
from ..providers.primary import PrimaryFeedProvider


logger = logging.getLogger(__name__)


class ObservationPipelineError(ProviderError):
    """Raised when no provider could produce an observation.

    ``step`` names the pipeline stage that failed.
    """

    def __init__(self, step: str, message: str) -> None:
        super().__init__(message)
        self.step = step
        self.message = message


class ObservationService:
    def __init__(
        self,
        *,
        primary: Optional[PrimaryFeedProvider],
        fallback: NWSProvider,
        latitude: float,
        longitude: float,
    ) -> None:
        self.primary = primary
        self.fallback = fallback
        self.latitude = latitude
        self.longitude = longitude

    @property
    def primary_configured(self) -> bool:
        return self.primary is not None

    def get_current_observation(self) -> ObservationResult:
        step = "start"
        try:
            step = "primary"
            if self.primary is not None:
                try:
                    data, station = self.primary.current()
                except Exception as exc:  # noqa: BLE001 - any primary failure falls back
                    logger.warning("primary feed failed, falling back: %s", exc)
                else:
                    return ObservationResult(data=data, station=station, source="primary")

            step = "nws:resolve"
            station = self.fallback.resolve_nearest_station(self.latitude, self.longitude)

            step = "nws:fetch"
            properties = self.fallback.fetch_latest(station.url or "")

            step = "nws:normalize"
            data = self.fallback.normalize(properties)
        except ProviderError as exc:
            logger.error("observation pipeline failed at %s: %s", step, exc)
            raise ObservationPipelineError(step, str(exc)) from exc
        except Exception as exc:  # noqa: BLE001 - reported with the stage it escaped from
            logger.exception("unexpected error at %s", step)
            raise ObservationPipelineError(step, str(exc) or exc.__class__.__name__) from exc
        return ObservationResult(data=data, station=station, source="fallback")


__all__ = ["ObservationPipelineError", "ObservationService"]
