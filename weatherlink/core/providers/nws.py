"""National Weather Service fallback: nearest station lookup and latest reading."""
from __future__ import annotations

import time
from typing import Any, Dict, Mapping, Optional

import requests

from ..entities import CanonicalObservation, RawReading, StationDescriptor
from ..normalize import standardize
from .base import (
    MissingFieldsError,
    NoObservationAvailable,
    NoStationFound,
    ProviderError,
    RequestConfig,
    WeatherProvider,
)


DEFAULT_BASE_URL = "https://api.weather.gov"
DEFAULT_USER_AGENT = "McPhersonWeatherLink (admin@example.com)"


class NWSProvider(WeatherProvider):
    """Resolve the station nearest to a point and read its latest observation."""

    name = "nws"

    def __init__(
        self,
        *,
        user_agent: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        super().__init__(session=session, request_config=request_config)
        self.base_url = base_url.rstrip("/")
        self.default_headers = {
            "Accept": "application/geo+json",
            "User-Agent": user_agent or DEFAULT_USER_AGENT,
        }

    def resolve_nearest_station(self, latitude: float, longitude: float) -> StationDescriptor:
        """Return the first station the directory lists for the point.

        "Nearest" is the service's ordering, no distance is computed here.
        """
        points = self._fetch_json(
            f"{self.base_url}/points/{latitude},{longitude}",
            tag="NWS points",
            params=_cache_buster(),
            retries=1,
        )
        stations_url = _get(points, "properties", "observationStations")
        if not stations_url:
            raise NoStationFound("NWS: no observationStations link")

        stations = self._fetch_json(str(stations_url), tag="NWS stations", params=_cache_buster(), retries=1)
        features = _get(stations, "features") or []
        first = features[0] if isinstance(features, list) and features else None
        if not isinstance(first, Mapping) or not first.get("id"):
            raise NoStationFound("NWS: no stations returned")

        url = str(first["id"])
        properties = first.get("properties")
        if not isinstance(properties, Mapping):
            properties = {}
        station_id = properties.get("stationIdentifier") or url.rstrip("/").split("/")[-1]
        return StationDescriptor(
            id=station_id,
            name=properties.get("name") or station_id or "Nearest station",
            url=url,
        )

    def fetch_latest(self, station_url: str) -> Dict[str, Any]:
        """Latest observation properties, falling back to the observation list."""
        station_url = station_url.rstrip("/")
        try:
            latest = self._fetch_json(
                f"{station_url}/observations/latest",
                tag="NWS latest",
                params=_cache_buster(),
                retries=0,
            )
        except ProviderError as exc:
            self._log.warning("NWS latest observation failed, trying list: %s", exc)
        else:
            properties = _get(latest, "properties")
            if isinstance(properties, Mapping):
                return dict(properties)
            self._log.warning("NWS latest observation had no properties, trying list")

        params = _cache_buster()
        params["limit"] = 1
        try:
            listing = self._fetch_json(f"{station_url}/observations", tag="NWS list", params=params, retries=0)
        except ProviderError as exc:
            raise NoObservationAvailable(f"NWS: no observations available ({exc})") from exc
        features = _get(listing, "features") or []
        first = features[0] if isinstance(features, list) and features else None
        properties = first.get("properties") if isinstance(first, Mapping) else None
        if not isinstance(properties, Mapping):
            raise NoObservationAvailable("NWS: no observations available")
        return dict(properties)

    def normalize(self, properties: Any) -> CanonicalObservation:
        return standardize(adapt_properties(properties))


def adapt_properties(properties: Any) -> RawReading:
    """Map an NWS observation properties bag onto :class:`RawReading`."""
    if not isinstance(properties, Mapping):
        raise MissingFieldsError("NWS observation has no properties")
    pressure_pa = _value(properties, "barometricPressure")
    if pressure_pa is None:
        pressure_pa = _value(properties, "seaLevelPressure")
    return RawReading(
        timestamp=properties.get("timestamp"),
        temp_c=_value(properties, "temperature"),
        dewpoint_c=_value(properties, "dewpoint"),
        rh_pct=_value(properties, "relativeHumidity"),
        wind_speed=_value(properties, "windSpeed"),
        wind_unit=_get(properties, "windSpeed", "unitCode") or "m_s-1",
        wind_dir_deg=_value(properties, "windDirection"),
        pressure_pa=pressure_pa,
    )


def _value(properties: Mapping[str, Any], key: str) -> Any:
    return _get(properties, key, "value")


def _get(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, Mapping):
            return None
        data = data.get(key)
    return data


def _cache_buster() -> Dict[str, Any]:
    return {"_": int(time.time() * 1000)}


__all__ = ["DEFAULT_BASE_URL", "DEFAULT_USER_AGENT", "NWSProvider", "adapt_properties"]
