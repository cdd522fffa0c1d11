"""Adapter for the privately configured primary JSON feed.

The feed's schema is not published, so every field is looked up through an
ordered list of candidate extractors and the first non-null candidate wins.
When a payload carries several plausible keys that disagree (for example both
``tempC`` and ``tempF``), the earlier candidate is used without cross-checking.
"""
from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Sequence, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests

from ..entities import CanonicalObservation, RawReading, StationDescriptor
from ..normalize import safe_float, standardize
from ..units import f_to_c, inhg_to_pa
from .base import MissingFieldsError, RequestConfig, WeatherProvider


Extractor = Callable[[Mapping[str, Any]], Any]

# The primary's identity stays server-side.
PRIMARY_STATION = StationDescriptor(id="primary", name="primary")
DEFAULT_WIND_UNIT = "m_s-1"


def _path(*keys: str) -> Extractor:
    def extract(src: Mapping[str, Any]) -> Any:
        value: Any = src
        for key in keys:
            if not isinstance(value, Mapping):
                return None
            value = value.get(key)
        return value

    return extract


def _converted(key: str, convert: Callable[[Optional[float]], Optional[float]]) -> Extractor:
    def extract(src: Mapping[str, Any]) -> Any:
        value = src.get(key)
        if value is None:
            return None
        return convert(safe_float(value))

    return extract


TEMP_C: Sequence[Extractor] = (_path("tempC"), _path("temperatureC"), _converted("tempF", f_to_c))
DEWPOINT_C: Sequence[Extractor] = (_path("dewpointC"), _converted("dewpointF", f_to_c))
RH_PCT: Sequence[Extractor] = (_path("humidity"), _path("relativeHumidity"), _path("rh"))
WIND_SPEED: Sequence[Extractor] = (_path("windSpeed"), _path("wind_speed"), _path("wind", "speed"))
WIND_UNIT: Sequence[Extractor] = (_path("windUnit"), _path("wind_unit"))
WIND_DIR: Sequence[Extractor] = (_path("windDir"), _path("wind_direction"), _path("wind", "directionDeg"))
PRESSURE_PA: Sequence[Extractor] = (
    _path("pressurePa"),
    _converted("pressureInHg", inhg_to_pa),
    _path("barometricPressurePa"),
    _path("barometric_pressure_pa"),
)
TIMESTAMP: Sequence[Extractor] = (_path("timestamp"), _path("obsTime"), _path("time"))


def first_match(src: Mapping[str, Any], candidates: Sequence[Extractor]) -> Any:
    for extract in candidates:
        value = extract(src)
        if value is not None:
            return value
    return None


def adapt_payload(payload: Any) -> RawReading:
    """Map a primary feed payload onto :class:`RawReading`."""
    src = _unwrap(payload)
    if not isinstance(src, Mapping):
        raise MissingFieldsError("primary payload missing expected fields")
    reading = RawReading(
        timestamp=first_match(src, TIMESTAMP),
        temp_c=safe_float(first_match(src, TEMP_C)),
        dewpoint_c=safe_float(first_match(src, DEWPOINT_C)),
        rh_pct=safe_float(first_match(src, RH_PCT)),
        wind_speed=safe_float(first_match(src, WIND_SPEED)),
        wind_unit=str(first_match(src, WIND_UNIT) or DEFAULT_WIND_UNIT),
        wind_dir_deg=safe_float(first_match(src, WIND_DIR)),
        pressure_pa=safe_float(first_match(src, PRESSURE_PA)),
    )
    if not reading.has_reading():
        raise MissingFieldsError("primary payload has no usable reading")
    return reading


def _unwrap(payload: Any) -> Any:
    if not isinstance(payload, Mapping):
        return payload
    for key in ("current", "observation", "data"):
        if payload.get(key):
            return payload[key]
    return payload


class PrimaryFeedProvider(WeatherProvider):
    name = "primary"

    def __init__(
        self,
        url: str,
        *,
        zip_code: Optional[str] = None,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        super().__init__(session=session, request_config=request_config or RequestConfig(retries=0))
        self.url = url
        self.zip_code = zip_code

    def current(self) -> Tuple[CanonicalObservation, StationDescriptor]:
        payload = self._fetch_json(self._request_url(), tag="primary")
        return standardize(adapt_payload(payload)), PRIMARY_STATION

    def _request_url(self) -> str:
        if not self.zip_code:
            return self.url
        parts = urlsplit(self.url)
        query = [(key, value) for key, value in parse_qsl(parts.query, keep_blank_values=True) if key != "zip"]
        query.append(("zip", self.zip_code))
        return urlunsplit(parts._replace(query=urlencode(query)))


__all__ = ["PRIMARY_STATION", "PrimaryFeedProvider", "adapt_payload", "first_match"]
