"""Core entities for the observation pipeline."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal, Optional


Source = Literal["primary", "fallback"]


@dataclass(frozen=True)
class CanonicalObservation:
    """Normalized observation handed to the API layer.

    Values are stored in the units the UI displays:
    - temperatures in Fahrenheit
    - relative humidity in percent
    - wind speed in miles per hour, direction in degrees [0, 360)
    - pressure in inches of mercury

    Every numeric field is either a finite float or ``None``.
    """

    temp_f: Optional[float]
    rh: Optional[float]
    dry_bulb_f: Optional[float]
    wet_bulb_f: Optional[float]
    wind_mph: Optional[float]
    wind_dir_deg: Optional[float]
    wind_dir_txt: Optional[str]
    pressure_in_hg: Optional[float]
    timestamp: datetime


@dataclass(frozen=True)
class StationDescriptor:
    """Which upstream source produced a reading. Display only."""

    id: str
    name: str
    url: Optional[str] = None


@dataclass(frozen=True)
class RawReading:
    """Provider-neutral bag of upstream values, before unit conversion."""

    timestamp: Any = None
    temp_c: Optional[float] = None
    dewpoint_c: Optional[float] = None
    rh_pct: Optional[float] = None
    wind_speed: Optional[float] = None
    wind_unit: Optional[str] = None
    wind_dir_deg: Optional[float] = None
    pressure_pa: Optional[float] = None

    def has_reading(self) -> bool:
        measured = (
            self.temp_c,
            self.dewpoint_c,
            self.rh_pct,
            self.wind_speed,
            self.wind_dir_deg,
            self.pressure_pa,
        )
        return any(value is not None for value in measured)


@dataclass(frozen=True)
class ObservationResult:
    data: CanonicalObservation
    station: StationDescriptor
    source: Source


__all__ = [
    "CanonicalObservation",
    "ObservationResult",
    "RawReading",
    "Source",
    "StationDescriptor",
]
