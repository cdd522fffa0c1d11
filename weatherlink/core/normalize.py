"""Turn provider-neutral raw readings into canonical observations."""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Optional

from .entities import CanonicalObservation, RawReading
from .units import (
    c_to_f,
    deg_to_cardinal,
    kmh_to_mph,
    ms_to_mph,
    pa_to_inhg,
    rh_from_td,
    wet_bulb_c_stull,
)


KMH_TOKEN = "km_h-1"
MS_TOKEN = "m_s-1"


def standardize(raw: RawReading, *, now: Optional[datetime] = None) -> CanonicalObservation:
    temp_c = safe_float(raw.temp_c)
    dewpoint_c = safe_float(raw.dewpoint_c)

    rh = safe_float(raw.rh_pct)
    if rh is None:
        rh = rh_from_td(temp_c, dewpoint_c)
    if rh is not None:
        rh = max(0.0, min(100.0, rh))

    wet_bulb_c = _finite(wet_bulb_c_stull(temp_c, rh))
    temp_f = _finite(c_to_f(temp_c))

    wind_dir_deg = safe_float(raw.wind_dir_deg)
    if wind_dir_deg is not None:
        wind_dir_deg = wind_dir_deg % 360

    return CanonicalObservation(
        temp_f=temp_f,
        rh=_finite(rh),
        dry_bulb_f=temp_f,
        wet_bulb_f=_finite(c_to_f(wet_bulb_c)),
        wind_mph=_finite(wind_to_mph(safe_float(raw.wind_speed), raw.wind_unit)),
        wind_dir_deg=wind_dir_deg,
        wind_dir_txt=deg_to_cardinal(wind_dir_deg),
        pressure_in_hg=_finite(pa_to_inhg(safe_float(raw.pressure_pa))),
        timestamp=parse_timestamp(raw.timestamp, now=now),
    )


def wind_to_mph(speed: Optional[float], unit: Optional[str]) -> Optional[float]:
    """Convert a wind speed tagged with a WMO unit code; unknown units are mph."""
    if speed is None:
        return None
    unit = str(unit) if unit else ""
    if KMH_TOKEN in unit:
        return kmh_to_mph(speed)
    if MS_TOKEN in unit:
        return ms_to_mph(speed)
    return speed


def parse_timestamp(value: Any, *, now: Optional[datetime] = None) -> datetime:
    """Parse an upstream observation time, defaulting to ``now`` (UTC)."""
    fallback = now or datetime.now(tz=timezone.utc)
    if value is None or value == "":
        return fallback
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return fallback
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except (OverflowError, ValueError):
            return fallback
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        # Offsets at the ends of the datetime range cannot be shifted to UTC.
        return fallback


def safe_float(value: Any) -> Optional[float]:
    """Coerce upstream values to a finite float, or ``None``."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return _finite(result)


def _finite(value: Optional[float]) -> Optional[float]:
    if value is None or not math.isfinite(value):
        return None
    return value


__all__ = ["parse_timestamp", "safe_float", "standardize", "wind_to_mph"]
