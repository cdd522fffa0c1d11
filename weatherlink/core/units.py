"""Unit conversions and derived psychrometric quantities.

All helpers accept ``None`` and return ``None`` so that provider adapters can
pass partially populated readings straight through.
"""
from __future__ import annotations

import math
from typing import Optional


MS_TO_MPH = 2.23693629
KM_PER_MILE = 1.609344
PA_PER_INHG = 3386.389

CARDINALS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)


def c_to_f(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return value * 9 / 5 + 32


def f_to_c(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return (value - 32) * 5 / 9


def ms_to_mph(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return value * MS_TO_MPH


def kmh_to_mph(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return value / KM_PER_MILE


def pa_to_inhg(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return value / PA_PER_INHG


def inhg_to_pa(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return value * PA_PER_INHG


def deg_to_cardinal(deg: Optional[float]) -> Optional[str]:
    """Map a bearing to one of the 16 compass points."""
    if deg is None or not math.isfinite(deg):
        return None
    # halves round up, 11.25 is NNE
    index = math.floor((deg % 360) / 22.5 + 0.5) % 16
    return CARDINALS[index]


def _saturation_vapor_pressure(temp_c: float) -> float:
    return 6.112 * math.exp((17.67 * temp_c) / (temp_c + 243.5))


def rh_from_td(temp_c: Optional[float], dewpoint_c: Optional[float]) -> Optional[float]:
    """Relative humidity from temperature and dew point (Magnus formula)."""
    if temp_c is None or dewpoint_c is None:
        return None
    try:
        ratio = _saturation_vapor_pressure(dewpoint_c) / _saturation_vapor_pressure(temp_c)
    except (OverflowError, ZeroDivisionError):
        return None
    return max(0.0, min(100.0, ratio * 100))


def wet_bulb_c_stull(temp_c: Optional[float], rh: Optional[float]) -> Optional[float]:
    """Stull (2011) empirical wet-bulb temperature in Celsius.

    Valid for RH between roughly 5% and 99% and temperatures between -20 and
    50 degrees Celsius; outside that range the result is only indicative.
    """
    if temp_c is None or rh is None:
        return None
    return (
        temp_c * math.atan(0.151977 * math.sqrt(rh + 8.313659))
        + math.atan(temp_c + rh)
        - math.atan(rh - 1.676331)
        + 0.00391838 * rh ** 1.5 * math.atan(0.023101 * rh)
        - 4.686035
    )


__all__ = [
    "CARDINALS",
    "c_to_f",
    "deg_to_cardinal",
    "f_to_c",
    "inhg_to_pa",
    "kmh_to_mph",
    "ms_to_mph",
    "pa_to_inhg",
    "rh_from_td",
    "wet_bulb_c_stull",
]
