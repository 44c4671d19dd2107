from __future__ import annotations

import math
from typing import Optional

from lanespeed.speed_estimation.units import MS_PER_HOUR


def speed_mph(distance_miles: float, elapsed_ms: float) -> Optional[float]:
    if elapsed_ms <= 0.0:
        return None
    return float(distance_miles) * MS_PER_HOUR / float(elapsed_ms)


def truncate_speed(v: float, decimals: int = 1) -> float:
    """Drop digits past ``decimals`` instead of rounding (54.37 -> 54.3)."""
    scale = 10.0 ** int(decimals)
    return math.floor(float(v) * scale) / scale
