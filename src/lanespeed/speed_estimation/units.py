from __future__ import annotations

MS_PER_HOUR = 3_600_000.0


def mph_to_kmh(v_mph: float) -> float:
    return float(v_mph) * 1.609344


def ms_to_hours(t_ms: float) -> float:
    return float(t_ms) / MS_PER_HOUR
