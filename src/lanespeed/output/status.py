from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from lanespeed.utils.types import Trip

NO_SPEED = "--"


@dataclass(frozen=True)
class FrameStatus:
    frame_index: int
    timestamp_ms: float
    occupancy: Tuple[Tuple[bool, ...], ...]
    vehicle_count: int
    last_speed: Optional[float]
    last_trip: Optional[Trip] = None
    units: str = "mph"


def format_speed(speed: Optional[float]) -> str:
    return NO_SPEED if speed is None else f"{speed:.1f}"


def format_status(status: FrameStatus) -> str:
    return f"Vehicles: {status.vehicle_count}   Last Speed: {format_speed(status.last_speed)}"
