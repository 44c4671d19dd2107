from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from lanespeed.speed_estimation.math import speed_mph, truncate_speed
from lanespeed.speed_estimation.units import mph_to_kmh
from lanespeed.utils.types import AppConfig, Trip


@dataclass(frozen=True)
class SpeedEstimatorConfig:
    distance_miles: float
    lane_multipliers: Tuple[float, ...]
    output_units: str = "mph"

    def __post_init__(self) -> None:
        if self.distance_miles <= 0.0:
            raise ValueError("distance_miles must be > 0")
        if self.output_units not in {"mph", "kmh"}:
            raise ValueError("output_units must be one of: mph, kmh")

    @staticmethod
    def from_app_config(cfg: AppConfig) -> "SpeedEstimatorConfig":
        return SpeedEstimatorConfig(
            distance_miles=cfg.calibration.traversable_miles(cfg.grid),
            lane_multipliers=tuple(lane.perspective_multiplier for lane in cfg.lanes),
            output_units=cfg.speed.output_units,
        )


class SpeedEstimator:
    def __init__(self, cfg: SpeedEstimatorConfig) -> None:
        self._cfg = cfg

    @property
    def units(self) -> str:
        return self._cfg.output_units

    def multiplier(self, lane: int) -> float:
        if 0 <= lane < len(self._cfg.lane_multipliers):
            return float(self._cfg.lane_multipliers[lane])
        return 1.0

    def speed(self, trip: Optional[Trip]) -> Optional[float]:
        """Truncated speed for ``trip``, or ``None`` when it is missing or degenerate."""
        if trip is None:
            return None
        v = speed_mph(self._cfg.distance_miles, trip.elapsed_ms)
        if v is None:
            return None
        v *= self.multiplier(trip.lane)
        if self._cfg.output_units == "kmh":
            v = mph_to_kmh(v)
        return truncate_speed(v)
