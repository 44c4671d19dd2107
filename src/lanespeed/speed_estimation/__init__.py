from .estimator import SpeedEstimator, SpeedEstimatorConfig
from .math import speed_mph, truncate_speed
from .units import mph_to_kmh, ms_to_hours

__all__ = ["SpeedEstimator", "SpeedEstimatorConfig", "mph_to_kmh", "ms_to_hours", "speed_mph", "truncate_speed"]
