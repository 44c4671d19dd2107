from .ids import VehicleIdGenerator
from .lane import LaneTracker, LaneTrackerState, detach_finished, propagate, smooth_timers
from .occupancy import OccupancyClassifier

__all__ = [
    "LaneTracker",
    "LaneTrackerState",
    "OccupancyClassifier",
    "VehicleIdGenerator",
    "detach_finished",
    "propagate",
    "smooth_timers",
]
