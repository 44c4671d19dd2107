from .config import load_app_config, load_yaml, resolve_path
from .logging import setup_logging
from .types import (
    AppConfig,
    CalibrationConfig,
    CellAddress,
    GridConfig,
    LaneConfig,
    OccupancyConfig,
    OracleConfig,
    OverlayConfig,
    ScoringConfig,
    SpeedConfig,
    TrackingConfig,
    TrainingConfig,
    Trip,
    VehicleId,
    VideoConfig,
)

__all__ = [
    "AppConfig",
    "CalibrationConfig",
    "CellAddress",
    "GridConfig",
    "LaneConfig",
    "OccupancyConfig",
    "OracleConfig",
    "OverlayConfig",
    "ScoringConfig",
    "SpeedConfig",
    "TrackingConfig",
    "TrainingConfig",
    "Trip",
    "VehicleId",
    "VideoConfig",
    "load_app_config",
    "load_yaml",
    "resolve_path",
    "setup_logging",
]
