from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Tuple

import numpy as np

CellAddress = Tuple[int, int]
VehicleId = str

INCHES_PER_MILE = 63360.0


@dataclass(frozen=True)
class Trip:
    vehicle_id: VehicleId
    lane: int
    start_ms: float
    end_ms: float

    @property
    def elapsed_ms(self) -> float:
        return float(self.end_ms - self.start_ms)


@dataclass(frozen=True)
class LaneConfig:
    name: str
    offset_y: int
    perspective_multiplier: float = 1.0

    @staticmethod
    def from_dict(d: Dict[str, Any], index: int = 0) -> "LaneConfig":
        cfg = LaneConfig(
            name=str(d.get("name", f"lane_{index}")),
            offset_y=int(d["offset_y"]),
            perspective_multiplier=float(d.get("perspective_multiplier", 1.0)),
        )
        if cfg.offset_y < 0:
            raise ValueError(f"lanes[{index}].offset_y must be >= 0")
        if not math.isfinite(cfg.perspective_multiplier) or cfg.perspective_multiplier <= 0.0:
            raise ValueError(f"lanes[{index}].perspective_multiplier must be > 0")
        return cfg


@dataclass(frozen=True)
class GridConfig:
    frame_width: int
    frame_height: int
    cell_width: int
    cell_height: int
    channels: int = 3
    columns: int = 0

    def __post_init__(self) -> None:
        if self.cell_width <= 0 or self.cell_height <= 0:
            raise ValueError("grid cell_width and cell_height must be > 0")
        if self.frame_width <= 0 or self.frame_height <= 0:
            raise ValueError("grid frame_width and frame_height must be > 0")
        if self.channels <= 0:
            raise ValueError("grid channels must be > 0")
        if self.columns <= 0:
            object.__setattr__(self, "columns", self.frame_width // self.cell_width)
        if self.columns < 2:
            raise ValueError("grid needs at least 2 columns per lane")
        if self.columns * self.cell_width > self.frame_width:
            raise ValueError(
                f"{self.columns} columns of width {self.cell_width} do not fit in frame width {self.frame_width}"
            )

    @property
    def feature_size(self) -> int:
        return 2 * (self.channels + 1)

    @staticmethod
    def from_dict(d: Dict[str, Any], video: Dict[str, Any]) -> "GridConfig":
        return GridConfig(
            frame_width=int(video.get("width", d.get("frame_width", 0))),
            frame_height=int(video.get("height", d.get("frame_height", 0))),
            cell_width=int(d.get("cell_width", 24)),
            cell_height=int(d.get("cell_height", 12)),
            channels=int(d.get("channels", 3)),
            columns=int(d.get("columns", 0) or 0),
        )


@dataclass(frozen=True)
class VideoConfig:
    uri: str
    fps_hint: float = 30.0

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "VideoConfig":
        return VideoConfig(uri=str(d.get("uri", "")), fps_hint=float(d.get("fps_hint", 30.0)))


@dataclass(frozen=True)
class TrackingConfig:
    cooldown_ms: float = 80.0
    start_timestamp_ms: float = 0.0

    def __post_init__(self) -> None:
        if not math.isfinite(self.cooldown_ms) or self.cooldown_ms <= 0.0:
            raise ValueError("tracking.cooldown_ms must be > 0")

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "TrackingConfig":
        return TrackingConfig(
            cooldown_ms=float(d.get("cooldown_ms", 80.0)),
            start_timestamp_ms=float(d.get("start_timestamp_ms", 0.0)),
        )


@dataclass(frozen=True)
class OccupancyConfig:
    threshold: float = 0.525

    def __post_init__(self) -> None:
        if not math.isfinite(self.threshold):
            raise ValueError("occupancy.threshold must be finite")

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "OccupancyConfig":
        return OccupancyConfig(threshold=float(d.get("threshold", 0.525)))


@dataclass(frozen=True)
class CalibrationConfig:
    reference_length_in: float = 179.0
    reference_length_px: float = 80.0
    distance_miles: Optional[float] = None

    def __post_init__(self) -> None:
        if self.reference_length_in <= 0.0 or self.reference_length_px <= 0.0:
            raise ValueError("calibration reference lengths must be > 0")
        if self.distance_miles is not None and self.distance_miles <= 0.0:
            raise ValueError("calibration.distance_miles must be > 0 when provided")

    @property
    def inches_per_pixel(self) -> float:
        return float(self.reference_length_in) / float(self.reference_length_px)

    def traversable_miles(self, grid: GridConfig) -> float:
        if self.distance_miles is not None:
            return float(self.distance_miles)
        px = (grid.columns - 1) * grid.cell_width
        return float(px * self.inches_per_pixel / INCHES_PER_MILE)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "CalibrationConfig":
        dist = d.get("distance_miles")
        return CalibrationConfig(
            reference_length_in=float(d.get("reference_length_in", 179.0)),
            reference_length_px=float(d.get("reference_length_px", 80.0)),
            distance_miles=float(dist) if dist is not None else None,
        )


SpeedUnits = Literal["mph", "kmh"]


@dataclass(frozen=True)
class SpeedConfig:
    output_units: SpeedUnits = "mph"

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "SpeedConfig":
        units = str(d.get("units", {}).get("output", "mph")).lower()
        if units not in {"mph", "kmh"}:
            raise ValueError("speed.units.output must be one of: mph, kmh")
        return SpeedConfig(output_units=units)  # type: ignore[arg-type]


@dataclass(frozen=True)
class ScoringConfig:
    max_workers: int = 8
    max_retries: int = 2
    backoff_s: float = 0.5

    def __post_init__(self) -> None:
        if self.max_workers <= 0:
            raise ValueError("oracle.scoring.max_workers must be > 0")
        if self.max_retries < 0:
            raise ValueError("oracle.scoring.max_retries must be >= 0")

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "ScoringConfig":
        return ScoringConfig(
            max_workers=int(d.get("max_workers", 8)),
            max_retries=int(d.get("max_retries", 2)),
            backoff_s=float(d.get("backoff_s", 0.5)),
        )


@dataclass(frozen=True)
class OracleConfig:
    backend: str = "isolation_forest"
    params: Dict[str, Any] = field(default_factory=dict)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "OracleConfig":
        return OracleConfig(
            backend=str(d.get("backend", "isolation_forest")),
            params=dict(d.get("params", {}) or {}),
            scoring=ScoringConfig.from_dict(dict(d.get("scoring", {}) or {})),
        )


@dataclass(frozen=True)
class TrainingConfig:
    sample_size: int = 4096
    seed: Optional[int] = None
    n_estimators: int = 64
    max_workers: int = 8

    def __post_init__(self) -> None:
        if self.sample_size <= 0:
            raise ValueError("training.sample_size must be > 0")
        if self.n_estimators <= 0 or self.max_workers <= 0:
            raise ValueError("training.n_estimators and training.max_workers must be > 0")

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "TrainingConfig":
        seed = d.get("seed")
        return TrainingConfig(
            sample_size=int(d.get("sample_size", 4096)),
            seed=int(seed) if seed is not None else None,
            n_estimators=int(d.get("n_estimators", 64)),
            max_workers=int(d.get("max_workers", 8)),
        )


@dataclass(frozen=True)
class OverlayConfig:
    enabled: bool = False
    show: bool = False
    write_video: bool = False
    video_path: str = ""

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "OverlayConfig":
        return OverlayConfig(
            enabled=bool(d.get("enabled", False)),
            show=bool(d.get("show", False)),
            write_video=bool(d.get("write_video", False)),
            video_path=str(d.get("video_path", "")),
        )


@dataclass(frozen=True)
class AppConfig:
    video: VideoConfig
    grid: GridConfig
    lanes: Tuple[LaneConfig, ...]
    tracking: TrackingConfig
    occupancy: OccupancyConfig
    calibration: CalibrationConfig
    speed: SpeedConfig
    oracle: OracleConfig
    training: TrainingConfig
    overlay: OverlayConfig

    def __post_init__(self) -> None:
        if not self.lanes:
            raise ValueError("at least one lane must be configured")
        for i, lane in enumerate(self.lanes):
            if lane.offset_y + self.grid.cell_height > self.grid.frame_height:
                raise ValueError(
                    f"lane {i} ({lane.name}) rows {lane.offset_y}..{lane.offset_y + self.grid.cell_height} "
                    f"exceed frame height {self.grid.frame_height}"
                )

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "AppConfig":
        video = dict(d.get("video", {}) or {})
        lanes = d.get("lanes") or []
        if not isinstance(lanes, list):
            raise ValueError("lanes must be a list")
        return AppConfig(
            video=VideoConfig.from_dict(video),
            grid=GridConfig.from_dict(dict(d.get("grid", {}) or {}), video),
            lanes=tuple(LaneConfig.from_dict(dict(x), i) for i, x in enumerate(lanes)),
            tracking=TrackingConfig.from_dict(dict(d.get("tracking", {}) or {})),
            occupancy=OccupancyConfig.from_dict(dict(d.get("occupancy", {}) or {})),
            calibration=CalibrationConfig.from_dict(dict(d.get("calibration", {}) or {})),
            speed=SpeedConfig.from_dict(dict(d.get("speed", {}) or {})),
            oracle=OracleConfig.from_dict(dict(d.get("oracle", {}) or {})),
            training=TrainingConfig.from_dict(dict(d.get("training", {}) or {})),
            overlay=OverlayConfig.from_dict(dict((d.get("output", {}) or {}).get("overlay", {}) or {})),
        )


def as_feature_array(features: Any) -> np.ndarray:
    return np.asarray(features, dtype=np.float64).reshape(-1)
