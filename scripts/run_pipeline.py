from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from lanespeed.io.video import VideoReader, VideoReaderConfig
from lanespeed.oracle.base import AnomalyOracle
from lanespeed.oracle.isolation_forest import train_isolation_forest_oracle
from lanespeed.oracle.registry import create_oracle
from lanespeed.output.status import format_speed
from lanespeed.pipeline.traffic_pipeline import TrafficPipeline
from lanespeed.training.dataset import build_training_set
from lanespeed.utils.config import load_app_config, resolve_path
from lanespeed.utils.logging import setup_logging
from lanespeed.utils.types import AppConfig


logger = logging.getLogger("lanespeed.scripts.run_pipeline")


def _open_video(cfg: AppConfig, uri: str) -> VideoReader:
    return VideoReader(
        VideoReaderConfig(
            uri=uri,
            fps_hint=cfg.video.fps_hint,
            expected_width=cfg.grid.frame_width,
            expected_height=cfg.grid.frame_height,
        )
    )


def _build_oracle(cfg: AppConfig, uri: str) -> AnomalyOracle:
    if cfg.oracle.backend != "isolation_forest":
        return create_oracle(cfg.oracle.backend, cfg.oracle.params)

    reader = _open_video(cfg, uri)
    try:
        frame_count = reader.frame_count() or cfg.training.sample_size
        training_set = build_training_set(
            reader,
            cfg.grid,
            cfg.lanes,
            frame_count=frame_count,
            sample_size=cfg.training.sample_size,
            seed=cfg.training.seed,
        )
    finally:
        reader.close()
    trained = train_isolation_forest_oracle(
        training_set,
        n_estimators=cfg.training.n_estimators,
        max_workers=cfg.training.max_workers,
        seed=cfg.training.seed,
    )
    return create_oracle(cfg.oracle.backend, cfg.oracle.params, trained=trained)


def main() -> None:
    ap = argparse.ArgumentParser(description="Count vehicles per lane and estimate their speed")
    ap.add_argument("--config", default="configs/traffic.yaml", help="Traffic YAML config")
    ap.add_argument("--video", default=None, help="Override video.uri from the config")
    ap.add_argument("--log-level", default="INFO")
    ap.add_argument("--log-file", default=None)
    args = ap.parse_args()

    base_dir = os.getcwd()
    setup_logging(level=args.log_level, log_file=args.log_file)

    cfg = load_app_config(resolve_path(args.config, base_dir))
    uri = resolve_path(args.video or cfg.video.uri, base_dir)

    oracle = _build_oracle(cfg, uri)
    logger.info("Writing highlighted video..." if cfg.overlay.write_video else "Tracking vehicles...")
    pipeline = TrafficPipeline(cfg, oracle, base_dir=base_dir)
    pipeline.run(_open_video(cfg, uri))

    for trip in pipeline.trips:
        logger.info(
            "lane=%s vehicle=%s start_ms=%.1f end_ms=%.1f speed=%s %s",
            cfg.lanes[trip.lane].name,
            trip.vehicle_id,
            trip.start_ms,
            trip.end_ms,
            format_speed(pipeline.estimator.speed(trip)),
            pipeline.estimator.units,
        )


if __name__ == "__main__":
    main()
