from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np

from lanespeed.features.extractor import frame_features
from lanespeed.io.base import FrameSource
from lanespeed.oracle.base import AnomalyOracle
from lanespeed.oracle.scoring import CellScorer
from lanespeed.output.overlay import OverlayRenderer
from lanespeed.output.status import FrameStatus, format_status
from lanespeed.speed_estimation.estimator import SpeedEstimator, SpeedEstimatorConfig
from lanespeed.tracking.ids import VehicleIdGenerator
from lanespeed.tracking.lane import LaneTracker, LaneTrackerState
from lanespeed.tracking.occupancy import OccupancyClassifier
from lanespeed.utils.config import resolve_path
from lanespeed.utils.types import AppConfig, Trip


logger = logging.getLogger("lanespeed.pipeline")

PROGRESS_EVERY = 500


class TrafficPipeline:
    def __init__(
        self,
        cfg: AppConfig,
        oracle: AnomalyOracle,
        base_dir: Optional[str] = None,
        renderer: Optional[OverlayRenderer] = None,
        scorer: Optional[CellScorer] = None,
    ) -> None:
        self._cfg = cfg
        self._base_dir = base_dir
        new_id = VehicleIdGenerator()
        self._trackers = [
            LaneTracker(
                lane=i,
                columns=cfg.grid.columns,
                cooldown_ms=cfg.tracking.cooldown_ms,
                start_timestamp_ms=cfg.tracking.start_timestamp_ms,
                new_id=new_id,
            )
            for i in range(len(cfg.lanes))
        ]
        self._scorer = scorer or CellScorer(oracle, cfg.oracle.scoring)
        self._classifier = OccupancyClassifier(threshold=cfg.occupancy.threshold)
        self._estimator = SpeedEstimator(SpeedEstimatorConfig.from_app_config(cfg))
        self._renderer = renderer
        if self._renderer is None and cfg.overlay.enabled:
            self._renderer = OverlayRenderer(grid=cfg.grid, lanes=cfg.lanes)
        self._feature_pool: Optional[ThreadPoolExecutor] = None
        if len(cfg.lanes) > 1:
            self._feature_pool = ThreadPoolExecutor(max_workers=len(cfg.lanes), thread_name_prefix="LaneFeatures")
        self._video_writer: Optional[cv2.VideoWriter] = None
        self._frame_index = 0

    @property
    def trips(self) -> List[Trip]:
        return [t for tr in self._trackers for t in tr.state.trips]

    @property
    def estimator(self) -> SpeedEstimator:
        return self._estimator

    def last_trip(self) -> Optional[Trip]:
        latest = [tr.last_trip for tr in self._trackers if tr.last_trip is not None]
        if not latest:
            return None
        # ties go to the higher lane index
        return max(latest, key=lambda t: (t.end_ms, t.lane))

    def process_frame(self, frame: np.ndarray, timestamp_ms: float) -> FrameStatus:
        features = frame_features(frame, self._cfg.grid, self._cfg.lanes, executor=self._feature_pool)
        scores = self._scorer.score_frame(features)
        occupancy = tuple(tuple(self._classifier.classify(row)) for row in scores)
        for tracker, occ in zip(self._trackers, occupancy):
            tracker.update(occ, timestamp_ms)

        last = self.last_trip()
        status = FrameStatus(
            frame_index=self._frame_index,
            timestamp_ms=float(timestamp_ms),
            occupancy=occupancy,
            vehicle_count=sum(tr.vehicle_count for tr in self._trackers),
            last_speed=self._estimator.speed(last),
            last_trip=last,
            units=self._estimator.units,
        )
        self._frame_index += 1
        return status

    def run(self, source: FrameSource) -> List[LaneTrackerState]:
        overlay = self._cfg.overlay
        window = "lanespeed"
        try:
            while source.has_next():
                if self._frame_index > 0 and self._frame_index % PROGRESS_EVERY == 0:
                    logger.info("Processed frames: %d (%s)", self._frame_index, self._summary())
                frame, t_ms = source.next_frame()
                status = self.process_frame(frame, t_ms)

                if self._renderer is not None and overlay.enabled:
                    img = self._renderer.draw(frame.copy(), status)
                    if overlay.show:
                        cv2.imshow(window, img)
                        if cv2.waitKey(1) & 0xFF == ord("q"):
                            break
                    if overlay.write_video:
                        self._write_overlay_frame(img, fps=float(getattr(source, "fps", self._cfg.video.fps_hint)))
        finally:
            source.close()
            self.close()
            if overlay.show:
                try:
                    cv2.destroyWindow(window)
                except cv2.error:
                    pass

        in_flight = sum(tr.in_flight for tr in self._trackers)
        if in_flight:
            logger.info("Stream ended with %d vehicle(s) still in view; they produce no trip", in_flight)
        logger.info("Done after %d frame(s): %s", self._frame_index, self._summary())
        return [tr.state for tr in self._trackers]

    def close(self) -> None:
        self._close_overlay_writer()
        self._scorer.close()
        if self._feature_pool is not None:
            self._feature_pool.shutdown(wait=True)
        self._feature_pool = None

    def _summary(self) -> str:
        last = self.last_trip()
        return format_status(
            FrameStatus(
                frame_index=self._frame_index,
                timestamp_ms=last.end_ms if last else 0.0,
                occupancy=(),
                vehicle_count=len(self.trips),
                last_speed=self._estimator.speed(last),
            )
        )

    def _write_overlay_frame(self, frame_bgr: np.ndarray, fps: float) -> None:
        path = resolve_path(self._cfg.overlay.video_path, self._base_dir) if self._cfg.overlay.video_path else ""
        if not path:
            return
        if self._video_writer is None:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            h, w = frame_bgr.shape[:2]
            fourcc = cv2.VideoWriter_fourcc(*"mp4v")
            self._video_writer = cv2.VideoWriter(path, fourcc, float(fps), (w, h))
            if not self._video_writer.isOpened():
                self._video_writer = None
                raise RuntimeError(f"Failed to open video writer: {path}")
        self._video_writer.write(frame_bgr)

    def _close_overlay_writer(self) -> None:
        if self._video_writer is not None:
            self._video_writer.release()
        self._video_writer = None
