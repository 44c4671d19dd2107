from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from lanespeed.io.base import FrameSource


logger = logging.getLogger("lanespeed.io.video")


@dataclass(frozen=True)
class VideoReaderConfig:
    uri: str
    fps_hint: float = 30.0
    expected_width: Optional[int] = None
    expected_height: Optional[int] = None


class VideoReader(FrameSource):
    """OpenCV backed frame source.

    One frame is read ahead so that ``has_next`` can answer without consuming it.
    Timestamps are in milliseconds, taken from ``CAP_PROP_POS_MSEC`` when the
    container provides them and derived from the frame index otherwise.
    """

    def __init__(self, cfg: VideoReaderConfig) -> None:
        self._cfg = cfg
        self._cap = cv2.VideoCapture(cfg.uri)
        if not self._cap.isOpened():
            raise RuntimeError(f"Failed to open video source: {cfg.uri}")

        self._fps = self._cap.get(cv2.CAP_PROP_FPS)
        if self._fps is None or self._fps <= 1e-3:
            self._fps = float(cfg.fps_hint)
        self._frame_index = 0
        self._pending: Optional[Tuple[np.ndarray, float]] = None
        self._read_ahead()
        if self._pending is not None:
            self._check_size(self._pending[0])

    @property
    def fps(self) -> float:
        return float(self._fps)

    def frame_count(self) -> int:
        n = self._cap.get(cv2.CAP_PROP_FRAME_COUNT)
        return int(n) if n is not None and n > 0 else 0

    def has_next(self) -> bool:
        return self._pending is not None

    def next_frame(self) -> Tuple[np.ndarray, float]:
        if self._pending is None:
            raise RuntimeError(f"No more frames in source: {self._cfg.uri}")
        out = self._pending
        self._read_ahead()
        return out

    def close(self) -> None:
        self._cap.release()
        self._pending = None

    def _read_ahead(self) -> None:
        ok, frame = self._cap.read()
        if not ok:
            self._pending = None
            return
        self._pending = (frame, self._timestamp_ms())
        self._frame_index += 1

    def _timestamp_ms(self) -> float:
        pos_msec = self._cap.get(cv2.CAP_PROP_POS_MSEC)
        if pos_msec is not None and pos_msec > 0:
            return float(pos_msec)
        return float(self._frame_index) * 1000.0 / float(self._fps)

    def _check_size(self, frame: np.ndarray) -> None:
        h, w = frame.shape[:2]
        exp_w, exp_h = self._cfg.expected_width, self._cfg.expected_height
        if (exp_w is not None and w != exp_w) or (exp_h is not None and h != exp_h):
            self.close()
            raise ValueError(f"Video {self._cfg.uri} is {w}x{h}, expected {exp_w}x{exp_h}")
        logger.info("Opened video %s (%dx%d @ %.2f fps)", self._cfg.uri, w, h, self._fps)
