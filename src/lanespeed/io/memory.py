from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from lanespeed.io.base import FrameSource


@dataclass
class InMemoryFrameSource(FrameSource):
    frames: Sequence[np.ndarray]
    timestamps_ms: Sequence[float]

    def __post_init__(self) -> None:
        if len(self.frames) != len(self.timestamps_ms):
            raise ValueError("frames and timestamps_ms must have same length")
        self._pos = 0
        self.closed = False

    def has_next(self) -> bool:
        return self._pos < len(self.frames)

    def next_frame(self) -> Tuple[np.ndarray, float]:
        if not self.has_next():
            raise RuntimeError("InMemoryFrameSource exhausted")
        i = self._pos
        self._pos += 1
        return self.frames[i], float(self.timestamps_ms[i])

    def frame_count(self) -> int:
        return len(self.frames)

    def close(self) -> None:
        self._pos = len(self.frames)
        self.closed = True


def constant_rate_timestamps(count: int, fps: float, start_ms: float = 0.0) -> List[float]:
    step = 1000.0 / float(fps)
    return [float(start_ms) + i * step for i in range(int(count))]
