from __future__ import annotations

from typing import Protocol, Tuple

import numpy as np


class FrameSource(Protocol):
    def has_next(self) -> bool:
        ...

    def next_frame(self) -> Tuple[np.ndarray, float]:
        """Return ``(pixels, timestamp_ms)`` for the next frame."""
        ...

    def close(self) -> None:
        ...
