from __future__ import annotations

import itertools
import threading

from lanespeed.utils.types import VehicleId


class VehicleIdGenerator:
    """Monotonic, thread-safe id source shared by every lane of a run."""

    def __init__(self, prefix: str = "veh", start: int = 1) -> None:
        self._prefix = prefix
        self._counter = itertools.count(int(start))
        self._lock = threading.Lock()

    def __call__(self) -> VehicleId:
        with self._lock:
            n = next(self._counter)
        return f"{self._prefix}-{n:06d}"
