from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

import numpy as np

from lanespeed.oracle.base import AnomalyOracle, OracleError
from lanespeed.utils.types import ScoringConfig


logger = logging.getLogger("lanespeed.oracle.scoring")


class CellScorer:
    """Fans per-cell oracle calls out over a bounded worker pool.

    A cell whose score still fails after ``max_retries`` retries comes back as
    ``None`` for that frame only; the failure is logged and counted.
    """

    def __init__(
        self,
        oracle: AnomalyOracle,
        cfg: ScoringConfig,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._oracle = oracle
        self._cfg = cfg
        self._sleep = sleep
        self._lock = threading.Lock()
        self._failures = 0
        self._executor: Optional[ThreadPoolExecutor] = None
        if cfg.max_workers > 1:
            self._executor = ThreadPoolExecutor(max_workers=cfg.max_workers, thread_name_prefix="CellScorer")

    @property
    def failures(self) -> int:
        with self._lock:
            return self._failures

    def score_cell(self, lane: int, column: int, features: np.ndarray) -> Optional[float]:
        attempts = self._cfg.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return float(self._oracle.score(lane, column, features))
            except OracleError as e:
                if attempt < attempts:
                    logger.debug("Retrying cell lane=%d column=%d (%d/%d): %s", lane, column, attempt, attempts - 1, e)
                    self._sleep(max(0.0, float(self._cfg.backoff_s)))
                    continue
                logger.warning("Scoring failed for cell lane=%d column=%d after %d attempt(s): %s", lane, column, attempts, e)
                with self._lock:
                    self._failures += 1
        return None

    def score_frame(self, features_by_lane: Sequence[np.ndarray]) -> List[List[Optional[float]]]:
        jobs = [
            (lane, column, row[column])
            for lane, row in enumerate(features_by_lane)
            for column in range(len(row))
        ]
        if self._executor is None:
            flat = [self.score_cell(lane, column, f) for lane, column, f in jobs]
        else:
            futures = [self._executor.submit(self.score_cell, lane, column, f) for lane, column, f in jobs]
            flat = [fut.result() for fut in futures]

        out: List[List[Optional[float]]] = []
        pos = 0
        for row in features_by_lane:
            out.append(flat[pos : pos + len(row)])
            pos += len(row)
        return out

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
        self._executor = None

    def __enter__(self) -> "CellScorer":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
