from __future__ import annotations

from typing import Protocol

import numpy as np


class OracleError(RuntimeError):
    """Scoring a cell failed. Callers decide whether to retry or skip."""


class AnomalyOracle(Protocol):
    def score(self, lane: int, column: int, features: np.ndarray) -> float:
        ...
