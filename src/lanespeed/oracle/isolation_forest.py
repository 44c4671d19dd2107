from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

import numpy as np
from sklearn.ensemble import IsolationForest

from lanespeed.oracle.base import AnomalyOracle, OracleError
from lanespeed.utils.types import CellAddress, as_feature_array


logger = logging.getLogger("lanespeed.oracle.isolation_forest")


@dataclass
class IsolationForestOracle(AnomalyOracle):
    """One isolation forest per cell.

    ``IsolationForest.score_samples`` returns the negated anomaly score of the
    original paper, so the score reported here lies in (0, 1] and values above
    ~0.5 mean the cell looks unlike its training history.
    """

    forests: Dict[CellAddress, IsolationForest] = field(default_factory=dict)

    def score(self, lane: int, column: int, features: np.ndarray) -> float:
        forest = self.forests.get((int(lane), int(column)))
        if forest is None:
            raise OracleError(f"No forest trained for cell lane={lane} column={column}")
        x = as_feature_array(features).reshape(1, -1)
        try:
            s = forest.score_samples(x)
        except ValueError as e:
            raise OracleError(f"Forest for lane={lane} column={column} rejected features: {e}") from e
        return float(-s[0])


def fit_cell_forest(samples: np.ndarray, n_estimators: int = 64, seed: Optional[int] = None) -> IsolationForest:
    x = np.asarray(samples, dtype=np.float64)
    if x.ndim != 2 or x.shape[0] == 0:
        raise ValueError(f"Expected non-empty 2-D training samples, got shape {x.shape}")
    forest = IsolationForest(n_estimators=int(n_estimators), random_state=seed)
    forest.fit(x)
    return forest


def train_isolation_forest_oracle(
    training_set: Mapping[CellAddress, np.ndarray],
    n_estimators: int = 64,
    max_workers: int = 8,
    seed: Optional[int] = None,
) -> IsolationForestOracle:
    if not training_set:
        raise ValueError("training_set is empty")
    cells = sorted(training_set.keys())
    logger.info("Building %d cell forests (n_estimators=%d, workers=%d)", len(cells), n_estimators, max_workers)
    with ThreadPoolExecutor(max_workers=int(max_workers), thread_name_prefix="ForestFit") as pool:
        futures = {cell: pool.submit(fit_cell_forest, training_set[cell], n_estimators, seed) for cell in cells}
        forests = {cell: fut.result() for cell, fut in futures.items()}
    return IsolationForestOracle(forests=forests)
