from .base import AnomalyOracle, OracleError
from .http import HttpOracle
from .isolation_forest import IsolationForestOracle, fit_cell_forest, train_isolation_forest_oracle
from .registry import create_oracle
from .scoring import CellScorer

__all__ = [
    "AnomalyOracle",
    "CellScorer",
    "HttpOracle",
    "IsolationForestOracle",
    "OracleError",
    "create_oracle",
    "fit_cell_forest",
    "train_isolation_forest_oracle",
]
