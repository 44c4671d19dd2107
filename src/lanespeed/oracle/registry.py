from __future__ import annotations

from typing import Any, Dict, Optional

from lanespeed.oracle.base import AnomalyOracle
from lanespeed.oracle.http import HttpOracle
from lanespeed.oracle.isolation_forest import IsolationForestOracle


def create_oracle(backend: str, params: Dict[str, Any], trained: Optional[IsolationForestOracle] = None) -> AnomalyOracle:
    if backend == "isolation_forest":
        if trained is None:
            raise ValueError("isolation_forest backend requires a trained oracle; run training first")
        return trained

    if backend == "http":
        url = str(params.get("url", ""))
        if not url:
            raise ValueError("oracle.params.url is required when oracle.backend=http")
        headers = params.get("headers", {}) or {}
        if not isinstance(headers, dict):
            raise ValueError("oracle.params.headers must be a dict")
        return HttpOracle(
            url=url,
            headers={str(k): str(v) for k, v in headers.items()},
            timeout_s=float(params.get("timeout_s", 2.0)),
        )

    raise ValueError(f"Unknown oracle backend: {backend}")
