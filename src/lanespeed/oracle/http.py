from __future__ import annotations

import http.client
import json
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Dict

import numpy as np

from lanespeed.oracle.base import AnomalyOracle, OracleError
from lanespeed.utils.types import as_feature_array


@dataclass
class HttpOracle(AnomalyOracle):
    """Remote scorer. POSTs ``{"lane", "column", "features"}`` and expects ``{"score": float}``."""

    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    timeout_s: float = 2.0

    def score(self, lane: int, column: int, features: np.ndarray) -> float:
        payload = {
            "lane": int(lane),
            "column": int(column),
            "features": [float(v) for v in as_feature_array(features)],
        }
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        req = urllib.request.Request(self.url, data=data, method="POST")
        req.add_header("Content-Type", "application/json")
        for k, v in self.headers.items():
            if k.lower() == "content-type":
                continue
            req.add_header(str(k), str(v))
        try:
            with urllib.request.urlopen(req, timeout=float(self.timeout_s)) as resp:
                body = resp.read()
        except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
            raise OracleError(f"Scoring request failed for lane={lane} column={column}: {e}") from e
        try:
            obj = json.loads(body.decode("utf-8"))
            return float(obj["score"])
        except (UnicodeDecodeError, ValueError, KeyError, TypeError) as e:
            raise OracleError(f"Malformed scoring response for lane={lane} column={column}") from e
