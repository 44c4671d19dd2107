from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class OccupancyClassifier:
    threshold: float = 0.525

    def is_occupied(self, score: Optional[float]) -> bool:
        # a missing score (failed oracle call) never marks a cell occupied
        if score is None:
            return False
        return float(score) >= self.threshold

    def classify(self, scores: Sequence[Optional[float]]) -> List[bool]:
        return [self.is_occupied(s) for s in scores]
