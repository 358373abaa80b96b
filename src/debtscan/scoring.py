from __future__ import annotations
from typing import Dict, Optional, Sequence

from .models import DebtRecord, MarkerDefinition, Thresholds

RECOMMENDATIONS = {
    "high": "**High Priority:** Schedule a dedicated debt reduction sprint",
    "medium": "**Medium Priority:** Allocate 20% of sprint capacity to debt reduction",
    "low": "**Low Priority:** Continue addressing debt items as part of regular development",
}


def bucket(count: int, thresholds: Optional[Thresholds] = None) -> str:
    th = thresholds or Thresholds()
    if count > th.high:
        return "high"
    if count > th.medium:
        return "medium"
    return "low"


def recommendation(count: int, thresholds: Optional[Thresholds] = None) -> Optional[str]:
    if count <= 0:
        return None
    return RECOMMENDATIONS[bucket(count, thresholds)]


def weighted_score(records: Sequence[DebtRecord], markers: Sequence[MarkerDefinition]) -> float:
    weights: Dict[str, float] = {m.token: m.weight for m in markers}
    return round(sum(weights.get(r.marker, 1.0) for r in records), 2)


def classify_delta(delta: int) -> str:
    if delta > 0:
        return "increasing"
    if delta < 0:
        return "decreasing"
    return "static"
