from __future__ import annotations

import logging
import math
from numbers import Real
from typing import Dict, Mapping

from bucketwise_core.domain.errors import InvalidAllocation
from bucketwise_core.domain.models import CATEGORY_KEYS, AppState

logger = logging.getLogger(__name__)

SUM_TOLERANCE = 1e-9


def validate_weights(weights: Mapping[str, float]) -> Dict[str, float]:
    """Return a clean copy of `weights` or raise InvalidAllocation."""
    if not isinstance(weights, Mapping):
        raise InvalidAllocation(f"Allocation must be a mapping, got {type(weights).__name__}")
    if set(weights.keys()) != set(CATEGORY_KEYS):
        raise InvalidAllocation(f"Allocation must have exactly the keys {', '.join(CATEGORY_KEYS)}")

    cleaned: Dict[str, float] = {}
    for key in CATEGORY_KEYS:
        value = weights[key]
        if isinstance(value, bool) or not isinstance(value, Real) or math.isnan(value):
            raise InvalidAllocation(f"Weight for {key!r} must be a number, got {value!r}")
        if value < 0 or value > 100:
            raise InvalidAllocation(f"Weight for {key!r} must be between 0 and 100, got {value}")
        cleaned[key] = value

    total = sum(cleaned.values())
    if not math.isclose(total, 100, abs_tol=SUM_TOLERANCE):
        raise InvalidAllocation(f"Total must equal 100, got {total:g}")
    return cleaned


class AllocationModel:
    """Holds the committed four-bucket weights; they always sum to 100."""

    def __init__(self, state: AppState):
        self._state = state

    @property
    def weights(self) -> Dict[str, float]:
        return dict(self._state.allocation)

    def total(self) -> float:
        return sum(self._state.allocation.values())

    def apply_rebalance(self, new_weights: Mapping[str, float]) -> Dict[str, float]:
        cleaned = validate_weights(new_weights)
        self._state.allocation = cleaned
        logger.debug("Allocation committed: %s", cleaned)
        return dict(cleaned)
