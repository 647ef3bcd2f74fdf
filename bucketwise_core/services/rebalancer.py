from __future__ import annotations

import logging
import math
from typing import Dict, Mapping

from bucketwise_core.domain.errors import InvalidAllocation
from bucketwise_core.domain.models import CATEGORY_KEYS, resolve_category

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    # Slider semantics: 12.5 -> 13, never banker's rounding.
    return int(math.floor(value + 0.5))


def _clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def rebalance(current: Mapping[str, float], changed_key: str, new_value: float) -> Dict[str, float]:
    """
    Set one bucket and redistribute the rest so the weights sum to 100.
    - The three untouched buckets keep their relative proportions.
    - Any rounding drift lands on the first untouched bucket in CATEGORY_KEYS order.
    - If the untouched buckets are all 0 nothing can be redistributed and the
      total may differ from 100; the commit step rejects such drafts.
    The input mapping is never mutated.
    """
    key = resolve_category(changed_key)
    try:
        value = float(new_value)
    except (TypeError, ValueError) as exc:
        raise InvalidAllocation(f"Weight for {key!r} must be a number, got {new_value!r}") from exc
    if math.isnan(value):
        raise InvalidAllocation(f"Weight for {key!r} must be a number, got {new_value!r}")

    weights: Dict[str, float] = {k: current.get(k, 0) for k in CATEGORY_KEYS}
    value = _clamp(value)
    if value == int(value):
        value = int(value)
    weights[key] = value

    others = [k for k in CATEGORY_KEYS if k != key]
    others_total = sum(weights[k] for k in others)
    remaining = 100 - value

    if others_total > 0 and remaining >= 0:
        for k in others:
            weights[k] = _round_half_up(remaining * (weights[k] / others_total))

        total = sum(weights.values())
        if total != 100:
            weights[others[0]] += 100 - total
    else:
        logger.debug("No proportional redistribution for %s=%s (others total %s)", key, value, others_total)

    return {k: _clamp(v) for k, v in weights.items()}
