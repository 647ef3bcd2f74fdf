from __future__ import annotations

from typing import Dict, Mapping

from bucketwise_core.domain.models import CATEGORY_KEYS

DEFICIT_BOOST = 0.3  # share of income steered towards under-target buckets
SURPLUS_CUT = 0.5  # fraction of the base share withheld from over-target buckets


def fixed_split(income: float, weights: Mapping[str, float]) -> Dict[str, float]:
    """Plan A: split income by the target weights."""
    return {key: income * weights[key] / 100 for key in CATEGORY_KEYS}


def smart_split(income: float, weights: Mapping[str, float], deviations: Mapping[str, float]) -> Dict[str, float]:
    """
    Plan B: lean the split towards buckets that are behind their target.
    - Below target (negative deviation): base share plus a slice of 30% of income,
      weighted by that bucket's share of the total shortfall.
    - Above target: half the base share.
    - On target: base share.
    Whatever is left over (or overspent) is spread back by the target weights.
    """
    deficit = {k: -deviations.get(k, 0) for k in CATEGORY_KEYS if deviations.get(k, 0) < 0}
    surplus = {k for k in CATEGORY_KEYS if deviations.get(k, 0) > 0}
    total_deficit = sum(deficit.values())

    base = fixed_split(income, weights)
    if total_deficit == 0:
        return base

    split: Dict[str, float] = {}
    for key in CATEGORY_KEYS:
        if key in deficit:
            split[key] = base[key] + deficit[key] / total_deficit * income * DEFICIT_BOOST
        elif key in surplus:
            split[key] = base[key] - base[key] * SURPLUS_CUT
        else:
            split[key] = base[key]

    leftover = income - sum(split.values())
    if abs(leftover) > 0.01:
        for key in CATEGORY_KEYS:
            split[key] += leftover * weights[key] / 100
    return split


def category_goals(goal_amount: float, weights: Mapping[str, float]) -> Dict[str, float]:
    return {key: round(goal_amount * weights[key] / 100, 2) for key in CATEGORY_KEYS}
