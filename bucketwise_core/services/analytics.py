from __future__ import annotations

from typing import Dict, Iterable, Mapping

import pandas as pd

from bucketwise_core.domain.models import CATEGORY_KEYS, HistorySnapshot

HISTORY_COLUMNS = ["date", "total_amount", "kind"]


def category_percentages(totals: Mapping[str, float]) -> Dict[str, float]:
    """Each bucket's share of total assets, in percent with one decimal."""
    grand_total = sum(totals.get(key, 0) for key in CATEGORY_KEYS)
    if grand_total == 0:
        return {key: 0.0 for key in CATEGORY_KEYS}
    return {key: round(totals.get(key, 0) / grand_total * 100, 1) for key in CATEGORY_KEYS}


def category_deviations(totals: Mapping[str, float], weights: Mapping[str, float]) -> Dict[str, float]:
    """Actual share minus target weight; negative means the bucket is behind."""
    actual = category_percentages(totals)
    return {key: round(actual[key] - weights[key], 1) for key in CATEGORY_KEYS}


def goal_progress(total_assets: float, goal_amount: float) -> float:
    if goal_amount <= 0:
        return 0.0
    return round(total_assets / goal_amount * 100, 1)


def history_frame(history: Iterable[HistorySnapshot]) -> pd.DataFrame:
    """Snapshot stream as a frame for the trend chart, one row per snapshot."""
    rows = [
        {"date": s.date, "total_amount": s.total_amount, "kind": s.kind}
        for s in history
    ]
    if not rows:
        return pd.DataFrame(columns=HISTORY_COLUMNS)
    df = pd.DataFrame(rows, columns=HISTORY_COLUMNS)
    df["date"] = pd.to_datetime(df["date"])
    return df
