from __future__ import annotations

import datetime as dt
import math
from typing import Optional, Sequence

import pandas as pd

from bucketwise_core.domain.models import HistorySnapshot, Prediction

GOAL_REACHED = "goal already reached"
INSUFFICIENT_DATA = "insufficient data"
NEEDS_MORE_SAVINGS = "needs increased savings"
MONTHS_UNREACHABLE = 999

# Months are approximated as 30 days, not calendar months.
MONTH_LENGTH = pd.Timedelta(days=30)


def _add_months(start: dt.date, months: int) -> str:
    return (pd.Period(start, freq="M") + months).strftime("%Y-%m")


def project(
    goal_amount: float,
    current_total: float,
    history: Sequence[HistorySnapshot],
    today: Optional[dt.date] = None,
    previous: Optional[Prediction] = None,
) -> Prediction:
    """
    Two-point linear projection of when the goal will be reached:
    - Growth per month is taken from the first and last snapshots only.
    - Intermediate snapshots only matter for the trend chart.
    - Same-day first/last snapshots are indeterminate; `previous` is returned unchanged.
    """
    if current_total >= goal_amount:
        return Prediction(months_needed=0, estimated_date=GOAL_REACHED, monthly_growth_rate=0.0)

    insufficient = Prediction(months_needed=0, estimated_date=INSUFFICIENT_DATA, monthly_growth_rate=0.0)
    if len(history) < 2:
        return insufficient

    first, last = history[0], history[-1]
    months_diff = (pd.Timestamp(last.date) - pd.Timestamp(first.date)) / MONTH_LENGTH
    if months_diff <= 0:
        return previous if previous is not None else insufficient

    monthly_growth = (last.total_amount - first.total_amount) / months_diff
    if monthly_growth <= 0:
        return Prediction(
            months_needed=MONTHS_UNREACHABLE,
            estimated_date=NEEDS_MORE_SAVINGS,
            monthly_growth_rate=0.0,
        )

    months_needed = math.ceil((goal_amount - current_total) / monthly_growth)
    return Prediction(
        months_needed=months_needed,
        estimated_date=_add_months(today or dt.date.today(), months_needed),
        monthly_growth_rate=round(monthly_growth, 2),
    )
