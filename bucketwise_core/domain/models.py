from __future__ import annotations

import dataclasses
import datetime as dt
from typing import Dict, List, Optional

from bucketwise_core.domain.errors import UnknownCategory

GROWTH = "growth"
STABILITY = "stability"
ESSENTIALS = "essentials"
REWARDS = "rewards"

# Fixed iteration order; the rebalancer's rounding correction depends on it.
CATEGORY_KEYS = (GROWTH, STABILITY, ESSENTIALS, REWARDS)

DEFAULT_ALLOCATION: Dict[str, float] = {
    GROWTH: 25,
    STABILITY: 15,
    ESSENTIALS: 50,
    REWARDS: 10,
}

# Older living/investment/stable/fun naming of the same four buckets.
LEGACY_CATEGORY_ALIASES: Dict[str, str] = {
    "investment": GROWTH,
    "stable": STABILITY,
    "living": ESSENTIALS,
    "fun": REWARDS,
}

SNAPSHOT_KINDS = ("initial", "income", "update")


def resolve_category(key: str) -> str:
    """Map a category key (or a legacy alias) onto the canonical key."""
    normalized = str(key).strip().lower()
    normalized = LEGACY_CATEGORY_ALIASES.get(normalized, normalized)
    if normalized not in CATEGORY_KEYS:
        raise UnknownCategory(key)
    return normalized


def empty_accounts() -> Dict[str, List["Account"]]:
    return {key: [] for key in CATEGORY_KEYS}


@dataclasses.dataclass
class Account:
    name: str
    amount: float = 0.0


@dataclasses.dataclass(frozen=True)
class Goal:
    name: str
    total_amount: float
    created_at: dt.datetime


@dataclasses.dataclass(frozen=True)
class HistorySnapshot:
    date: dt.datetime
    total_amount: float
    kind: str = "update"  # "initial", "income" or "update"
    categories: Dict[str, float] = dataclasses.field(default_factory=dict)
    income: Optional[float] = None
    allocation: Optional[Dict[str, float]] = None


@dataclasses.dataclass(frozen=True)
class Prediction:
    months_needed: int
    estimated_date: str
    monthly_growth_rate: float


@dataclasses.dataclass(frozen=True)
class LedgerTotals:
    categories: Dict[str, float]
    total: float


@dataclasses.dataclass(frozen=True)
class LedgerChanged:
    action: str  # "add", "update" or "delete"
    category: str
    totals: LedgerTotals


@dataclasses.dataclass
class AppState:
    """
    Everything the assistant keeps for its single user.
    Components receive this object and mutate it in place; storage is separate.
    """

    monthly_income: float = 0.0
    allocation: Dict[str, float] = dataclasses.field(default_factory=lambda: dict(DEFAULT_ALLOCATION))
    has_completed_setup: bool = False
    accounts: Dict[str, List[Account]] = dataclasses.field(default_factory=empty_accounts)
    goal: Optional[Goal] = None
    history: List[HistorySnapshot] = dataclasses.field(default_factory=list)
