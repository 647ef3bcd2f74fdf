from bucketwise_core.domain.errors import (  # noqa: F401
    BudgetError,
    IndexOutOfRange,
    InvalidAllocation,
    InvalidAmount,
    InvalidGoal,
    InvalidIncome,
    InvalidName,
    UnknownCategory,
)
from bucketwise_core.domain.models import (  # noqa: F401
    CATEGORY_KEYS,
    DEFAULT_ALLOCATION,
    Account,
    AppState,
    Goal,
    HistorySnapshot,
    LedgerChanged,
    LedgerTotals,
    Prediction,
    resolve_category,
)

__all__ = [
    "BudgetError",
    "IndexOutOfRange",
    "InvalidAllocation",
    "InvalidAmount",
    "InvalidGoal",
    "InvalidIncome",
    "InvalidName",
    "UnknownCategory",
    "CATEGORY_KEYS",
    "DEFAULT_ALLOCATION",
    "Account",
    "AppState",
    "Goal",
    "HistorySnapshot",
    "LedgerChanged",
    "LedgerTotals",
    "Prediction",
    "resolve_category",
]
