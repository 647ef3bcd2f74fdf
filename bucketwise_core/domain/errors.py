"""Domain exceptions.

All of them are ValueErrors so callers that only care about bad input can
catch one type. IndexOutOfRange is also an IndexError: it signals a stale
index from the caller, not bad user input.
"""

from __future__ import annotations


class BudgetError(ValueError):
    """Base error for the budgeting core."""


class InvalidAllocation(BudgetError):
    pass


class InvalidName(BudgetError):
    pass


class InvalidGoal(BudgetError):
    pass


class InvalidAmount(BudgetError):
    pass


class InvalidIncome(BudgetError):
    pass


class UnknownCategory(BudgetError):
    def __init__(self, category: str) -> None:
        self.category = category
        super().__init__(f"Unknown category: {category!r}")


class IndexOutOfRange(BudgetError, IndexError):
    def __init__(self, category: str, index: int, size: int) -> None:
        self.category = category
        self.index = index
        self.size = size
        super().__init__(f"Account index {index} out of range for {category!r} ({size} accounts)")
