from bucketwise_core.services.allocation import AllocationModel  # noqa: F401
from bucketwise_core.services.goals import GoalTracker  # noqa: F401
from bucketwise_core.services.ledger import AccountLedger  # noqa: F401
from bucketwise_core.services.planner import category_goals, fixed_split, smart_split  # noqa: F401
from bucketwise_core.services.projector import project  # noqa: F401
from bucketwise_core.services.rebalancer import rebalance  # noqa: F401
from bucketwise_core.services.session import BudgetSession  # noqa: F401

__all__ = [
    "AllocationModel",
    "GoalTracker",
    "AccountLedger",
    "category_goals",
    "fixed_split",
    "smart_split",
    "project",
    "rebalance",
    "BudgetSession",
]
