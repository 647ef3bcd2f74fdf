from __future__ import annotations

import datetime as dt
import logging
import math
from typing import Any, Dict, Mapping, Optional

from bucketwise_core.domain.errors import InvalidIncome
from bucketwise_core.domain.models import Account, AppState, Goal, HistorySnapshot, Prediction
from bucketwise_core.io import state as state_io
from bucketwise_core.io.storage import MemoryStore
from bucketwise_core.services import analytics, planner
from bucketwise_core.services.allocation import AllocationModel
from bucketwise_core.services.goals import GoalTracker
from bucketwise_core.services.ledger import AccountLedger
from bucketwise_core.services.projector import project
from bucketwise_core.services.rebalancer import rebalance

logger = logging.getLogger(__name__)


class BudgetSession:
    """
    Wires the components around one AppState and persists through the injected store.
    Mutating methods return the store's pass/fail signal or the new record; in the
    latter case `last_save_ok` holds the signal. Domain errors are raised before
    anything changes.
    """

    def __init__(self, store=None, state: Optional[AppState] = None, default_allocation: Optional[Dict[str, float]] = None):
        self.store = store if store is not None else MemoryStore()
        self.state = state if state is not None else state_io.load_state(self.store, default_allocation)
        self.allocation = AllocationModel(self.state)
        self.goals = GoalTracker(self.state)
        self.ledger = AccountLedger(self.state, listeners=[self.goals.on_ledger_changed])
        self._last_prediction: Optional[Prediction] = None
        self.last_save_ok = True

    # -- income & allocation --------------------------------------------

    def set_monthly_income(self, amount) -> bool:
        try:
            income = float(amount)
        except (TypeError, ValueError) as exc:
            raise InvalidIncome(f"Monthly income must be a number, got {amount!r}") from exc
        if not math.isfinite(income) or income <= 0:
            raise InvalidIncome(f"Monthly income must be positive, got {amount!r}")
        self.state.monthly_income = income
        return self._persist(state_io.INCOME_KEY)

    def adjust_allocation(self, key: str, value: float) -> Dict[str, float]:
        """Preview the weights after moving one slider; nothing is committed."""
        return rebalance(self.state.allocation, key, value)

    def commit_allocation(self, weights: Mapping[str, float]) -> bool:
        self.allocation.apply_rebalance(weights)
        self.state.has_completed_setup = True
        return self._persist(state_io.ALLOCATION_KEY, state_io.SETUP_KEY)

    def income_split(self, income: float) -> Dict[str, float]:
        return planner.fixed_split(income, self.state.allocation)

    # -- accounts ---------------------------------------------------------

    def add_account(self, category: str, name: str) -> Account:
        account = self.ledger.add_account(category, name)
        self._persist(state_io.ACCOUNTS_KEY, state_io.HISTORY_KEY)
        return account

    def update_amount(self, category: str, index: int, amount) -> Account:
        account = self.ledger.update_amount(category, index, amount)
        self._persist(state_io.ACCOUNTS_KEY, state_io.HISTORY_KEY)
        return account

    def delete_account(self, category: str, index: int) -> Account:
        account = self.ledger.delete_account(category, index)
        self._persist(state_io.ACCOUNTS_KEY, state_io.HISTORY_KEY)
        return account

    # -- goal & history ---------------------------------------------------

    def set_goal(self, name: str, total_amount) -> Goal:
        goal = self.goals.set_goal(name, total_amount)
        self._persist(state_io.GOAL_KEY)
        return goal

    def record_snapshot(self, date: Optional[dt.datetime] = None) -> HistorySnapshot:
        totals = self.ledger.totals
        snapshot = self.goals.append_snapshot(totals.total, date=date, categories=totals.categories)
        self._persist(state_io.HISTORY_KEY)
        return snapshot

    def plans(self, income: float) -> Dict[str, Dict[str, float]]:
        totals = self.ledger.totals.categories
        deviations = analytics.category_deviations(totals, self.state.allocation)
        return {
            "A": planner.fixed_split(income, self.state.allocation),
            "B": planner.smart_split(income, self.state.allocation, deviations),
        }

    def record_income(self, income, plan: str = "A") -> HistorySnapshot:
        try:
            amount = float(income)
        except (TypeError, ValueError) as exc:
            raise InvalidIncome(f"Income must be a number, got {income!r}") from exc
        if not math.isfinite(amount) or amount <= 0:
            raise InvalidIncome(f"Income must be positive, got {income!r}")
        plans = self.plans(amount)
        if plan not in plans:
            raise ValueError(f"Unknown plan {plan!r}; expected one of {', '.join(plans)}")

        totals = self.ledger.totals
        snapshot = self.goals.append_snapshot(
            totals.total,
            kind="income",
            categories=totals.categories,
            income=amount,
            allocation=plans[plan],
        )
        self._persist(state_io.HISTORY_KEY)
        return snapshot

    # -- derived views ----------------------------------------------------

    def prediction(self, today: Optional[dt.date] = None) -> Prediction:
        goal_amount = self.state.goal.total_amount if self.state.goal else 0.0
        self._last_prediction = project(
            goal_amount,
            self.ledger.total_assets(),
            self.state.history,
            today=today,
            previous=self._last_prediction,
        )
        return self._last_prediction

    def overview(self, today: Optional[dt.date] = None) -> Dict[str, Any]:
        totals = self.ledger.totals
        goal = self.state.goal
        goal_amount = goal.total_amount if goal else 0.0
        prediction = self.prediction(today=today)
        return {
            "monthly_income": self.state.monthly_income,
            "has_completed_setup": self.state.has_completed_setup,
            "allocation": dict(self.state.allocation),
            "category_totals": dict(totals.categories),
            "total_assets": totals.total,
            "category_percentages": analytics.category_percentages(totals.categories),
            "category_deviations": analytics.category_deviations(totals.categories, self.state.allocation),
            "goal": {"name": goal.name, "total_amount": goal.total_amount} if goal else None,
            "category_goals": planner.category_goals(goal_amount, self.state.allocation),
            "progress": analytics.goal_progress(totals.total, goal_amount),
            "prediction": {
                "months_needed": prediction.months_needed,
                "estimated_date": prediction.estimated_date,
                "monthly_growth_rate": prediction.monthly_growth_rate,
            },
            "history_points": len(self.state.history),
        }

    def _persist(self, *keys: str) -> bool:
        ok = state_io.save_state(self.store, self.state, keys)
        self.last_save_ok = ok
        if not ok:
            logger.warning("Some changes were not saved: %s", ", ".join(keys))
        return ok
