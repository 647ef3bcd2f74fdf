from __future__ import annotations

import datetime as dt
import logging
import math
from typing import Dict, List, Optional

from bucketwise_core.domain.errors import InvalidAmount, InvalidGoal
from bucketwise_core.domain.models import (
    SNAPSHOT_KINDS,
    AppState,
    Goal,
    HistorySnapshot,
    LedgerChanged,
)

logger = logging.getLogger(__name__)


class GoalTracker:
    """Owns the savings goal and the append-only stream of total-asset snapshots."""

    def __init__(self, state: AppState):
        self._state = state

    @property
    def goal(self) -> Optional[Goal]:
        return self._state.goal

    @property
    def history(self) -> List[HistorySnapshot]:
        return list(self._state.history)

    def set_goal(self, name: str, total_amount, now: Optional[dt.datetime] = None) -> Goal:
        clean_name = (name or "").strip()
        if not clean_name:
            raise InvalidGoal("Goal name must not be empty")
        try:
            amount = float(total_amount)
        except (TypeError, ValueError) as exc:
            raise InvalidGoal(f"Goal amount must be a number, got {total_amount!r}") from exc
        if not math.isfinite(amount) or amount <= 0:
            raise InvalidGoal(f"Goal amount must be positive, got {total_amount!r}")

        goal = Goal(name=clean_name, total_amount=amount, created_at=now or dt.datetime.now())
        self._state.goal = goal
        logger.debug("Goal set: %s = %.2f", goal.name, goal.total_amount)
        return goal

    def append_snapshot(
        self,
        total_amount: float,
        date: Optional[dt.datetime] = None,
        kind: str = "update",
        categories: Optional[Dict[str, float]] = None,
        income: Optional[float] = None,
        allocation: Optional[Dict[str, float]] = None,
    ) -> HistorySnapshot:
        if kind not in SNAPSHOT_KINDS:
            raise ValueError(f"Unknown snapshot kind: {kind!r}")
        try:
            amount = float(total_amount)
        except (TypeError, ValueError) as exc:
            raise InvalidAmount(f"Snapshot total must be a number, got {total_amount!r}") from exc
        if not math.isfinite(amount) or amount < 0:
            raise InvalidAmount(f"Snapshot total must be non-negative, got {total_amount!r}")

        snapshot = HistorySnapshot(
            date=date or dt.datetime.now(),
            total_amount=amount,
            kind=kind,
            categories=dict(categories or {}),
            income=income,
            allocation=dict(allocation) if allocation is not None else None,
        )
        self._state.history.append(snapshot)
        logger.debug("Snapshot %s appended: %.2f", kind, amount)
        return snapshot

    def latest_snapshot(self) -> Optional[HistorySnapshot]:
        return self._state.history[-1] if self._state.history else None

    def on_ledger_changed(self, event: LedgerChanged) -> Optional[HistorySnapshot]:
        # History is seeded from ledger activity exactly once.
        if self._state.history:
            return None
        return self.append_snapshot(
            event.totals.total,
            kind="initial",
            categories=event.totals.categories,
        )
