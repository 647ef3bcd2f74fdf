from __future__ import annotations

import datetime as dt
import logging
import math
from typing import Any, Dict, Iterable, List, Optional

from bucketwise_core.domain.errors import InvalidAllocation
from bucketwise_core.domain.models import (
    CATEGORY_KEYS,
    DEFAULT_ALLOCATION,
    Account,
    AppState,
    Goal,
    HistorySnapshot,
    empty_accounts,
)
from bucketwise_core.services.allocation import validate_weights
from bucketwise_core.services.ledger import coerce_amount

logger = logging.getLogger(__name__)

INCOME_KEY = "monthlyIncome"
ALLOCATION_KEY = "allocation"
SETUP_KEY = "hasCompletedSetup"
ACCOUNTS_KEY = "accounts"
GOAL_KEY = "goal"
HISTORY_KEY = "history"

STATE_KEYS = (INCOME_KEY, ALLOCATION_KEY, SETUP_KEY, ACCOUNTS_KEY, GOAL_KEY, HISTORY_KEY)


def _parse_datetime(raw: Any) -> dt.datetime:
    value = dt.datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    if value.tzinfo is not None:
        value = value.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return value


def _income_from_json(raw: Any) -> float:
    if isinstance(raw, bool):
        raise TypeError(f"expected a number, got {raw!r}")
    income = float(raw)
    if not math.isfinite(income) or income < 0:
        raise ValueError(f"expected a non-negative amount, got {raw!r}")
    return income


def _goal_to_json(goal: Optional[Goal]) -> Optional[dict]:
    if goal is None:
        return None
    return {"name": goal.name, "totalAmount": goal.total_amount, "createdAt": goal.created_at.isoformat()}


def _goal_from_json(data: Any) -> Optional[Goal]:
    if not isinstance(data, dict) or not data.get("name"):
        return None
    total_amount = float(data.get("totalAmount", 0) or 0)
    if not math.isfinite(total_amount) or total_amount <= 0:
        raise ValueError(f"goal amount must be positive, got {data.get('totalAmount')!r}")
    return Goal(
        name=str(data["name"]),
        total_amount=total_amount,
        created_at=_parse_datetime(data["createdAt"]) if data.get("createdAt") else dt.datetime.now(),
    )


def _snapshot_to_json(snapshot: HistorySnapshot) -> dict:
    payload = {
        "date": snapshot.date.isoformat(),
        "type": snapshot.kind,
        "totalAmount": snapshot.total_amount,
        "snapshot": dict(snapshot.categories),
    }
    if snapshot.income is not None:
        payload["income"] = snapshot.income
    if snapshot.allocation is not None:
        payload["allocation"] = dict(snapshot.allocation)
    return payload


def _snapshot_from_json(data: dict) -> HistorySnapshot:
    total_amount = float(data.get("totalAmount", 0) or 0)
    if not math.isfinite(total_amount) or total_amount < 0:
        raise ValueError(f"snapshot total must be non-negative, got {data.get('totalAmount')!r}")
    return HistorySnapshot(
        date=_parse_datetime(data["date"]),
        total_amount=total_amount,
        kind=data.get("type", "update"),
        categories={k: float(v) for k, v in (data.get("snapshot") or {}).items()},
        income=data.get("income"),
        allocation=data.get("allocation"),
    )


def _history_from_json(data: Any) -> List[HistorySnapshot]:
    if not data:
        return []
    if not isinstance(data, list):
        logger.warning("Stored history is not a list; starting empty")
        return []
    history = []
    for position, item in enumerate(data):
        try:
            history.append(_snapshot_from_json(item))
        except (TypeError, ValueError, KeyError, AttributeError) as exc:
            logger.warning("Dropping unreadable history entry %d (%s)", position, exc)
    return history


def _accounts_to_json(accounts: Dict[str, List[Account]]) -> dict:
    return {key: [{"name": a.name, "amount": a.amount} for a in accounts.get(key, [])] for key in CATEGORY_KEYS}


def _accounts_from_json(data: Any) -> Dict[str, List[Account]]:
    accounts = empty_accounts()
    if not isinstance(data, dict):
        return accounts
    for key in CATEGORY_KEYS:
        items = data.get(key) or []
        if not isinstance(items, list):
            logger.warning("Stored %s accounts are not a list; skipping", key)
            continue
        for item in items:
            if not isinstance(item, dict):
                logger.warning("Skipping unreadable %s account %r", key, item)
                continue
            accounts[key].append(Account(name=str(item.get("name", "")), amount=coerce_amount(item.get("amount", 0))))
    return accounts


def load_state(store, default_allocation: Optional[Dict[str, float]] = None) -> AppState:
    """Rebuild the application state; absent or unusable keys fall back to defaults."""
    defaults = dict(default_allocation or DEFAULT_ALLOCATION)
    state = AppState(allocation=dict(defaults))

    income = store.load(INCOME_KEY)
    if income:
        try:
            state.monthly_income = _income_from_json(income)
        except (TypeError, ValueError) as exc:
            logger.warning("Stored monthly income rejected (%s); using 0", exc)

    allocation = store.load(ALLOCATION_KEY)
    if allocation:
        try:
            state.allocation = validate_weights(allocation)
        except InvalidAllocation as exc:
            logger.warning("Stored allocation rejected (%s); using defaults", exc)
            state.allocation = dict(defaults)

    state.has_completed_setup = bool(store.load(SETUP_KEY))
    state.accounts = _accounts_from_json(store.load(ACCOUNTS_KEY))
    try:
        state.goal = _goal_from_json(store.load(GOAL_KEY))
    except (TypeError, ValueError) as exc:
        logger.warning("Stored goal rejected (%s); no goal set", exc)
    state.history = _history_from_json(store.load(HISTORY_KEY))
    return state


def save_state(store, state: AppState, keys: Iterable[str] = STATE_KEYS) -> bool:
    """Write the selected keys; returns False if any single write failed."""
    encoders = {
        INCOME_KEY: lambda: state.monthly_income,
        ALLOCATION_KEY: lambda: dict(state.allocation),
        SETUP_KEY: lambda: state.has_completed_setup,
        ACCOUNTS_KEY: lambda: _accounts_to_json(state.accounts),
        GOAL_KEY: lambda: _goal_to_json(state.goal),
        HISTORY_KEY: lambda: [_snapshot_to_json(s) for s in state.history],
    }
    ok = True
    for key in keys:
        if not store.save(key, encoders[key]()):
            logger.warning("Persisting %s failed", key)
            ok = False
    return ok
