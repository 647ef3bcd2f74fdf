from __future__ import annotations

import logging
import math
from typing import Callable, Dict, Iterable, List, Optional

from bucketwise_core.domain.errors import IndexOutOfRange, InvalidName
from bucketwise_core.domain.models import (
    CATEGORY_KEYS,
    Account,
    AppState,
    LedgerChanged,
    LedgerTotals,
    resolve_category,
)

logger = logging.getLogger(__name__)

LedgerListener = Callable[[LedgerChanged], None]


def _parse_amount(raw) -> Optional[float]:
    if isinstance(raw, bool):
        return None
    try:
        value = float(raw.strip()) if isinstance(raw, str) else float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def coerce_amount(raw) -> float:
    """
    Parse user-entered money. Malformed, negative or non-finite input becomes 0.0
    so the ledger always holds valid numbers.
    """
    value = _parse_amount(raw)
    return 0.0 if value is None else value


def _stored_amount(account) -> float:
    amount = getattr(account, "amount", 0)
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


class AccountLedger:
    """
    Per-category lists of named accounts plus their derived totals.
    Listeners get a LedgerChanged event after every successful mutation.
    """

    def __init__(self, state: AppState, listeners: Iterable[LedgerListener] = ()):
        self._state = state
        for key in CATEGORY_KEYS:
            self._state.accounts.setdefault(key, [])
        self._listeners: List[LedgerListener] = list(listeners)
        self._totals = self.recompute_totals()

    def subscribe(self, listener: LedgerListener) -> None:
        self._listeners.append(listener)

    @property
    def totals(self) -> LedgerTotals:
        return self._totals

    def accounts(self, category: str) -> List[Account]:
        return list(self._state.accounts[resolve_category(category)])

    def category_total(self, category: str) -> float:
        return self._totals.categories[resolve_category(category)]

    def total_assets(self) -> float:
        return self._totals.total

    def add_account(self, category: str, name: str) -> Account:
        key = resolve_category(category)
        clean_name = (name or "").strip()
        if not clean_name:
            raise InvalidName("Account name must not be empty")
        account = Account(name=clean_name, amount=0.0)
        self._state.accounts[key].append(account)
        self._changed("add", key)
        return account

    def update_amount(self, category: str, index: int, amount) -> Account:
        key = resolve_category(category)
        account = self._state.accounts[key][self._check_index(key, index)]
        value = _parse_amount(amount)
        if value is None:
            value = 0.0
            logger.warning("Coerced amount %r for %s[%d] to 0", amount, key, index)
        account.amount = value
        self._changed("update", key)
        return account

    def delete_account(self, category: str, index: int) -> Account:
        key = resolve_category(category)
        removed = self._state.accounts[key].pop(self._check_index(key, index))
        self._changed("delete", key)
        return removed

    def recompute_totals(self) -> LedgerTotals:
        categories: Dict[str, float] = {}
        for key in CATEGORY_KEYS:
            categories[key] = sum(_stored_amount(a) for a in self._state.accounts.get(key, []))
        self._totals = LedgerTotals(categories=categories, total=sum(categories.values()))
        return self._totals

    def _check_index(self, key: str, index: int) -> int:
        size = len(self._state.accounts[key])
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < size:
            raise IndexOutOfRange(key, index, size)
        return index

    def _changed(self, action: str, key: str) -> None:
        totals = self.recompute_totals()
        logger.debug("Ledger %s on %s, total assets %.2f", action, key, totals.total)
        event = LedgerChanged(action=action, category=key, totals=totals)
        for listener in self._listeners:
            listener(event)
