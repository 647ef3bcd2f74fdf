import datetime as dt
import json
from pathlib import Path

import pytest

from bucketwise_core.domain.errors import InvalidAllocation, InvalidIncome
from bucketwise_core.domain.models import DEFAULT_ALLOCATION
from bucketwise_core.io.config import load_app_config
from bucketwise_core.io.storage import JsonFileStore, MemoryStore
from bucketwise_core.services.session import BudgetSession


class _FailingStore(MemoryStore):
    def save(self, key, value):
        return False


def _populated(store) -> BudgetSession:
    session = BudgetSession(store)
    session.set_monthly_income(8000)
    session.commit_allocation(session.adjust_allocation("growth", 30))
    session.add_account("growth", "Index fund")
    session.update_amount("growth", 0, 12000)
    session.add_account("stability", "Deposit")
    session.update_amount("stability", 0, "3000")
    session.set_goal("House", 100000)
    return session


def test_state_round_trips_through_store():
    store = MemoryStore()
    first = _populated(store)

    reloaded = BudgetSession(store)
    assert reloaded.state.monthly_income == 8000
    assert reloaded.state.allocation == first.state.allocation
    assert reloaded.state.has_completed_setup is True
    assert reloaded.ledger.total_assets() == 15000
    assert reloaded.state.goal.name == "House"
    assert [s.kind for s in reloaded.state.history] == ["initial"]


def test_json_file_store_persists(tmp_path: Path):
    path = tmp_path / "store.json"
    _populated(JsonFileStore(path))

    payload = json.loads(path.read_text())
    assert set(payload) == {"monthlyIncome", "allocation", "hasCompletedSetup", "accounts", "goal", "history"}
    assert payload["accounts"]["growth"] == [{"name": "Index fund", "amount": 12000.0}]
    assert payload["goal"]["totalAmount"] == 100000.0

    assert BudgetSession(JsonFileStore(path)).ledger.category_total("stability") == 3000


def test_missing_or_broken_store_uses_defaults(tmp_path: Path):
    assert BudgetSession(JsonFileStore(tmp_path / "absent.json")).state.allocation == DEFAULT_ALLOCATION

    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    session = BudgetSession(JsonFileStore(broken))
    assert session.state.allocation == DEFAULT_ALLOCATION
    assert session.state.history == []


def test_stored_allocation_that_breaks_invariant_is_ignored():
    store = MemoryStore({"allocation": {"growth": 90, "stability": 90, "essentials": 0, "rewards": 0}})
    assert BudgetSession(store).state.allocation == DEFAULT_ALLOCATION


def test_imports_history_written_with_utc_suffix():
    store = MemoryStore(
        {
            "history": [
                {"date": "2024-01-01T00:00:00.000Z", "type": "initial", "totalAmount": 1000, "snapshot": {}},
                {"date": "2024-06-29T00:00:00.000Z", "type": "update", "totalAmount": 4000, "snapshot": {}},
            ],
            "goal": {"name": "Car", "totalAmount": 10000, "createdAt": "2024-01-01T00:00:00.000Z"},
            "accounts": {"growth": [{"name": "fund", "amount": 4000}]},
        }
    )
    session = BudgetSession(store)
    prediction = session.prediction(today=dt.date(2026, 10, 19))
    assert prediction.months_needed == 12
    assert prediction.estimated_date == "2027-10"


def test_storage_failure_is_reported_not_raised():
    session = BudgetSession(_FailingStore())
    assert session.set_monthly_income(5000) is False
    assert session.state.monthly_income == 5000


def test_invalid_income_changes_nothing():
    session = BudgetSession(MemoryStore())
    for bad in (0, -100, "abc", None):
        with pytest.raises(InvalidIncome):
            session.set_monthly_income(bad)
    assert session.state.monthly_income == 0.0


def test_commit_rejects_draft_that_does_not_sum_to_100():
    session = BudgetSession(MemoryStore())
    session.commit_allocation(session.adjust_allocation("essentials", 100))
    draft = session.adjust_allocation("essentials", 70)
    assert sum(draft.values()) == 70
    with pytest.raises(InvalidAllocation):
        session.commit_allocation(draft)
    assert session.state.allocation["essentials"] == 100


def test_record_income_appends_snapshot_with_split():
    session = _populated(MemoryStore())
    snapshot = session.record_income(1000, plan="A")
    assert snapshot.kind == "income"
    assert snapshot.income == 1000
    assert snapshot.total_amount == 15000
    assert snapshot.allocation == session.income_split(1000)
    assert len(session.state.history) == 2

    with pytest.raises(ValueError):
        session.record_income(1000, plan="C")
    with pytest.raises(InvalidIncome):
        session.record_income(-1)


def test_overview_bundles_dashboard_numbers():
    session = _populated(MemoryStore())
    overview = session.overview(today=dt.date(2026, 10, 19))
    assert overview["total_assets"] == 15000
    assert overview["progress"] == 15.0
    assert overview["category_totals"]["growth"] == 12000
    assert overview["category_goals"]["growth"] == 30000.0
    assert overview["prediction"]["estimated_date"] == "insufficient data"


def test_load_app_config(tmp_path: Path):
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text(
        json.dumps(
            {
                "store_path": str(tmp_path / "data.json"),
                "currency": "EUR",
                "default_allocation": {"growth": 20, "stability": 20, "essentials": 50, "rewards": 10},
                "log_level": "debug",
            }
        )
    )
    config = load_app_config(cfg_path)
    assert config.store_path == tmp_path / "data.json"
    assert config.currency == "EUR"
    assert config.log_level == "DEBUG"

    session = BudgetSession(JsonFileStore(config.store_path), default_allocation=config.default_allocation)
    assert session.state.allocation["growth"] == 20

    cfg_path.write_text(json.dumps({"default_allocation": {"growth": 99, "stability": 20, "essentials": 0, "rewards": 0}}))
    with pytest.raises(InvalidAllocation):
        load_app_config(cfg_path)


def test_ledger_and_goal_operations_report_storage_failure():
    session = BudgetSession(_FailingStore())
    session.add_account("growth", "fund")
    assert session.last_save_ok is False
    session.update_amount("growth", 0, 100)
    assert session.last_save_ok is False
    session.set_goal("Trip", 1000)
    assert session.last_save_ok is False
    session.record_snapshot()
    assert session.last_save_ok is False
    session.record_income(500)
    assert session.last_save_ok is False
    session.delete_account("growth", 0)
    assert session.last_save_ok is False
    assert session.ledger.accounts("growth") == []

    working = BudgetSession(MemoryStore())
    working.add_account("growth", "fund")
    assert working.last_save_ok is True


@pytest.mark.parametrize(
    "stored",
    [
        {"monthlyIncome": "abc"},
        {"monthlyIncome": float("inf")},
        {"allocation": [25, 15, 50, 10]},
        {"accounts": {"growth": ["fund", 3]}},
        {"accounts": {"growth": "fund"}},
        {"goal": {"name": "Car", "totalAmount": "lots"}},
        {"goal": {"name": "Car", "totalAmount": 1000, "createdAt": "yesterday"}},
        {"history": "not a list"},
        {"history": [{"type": "initial", "totalAmount": 100}]},
        {"history": [{"date": "someday", "totalAmount": 100}]},
        {"history": [{"date": "2025-01-01", "totalAmount": "abc"}]},
        {"history": ["junk"]},
    ],
)
def test_corrupt_stored_values_fall_back_to_defaults(stored):
    session = BudgetSession(MemoryStore(stored))
    assert session.state.monthly_income == 0.0
    assert session.state.allocation == DEFAULT_ALLOCATION
    assert session.ledger.accounts("growth") == []
    assert session.state.goal is None
    assert session.state.history == []


def test_unreadable_history_entries_are_dropped_individually():
    store = MemoryStore(
        {
            "history": [
                {"date": "2025-01-01T00:00:00", "type": "initial", "totalAmount": 100},
                {"date": "garbage", "totalAmount": 200},
                {"date": "2025-02-01T00:00:00", "type": "update", "totalAmount": 300},
            ],
        }
    )
    history = BudgetSession(store).state.history
    assert [s.total_amount for s in history] == [100, 300]
