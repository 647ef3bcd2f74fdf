import pytest

from bucketwise_core.domain.errors import InvalidAllocation, UnknownCategory
from bucketwise_core.domain.models import AppState, CATEGORY_KEYS, DEFAULT_ALLOCATION
from bucketwise_core.services.allocation import AllocationModel
from bucketwise_core.services.rebalancer import rebalance

EVEN = {"growth": 25, "stability": 25, "essentials": 25, "rewards": 25}


def test_raising_one_bucket_shrinks_others_proportionally():
    result = rebalance(DEFAULT_ALLOCATION, "growth", 40)
    assert result == {"growth": 40, "stability": 12, "essentials": 40, "rewards": 8}


def test_rounding_drift_goes_to_first_other_bucket():
    start = {"growth": 30, "stability": 30, "essentials": 30, "rewards": 10}
    result = rebalance(start, "growth", 20)
    # 80 * 30/70 = 34.29 twice, 80 * 10/70 = 11.43 -> 99, stability absorbs +1
    assert result == {"growth": 20, "stability": 35, "essentials": 34, "rewards": 11}
    assert abs(result["stability"] - result["essentials"]) <= 1


def test_rounds_halves_up():
    start = {"growth": 98, "stability": 1, "essentials": 1, "rewards": 0}
    result = rebalance(start, "growth", 95)
    # 5 * 1/2 = 2.5 rounds to 3 for both, drift -1 lands on stability
    assert result == {"growth": 95, "stability": 2, "essentials": 3, "rewards": 0}


def test_new_value_is_clamped():
    assert rebalance(DEFAULT_ALLOCATION, "rewards", 150) == {
        "growth": 0,
        "stability": 0,
        "essentials": 0,
        "rewards": 100,
    }
    low = rebalance(DEFAULT_ALLOCATION, "rewards", -20)
    assert low["rewards"] == 0
    assert sum(low.values()) == 100


def test_input_is_not_mutated():
    start = dict(DEFAULT_ALLOCATION)
    rebalance(start, "essentials", 70)
    assert start == DEFAULT_ALLOCATION


@pytest.mark.parametrize("key", CATEGORY_KEYS)
def test_reapplying_current_value_is_a_no_op(key):
    assert rebalance(DEFAULT_ALLOCATION, key, DEFAULT_ALLOCATION[key]) == DEFAULT_ALLOCATION


@pytest.mark.parametrize("start", [DEFAULT_ALLOCATION, EVEN])
def test_every_slider_position_sums_to_100(start):
    for key in CATEGORY_KEYS:
        for value in range(0, 101):
            result = rebalance(start, key, value)
            assert sum(result.values()) == 100, (key, value, result)
            assert all(0 <= v <= 100 for v in result.values())


def test_all_others_zero_leaves_an_uncommittable_draft():
    state = AppState(allocation={"growth": 100, "stability": 0, "essentials": 0, "rewards": 0})
    draft = rebalance(state.allocation, "growth", 60)
    assert draft == {"growth": 60, "stability": 0, "essentials": 0, "rewards": 0}

    model = AllocationModel(state)
    with pytest.raises(InvalidAllocation):
        model.apply_rebalance(draft)
    assert model.weights["growth"] == 100


def test_correction_on_empty_first_bucket_stays_in_range():
    start = {"growth": 0, "stability": 1, "essentials": 1, "rewards": 98}
    result = rebalance(start, "rewards", 95)
    assert result == {"growth": 0, "stability": 3, "essentials": 3, "rewards": 95}


def test_legacy_alias_and_unknown_key():
    assert rebalance(DEFAULT_ALLOCATION, "investment", 40) == rebalance(DEFAULT_ALLOCATION, "growth", 40)
    with pytest.raises(UnknownCategory):
        rebalance(DEFAULT_ALLOCATION, "crypto", 10)
    with pytest.raises(InvalidAllocation):
        rebalance(DEFAULT_ALLOCATION, "growth", "lots")


def test_allocation_model_replaces_weights_wholesale():
    state = AppState()
    model = AllocationModel(state)
    committed = model.apply_rebalance(rebalance(model.weights, "stability", 20))
    assert committed == state.allocation
    assert model.total() == 100


@pytest.mark.parametrize(
    "weights",
    [
        {"growth": 25, "stability": 15, "essentials": 50, "rewards": 11},
        {"growth": 110, "stability": -10, "essentials": 0, "rewards": 0},
        {"growth": 25, "stability": 15, "essentials": 60},
        {"growth": 25, "stability": 15, "essentials": 50, "rewards": 10, "extra": 0},
        {"growth": "25", "stability": 15, "essentials": 50, "rewards": 10},
    ],
)
def test_allocation_model_rejects_invalid_weights(weights):
    state = AppState()
    with pytest.raises(InvalidAllocation):
        AllocationModel(state).apply_rebalance(weights)
    assert state.allocation == DEFAULT_ALLOCATION


def test_negative_drift_on_empty_first_bucket_overshoots_and_is_rejected():
    state = AppState(allocation={"growth": 0, "stability": 1, "essentials": 1, "rewards": 98})
    draft = rebalance(state.allocation, "rewards", 97)
    assert draft == {"growth": 0, "stability": 2, "essentials": 2, "rewards": 97}
    assert sum(draft.values()) == 101

    model = AllocationModel(state)
    with pytest.raises(InvalidAllocation):
        model.apply_rebalance(draft)
    assert model.weights["rewards"] == 98
