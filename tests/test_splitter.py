"""Tests for the split calculator (equal and itemized methods, memoization)."""

from __future__ import annotations

import pytest

from bills import Bill
from cache import SplitCache
from conftest import make_item
from participants import Participant
from splitter import (
    LABEL_DISCOUNT,
    LABEL_FOOD,
    LABEL_SERVICE_CHARGE,
    LABEL_SURCHARGES,
    LABEL_TOTAL,
    LABEL_VAT,
    SplitCalculator,
    calculate_equal_split,
    calculate_itemized_split,
    compute_split,
)


def _amounts(results):
    return {r.participant_id: r.amount for r in results}


# ---------------------------------------------------------------------------
# End-to-end scenarios
# ---------------------------------------------------------------------------

def test_equal_split_two_people_one_item():
    bill = Bill(
        participants=(Participant("p1", "Ann"), Participant("p2", "Bob")),
        line_items=(make_item("i1", 100, ("p1", "p2")),),
        split_method="equal",
    )
    assert _amounts(calculate_equal_split(bill)) == {"p1": 50.00, "p2": 50.00}


def test_itemized_split_item_shared_by_two_of_three(trio):
    bill = Bill(
        participants=trio,
        line_items=(make_item("i1", 90, ("p1", "p2")),),
        split_method="itemized",
    )
    results = calculate_itemized_split(bill)
    assert _amounts(results) == {"p1": 45.00, "p2": 45.00, "p3": 0.00}
    # Everybody still carries a (zero) surcharge share.
    for r in results:
        assert r.breakdown[-1].label == LABEL_SURCHARGES
        assert r.breakdown[-1].amount == 0.0


def test_equal_split_with_vat_service_and_discount():
    bill = Bill(
        participants=(Participant("p1", "Ann"), Participant("p2", "Bob")),
        line_items=(make_item("i1", 120, ("p1", "p2")), make_item("i2", 80, ("p1", "p2"))),
        vat_percent=7,
        service_charge_percent=10,
        discount_amount=20,
        split_method="equal",
    )
    assert float(bill.final_total) == 214.0
    assert _amounts(calculate_equal_split(bill)) == {"p1": 107.00, "p2": 107.00}


# ---------------------------------------------------------------------------
# Equal split
# ---------------------------------------------------------------------------

def test_equal_split_breakdown_entries():
    bill = Bill(
        participants=(Participant("p1", "Ann"), Participant("p2", "Bob")),
        line_items=(make_item("i1", 200),),
        vat_percent=7,
        service_charge_percent=10,
        discount_amount=20,
    )
    result = calculate_equal_split(bill)[0]
    assert [(e.label, e.amount) for e in result.breakdown] == [
        (LABEL_FOOD, 100.0),
        (LABEL_VAT, 7.0),
        (LABEL_SERVICE_CHARGE, 10.0),
        (LABEL_DISCOUNT, -10.0),
        (LABEL_TOTAL, 107.0),
    ]


@pytest.mark.parametrize("count", [1, 2, 3, 6, 7, 11])
@pytest.mark.parametrize("price", [100, 10, 99.99, 1234.57])
def test_equal_split_conserves_total_within_rounding(count, price):
    participants = tuple(Participant(f"p{i}", f"P{i}") for i in range(count))
    bill = Bill(
        participants=participants,
        line_items=(make_item("i1", price),),
        vat_percent=7,
        service_charge_percent=10,
        discount_amount=3,
    )
    results = calculate_equal_split(bill)

    assert len(results) == count
    assert len({r.amount for r in results}) == 1
    total = sum(r.amount for r in results)
    assert abs(total - float(bill.final_total)) <= count * 0.01 + 1e-9


def test_equal_split_rounds_each_share_half_up():
    bill = Bill(
        participants=tuple(Participant(f"p{i}", "x") for i in range(3)),
        line_items=(make_item("i1", 10),),
    )
    assert {r.amount for r in calculate_equal_split(bill)} == {3.33}


def test_zero_participants_returns_empty_for_both_methods():
    items = (make_item("i1", 50),)
    assert calculate_equal_split(Bill(line_items=items)) == ()
    assert calculate_itemized_split(Bill(line_items=items, split_method="itemized")) == ()


# ---------------------------------------------------------------------------
# Itemized split
# ---------------------------------------------------------------------------

def test_itemized_item_contributions_sum_to_price(trio):
    bill = Bill(
        participants=trio,
        line_items=(make_item("i1", 100, ("p1", "p2", "p3"), name="Pizza"),),
        split_method="itemized",
    )
    results = calculate_itemized_split(bill)
    contributions = [
        e.amount for r in results for e in r.breakdown if e.label == "Pizza"
    ]
    assert contributions == [33.33, 33.33, 33.33]
    assert abs(sum(contributions) - 100) <= 3 * 0.01


def test_itemized_unassigned_item_contributes_nothing(trio):
    bill = Bill(
        participants=trio,
        line_items=(make_item("i1", 60, ("p1",)), make_item("i2", 500, ())),
        split_method="itemized",
    )
    assert _amounts(calculate_itemized_split(bill)) == {"p1": 60.0, "p2": 0.0, "p3": 0.0}


def test_itemized_surcharges_spread_per_head(trio):
    bill = Bill(
        participants=trio[:2],
        line_items=(make_item("i1", 100, ("p1",)),),
        vat_percent=10,
        split_method="itemized",
    )
    # Pool of 10 is split per head, not in proportion to food cost.
    assert _amounts(calculate_itemized_split(bill)) == {"p1": 105.0, "p2": 5.0}


def test_itemized_without_items_only_pays_surcharge_share(trio):
    bill = Bill(participants=trio, discount_amount=30, split_method="itemized")
    assert _amounts(calculate_itemized_split(bill)) == {"p1": -10.0, "p2": -10.0, "p3": -10.0}


def test_itemized_ignores_assignees_not_on_roster(trio):
    bill = Bill(
        participants=trio[:1],
        line_items=(make_item("i1", 40, ("p1", "ghost")),),
        split_method="itemized",
    )
    assert _amounts(calculate_itemized_split(bill)) == {"p1": 40.0}


def test_results_keep_roster_order_and_names(trio):
    bill = Bill(participants=tuple(reversed(trio)), line_items=(make_item("i1", 30),))
    results = calculate_equal_split(bill)
    assert [r.participant_id for r in results] == ["p3", "p2", "p1"]
    assert [r.participant_name for r in results] == ["Cid", "Bob", "Ann"]


# ---------------------------------------------------------------------------
# Memoization
# ---------------------------------------------------------------------------

def _scenario_bill(trio):
    return Bill(
        participants=trio,
        line_items=(make_item("i1", 90, ("p1", "p2")),),
        split_method="itemized",
    )


def test_identical_input_returns_identical_result_object(trio):
    calculator = SplitCalculator(SplitCache(max_entries=10))
    first = calculator.compute(_scenario_bill(trio))
    second = calculator.compute(_scenario_bill(trio))
    assert first is second
    assert calculator.cache.hits == 1
    assert calculator.cache.misses == 1


def test_total_amount_does_not_change_cache_key(trio):
    from dataclasses import replace

    calculator = SplitCalculator(SplitCache(max_entries=10))
    bill = _scenario_bill(trio)
    assert calculator.compute(bill) is calculator.compute(replace(bill, total_amount=90.0))


def test_changed_input_misses_cache(trio):
    from dataclasses import replace

    calculator = SplitCalculator(SplitCache(max_entries=10))
    bill = _scenario_bill(trio)
    first = calculator.compute(bill)
    second = calculator.compute(replace(bill, vat_percent=7))
    assert first is not second
    assert len(calculator.cache) == 2


def test_calculator_without_cache_recomputes(trio):
    calculator = SplitCalculator(cache=None)
    first = calculator.compute(_scenario_bill(trio))
    second = calculator.compute(_scenario_bill(trio))
    assert first == second
    assert first is not second


def test_compute_split_dispatches_on_method(trio, calculator):
    equal = Bill(participants=trio, line_items=(make_item("i1", 90, ("p1",)),))
    itemized = Bill(
        participants=trio,
        line_items=(make_item("i1", 90, ("p1",)),),
        split_method="itemized",
    )
    assert _amounts(compute_split(equal, calculator)) == {"p1": 30.0, "p2": 30.0, "p3": 30.0}
    assert _amounts(compute_split(itemized, calculator)) == {"p1": 90.0, "p2": 0.0, "p3": 0.0}


def test_split_result_to_dict(trio):
    bill = Bill(participants=trio[:1], line_items=(make_item("i1", 12.5, name="Tea"),))
    data = calculate_equal_split(bill)[0].to_dict()
    assert data["participant_id"] == "p1"
    assert data["amount"] == 12.5
    assert data["breakdown"][0] == {"label": LABEL_FOOD, "amount": 12.5}
