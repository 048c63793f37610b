"""
Splitter Module

This module handles the bill splitting logic for the bill split wizard.

Features:
    - Equal splitting of the final total among all participants
    - Itemized splitting: each item divided among the participants sharing it
    - Surcharge pool (VAT + service charge - discount) spread per head
    - Decimal-safe rounding to 2 decimal places
    - Bounded memoization through an injected SplitCache

Data Model:
    Input - Bill (see bills.py):
        - participants, line_items, vat_percent, service_charge_percent,
          discount_amount, split_method

    Output - tuple of SplitResult, one per participant in roster order:
        - participant_id: string
        - participant_name: string
        - amount: float (rounded to 2 decimal places)
        - breakdown: tuple of BreakdownEntry(label, amount)

Rounding:
    Every contribution is rounded to 2 decimal places where it is produced
    (per person for equal split, per item share and per surcharge share for
    itemized split). The amounts can therefore drift from the bill's final
    total by a few cents.

Functions:
    calculate_equal_split: Split the final total evenly.
    calculate_itemized_split: Split each item among its assignees.
    compute_split: Dispatch on split method through the default calculator.
"""

import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from cache import SplitCache
from config.settings import get_settings
from line_items import SPLIT_EQUAL
from utils import round_money, to_decimal


logger = logging.getLogger(__name__)

LABEL_FOOD = "Food"
LABEL_VAT = "VAT"
LABEL_SERVICE_CHARGE = "Service charge"
LABEL_DISCOUNT = "Discount"
LABEL_TOTAL = "Total"
LABEL_SURCHARGES = "Surcharges"
LABEL_UNNAMED_ITEM = "Item"


@dataclass(frozen=True)
class BreakdownEntry:
    label: str
    amount: float

    def to_dict(self) -> dict:
        return {"label": self.label, "amount": self.amount}


@dataclass(frozen=True)
class SplitResult:
    """Amount owed by one participant, with its itemized breakdown."""

    participant_id: str
    participant_name: str
    amount: float
    breakdown: tuple = ()

    def to_dict(self) -> dict:
        return {
            "participant_id": self.participant_id,
            "participant_name": self.participant_name,
            "amount": self.amount,
            "breakdown": [entry.to_dict() for entry in self.breakdown],
        }


def calculate_equal_split(bill) -> tuple:
    """
    Split the bill's final total evenly among all participants.

    Each participant's amount is final_total / N rounded to 2 decimals. The
    breakdown shows the per-person share of food, VAT, service charge and
    discount (negative), followed by the rounded total.

    Args:
        bill: Bill to split.

    Returns:
        tuple[SplitResult]: One result per participant; empty when the bill
            has no participants.
    """
    count = len(bill.participants)
    if count == 0:
        return ()

    n = Decimal(count)
    amount = round_money(bill.final_total / n)
    breakdown = (
        BreakdownEntry(LABEL_FOOD, round_money(bill.subtotal / n)),
        BreakdownEntry(LABEL_VAT, round_money(bill.vat_amount / n)),
        BreakdownEntry(LABEL_SERVICE_CHARGE, round_money(bill.service_charge_amount / n)),
        BreakdownEntry(LABEL_DISCOUNT, round_money(-to_decimal(bill.discount_amount) / n)),
        BreakdownEntry(LABEL_TOTAL, amount),
    )

    return tuple(
        SplitResult(
            participant_id=p.id,
            participant_name=p.name,
            amount=amount,
            breakdown=breakdown,
        )
        for p in bill.participants
    )


def calculate_itemized_split(bill) -> tuple:
    """
    Split each line item among the participants assigned to it.

    For each item:
        1. Keep only assignees that are participants of this bill
        2. Skip the item if nobody is left (it contributes nothing)
        3. Add round(price / K, 2) to each of the K assignees

    Then the surcharge pool (VAT + service charge - discount) is divided
    evenly across all participants, including those with no items, and added
    as a single "Surcharges" breakdown entry.

    Args:
        bill: Bill to split.

    Returns:
        tuple[SplitResult]: One result per participant in roster order.
    """
    count = len(bill.participants)
    if count == 0:
        return ()

    costs = {p.id: Decimal("0") for p in bill.participants}
    entries = {p.id: [] for p in bill.participants}

    for item in bill.line_items:
        assignees = [pid for pid in item.assigned_participant_ids if pid in costs]
        if not assignees:
            continue

        share = to_decimal(round_money(to_decimal(item.price) / Decimal(len(assignees))))
        label = item.name or LABEL_UNNAMED_ITEM
        for pid in assignees:
            costs[pid] += share
            entries[pid].append(BreakdownEntry(label, float(share)))

    surcharge_share = to_decimal(round_money(bill.additional_costs / Decimal(count)))
    for p in bill.participants:
        costs[p.id] += surcharge_share
        entries[p.id].append(BreakdownEntry(LABEL_SURCHARGES, float(surcharge_share)))

    return tuple(
        SplitResult(
            participant_id=p.id,
            participant_name=p.name,
            amount=round_money(costs[p.id]),
            breakdown=tuple(entries[p.id]),
        )
        for p in bill.participants
    )


def _cache_key(bill) -> str:
    """
    Canonical JSON of everything that affects the split.

    total_amount, created_at and bill_id are left out: they are outputs or
    bookkeeping, not inputs.
    """
    data = bill.to_dict()
    for key in ("total_amount", "created_at", "bill_id"):
        data.pop(key, None)
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


class SplitCalculator:
    """
    Split calculator service with an injected memoization cache.

    Structurally identical bills produce the same cache key, so a repeated
    call returns the very same result object. Pass cache=None to disable
    memoization.
    """

    def __init__(self, cache: Optional[SplitCache] = None):
        self.cache = cache

    def compute(self, bill) -> tuple:
        if self.cache is None:
            return self._compute(bill)

        key = _cache_key(bill)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        results = self._compute(bill)
        self.cache.put(key, results)
        return results

    @staticmethod
    def _compute(bill) -> tuple:
        if bill.split_method == SPLIT_EQUAL:
            results = calculate_equal_split(bill)
        else:
            results = calculate_itemized_split(bill)
        logger.debug(
            "Computed %s split for %d participants", bill.split_method, len(results)
        )
        return results


_default_calculator = None


def get_default_calculator() -> SplitCalculator:
    """Process-wide calculator, created on first use with the configured cache size."""
    global _default_calculator
    if _default_calculator is None:
        _default_calculator = SplitCalculator(SplitCache(get_settings().split_cache_size))
    return _default_calculator


def compute_split(bill, calculator: Optional[SplitCalculator] = None) -> tuple:
    """
    Compute the per-participant split of a bill.

    Args:
        bill: Bill to split.
        calculator: Optional calculator; the default memoized one otherwise.

    Returns:
        tuple[SplitResult]: Results in roster order (empty with no participants).
    """
    return (calculator or get_default_calculator()).compute(bill)
