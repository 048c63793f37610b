"""
Bills Module

This module defines the Bill aggregate and the bill-level (metadata)
operations of the wizard.

Features:
    - Derived totals: subtotal, VAT, service charge, surcharge pool, final total
    - Hydration of persisted bill snapshots with safe defaults
    - Persistence record for a finished bill and its split results
    - Validated setters for name, VAT, service charge, discount, category
      and split method

Data Model:
    Bill fields:
        - name: string
        - line_items: tuple of LineItem
        - participants: tuple of Participant
        - vat_percent: float (>= 0)
        - service_charge_percent: float (>= 0)
        - discount_amount: float (>= 0)
        - split_method: string (equal, itemized)
        - status: string (pending, paid)
        - category_id: string
        - total_amount: float (last computed final total)
        - created_at: ISO timestamp string or None
        - bill_id: string or None (assigned by the persistence layer)

    Derived:
        subtotal = sum(line_item.price)
        additional_costs = subtotal * vat / 100 + subtotal * service / 100 - discount
        final_total = subtotal + additional_costs

Functions:
    bill_from_state: Snapshot the wizard state as a Bill.
    bill_record: Build the plain record handed to the persistence layer.
    set_bill_name, set_vat, set_service_charge, set_discount, set_category:
        Build validated scalar setter actions.
    choose_split_method: Build the actions that switch split method.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from actions import (
    SetBillName,
    SetCategoryId,
    SetDiscount,
    SetLineItems,
    SetServiceCharge,
    SetSplitMethod,
    SetVat,
)
from categories import DEFAULT_CATEGORY_ID, VALID_CATEGORIES, validate_category
from line_items import SPLIT_EQUAL, SPLIT_METHODS, LineItem
from participants import PAYMENT_STATUSES, STATUS_PENDING, Participant
from utils import amount_or_zero, round_money, to_decimal, validate_amount


logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def _get_timestamp() -> str:
    """Current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def _first(data: dict, *keys, default=None):
    """Value of the first key present (and not None) in data."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _known(value, allowed) -> bool:
    return isinstance(value, str) and value in allowed


def _records(value) -> list:
    """Dict entries of a stored array; anything else is dropped."""
    if not isinstance(value, (list, tuple)):
        return []
    return [entry for entry in value if isinstance(entry, dict)]


@dataclass(frozen=True)
class Bill:
    """Aggregate record of a shared expense."""

    name: str = ""
    line_items: tuple = ()
    participants: tuple = ()
    vat_percent: float = 0.0
    service_charge_percent: float = 0.0
    discount_amount: float = 0.0
    split_method: str = SPLIT_EQUAL
    status: str = STATUS_PENDING
    category_id: str = DEFAULT_CATEGORY_ID
    total_amount: float = 0.0
    created_at: Optional[str] = None
    bill_id: Optional[str] = None

    @property
    def subtotal(self) -> Decimal:
        return sum((to_decimal(item.price) for item in self.line_items), Decimal("0"))

    @property
    def vat_amount(self) -> Decimal:
        return self.subtotal * to_decimal(self.vat_percent) / HUNDRED

    @property
    def service_charge_amount(self) -> Decimal:
        return self.subtotal * to_decimal(self.service_charge_percent) / HUNDRED

    @property
    def additional_costs(self) -> Decimal:
        """Surcharge pool: VAT plus service charge minus discount."""
        return self.vat_amount + self.service_charge_amount - to_decimal(self.discount_amount)

    @property
    def final_total(self) -> Decimal:
        return self.subtotal + self.additional_costs

    def to_dict(self) -> dict:
        """Convert bill to a plain dictionary for storage or cache keys."""
        return {
            "bill_id": self.bill_id,
            "name": self.name,
            "total_amount": self.total_amount,
            "vat": self.vat_percent,
            "discount": self.discount_amount,
            "service_charge": self.service_charge_percent,
            "split_method": self.split_method,
            "category_id": self.category_id,
            "line_items": [item.to_dict() for item in self.line_items],
            "participants": [p.to_dict() for p in self.participants],
            "status": self.status,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Bill":
        """
        Hydrate a Bill from a persisted snapshot.

        This is the hydration boundary: missing arrays become empty, entries
        that are not objects are dropped, missing, negative or invalid numbers
        become 0, an unknown split method becomes equal, an unknown category becomes
        food and an unknown status becomes pending. Both snake_case and camelCase keys
        are accepted.

        Args:
            data: Snapshot dictionary (may be partial).

        Returns:
            Bill: The hydrated bill.
        """
        data = data or {}
        split_method = _first(data, "split_method", "splitMethod", default=SPLIT_EQUAL)
        status = _first(data, "status", default=STATUS_PENDING)
        category_id = _first(data, "category_id", "categoryId", default=DEFAULT_CATEGORY_ID)
        created_at = _first(data, "created_at", "createdAt")
        if isinstance(created_at, datetime):
            created_at = created_at.isoformat()
        bill_id = _first(data, "bill_id", "id")

        return cls(
            bill_id=str(bill_id) if bill_id is not None else None,
            name=_first(data, "name", "billName", default="") or "",
            total_amount=amount_or_zero(_first(data, "total_amount", "totalAmount", default=0)),
            vat_percent=amount_or_zero(_first(data, "vat", "vat_percent", default=0)),
            discount_amount=amount_or_zero(_first(data, "discount", "discount_amount", default=0)),
            service_charge_percent=amount_or_zero(
                _first(data, "service_charge", "serviceCharge", default=0)
            ),
            split_method=split_method if _known(split_method, SPLIT_METHODS) else SPLIT_EQUAL,
            category_id=category_id if _known(category_id, VALID_CATEGORIES) else DEFAULT_CATEGORY_ID,
            line_items=tuple(
                LineItem.from_dict(item)
                for item in _records(_first(data, "line_items", "lineItems", "foodItems"))
            ),
            participants=tuple(
                Participant.from_dict(p) for p in _records(_first(data, "participants"))
            ),
            status=status if _known(status, PAYMENT_STATUSES) else STATUS_PENDING,
            created_at=created_at,
        )


def bill_from_state(state) -> Bill:
    """Snapshot the authoring fields of a BillState as a Bill."""
    return Bill(
        name=state.bill_name,
        line_items=tuple(state.line_items),
        participants=tuple(state.participants),
        vat_percent=state.vat,
        service_charge_percent=state.service_charge,
        discount_amount=state.discount,
        split_method=state.split_method,
        category_id=state.category_id,
        total_amount=state.total_amount,
    )


def bill_record(state) -> dict:
    """
    Build the plain record a persistence collaborator stores.

    Contains every bill field, the computed split results, status "pending"
    and a created_at timestamp. No persistent id is assigned here.
    """
    bill = replace(bill_from_state(state), status=STATUS_PENDING, created_at=_get_timestamp())
    record = bill.to_dict()
    record.pop("bill_id")
    record["total_amount"] = round_money(bill.final_total)
    record["split_results"] = [r.to_dict() for r in state.split_results]
    return record


# =============================================================================
# Metadata setters
# =============================================================================

def _validate_non_negative(value, field_name: str) -> float:
    if isinstance(value, bool) or not validate_amount(value):
        raise ValueError(f"{field_name} must be a non-negative number, got: {value}")
    return float(to_decimal(value))


def set_bill_name(name: str) -> SetBillName:
    if not isinstance(name, str):
        raise ValueError("name must be a string")
    return SetBillName(name=name)


def set_vat(percent) -> SetVat:
    return SetVat(percent=_validate_non_negative(percent, "vat"))


def set_service_charge(percent) -> SetServiceCharge:
    return SetServiceCharge(percent=_validate_non_negative(percent, "service_charge"))


def set_discount(amount) -> SetDiscount:
    return SetDiscount(amount=_validate_non_negative(amount, "discount"))


def set_category(category_id: str) -> SetCategoryId:
    return SetCategoryId(category_id=validate_category(category_id))


def choose_split_method(state, split_method: str) -> list:
    """
    Build the actions that switch the split method.

    Switching to equal also assigns every line item to every participant.
    Switching to itemized keeps the current assignments for editing.

    Raises:
        ValueError: If the split method is unknown.
    """
    if split_method not in SPLIT_METHODS:
        raise ValueError(f"split_method must be one of {sorted(SPLIT_METHODS)}, got: {split_method}")

    actions = [SetSplitMethod(split_method=split_method)]
    if split_method == SPLIT_EQUAL and state.participants:
        everyone = tuple(p.id for p in state.participants)
        actions.append(SetLineItems(line_items=tuple(
            replace(item, assigned_participant_ids=everyone) for item in state.line_items
        )))
    logger.debug("Split method -> %s", split_method)
    return actions
