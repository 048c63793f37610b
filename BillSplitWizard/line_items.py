"""
Line Items Module

This module handles all line-item operations for the bill split wizard.

Features:
    - Add/rename/reprice/remove line items
    - Assign participants to the items they shared (itemized split)
    - Keep assignments equal to the whole roster under equal split

Data Model:
    LineItem fields:
        - id: string (opaque, generated by generate_id)
        - name: string
        - price: float (must be >= 0)
        - assigned_participant_ids: tuple of participant ids (set semantics)

Functions:
    add_line_item: Build the action that appends a new line item.
    rename_line_item: Build the action that renames an item.
    set_line_item_price: Build the action that changes an item's price.
    set_assignment: Build the action that replaces an item's assignees.
    assign_participant / unassign_participant: Toggle one assignee.
    assign_everyone / clear_assignment: Select all / none.
    remove_line_item: Build the action that removes an item.
"""

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Optional

from actions import CreateLineItem, RemoveLineItem, ReplaceLineItem
from utils import NotFoundError, amount_or_zero, generate_id, to_decimal, validate_amount


logger = logging.getLogger(__name__)

SPLIT_EQUAL = "equal"
SPLIT_ITEMIZED = "itemized"
SPLIT_METHODS = {SPLIT_EQUAL, SPLIT_ITEMIZED}


def unique_ids(ids: Iterable[str]) -> tuple:
    """Drop duplicate ids, keeping first-seen order."""
    seen = []
    for i in ids:
        if i not in seen:
            seen.append(i)
    return tuple(seen)


@dataclass(frozen=True)
class LineItem:
    """
    Represents one priced entry on the bill.

    Attributes:
        id (str): Unique identifier within the bill.
        name (str): Item name; empty while being entered.
        price (float): Non-negative price.
        assigned_participant_ids (tuple[str]): Who shared this item.
    """

    id: str
    name: str = ""
    price: float = 0.0
    assigned_participant_ids: tuple = ()

    def __post_init__(self):
        # Collapse duplicates so the tuple behaves like a set.
        object.__setattr__(
            self, "assigned_participant_ids", unique_ids(self.assigned_participant_ids)
        )

    def to_dict(self) -> dict:
        """Convert line item to dictionary for Firestore storage."""
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "assigned_participant_ids": list(self.assigned_participant_ids),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LineItem":
        """
        Create a LineItem from a stored dictionary.

        "participants" is accepted as an alias for the assignment list. A
        negative or non-numeric price becomes 0.
        """
        assigned = data.get("assigned_participant_ids")
        if assigned is None:
            assigned = data.get("participants")
        if not isinstance(assigned, (list, tuple)):
            assigned = []
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name") or ""),
            price=amount_or_zero(data.get("price")),
            assigned_participant_ids=tuple(str(a) for a in assigned),
        )

    @property
    def is_assigned(self) -> bool:
        return len(self.assigned_participant_ids) > 0


def _validate_price(price) -> float:
    """
    Validate that price is a non-negative number.

    Raises:
        ValueError: If price is negative or not a number.
    """
    if isinstance(price, bool) or not validate_amount(price):
        raise ValueError(f"price must be a non-negative number, got: {price}")
    return float(to_decimal(price))


def find_line_item(state, item_id: str) -> Optional[LineItem]:
    """Return the line item with the given id, or None."""
    for item in state.line_items:
        if item.id == item_id:
            return item
    return None


def _require_line_item(state, item_id: str) -> LineItem:
    if not isinstance(item_id, str) or not item_id.strip():
        raise ValueError("item_id must be a non-empty string")
    item = find_line_item(state, item_id)
    if item is None:
        raise NotFoundError(f"Line item {item_id} not found")
    return item


def _require_itemized(state) -> None:
    if state.split_method != SPLIT_ITEMIZED:
        raise ValueError("Assignments can only be edited when the split method is itemized")


def _participant_ids(state) -> tuple:
    return tuple(p.id for p in state.participants)


def add_line_item(state, name: str = "", price=0, id_factory=generate_id) -> CreateLineItem:
    """
    Build the action that appends a new line item.

    Under equal split the item starts assigned to every participant; under
    itemized split it starts unassigned.

    Args:
        state: Current BillState.
        name: Optional item name.
        price: Optional price (>= 0).
        id_factory: Callable returning a new opaque id.

    Returns:
        CreateLineItem: Action to dispatch.

    Raises:
        ValueError: If the price is invalid or the generated id is taken.
    """
    if not isinstance(name, str):
        raise ValueError("name must be a string")
    price = _validate_price(price)

    item_id = id_factory()
    if find_line_item(state, item_id) is not None:
        raise ValueError(f"Line item id {item_id} is already in use")

    assigned = _participant_ids(state) if state.split_method == SPLIT_EQUAL else ()
    item = LineItem(id=item_id, name=name.strip(), price=price, assigned_participant_ids=assigned)
    logger.debug("New line item %s (%s)", item_id, price)
    return CreateLineItem(line_item=item)


def rename_line_item(state, item_id: str, name: str) -> ReplaceLineItem:
    """Build the action that renames an item."""
    item = _require_line_item(state, item_id)
    if not isinstance(name, str):
        raise ValueError("name must be a string")
    return ReplaceLineItem(line_item=replace(item, name=name.strip()))


def set_line_item_price(state, item_id: str, price) -> ReplaceLineItem:
    """
    Build the action that changes an item's price.

    Zero is accepted while editing; the line-items gate requires a strictly
    positive price before moving on.

    Raises:
        ValueError: If the item is unknown or the price is negative.
    """
    item = _require_line_item(state, item_id)
    return ReplaceLineItem(line_item=replace(item, price=_validate_price(price)))


def set_assignment(state, item_id: str, participant_ids: Iterable[str]) -> ReplaceLineItem:
    """
    Build the action that replaces the set of participants sharing an item.

    Raises:
        ValueError: If not itemized, the item is unknown, or an id is not a
            participant of this bill.
    """
    _require_itemized(state)
    item = _require_line_item(state, item_id)
    known = set(_participant_ids(state))
    ids = unique_ids(participant_ids)
    unknown = [i for i in ids if i not in known]
    if unknown:
        raise ValueError(f"Unknown participant ids: {unknown}")
    return ReplaceLineItem(line_item=replace(item, assigned_participant_ids=ids))


def assign_participant(state, item_id: str, participant_id: str) -> ReplaceLineItem:
    item = _require_line_item(state, item_id)
    return set_assignment(state, item_id, item.assigned_participant_ids + (participant_id,))


def unassign_participant(state, item_id: str, participant_id: str) -> ReplaceLineItem:
    item = _require_line_item(state, item_id)
    remaining = [i for i in item.assigned_participant_ids if i != participant_id]
    return set_assignment(state, item_id, remaining)


def assign_everyone(state, item_id: str) -> ReplaceLineItem:
    return set_assignment(state, item_id, _participant_ids(state))


def clear_assignment(state, item_id: str) -> ReplaceLineItem:
    return set_assignment(state, item_id, ())


def remove_line_item(state, item_id: str) -> RemoveLineItem:
    """Build the action that removes an item."""
    _require_line_item(state, item_id)
    return RemoveLineItem(item_id=item_id)


def unassigned_items(state) -> list:
    """Line items nobody has been assigned to yet."""
    return [item for item in state.line_items if not item.is_assigned]
