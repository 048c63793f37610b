"""
Actions Module

The closed set of actions understood by reducer.reduce(). Each action is a
frozen dataclass carrying only the payload it needs.

Creating and replacing an entity are separate actions (CreateParticipant vs
ReplaceParticipant, CreateLineItem vs ReplaceLineItem). A Create always
carries an entity built with a fresh id by a registry function; a Replace
always targets an existing id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Tuple

if TYPE_CHECKING:
    from line_items import LineItem
    from participants import Participant, ParticipantGroup
    from splitter import SplitResult


# ---------------------------------------------------------------------------
# Scalar setters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SetBillName:
    name: str


@dataclass(frozen=True)
class SetTotalAmount:
    amount: float


@dataclass(frozen=True)
class SetVat:
    percent: float


@dataclass(frozen=True)
class SetDiscount:
    amount: float


@dataclass(frozen=True)
class SetServiceCharge:
    percent: float


@dataclass(frozen=True)
class SetCategoryId:
    category_id: str


@dataclass(frozen=True)
class SetSplitMethod:
    split_method: str


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SetLineItems:
    line_items: Tuple["LineItem", ...]


@dataclass(frozen=True)
class AddLineItem:
    line_item: "LineItem"


@dataclass(frozen=True)
class CreateLineItem:
    line_item: "LineItem"


@dataclass(frozen=True)
class ReplaceLineItem:
    line_item: "LineItem"


@dataclass(frozen=True)
class RemoveLineItem:
    item_id: str


# ---------------------------------------------------------------------------
# Participants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SetParticipants:
    participants: Tuple["Participant", ...]


@dataclass(frozen=True)
class AddParticipant:
    participant: "Participant"


@dataclass(frozen=True)
class CreateParticipant:
    participant: "Participant"


@dataclass(frozen=True)
class ReplaceParticipant:
    participant: "Participant"


@dataclass(frozen=True)
class RemoveParticipant:
    participant_id: str


# ---------------------------------------------------------------------------
# Results, history and reset
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SetSplitResults:
    results: Tuple["SplitResult", ...]


@dataclass(frozen=True)
class SetBills:
    bills: tuple


@dataclass(frozen=True)
class AddBills:
    bills: tuple


@dataclass(frozen=True)
class ResetBill:
    pass


# ---------------------------------------------------------------------------
# Transient UI signals
# ---------------------------------------------------------------------------

TOAST_SUCCESS = "success"
TOAST_ERROR = "error"
TOAST_WARNING = "warning"
TOAST_KINDS = {TOAST_SUCCESS, TOAST_ERROR, TOAST_WARNING}


@dataclass(frozen=True)
class Toast:
    show: bool = False
    message: str = ""
    kind: str = TOAST_SUCCESS


@dataclass(frozen=True)
class SetToast:
    toast: Toast


@dataclass(frozen=True)
class SetLoading:
    is_loading: bool


# ---------------------------------------------------------------------------
# Participant groups
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SetParticipantGroups:
    groups: Tuple["ParticipantGroup", ...]


@dataclass(frozen=True)
class AddParticipantGroup:
    group: "ParticipantGroup"


@dataclass(frozen=True)
class RemoveParticipantGroup:
    group_id: str
