"""
Reducer Module

Immutable state container for the bill split wizard.

reduce(state, action) returns a new BillState; the input state is never
modified. Actions not in the handler table return the state unchanged.

Identity rules:
    - Add*/Create* with an id that already exists leave the state unchanged.
    - Replace* with an unknown id leaves the state unchanged.
    - Removing a participant also removes it from every item assignment.
"""

import logging
from dataclasses import dataclass, field, replace

import actions as a
from categories import DEFAULT_CATEGORY_ID
from line_items import SPLIT_EQUAL


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BillState:
    """
    Wizard state: the bill being authored plus history and UI signals.

    Attributes:
        bill_name (str): Name of the bill being authored.
        total_amount (float): Final total from the last computation.
        vat (float): VAT percent.
        discount (float): Flat discount amount.
        service_charge (float): Service charge percent.
        split_method (str): equal or itemized.
        category_id (str): Bill category.
        line_items (tuple[LineItem]): Items in entry order.
        participants (tuple[Participant]): Roster in entry order.
        split_results (tuple[SplitResult]): Last computed results.
        bills (tuple[Bill]): Persisted bill history (hydrated).
        toast (Toast): Transient user-facing message.
        is_loading (bool): Transient loading flag.
        participant_groups (tuple[ParticipantGroup]): Saved rosters.
    """

    bill_name: str = ""
    total_amount: float = 0.0
    vat: float = 0.0
    discount: float = 0.0
    service_charge: float = 0.0
    split_method: str = SPLIT_EQUAL
    category_id: str = DEFAULT_CATEGORY_ID
    line_items: tuple = ()
    participants: tuple = ()
    split_results: tuple = ()
    bills: tuple = ()
    toast: a.Toast = field(default_factory=a.Toast)
    is_loading: bool = False
    participant_groups: tuple = ()


def initial_state() -> BillState:
    return BillState()


def _has_id(entities, entity_id: str) -> bool:
    return any(e.id == entity_id for e in entities)


def _replace_by_id(entities, entity) -> tuple:
    return tuple(entity if e.id == entity.id else e for e in entities)


def _append_unique(state, field_name: str, entity):
    entities = getattr(state, field_name)
    if _has_id(entities, entity.id):
        logger.warning("Ignoring duplicate %s id %s", field_name, entity.id)
        return state
    return replace(state, **{field_name: entities + (entity,)})


def _replace_existing(state, field_name: str, entity):
    entities = getattr(state, field_name)
    if not _has_id(entities, entity.id):
        logger.warning("Ignoring replace of unknown %s id %s", field_name, entity.id)
        return state
    return replace(state, **{field_name: _replace_by_id(entities, entity)})


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

def _set_line_items(state, action):
    return replace(state, line_items=tuple(action.line_items))


def _add_line_item(state, action):
    return _append_unique(state, "line_items", action.line_item)


def _replace_line_item(state, action):
    return _replace_existing(state, "line_items", action.line_item)


def _remove_line_item(state, action):
    return replace(
        state,
        line_items=tuple(item for item in state.line_items if item.id != action.item_id),
    )


def _set_participants(state, action):
    participants = tuple(action.participants)
    known = {p.id for p in participants}
    # Assignments may only reference participants on the roster.
    line_items = tuple(
        replace(
            item,
            assigned_participant_ids=tuple(
                pid for pid in item.assigned_participant_ids if pid in known
            ),
        )
        for item in state.line_items
    )
    return replace(state, participants=participants, line_items=line_items)


def _add_participant(state, action):
    return _append_unique(state, "participants", action.participant)


def _create_participant(state, action):
    participant = action.participant
    new_state = _append_unique(state, "participants", participant)
    if new_state is state:
        return state
    if state.split_method == SPLIT_EQUAL and state.line_items:
        new_state = replace(new_state, line_items=tuple(
            replace(
                item,
                assigned_participant_ids=item.assigned_participant_ids + (participant.id,),
            )
            for item in state.line_items
        ))
    return new_state


def _replace_participant(state, action):
    return _replace_existing(state, "participants", action.participant)


def _remove_participant(state, action):
    pid = action.participant_id
    return replace(
        state,
        participants=tuple(p for p in state.participants if p.id != pid),
        line_items=tuple(
            replace(
                item,
                assigned_participant_ids=tuple(
                    i for i in item.assigned_participant_ids if i != pid
                ),
            )
            for item in state.line_items
        ),
    )


def _reset_bill(state, action):
    return replace(
        initial_state(),
        bills=state.bills,
        toast=state.toast,
        participant_groups=state.participant_groups,
    )


def _remove_participant_group(state, action):
    return replace(
        state,
        participant_groups=tuple(
            g for g in state.participant_groups if g.id != action.group_id
        ),
    )


_HANDLERS = {
    a.SetBillName: lambda s, act: replace(s, bill_name=act.name),
    a.SetTotalAmount: lambda s, act: replace(s, total_amount=act.amount),
    a.SetVat: lambda s, act: replace(s, vat=act.percent),
    a.SetDiscount: lambda s, act: replace(s, discount=act.amount),
    a.SetServiceCharge: lambda s, act: replace(s, service_charge=act.percent),
    a.SetCategoryId: lambda s, act: replace(s, category_id=act.category_id),
    a.SetSplitMethod: lambda s, act: replace(s, split_method=act.split_method),
    a.SetLineItems: _set_line_items,
    a.AddLineItem: _add_line_item,
    a.CreateLineItem: _add_line_item,
    a.ReplaceLineItem: _replace_line_item,
    a.RemoveLineItem: _remove_line_item,
    a.SetParticipants: _set_participants,
    a.AddParticipant: _add_participant,
    a.CreateParticipant: _create_participant,
    a.ReplaceParticipant: _replace_participant,
    a.RemoveParticipant: _remove_participant,
    a.SetSplitResults: lambda s, act: replace(s, split_results=tuple(act.results)),
    a.SetBills: lambda s, act: replace(s, bills=tuple(act.bills)),
    a.AddBills: lambda s, act: replace(s, bills=s.bills + tuple(act.bills)),
    a.ResetBill: _reset_bill,
    a.SetToast: lambda s, act: replace(s, toast=act.toast),
    a.SetLoading: lambda s, act: replace(s, is_loading=act.is_loading),
    a.SetParticipantGroups: lambda s, act: replace(s, participant_groups=tuple(act.groups)),
    a.AddParticipantGroup: lambda s, act: _append_unique(s, "participant_groups", act.group),
    a.RemoveParticipantGroup: _remove_participant_group,
}


def reduce(state: BillState, action) -> BillState:
    """
    Apply one action to the state.

    Args:
        state: Current state.
        action: One of the dataclasses in actions.py.

    Returns:
        BillState: The new state, or the same object for unknown actions and
            no-op identity conflicts.
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        logger.debug("Unhandled action %r", action)
        return state
    return handler(state, action)
