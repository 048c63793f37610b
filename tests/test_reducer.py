"""Tests for the immutable bill state reducer."""

from __future__ import annotations

from dataclasses import replace

import actions as a
from bills import Bill
from conftest import make_item
from participants import Participant, ParticipantGroup
from reducer import BillState, initial_state, reduce


def _state(**kwargs) -> BillState:
    return replace(initial_state(), **kwargs)


def test_initial_state_defaults():
    state = initial_state()
    assert state.bill_name == ""
    assert state.split_method == "equal"
    assert state.category_id == "food"
    assert state.participants == () and state.line_items == ()
    assert state.toast.show is False


def test_unknown_action_returns_same_state():
    state = initial_state()
    assert reduce(state, object()) is state
    assert reduce(state, "SET_BILL_NAME") is state


def test_scalar_setters_do_not_mutate_input():
    state = initial_state()
    new_state = reduce(state, a.SetBillName(name="Dinner"))
    new_state = reduce(new_state, a.SetVat(percent=7))
    new_state = reduce(new_state, a.SetServiceCharge(percent=10))
    new_state = reduce(new_state, a.SetDiscount(amount=20))
    new_state = reduce(new_state, a.SetCategoryId(category_id="coffee"))
    new_state = reduce(new_state, a.SetSplitMethod(split_method="itemized"))
    new_state = reduce(new_state, a.SetTotalAmount(amount=214))

    assert state.bill_name == ""
    assert (new_state.bill_name, new_state.vat, new_state.service_charge) == ("Dinner", 7, 10)
    assert (new_state.discount, new_state.category_id) == (20, "coffee")
    assert (new_state.split_method, new_state.total_amount) == ("itemized", 214)


def test_create_participant_under_equal_joins_every_item():
    state = _state(line_items=(make_item("i1", 10, ("p1",)), make_item("i2", 20, ("p1",))),
                   participants=(Participant("p1", "Ann"),))
    new_state = reduce(state, a.CreateParticipant(participant=Participant("p2")))
    assert [p.id for p in new_state.participants] == ["p1", "p2"]
    assert all(item.assigned_participant_ids == ("p1", "p2") for item in new_state.line_items)


def test_create_participant_under_itemized_leaves_items_alone():
    state = _state(split_method="itemized", line_items=(make_item("i1", 10, ()),))
    new_state = reduce(state, a.CreateParticipant(participant=Participant("p1")))
    assert new_state.line_items[0].assigned_participant_ids == ()


def test_add_or_create_with_existing_id_is_ignored():
    state = _state(participants=(Participant("p1", "Ann"),),
                   line_items=(make_item("i1", 10),))
    assert reduce(state, a.AddParticipant(participant=Participant("p1", "Dup"))) is state
    assert reduce(state, a.CreateParticipant(participant=Participant("p1", "Dup"))) is state
    assert reduce(state, a.CreateLineItem(line_item=make_item("i1", 99))) is state


def test_replace_never_duplicates_identity():
    state = _state(participants=(Participant("p1", "Ann"), Participant("p2", "Bob")))
    new_state = reduce(state, a.ReplaceParticipant(participant=Participant("p1", "Anna")))
    assert [(p.id, p.name) for p in new_state.participants] == [("p1", "Anna"), ("p2", "Bob")]


def test_replace_unknown_id_is_noop():
    state = _state(line_items=(make_item("i1", 10),))
    assert reduce(state, a.ReplaceLineItem(line_item=make_item("zz", 5))) is state


def test_replace_line_item_keeps_order():
    state = _state(line_items=(make_item("i1", 10), make_item("i2", 20)))
    new_state = reduce(state, a.ReplaceLineItem(line_item=make_item("i1", 15, name="Soup")))
    assert [(i.id, i.price, i.name) for i in new_state.line_items] == [
        ("i1", 15, "Soup"), ("i2", 20, "item-i2"),
    ]


def test_remove_line_item_filters_by_id():
    state = _state(line_items=(make_item("i1", 10), make_item("i2", 20)))
    assert [i.id for i in reduce(state, a.RemoveLineItem(item_id="i1")).line_items] == ["i2"]


def test_remove_participant_drops_assignments():
    state = _state(
        participants=(Participant("p1", "Ann"), Participant("p2", "Bob")),
        line_items=(make_item("i1", 10, ("p1", "p2")),),
    )
    new_state = reduce(state, a.RemoveParticipant(participant_id="p1"))
    assert [p.id for p in new_state.participants] == ["p2"]
    assert new_state.line_items[0].assigned_participant_ids == ("p2",)


def test_set_participants_prunes_stale_assignments():
    state = _state(
        participants=(Participant("p1", "Ann"),),
        line_items=(make_item("i1", 10, ("p1",)),),
    )
    new_state = reduce(state, a.SetParticipants(participants=()))
    assert new_state.participants == ()
    assert new_state.line_items[0].assigned_participant_ids == ()


def test_reset_bill_keeps_history_toast_and_groups():
    history = (Bill(name="Old", bill_id="b1"),)
    toast = a.Toast(show=True, message="Saved", kind="success")
    group = ParticipantGroup(id="g1", name="Team")
    state = _state(
        bill_name="Lunch",
        vat=7,
        split_method="itemized",
        participants=(Participant("p1", "Ann"),),
        line_items=(make_item("i1", 10),),
        bills=history,
        toast=toast,
        participant_groups=(group,),
        is_loading=True,
    )
    new_state = reduce(state, a.ResetBill())
    assert new_state.bill_name == "" and new_state.vat == 0
    assert new_state.split_method == "equal"
    assert new_state.participants == () and new_state.line_items == ()
    assert new_state.bills == history
    assert new_state.toast == toast
    assert new_state.participant_groups == (group,)
    assert new_state.is_loading is False


def test_bills_history_set_and_append():
    state = reduce(initial_state(), a.SetBills(bills=(Bill(name="A"),)))
    state = reduce(state, a.AddBills(bills=(Bill(name="B"),)))
    assert [b.name for b in state.bills] == ["A", "B"]


def test_ui_signals():
    state = reduce(initial_state(), a.SetLoading(is_loading=True))
    state = reduce(state, a.SetToast(toast=a.Toast(show=True, message="Oops", kind="error")))
    assert state.is_loading is True
    assert state.toast.message == "Oops"


def test_participant_groups():
    g1, g2 = ParticipantGroup(id="g1", name="A"), ParticipantGroup(id="g2", name="B")
    state = reduce(initial_state(), a.SetParticipantGroups(groups=(g1,)))
    state = reduce(state, a.AddParticipantGroup(group=g2))
    state = reduce(state, a.AddParticipantGroup(group=g2))
    assert [g.id for g in state.participant_groups] == ["g1", "g2"]
    state = reduce(state, a.RemoveParticipantGroup(group_id="g1"))
    assert [g.id for g in state.participant_groups] == ["g2"]


def test_set_split_results_replaces_wholesale():
    state = reduce(initial_state(), a.SetSplitResults(results=["r1", "r2"]))
    state = reduce(state, a.SetSplitResults(results=["r3"]))
    assert state.split_results == ("r3",)
