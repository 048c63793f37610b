"""
Wizard Module

This module drives the multi-step bill entry flow.

Features:
    - Six named steps with an explicit forward transition table
    - Guard predicates evaluated on the current state snapshot
    - User-facing toast messages when a guard blocks navigation
    - Split recomputation on entering (and while on) the results step
    - Save hand-off to a persistence collaborator and share projection

Steps:
    0 PARTICIPANTS     -> LINE_ITEMS       guard: participants_complete
    1 LINE_ITEMS       -> SPLIT_METHOD     guard: line_items_complete
    2 SPLIT_METHOD     -> ITEM_ASSIGNMENT  guard: assignments_complete
    3 ITEM_ASSIGNMENT  -> BILL_DETAILS     guard: assignments_complete
    4 BILL_DETAILS     -> RESULTS          guard: bill_details_complete
    5 RESULTS          (terminal)

Navigation rules:
    - Backward moves to any earlier step are always allowed.
    - Forward moves go one step at a time and only through the guard.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Optional

import bills
import line_items
import participants
from actions import (
    TOAST_ERROR,
    TOAST_KINDS,
    TOAST_SUCCESS,
    AddBills,
    AddParticipantGroup,
    ResetBill,
    SetBills,
    SetLoading,
    SetSplitResults,
    SetToast,
    SetTotalAmount,
    Toast,
)
from reducer import BillState, initial_state, reduce
from sharing import share_projection
from splitter import SplitCalculator, get_default_calculator
from utils import generate_id, round_money


logger = logging.getLogger(__name__)


class Step(IntEnum):
    PARTICIPANTS = 0
    LINE_ITEMS = 1
    SPLIT_METHOD = 2
    ITEM_ASSIGNMENT = 3
    BILL_DETAILS = 4
    RESULTS = 5


FIRST_STEP = Step.PARTICIPANTS
LAST_STEP = Step.RESULTS

STEP_TITLES = {
    Step.PARTICIPANTS: "Participants",
    Step.LINE_ITEMS: "Items",
    Step.SPLIT_METHOD: "Split method",
    Step.ITEM_ASSIGNMENT: "Assign items",
    Step.BILL_DETAILS: "Bill details",
    Step.RESULTS: "Results",
}


# =============================================================================
# Guard predicates
# =============================================================================

def participants_complete(state: BillState) -> bool:
    """At least one participant and every participant has a non-blank name."""
    return len(state.participants) > 0 and all(p.has_name for p in state.participants)


def line_items_complete(state: BillState) -> bool:
    """At least one item and every item has a non-blank name and a price > 0."""
    return len(state.line_items) > 0 and all(
        item.name.strip() != "" and item.price > 0 for item in state.line_items
    )


def assignments_complete(state: BillState) -> bool:
    """Always true for equal split; under itemized every item needs an assignee."""
    if state.split_method != line_items.SPLIT_ITEMIZED:
        return True
    return all(item.is_assigned for item in state.line_items)


def bill_details_complete(state: BillState) -> bool:
    return state.bill_name.strip() != ""


@dataclass(frozen=True)
class Transition:
    target: Step
    guard: Callable[[BillState], bool]
    message: str


MSG_PARTICIPANTS = "Please enter a name for every participant."
MSG_LINE_ITEMS = "Please enter a name and a price for every item."
MSG_ASSIGNMENTS = "Please choose who shared each item."
MSG_BILL_DETAILS = "Please enter a bill name."

TRANSITIONS = {
    Step.PARTICIPANTS: Transition(Step.LINE_ITEMS, participants_complete, MSG_PARTICIPANTS),
    Step.LINE_ITEMS: Transition(Step.SPLIT_METHOD, line_items_complete, MSG_LINE_ITEMS),
    Step.SPLIT_METHOD: Transition(Step.ITEM_ASSIGNMENT, assignments_complete, MSG_ASSIGNMENTS),
    Step.ITEM_ASSIGNMENT: Transition(Step.BILL_DETAILS, assignments_complete, MSG_ASSIGNMENTS),
    Step.BILL_DETAILS: Transition(Step.RESULTS, bill_details_complete, MSG_BILL_DETAILS),
}

MSG_SAVE_INCOMPLETE = "Please complete the bill before saving."
MSG_SAVE_OK = "Bill saved."
MSG_SAVE_FAILED = "Could not save the bill. Please try again."


# =============================================================================
# Controller
# =============================================================================

class BillWizard:
    """
    Step progression controller over a BillState.

    All mutations go through dispatch(); registry helpers (add_participant,
    set_line_item_price, ...) build the action and dispatch it.

    Attributes:
        state (BillState): Current state snapshot.
        current_step (Step): Current step.
        calculator (SplitCalculator): Calculator used on the results step.
    """

    def __init__(
        self,
        state: Optional[BillState] = None,
        calculator: Optional[SplitCalculator] = None,
        id_factory: Callable[[], str] = generate_id,
    ):
        self.state = state if state is not None else initial_state()
        self.calculator = calculator if calculator is not None else get_default_calculator()
        self.id_factory = id_factory
        self.current_step = FIRST_STEP

    # ---------- State ----------

    def _apply(self, action) -> None:
        self.state = reduce(self.state, action)

    def dispatch(self, action):
        """
        Apply one action (or a list of actions) and recompute if on RESULTS.

        Returns:
            BillState: The new state.
        """
        before = self.state
        batch = action if isinstance(action, (list, tuple)) else [action]
        for act in batch:
            self._apply(act)
        if self.current_step == LAST_STEP and self.state is not before:
            self.recompute()
        return self.state

    def dispatch_edits(self, builders):
        """
        Build several actions against one snapshot and apply them together.

        Each builder is a callable taking a BillState and returning an action
        (or a list of actions). Builders run in order on a scratch state, so
        later edits see earlier ones. If any builder raises, the exception
        propagates and the wizard state is left untouched.

        Returns:
            BillState: The new state.
        """
        scratch = self.state
        batch = []
        for build in builders:
            built = build(scratch)
            built = built if isinstance(built, (list, tuple)) else [built]
            for act in built:
                scratch = reduce(scratch, act)
            batch.extend(built)
        return self.dispatch(batch)

    def recompute(self) -> tuple:
        """Run the calculator on the current snapshot and store the results."""
        bill = bills.bill_from_state(self.state)
        results = self.calculator.compute(bill)
        self._apply(SetTotalAmount(amount=round_money(bill.final_total)))
        self._apply(SetSplitResults(results=results))
        return results

    # ---------- Toasts ----------

    def show_toast(self, message: str, kind: str = TOAST_SUCCESS) -> None:
        if kind not in TOAST_KINDS:
            raise ValueError(f"kind must be one of {sorted(TOAST_KINDS)}, got: {kind}")
        self._apply(SetToast(toast=Toast(show=True, message=message, kind=kind)))

    def dismiss_toast(self) -> None:
        self._apply(SetToast(toast=Toast()))

    # ---------- Navigation ----------

    def can_proceed(self) -> bool:
        transition = TRANSITIONS.get(self.current_step)
        return transition is not None and transition.guard(self.state)

    def blocking_message(self) -> Optional[str]:
        """Message explaining why the current step cannot advance, if it cannot."""
        transition = TRANSITIONS.get(self.current_step)
        if transition is None or transition.guard(self.state):
            return None
        return transition.message

    def _enter(self, step: Step) -> None:
        logger.debug("Step %s -> %s", self.current_step.name, step.name)
        self.current_step = step
        if step == LAST_STEP:
            self.recompute()

    def go_to_next_step(self) -> bool:
        """
        Advance one step if the current step's guard holds.

        On failure an error toast with the step's message is shown and the
        step does not change.

        Returns:
            bool: True if the wizard moved.
        """
        transition = TRANSITIONS.get(self.current_step)
        if transition is None:
            return False
        if not transition.guard(self.state):
            self.show_toast(transition.message, TOAST_ERROR)
            return False
        self._enter(transition.target)
        return True

    def go_to_previous_step(self) -> bool:
        if self.current_step == FIRST_STEP:
            return False
        self._enter(Step(self.current_step - 1))
        return True

    def go_to_step(self, step: int) -> bool:
        """
        Jump to a step.

        Earlier (or the same) steps are always reachable. The next step is
        reachable through its guard. Anything further ahead, or out of range,
        is refused.
        """
        if not isinstance(step, int) or not FIRST_STEP <= step <= LAST_STEP:
            return False
        if step <= self.current_step:
            self._enter(Step(step))
            return True
        if step == self.current_step + 1:
            return self.go_to_next_step()
        return False

    # ---------- Participants ----------

    def add_participant(self, name: str = "") -> str:
        action = participants.add_participant(self.state, name, id_factory=self.id_factory)
        self.dispatch(action)
        return action.participant.id

    def rename_participant(self, participant_id: str, name: str) -> None:
        self.dispatch(participants.rename_participant(self.state, participant_id, name))

    def set_participant_status(self, participant_id: str, status: str) -> None:
        self.dispatch(participants.set_payment_status(self.state, participant_id, status))

    def remove_participant(self, participant_id: str) -> None:
        self.dispatch(participants.remove_participant(self.state, participant_id))

    def load_participant_group(self, group) -> None:
        self.dispatch(participants.load_participant_group(group, id_factory=self.id_factory))
        self.show_toast(f"Loaded group {group.name}.", TOAST_SUCCESS)

    def remember_participant_group(self, group) -> None:
        self._apply(AddParticipantGroup(group=group))

    # ---------- Line items ----------

    def add_line_item(self, name: str = "", price=0) -> str:
        action = line_items.add_line_item(self.state, name, price, id_factory=self.id_factory)
        self.dispatch(action)
        return action.line_item.id

    def rename_line_item(self, item_id: str, name: str) -> None:
        self.dispatch(line_items.rename_line_item(self.state, item_id, name))

    def set_line_item_price(self, item_id: str, price) -> None:
        self.dispatch(line_items.set_line_item_price(self.state, item_id, price))

    def set_assignment(self, item_id: str, participant_ids) -> None:
        self.dispatch(line_items.set_assignment(self.state, item_id, participant_ids))

    def assign_participant(self, item_id: str, participant_id: str) -> None:
        self.dispatch(line_items.assign_participant(self.state, item_id, participant_id))

    def unassign_participant(self, item_id: str, participant_id: str) -> None:
        self.dispatch(line_items.unassign_participant(self.state, item_id, participant_id))

    def assign_everyone(self, item_id: str) -> None:
        self.dispatch(line_items.assign_everyone(self.state, item_id))

    def clear_assignment(self, item_id: str) -> None:
        self.dispatch(line_items.clear_assignment(self.state, item_id))

    def remove_line_item(self, item_id: str) -> None:
        self.dispatch(line_items.remove_line_item(self.state, item_id))

    # ---------- Bill details ----------

    def choose_split_method(self, split_method: str) -> None:
        self.dispatch(bills.choose_split_method(self.state, split_method))

    def set_bill_name(self, name: str) -> None:
        self.dispatch(bills.set_bill_name(name))

    def set_vat(self, percent) -> None:
        self.dispatch(bills.set_vat(percent))

    def set_service_charge(self, percent) -> None:
        self.dispatch(bills.set_service_charge(percent))

    def set_discount(self, amount) -> None:
        self.dispatch(bills.set_discount(amount))

    def set_category(self, category_id: str) -> None:
        self.dispatch(bills.set_category(category_id))

    # ---------- History, persistence and sharing ----------

    def hydrate(self, history) -> None:
        """Load persisted bills (already defaulted by Bill.from_dict) as history."""
        self._apply(SetBills(bills=tuple(history)))

    def save_bill(self, repository) -> Optional[str]:
        """
        Hand the finished bill to a persistence collaborator.

        The repository must provide save_bill(record) -> bill_id. Any
        exception it raises is reported as an error toast and the state is
        kept so the user can retry.

        Args:
            repository: Object (or module, e.g. firebase_store) with save_bill().

        Returns:
            str | None: The new bill id, or None if nothing was saved.
        """
        state = self.state
        if (
            self.current_step != LAST_STEP
            or not state.bill_name.strip()
            or not state.participants
            or not state.line_items
        ):
            self.show_toast(MSG_SAVE_INCOMPLETE, TOAST_ERROR)
            return None

        record = bills.bill_record(state)
        self._apply(SetLoading(is_loading=True))
        try:
            bill_id = repository.save_bill(record)
        except Exception:
            logger.exception("Saving bill '%s' failed", state.bill_name)
            self.show_toast(MSG_SAVE_FAILED, TOAST_ERROR)
            return None
        finally:
            self._apply(SetLoading(is_loading=False))

        logger.info("Saved bill '%s' as %s", state.bill_name, bill_id)
        saved = bills.Bill.from_dict(dict(record, bill_id=bill_id))
        self._apply(AddBills(bills=(saved,)))
        self._apply(ResetBill())
        self.current_step = FIRST_STEP
        self.show_toast(MSG_SAVE_OK, TOAST_SUCCESS)
        return bill_id

    def share_projection(self, prompt_pay_id: str = "", qr_payload: str = "", notes: str = ""):
        return share_projection(self.state, prompt_pay_id, qr_payload, notes)
