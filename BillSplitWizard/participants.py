"""
Participants Module

This module handles all participant-related operations for the bill split
wizard.

Features:
    - Add participants with a placeholder empty name
    - Rename participants and track their payment status
    - Remove participants (also drops them from every item assignment)
    - Load a saved participant group into a new bill

Data Model:
    Participant fields:
        - id: string (opaque, generated by generate_id)
        - name: string (empty until the user types one)
        - status: string (pending, paid)

    ParticipantGroup fields:
        - id: string
        - name: string
        - description: string or None
        - participants: list of Participant

Registry functions never touch state themselves. They validate input, build
the entity and return the reducer action (or actions) to dispatch.

Functions:
    add_participant: Build the action that appends a new participant.
    rename_participant: Build the action that renames a participant.
    set_payment_status: Build the action that marks a participant paid/pending.
    remove_participant: Build the action that removes a participant.
    load_participant_group: Build the actions that load a saved group.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Optional

from actions import (
    CreateParticipant,
    RemoveParticipant,
    ReplaceParticipant,
    SetParticipants,
)
from utils import NotFoundError, generate_id


logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_PAID = "paid"
PAYMENT_STATUSES = {STATUS_PENDING, STATUS_PAID}


@dataclass(frozen=True)
class Participant:
    """
    Represents one person sharing the bill.

    Attributes:
        id (str): Unique identifier within the bill.
        name (str): Display name; empty while being entered.
        status (str): Payment status, one of PAYMENT_STATUSES.
    """

    id: str
    name: str = ""
    status: str = STATUS_PENDING

    def to_dict(self) -> dict:
        """Convert participant to dictionary for Firestore storage."""
        return {"id": self.id, "name": self.name, "status": self.status}

    @classmethod
    def from_dict(cls, data: dict) -> "Participant":
        """Create a Participant instance from a dictionary."""
        status = data.get("status")
        if not isinstance(status, str):
            status = STATUS_PENDING
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name") or ""),
            status=status if status in PAYMENT_STATUSES else STATUS_PENDING,
        )

    @property
    def has_name(self) -> bool:
        return bool(self.name and self.name.strip())


@dataclass(frozen=True)
class ParticipantGroup:
    """A saved roster of participants that can be reused for new bills."""

    id: str
    name: str
    participants: tuple = field(default_factory=tuple)
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "participants": [p.to_dict() for p in self.participants],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ParticipantGroup":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            description=data.get("description"),
            participants=tuple(
                Participant.from_dict(p)
                for p in (data.get("participants") or [])
                if isinstance(p, dict)
            ),
        )


def _validate_non_empty_string(value: str, field_name: str) -> bool:
    """
    Validate that a string is non-empty.

    Raises:
        ValueError: If string is empty or not a string.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string")
    return True


def find_participant(state, participant_id: str) -> Optional[Participant]:
    """Return the participant with the given id, or None."""
    for p in state.participants:
        if p.id == participant_id:
            return p
    return None


def _require_participant(state, participant_id: str) -> Participant:
    _validate_non_empty_string(participant_id, "participant_id")
    participant = find_participant(state, participant_id)
    if participant is None:
        raise NotFoundError(f"Participant {participant_id} not found")
    return participant


def add_participant(state, name: str = "", id_factory=generate_id) -> CreateParticipant:
    """
    Build the action that appends a new participant.

    The participant starts with the given name (empty placeholder by default)
    and a freshly generated id. Under equal split the reducer also adds it to
    every line item's assignment set.

    Args:
        state: Current BillState (used only to guard against id reuse).
        name: Optional initial name.
        id_factory: Callable returning a new opaque id.

    Returns:
        CreateParticipant: Action to dispatch.

    Raises:
        ValueError: If name is not a string or the generated id already exists.
    """
    if not isinstance(name, str):
        raise ValueError("name must be a string")

    participant_id = id_factory()
    if find_participant(state, participant_id) is not None:
        raise ValueError(f"Participant id {participant_id} is already in use")

    participant = Participant(id=participant_id, name=name.strip())
    logger.debug("New participant %s", participant_id)
    return CreateParticipant(participant=participant)


def rename_participant(state, participant_id: str, name: str) -> ReplaceParticipant:
    """
    Build the action that renames an existing participant.

    Blank names are accepted here (the user may still be typing); the
    participants step gate rejects them before moving on.

    Raises:
        ValueError: If the participant does not exist or name is not a string.
    """
    participant = _require_participant(state, participant_id)
    if not isinstance(name, str):
        raise ValueError("name must be a string")
    return ReplaceParticipant(participant=replace(participant, name=name.strip()))


def set_payment_status(state, participant_id: str, status: str) -> ReplaceParticipant:
    """
    Build the action that changes a participant's payment status.

    Raises:
        ValueError: If the participant does not exist or the status is unknown.
    """
    participant = _require_participant(state, participant_id)
    if status not in PAYMENT_STATUSES:
        raise ValueError(f"status must be one of {sorted(PAYMENT_STATUSES)}, got: {status}")
    return ReplaceParticipant(participant=replace(participant, status=status))


def remove_participant(state, participant_id: str) -> RemoveParticipant:
    """
    Build the action that removes a participant.

    Raises:
        ValueError: If the participant does not exist.
    """
    _require_participant(state, participant_id)
    return RemoveParticipant(participant_id=participant_id)


def load_participant_group(group: ParticipantGroup, id_factory=generate_id) -> list:
    """
    Build the actions that replace the roster with a saved group.

    The roster is cleared first, then every group member is created again
    with a fresh id so the same group can be loaded into many bills.

    Args:
        group: The saved ParticipantGroup.
        id_factory: Callable returning a new opaque id.

    Returns:
        list: SetParticipants(()) followed by one CreateParticipant per member.
    """
    actions = [SetParticipants(participants=())]
    for member in group.participants:
        actions.append(CreateParticipant(participant=replace(member, id=id_factory())))
    logger.info("Loading group '%s' with %d participants", group.name, len(group.participants))
    return actions
