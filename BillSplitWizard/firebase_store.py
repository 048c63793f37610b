"""
Firebase Store Module

This module is the persistence collaborator of the bill split wizard. It
stores finished bills and saved participant groups in Firebase Firestore and
loads them back as bill history.

Features:
    - Save a finished bill together with its split results
    - Load bill history, defaulting malformed documents at the boundary
    - Mark a bill or a participant as paid
    - Save/list/delete participant groups

Firestore Structure:
    bills/{bill_id}
        - name, total_amount, vat, discount, service_charge
        - split_method, category_id, status, created_at
        - line_items: list of dicts
        - participants: list of dicts
        - split_results: list of dicts
        - updated_at: timestamp

    participant_groups/{group_id}
        - name: string
        - description: string or None
        - participants: list of dicts
        - created_at / updated_at: timestamp

Functions:
    save_bill: Store a bill record, returning its new id.
    load_bills: Load all stored bills as Bill objects.
    get_bill: Load one stored bill.
    update_bill_status: Mark a whole bill paid/pending.
    update_participant_status: Mark one participant of a stored bill paid/pending.
    save_participant_group: Store a roster for reuse.
    get_participant_groups: Load saved rosters.
    delete_participant_group: Remove a saved roster.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from bills import Bill
from config.firebase_config import get_db
from participants import PAYMENT_STATUSES, ParticipantGroup
from utils import NotFoundError


logger = logging.getLogger(__name__)

BILLS_COLLECTION = "bills"
GROUPS_COLLECTION = "participant_groups"


def _get_timestamp() -> str:
    """
    Get current UTC timestamp in ISO format.

    Returns:
        str: ISO formatted timestamp.
    """
    return datetime.now(timezone.utc).isoformat()


def _validate_id(value: str, field_name: str) -> None:
    """
    Validate that an id is a non-empty string.

    Raises:
        ValueError: If the id is invalid.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string")


def _require_db():
    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")
    return db


def _validate_status(status: str) -> None:
    if status not in PAYMENT_STATUSES:
        raise ValueError(f"status must be one of {sorted(PAYMENT_STATUSES)}, got: {status}")


def save_bill(record: dict) -> str:
    """
    Save a finished bill record to Firestore.

    Stores the record as a new document with an auto-generated id at:
        bills/{bill_id}

    Args:
        record: Plain bill record from bills.bill_record(), including
            split_results.

    Returns:
        str: The id assigned by Firestore.

    Raises:
        ValueError: If the record has no name.
        RuntimeError: If Firestore is not available.
    """
    if not isinstance(record, dict) or not str(record.get("name", "")).strip():
        raise ValueError("record must be a dict with a non-empty name")

    db = _require_db()

    doc_data = dict(record)
    doc_data["updated_at"] = _get_timestamp()

    doc_ref = db.collection(BILLS_COLLECTION).document()
    doc_ref.set(doc_data)
    logger.info("Stored bill %s (%s)", doc_ref.id, doc_data.get("name"))
    return doc_ref.id


def load_bills() -> list[Bill]:
    """
    Load every stored bill, newest first.

    Each document goes through Bill.from_dict(), so missing arrays become
    empty and junk numbers become 0 here rather than in the wizard.

    Returns:
        list[Bill]: Hydrated bills.

    Raises:
        RuntimeError: If Firestore is not available.
    """
    db = _require_db()

    loaded = []
    for doc in db.collection(BILLS_COLLECTION).stream():
        data = doc.to_dict() or {}
        loaded.append(Bill.from_dict(dict(data, bill_id=doc.id)))

    loaded.sort(key=lambda b: b.created_at or "", reverse=True)
    logger.debug("Loaded %d bills", len(loaded))
    return loaded


def get_bill(bill_id: str) -> Optional[Bill]:
    """
    Load one stored bill.

    Returns:
        Bill | None: The bill, or None if no such document exists.
    """
    _validate_id(bill_id, "bill_id")
    db = _require_db()

    doc = db.collection(BILLS_COLLECTION).document(bill_id).get()
    if not doc.exists:
        return None
    return Bill.from_dict(dict(doc.to_dict() or {}, bill_id=doc.id))


def update_bill_status(bill_id: str, status: str) -> dict:
    """Mark a stored bill as paid or pending."""
    _validate_id(bill_id, "bill_id")
    _validate_status(status)
    db = _require_db()

    doc_ref = db.collection(BILLS_COLLECTION).document(bill_id)
    if not doc_ref.get().exists:
        raise NotFoundError(f"Bill {bill_id} not found")

    timestamp = _get_timestamp()
    doc_ref.update({"status": status, "updated_at": timestamp})
    return {"bill_id": bill_id, "status": status, "updated_at": timestamp}


def update_participant_status(bill_id: str, participant_id: str, status: str) -> dict:
    """
    Mark one participant of a stored bill as paid or pending.

    Raises:
        NotFoundError: If the bill or the participant does not exist.
        ValueError: If an id or the status is invalid.
        RuntimeError: If Firestore is not available.
    """
    _validate_id(bill_id, "bill_id")
    _validate_id(participant_id, "participant_id")
    _validate_status(status)
    db = _require_db()

    doc_ref = db.collection(BILLS_COLLECTION).document(bill_id)
    doc = doc_ref.get()
    if not doc.exists:
        raise NotFoundError(f"Bill {bill_id} not found")

    stored = [p for p in (doc.to_dict() or {}).get("participants") or [] if isinstance(p, dict)]
    if not any(p.get("id") == participant_id for p in stored):
        raise NotFoundError(f"Participant {participant_id} not found in bill {bill_id}")

    updated = [
        dict(p, status=status) if p.get("id") == participant_id else p
        for p in stored
    ]
    timestamp = _get_timestamp()
    doc_ref.update({"participants": updated, "updated_at": timestamp})
    return {
        "bill_id": bill_id,
        "participant_id": participant_id,
        "status": status,
        "updated_at": timestamp,
    }


def save_participant_group(name: str, participants, description: Optional[str] = None) -> ParticipantGroup:
    """
    Save a roster of participants for reuse in later bills.

    Args:
        name: Group name.
        participants: Iterable of Participant.
        description: Optional description (blank becomes None).

    Returns:
        ParticipantGroup: The stored group with its new id.

    Raises:
        ValueError: If the name is blank or there are no participants.
        RuntimeError: If Firestore is not available.
    """
    _validate_id(name, "name")
    members = tuple(participants)
    if not members:
        raise ValueError("A participant group needs at least one participant")

    db = _require_db()
    description = description.strip() if description and description.strip() else None

    timestamp = _get_timestamp()
    doc_ref = db.collection(GROUPS_COLLECTION).document()
    group = ParticipantGroup(
        id=doc_ref.id,
        name=name.strip(),
        description=description,
        participants=members,
    )
    doc_data = group.to_dict()
    doc_data.pop("id")
    doc_data["created_at"] = timestamp
    doc_data["updated_at"] = timestamp
    doc_ref.set(doc_data)
    logger.info("Stored participant group %s (%s)", group.id, group.name)
    return group


def get_participant_groups() -> list[ParticipantGroup]:
    db = _require_db()
    return [
        ParticipantGroup.from_dict(dict(doc.to_dict() or {}, id=doc.id))
        for doc in db.collection(GROUPS_COLLECTION).stream()
    ]


def delete_participant_group(group_id: str) -> None:
    _validate_id(group_id, "group_id")
    db = _require_db()
    db.collection(GROUPS_COLLECTION).document(group_id).delete()
