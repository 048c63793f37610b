"""Shared test fixtures for the bill split wizard tests."""

from __future__ import annotations

import itertools
import sys
from pathlib import Path

import pytest

# Ensure the flat modules are importable without installing.
REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(REPO_ROOT / "BillSplitWizard"))

from cache import SplitCache  # noqa: E402
from line_items import LineItem  # noqa: E402
from participants import Participant  # noqa: E402
from splitter import SplitCalculator  # noqa: E402
from wizard import BillWizard  # noqa: E402


@pytest.fixture
def id_factory():
    """Deterministic ids: id1, id2, ..."""
    counter = itertools.count(1)
    return lambda: f"id{next(counter)}"


@pytest.fixture
def calculator():
    """Calculator with its own cache, isolated from the process default."""
    return SplitCalculator(SplitCache(max_entries=100))


@pytest.fixture
def wizard(calculator, id_factory):
    return BillWizard(calculator=calculator, id_factory=id_factory)


@pytest.fixture
def trio():
    return (
        Participant(id="p1", name="Ann"),
        Participant(id="p2", name="Bob"),
        Participant(id="p3", name="Cid"),
    )


def make_item(item_id: str, price: float, assigned=(), name: str = None) -> LineItem:
    return LineItem(
        id=item_id,
        name=name if name is not None else f"item-{item_id}",
        price=price,
        assigned_participant_ids=tuple(assigned),
    )


class FakeRepository:
    """In-memory stand-in for firebase_store."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.saved = []
        self.groups = []
        self.history = []

    def save_bill(self, record: dict) -> str:
        if self.fail:
            raise RuntimeError("Firestore is not available")
        self.saved.append(record)
        return f"bill{len(self.saved)}"

    def load_bills(self):
        return list(self.history)

    def save_participant_group(self, name, participants, description=None):
        from participants import ParticipantGroup

        group = ParticipantGroup(
            id=f"grp{len(self.groups) + 1}",
            name=name,
            description=description,
            participants=tuple(participants),
        )
        self.groups.append(group)
        return group

    def get_participant_groups(self):
        return list(self.groups)


@pytest.fixture
def repository():
    return FakeRepository()
