"""
BillSplitWizard - FastAPI Web Backend

This module serves as the web entry point for the bill split wizard.
Each wizard session lives in memory; finished bills are handed to the
Firestore store.

Features:
    - RESTful API over the wizard steps
    - Participant and line-item editing with assignment
    - Step navigation with gate messages
    - Split results, saving and share hand-off data

Endpoints:
    POST   /wizards                                       - Start a wizard session
    GET    /wizards/{wizard_id}                           - Current state and step
    POST   /wizards/{wizard_id}/participants              - Add participant
    PATCH  /wizards/{wizard_id}/participants/{pid}        - Rename / set status
    DELETE /wizards/{wizard_id}/participants/{pid}        - Remove participant
    POST   /wizards/{wizard_id}/line-items                - Add line item
    PATCH  /wizards/{wizard_id}/line-items/{item_id}      - Rename / reprice / assign
    DELETE /wizards/{wizard_id}/line-items/{item_id}      - Remove line item
    PUT    /wizards/{wizard_id}/split-method              - Choose split method
    PUT    /wizards/{wizard_id}/details                   - Bill name, VAT, service, discount, category
    POST   /wizards/{wizard_id}/next                      - Next step
    POST   /wizards/{wizard_id}/previous                  - Previous step
    POST   /wizards/{wizard_id}/steps/{step}              - Jump to step
    GET    /wizards/{wizard_id}/results                   - Split results
    POST   /wizards/{wizard_id}/save                      - Persist finished bill
    POST   /wizards/{wizard_id}/share                     - Share hand-off data
    POST   /wizards/{wizard_id}/history                   - Load stored bills
    POST   /wizards/{wizard_id}/groups                    - Save roster as group
    POST   /wizards/{wizard_id}/groups/{group_id}/load    - Load a saved group

Usage:
    uvicorn main:app --reload
"""

import logging
import sys
import uuid
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

import bills
import firebase_store
import line_items
import participants
from config.settings import get_settings
from utils import NotFoundError
from wizard import MSG_SAVE_FAILED, STEP_TITLES, BillWizard, Step


logger = logging.getLogger(__name__)


def _setup_logging() -> None:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, get_settings().log_level, logging.INFO),
        stream=sys.stderr,
    )


# =============================================================================
# Pydantic Models for Request/Response Validation
# =============================================================================

class ParticipantCreate(BaseModel):
    """Request model for adding a participant."""
    name: str = Field("", description="Participant name (may be filled in later)")


class ParticipantUpdate(BaseModel):
    """Request model for editing a participant."""
    name: Optional[str] = Field(None, description="New name")
    status: Optional[str] = Field(None, description="pending or paid")


class LineItemCreate(BaseModel):
    """Request model for adding a line item."""
    name: str = Field("", description="Item name")
    price: float = Field(0, ge=0, description="Item price (must be >= 0)")


class LineItemUpdate(BaseModel):
    """Request model for editing a line item."""
    name: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    assigned_participant_ids: Optional[list[str]] = Field(
        None, description="Participants sharing this item (itemized split only)"
    )


class SplitMethodUpdate(BaseModel):
    split_method: str = Field(..., description="equal or itemized")


class BillDetailsUpdate(BaseModel):
    """Request model for bill metadata. Omitted fields are left unchanged."""
    name: Optional[str] = None
    vat: Optional[float] = Field(None, ge=0, description="VAT percent")
    service_charge: Optional[float] = Field(None, ge=0, description="Service charge percent")
    discount: Optional[float] = Field(None, ge=0, description="Flat discount amount")
    category_id: Optional[str] = None


class ShareRequest(BaseModel):
    prompt_pay_id: str = ""
    qr_payload: str = ""
    notes: str = ""


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


class WizardResponse(BaseModel):
    """Response model for wizard state."""
    wizard_id: str
    step: int
    step_title: str
    can_proceed: bool
    blocking_message: Optional[str]
    state: dict


class NavigationResponse(BaseModel):
    """Response model for step navigation."""
    moved: bool
    step: int
    step_title: str
    message: Optional[str]


class ResultsResponse(BaseModel):
    total_amount: float
    split_method: str
    results: list


class SaveResponse(BaseModel):
    bill_id: str
    message: str


# =============================================================================
# FastAPI Application
# =============================================================================

_setup_logging()

app = FastAPI(
    title="Bill Split Wizard",
    description="Split a shared bill equally or by item, with VAT, service charge and discount",
    version="1.0.0"
)

# In-memory wizard sessions
WIZARDS: dict[str, BillWizard] = {}


def get_repository():
    """Persistence collaborator; overridden in tests."""
    return firebase_store


# =============================================================================
# Helper Functions
# =============================================================================

def _generate_wizard_id() -> str:
    """
    Generate a unique wizard session ID.

    Format: wiz_{short_uuid}
    """
    return f"wiz_{uuid.uuid4().hex[:8]}"


def _get_wizard(wizard_id: str) -> BillWizard:
    wizard = WIZARDS.get(wizard_id)
    if wizard is None:
        raise HTTPException(status_code=404, detail=f"Wizard {wizard_id} not found")
    return wizard


def _state_to_dict(wizard: BillWizard) -> dict:
    """Convert wizard state to a JSON-friendly dictionary."""
    state = wizard.state
    return {
        "bill_name": state.bill_name,
        "total_amount": state.total_amount,
        "vat": state.vat,
        "discount": state.discount,
        "service_charge": state.service_charge,
        "split_method": state.split_method,
        "category_id": state.category_id,
        "participants": [p.to_dict() for p in state.participants],
        "line_items": [item.to_dict() for item in state.line_items],
        "split_results": [r.to_dict() for r in state.split_results],
        "bills": [b.to_dict() for b in state.bills],
        "participant_groups": [g.to_dict() for g in state.participant_groups],
        "toast": {
            "show": state.toast.show,
            "message": state.toast.message,
            "kind": state.toast.kind,
        },
        "is_loading": state.is_loading,
    }


def _status_for(error: ValueError) -> int:
    """Unknown entities map to 404, other validation errors to 400."""
    return 404 if isinstance(error, NotFoundError) else 400


def _wizard_response(wizard_id: str, wizard: BillWizard) -> WizardResponse:
    return WizardResponse(
        wizard_id=wizard_id,
        step=int(wizard.current_step),
        step_title=STEP_TITLES[wizard.current_step],
        can_proceed=wizard.can_proceed(),
        blocking_message=wizard.blocking_message(),
        state=_state_to_dict(wizard),
    )


def _navigation_response(wizard: BillWizard, moved: bool) -> NavigationResponse:
    message = None
    if not moved and wizard.state.toast.show:
        message = wizard.state.toast.message
    return NavigationResponse(
        moved=moved,
        step=int(wizard.current_step),
        step_title=STEP_TITLES[wizard.current_step],
        message=message,
    )


# =============================================================================
# Session Endpoints
# =============================================================================

@app.post("/wizards", response_model=WizardResponse, status_code=201)
async def create_wizard():
    """Start a new wizard session with an empty bill."""
    wizard_id = _generate_wizard_id()
    WIZARDS[wizard_id] = BillWizard()
    logger.info("Started wizard %s", wizard_id)
    return _wizard_response(wizard_id, WIZARDS[wizard_id])


@app.get("/wizards/{wizard_id}", response_model=WizardResponse)
async def get_wizard(wizard_id: str):
    return _wizard_response(wizard_id, _get_wizard(wizard_id))


# =============================================================================
# Participant Endpoints
# =============================================================================

@app.post("/wizards/{wizard_id}/participants", response_model=WizardResponse, status_code=201)
async def add_wizard_participant(wizard_id: str, participant_data: ParticipantCreate):
    wizard = _get_wizard(wizard_id)
    try:
        wizard.add_participant(participant_data.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _wizard_response(wizard_id, wizard)


@app.patch("/wizards/{wizard_id}/participants/{participant_id}", response_model=WizardResponse)
async def update_wizard_participant(wizard_id: str, participant_id: str, participant_data: ParticipantUpdate):
    """
    Edit a participant.

    Request flow:
        1. Rename if a name was sent
        2. Change payment status if a status was sent
        3. Apply both together, or neither if one is rejected
    """
    wizard = _get_wizard(wizard_id)
    edits = []
    if participant_data.name is not None:
        edits.append(lambda s: participants.rename_participant(s, participant_id, participant_data.name))
    if participant_data.status is not None:
        edits.append(lambda s: participants.set_payment_status(s, participant_id, participant_data.status))
    try:
        wizard.dispatch_edits(edits)
    except ValueError as e:
        raise HTTPException(status_code=_status_for(e), detail=str(e))
    return _wizard_response(wizard_id, wizard)


@app.delete("/wizards/{wizard_id}/participants/{participant_id}", response_model=WizardResponse)
async def remove_wizard_participant(wizard_id: str, participant_id: str):
    wizard = _get_wizard(wizard_id)
    try:
        wizard.remove_participant(participant_id)
    except ValueError as e:
        raise HTTPException(status_code=_status_for(e), detail=str(e))
    return _wizard_response(wizard_id, wizard)


# =============================================================================
# Line Item Endpoints
# =============================================================================

@app.post("/wizards/{wizard_id}/line-items", response_model=WizardResponse, status_code=201)
async def add_wizard_line_item(wizard_id: str, item_data: LineItemCreate):
    wizard = _get_wizard(wizard_id)
    try:
        wizard.add_line_item(item_data.name, item_data.price)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _wizard_response(wizard_id, wizard)


@app.patch("/wizards/{wizard_id}/line-items/{item_id}", response_model=WizardResponse)
async def update_wizard_line_item(wizard_id: str, item_id: str, item_data: LineItemUpdate):
    """Edit a line item; either every sent field is applied or none is."""
    wizard = _get_wizard(wizard_id)
    edits = []
    if item_data.name is not None:
        edits.append(lambda s: line_items.rename_line_item(s, item_id, item_data.name))
    if item_data.price is not None:
        edits.append(lambda s: line_items.set_line_item_price(s, item_id, item_data.price))
    if item_data.assigned_participant_ids is not None:
        edits.append(
            lambda s: line_items.set_assignment(s, item_id, item_data.assigned_participant_ids)
        )
    try:
        wizard.dispatch_edits(edits)
    except ValueError as e:
        raise HTTPException(status_code=_status_for(e), detail=str(e))
    return _wizard_response(wizard_id, wizard)


@app.delete("/wizards/{wizard_id}/line-items/{item_id}", response_model=WizardResponse)
async def remove_wizard_line_item(wizard_id: str, item_id: str):
    wizard = _get_wizard(wizard_id)
    try:
        wizard.remove_line_item(item_id)
    except ValueError as e:
        raise HTTPException(status_code=_status_for(e), detail=str(e))
    return _wizard_response(wizard_id, wizard)


# =============================================================================
# Bill Detail Endpoints
# =============================================================================

@app.put("/wizards/{wizard_id}/split-method", response_model=WizardResponse)
async def set_wizard_split_method(wizard_id: str, method_data: SplitMethodUpdate):
    wizard = _get_wizard(wizard_id)
    try:
        wizard.choose_split_method(method_data.split_method)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _wizard_response(wizard_id, wizard)


@app.put("/wizards/{wizard_id}/details", response_model=WizardResponse)
async def set_wizard_details(wizard_id: str, details: BillDetailsUpdate):
    """Update bill metadata; a rejected field leaves every field unchanged."""
    wizard = _get_wizard(wizard_id)
    edits = []
    if details.name is not None:
        edits.append(lambda s: bills.set_bill_name(details.name))
    if details.vat is not None:
        edits.append(lambda s: bills.set_vat(details.vat))
    if details.service_charge is not None:
        edits.append(lambda s: bills.set_service_charge(details.service_charge))
    if details.discount is not None:
        edits.append(lambda s: bills.set_discount(details.discount))
    if details.category_id is not None:
        edits.append(lambda s: bills.set_category(details.category_id))
    try:
        wizard.dispatch_edits(edits)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _wizard_response(wizard_id, wizard)


# =============================================================================
# Navigation Endpoints
# =============================================================================

@app.post("/wizards/{wizard_id}/next", response_model=NavigationResponse)
async def next_step(wizard_id: str):
    wizard = _get_wizard(wizard_id)
    return _navigation_response(wizard, wizard.go_to_next_step())


@app.post("/wizards/{wizard_id}/previous", response_model=NavigationResponse)
async def previous_step(wizard_id: str):
    wizard = _get_wizard(wizard_id)
    return _navigation_response(wizard, wizard.go_to_previous_step())


@app.post("/wizards/{wizard_id}/steps/{step}", response_model=NavigationResponse)
async def jump_to_step(wizard_id: str, step: int):
    wizard = _get_wizard(wizard_id)
    return _navigation_response(wizard, wizard.go_to_step(step))


# =============================================================================
# Results, Save and Share Endpoints
# =============================================================================

@app.get("/wizards/{wizard_id}/results", response_model=ResultsResponse)
async def get_results(wizard_id: str):
    """Split results; only available once the wizard reached the results step."""
    wizard = _get_wizard(wizard_id)
    if wizard.current_step != Step.RESULTS:
        raise HTTPException(status_code=409, detail="Finish the wizard to see the results")
    return ResultsResponse(
        total_amount=wizard.state.total_amount,
        split_method=wizard.state.split_method,
        results=[r.to_dict() for r in wizard.state.split_results],
    )


@app.post("/wizards/{wizard_id}/save", response_model=SaveResponse, status_code=201)
async def save_wizard_bill(wizard_id: str, repository=Depends(get_repository)):
    """
    Persist the finished bill.

    Request flow:
        1. Wizard checks completeness and builds the bill record
        2. Repository stores it and returns the new bill id
        3. Wizard resets for the next bill (history kept)
    """
    wizard = _get_wizard(wizard_id)
    bill_id = wizard.save_bill(repository)
    if bill_id is None:
        message = wizard.state.toast.message
        status = 503 if message == MSG_SAVE_FAILED else 409
        raise HTTPException(status_code=status, detail=message)
    return SaveResponse(bill_id=bill_id, message=wizard.state.toast.message)


@app.post("/wizards/{wizard_id}/share")
async def share_wizard_bill(wizard_id: str, share_data: ShareRequest):
    wizard = _get_wizard(wizard_id)
    projection = wizard.share_projection(
        share_data.prompt_pay_id, share_data.qr_payload, share_data.notes
    )
    return dict(projection)


# =============================================================================
# History and Group Endpoints
# =============================================================================

@app.post("/wizards/{wizard_id}/history", response_model=WizardResponse)
async def load_history(wizard_id: str, repository=Depends(get_repository)):
    wizard = _get_wizard(wizard_id)
    try:
        wizard.hydrate(repository.load_bills())
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("Loading bill history failed")
        raise HTTPException(status_code=500, detail=str(e))
    return _wizard_response(wizard_id, wizard)


@app.post("/wizards/{wizard_id}/groups", response_model=WizardResponse, status_code=201)
async def save_group(wizard_id: str, group_data: GroupCreate, repository=Depends(get_repository)):
    wizard = _get_wizard(wizard_id)
    try:
        group = repository.save_participant_group(
            group_data.name, wizard.state.participants, group_data.description
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    wizard.remember_participant_group(group)
    return _wizard_response(wizard_id, wizard)


@app.post("/wizards/{wizard_id}/groups/{group_id}/load", response_model=WizardResponse)
async def load_group(wizard_id: str, group_id: str, repository=Depends(get_repository)):
    wizard = _get_wizard(wizard_id)
    try:
        groups = repository.get_participant_groups()
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    group = next((g for g in groups if g.id == group_id), None)
    if group is None:
        raise HTTPException(status_code=404, detail=f"Group {group_id} not found")
    wizard.load_participant_group(group)
    return _wizard_response(wizard_id, wizard)


# =============================================================================
# Health Check Endpoint
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint to verify API is running."""
    return {"status": "healthy", "service": "Bill Split Wizard"}


# =============================================================================
# Run with: python main.py
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
