"""
Sharing Module

Builds the read-only data handed to the external share-link collaborator.
The PromptPay id and QR payload are passed through untouched; generating or
validating the payment payload is that collaborator's job.
"""

from types import MappingProxyType

from bills import bill_from_state
from categories import category_name
from utils import format_currency, round_money


def share_projection(state, prompt_pay_id: str = "", qr_payload: str = "", notes: str = ""):
    """
    Read-only projection of the current bill for sharing.

    Args:
        state: Current BillState.
        prompt_pay_id: Payee's PromptPay id, as entered.
        qr_payload: Payment QR payload produced elsewhere.
        notes: Free-text notes for the recipients.

    Returns:
        MappingProxyType: Bill fields, display strings, split results and
            the three values above.
    """
    bill = bill_from_state(state)
    data = bill.to_dict()
    data.pop("bill_id")
    data["total_amount"] = round_money(bill.final_total)
    data["total_display"] = format_currency(data["total_amount"])
    data["category_name"] = category_name(bill.category_id)
    data["split_results"] = [r.to_dict() for r in state.split_results]
    data["prompt_pay_id"] = prompt_pay_id
    data["qr_payload"] = qr_payload
    data["notes"] = notes
    return MappingProxyType(data)
