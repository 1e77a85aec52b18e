"""
Shared validation helpers for API routes.
"""

from __future__ import annotations

from typing import Optional

from app.core.errors import ValidationError
from app.services.records import PurchaseData


def require_text(value: Optional[str]) -> str:
    """Non-blank string or ValidationError"""
    text = (value or "").strip()
    if not text:
        raise ValidationError("Missing required fields")
    return text


def validate_purchase_data(payload: Optional[PurchaseData]) -> PurchaseData:
    """
    Require a payload and reject non-positive or non-numeric amounts.

    A payload without an amount is accepted as-is.
    """
    if payload is None:
        raise ValidationError("Missing required fields")

    if payload.amount is not None:
        amount = payload.amount_value()
        if amount is None or amount <= 0:
            raise ValidationError("Amount must be a number greater than 0")

    return payload
