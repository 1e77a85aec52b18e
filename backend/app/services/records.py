"""
Typed records exchanged across the service boundary.

JSON blobs stored in the `audits` table are parsed into these models when read
and serialized back only when written; nothing above the repository handles
raw JSON text.
"""
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from app.db.models import AuditStatus, Role

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "Unknown"

Rate = Union[str, int, float]


class Identity(BaseModel):
    """Public identity of an authenticated user"""
    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    role: Role


# === Purchase payload ===

class Attachments(BaseModel):
    """Attachment presence flags (no file contents are stored)"""
    model_config = ConfigDict(extra="allow")

    invoice: bool = False


class PurchaseData(BaseModel):
    model_config = ConfigDict(extra="allow")

    vendor: Optional[str] = None
    amount: Optional[Rate] = None
    attachments: Optional[Attachments] = None
    invoiceNumber: Optional[str] = None
    invoiceDate: Optional[str] = None
    dueDate: Optional[str] = None
    purchase_rate: Optional[Rate] = None
    approved_rate: Optional[Rate] = None

    def amount_value(self) -> Optional[Decimal]:
        """Numeric amount, or None when absent or not a number"""
        if self.amount is None or isinstance(self.amount, bool):
            return None
        try:
            value = Decimal(str(self.amount).strip())
        except InvalidOperation:
            return None
        return value if value.is_finite() else None


class AuditConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    require_purchase_rate: bool = True


# === JSON column codec ===

BlobT = TypeVar("BlobT", bound=BaseModel)


def dump_blob(blob: BaseModel) -> str:
    """Serialize only the keys that were provided, explicit nulls included"""
    return json.dumps(blob.model_dump(mode="json", exclude_unset=True))


def load_blob(raw: Optional[str], model: Type[BlobT]) -> BlobT:
    """
    Parse a stored JSON column.

    Malformed or non-object JSON degrades to an empty record instead of failing
    the read. A field whose stored value does not fit its type is dropped on
    its own; the rest of the object is kept.
    """
    data: Any
    try:
        data = json.loads(raw or "{}")
    except ValueError:
        logger.warning("Malformed JSON blob for %s, using empty object", model.__name__)
        data = {}

    if not isinstance(data, dict):
        logger.warning("Non-object JSON blob for %s, using empty object", model.__name__)
        data = {}

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        bad_keys = {err["loc"][0] for err in exc.errors() if err["loc"]}

    logger.warning("Dropping unreadable %s fields: %s", model.__name__, sorted(map(str, bad_keys)))
    kept = {key: value for key, value in data.items() if key not in bad_keys}
    try:
        return model.model_validate(kept)
    except ValidationError:
        logger.warning("Unreadable %s blob, using empty object", model.__name__)
        return model()


# === Views and outcomes ===

class AuditView(BaseModel):
    """Audit request as returned by role-scoped listings"""
    id: int
    title: str
    type: Optional[str] = None
    assigned_to: Optional[int] = None
    created_by: int
    config: AuditConfig
    purchase_data: PurchaseData
    status: AuditStatus
    admin_notes: Optional[str] = None
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    created_at: datetime
    auditor_name: str = UNKNOWN_NAME
    creator_name: str = UNKNOWN_NAME


@dataclass(frozen=True)
class CreatedAudit:
    id: int
    assigned_to: int
    assigned_to_name: str


@dataclass(frozen=True)
class ReviewOutcome:
    status: AuditStatus
    notified_user: str


@dataclass(frozen=True)
class ResubmitOutcome:
    status: AuditStatus
    notified_auditor: str


@dataclass(frozen=True)
class ReviewerLoad:
    id: int
    username: str
    pending: int
