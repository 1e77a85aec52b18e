"""
Pydantic schemas for the audits and auth API
"""
from typing import Optional

from pydantic import BaseModel, Field

from app.db.models import ReviewDecision, Role
from app.services.records import Identity, PurchaseData


# === Auth ===

class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=30, pattern=r"^[A-Za-z0-9]+$")
    password: str = Field(min_length=6)
    role: Role


class RegisterResponse(BaseModel):
    message: str = "User registered successfully"
    userId: int


class LoginRequest(BaseModel):
    # Optional so an incomplete body gets the "Missing fields" message
    username: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    message: str = "Login success"
    user: Identity


# === Audits ===

class AuditCreate(BaseModel):
    title: Optional[str] = None
    type: Optional[str] = None
    purchase_data: Optional[PurchaseData] = None


class AuditCreated(BaseModel):
    id: int
    message: str = "Request submitted successfully"
    assignedTo: int
    assignedToName: str


class AuditUpdate(BaseModel):
    """
    Either a review decision (auditor) or a replacement payload (requester).
    """
    status: Optional[ReviewDecision] = None
    admin_notes: Optional[str] = None
    purchase_data: Optional[PurchaseData] = None


class ReviewResponse(BaseModel):
    message: str
    status: str
    notifiedUser: str


class ResubmitResponse(BaseModel):
    message: str = "Data updated and resubmitted for review"
    status: str
    notifiedAuditor: str
