"""
Audit request routes
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import PermissionDenied, ValidationError
from app.db import get_db
from app.db.models import Role
from app.api.routes.auth import require_identity
from app.api.schemas.audits import (
    AuditCreate, AuditCreated, AuditUpdate, ResubmitResponse, ReviewResponse,
)
from app.api.validation import require_text, validate_purchase_data
from app.services.assignment import AssignmentPolicy
from app.services.audits import AuditRepository
from app.services.records import AuditView, Identity

router = APIRouter()


@router.get("", response_model=List[AuditView], response_model_exclude_unset=True)
async def list_audits(
    identity: Identity = require_identity,
    db: AsyncSession = Depends(get_db),
):
    """
    Audits visible to the caller: created by a USER, assigned to an AUDITOR.

    Payloads are returned with the keys they were stored with.
    """
    return await AuditRepository(db).list_for(identity)


@router.post("", response_model=AuditCreated, status_code=status.HTTP_201_CREATED)
async def create_audit(
    data: AuditCreate,
    identity: Identity = require_identity,
    db: AsyncSession = Depends(get_db),
):
    """
    File a new request and assign it to the least-loaded auditor.
    """
    if identity.role != Role.USER:
        raise PermissionDenied()

    title = require_text(data.title)
    payload = validate_purchase_data(data.purchase_data)

    audits = AuditRepository(db)
    reviewer = await AssignmentPolicy(audits).select_reviewer()
    created = await audits.create(
        title=title,
        audit_type=data.type,
        payload=payload,
        creator_id=identity.id,
        assignee_id=reviewer.id,
    )
    return AuditCreated(
        id=created.id,
        assignedTo=created.assigned_to,
        assignedToName=created.assigned_to_name,
    )


@router.put("/{audit_id}")
async def update_audit(
    audit_id: int,
    data: AuditUpdate,
    identity: Identity = require_identity,
    db: AsyncSession = Depends(get_db),
):
    """
    Review (auditor sends `status` + optional `admin_notes`) or resubmit
    (requester sends `purchase_data`). Role, ownership and state are
    checked by the workflow engine.
    """
    audits = AuditRepository(db)

    if data.status is not None:
        outcome = await audits.apply_review(audit_id, data.status, data.admin_notes, identity)
        return ReviewResponse(
            message=f"Audit {outcome.status.value}",
            status=outcome.status.value,
            notifiedUser=outcome.notified_user,
        )

    if data.purchase_data is None:
        raise ValidationError("Missing required fields")

    payload = validate_purchase_data(data.purchase_data)
    outcome = await audits.resubmit(audit_id, payload, identity)
    return ResubmitResponse(
        status=outcome.status.value,
        notifiedAuditor=outcome.notified_auditor,
    )
