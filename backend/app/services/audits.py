"""
Audit repository: persistence and role-scoped retrieval of audit requests.

Primary writes are committed before any display-name lookup runs, so a broken
user reference can only degrade a name to "Unknown", never fail the write.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.core.errors import NotFound, ValidationError
from app.db.models import AuditRequest, AuditStatus, ReviewDecision, Role, User
from app.services import workflow
from app.services.records import (
    AuditConfig, AuditView, CreatedAudit, Identity, PurchaseData,
    ResubmitOutcome, ReviewerLoad, ReviewOutcome, UNKNOWN_NAME,
    dump_blob, load_blob,
)

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_TYPE = "Purchase"


class AuditRepository:
    """Queries and mutations on the `audits` table"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # === Reads ===

    async def get_by_id(self, audit_id: int) -> Optional[AuditRequest]:
        return await self.db.get(AuditRequest, audit_id)

    async def list_for(self, identity: Identity) -> List[AuditView]:
        """
        Role-scoped listing, newest first.

        USER: audits they created. AUDITOR: audits assigned to them.
        Any other role sees nothing.
        """
        auditor = aliased(User)
        creator = aliased(User)
        query = (
            select(AuditRequest, auditor.username, creator.username)
            .outerjoin(auditor, AuditRequest.assigned_to == auditor.id)
            .outerjoin(creator, AuditRequest.created_by == creator.id)
        )

        if identity.role == Role.USER:
            query = query.where(AuditRequest.created_by == identity.id)
        elif identity.role == Role.AUDITOR:
            query = query.where(AuditRequest.assigned_to == identity.id)
        else:
            return []

        query = query.order_by(AuditRequest.created_at.desc(), AuditRequest.id.desc())
        result = await self.db.execute(query)
        return [
            _to_view(audit, auditor_name, creator_name)
            for audit, auditor_name, creator_name in result.all()
        ]

    async def display_name(self, user_id: Optional[int]) -> str:
        """Username for notifications; "Unknown" when it cannot be resolved"""
        if user_id is None:
            return UNKNOWN_NAME
        try:
            result = await self.db.execute(select(User.username).where(User.id == user_id))
            username = result.scalar_one_or_none()
        except SQLAlchemyError:
            logger.warning("Display name lookup failed for user %s", user_id, exc_info=True)
            return UNKNOWN_NAME
        return username or UNKNOWN_NAME

    async def reviewer_workload(self) -> List[ReviewerLoad]:
        """
        Every AUDITOR with its count of PENDING_REVIEW assignments.

        Ordered by pending count, then lowest id.
        """
        pending = func.count(AuditRequest.id)
        query = (
            select(User.id, User.username, pending.label("pending"))
            .outerjoin(
                AuditRequest,
                (AuditRequest.assigned_to == User.id)
                & (AuditRequest.status == AuditStatus.PENDING_REVIEW),
            )
            .where(User.role == Role.AUDITOR)
            .group_by(User.id, User.username)
            .order_by(pending.asc(), User.id.asc())
        )
        result = await self.db.execute(query)
        return [ReviewerLoad(id=row.id, username=row.username, pending=row.pending) for row in result.all()]

    # === Writes ===

    async def create(
        self,
        title: str,
        audit_type: Optional[str],
        payload: PurchaseData,
        creator_id: int,
        assignee_id: int,
    ) -> CreatedAudit:
        """Insert a new request in the initial workflow status"""
        if await self.db.get(User, creator_id) is None:
            raise ValidationError("Creator does not exist")

        assignee = await self.db.get(User, assignee_id)
        if assignee is None or assignee.role != Role.AUDITOR:
            raise ValidationError("Audits can only be assigned to auditors")

        now = datetime.utcnow()
        audit = AuditRequest(
            title=title,
            type=audit_type or DEFAULT_AUDIT_TYPE,
            assigned_to=assignee_id,
            created_by=creator_id,
            config=dump_blob(AuditConfig(require_purchase_rate=True)),
            purchase_data=dump_blob(payload),
            status=workflow.INITIAL_STATUS,
            submitted_at=now,
            created_at=now,
        )
        self.db.add(audit)
        await self.db.commit()

        logger.info("Audit %s created by user %s, assigned to %s", audit.id, creator_id, assignee_id)
        return CreatedAudit(
            id=audit.id,
            assigned_to=assignee_id,
            assigned_to_name=await self.display_name(assignee_id),
        )

    async def apply_review(
        self,
        audit_id: int,
        decision: ReviewDecision,
        notes: Optional[str],
        reviewer: Identity,
    ) -> ReviewOutcome:
        """Approve or reject; returns the creator's name for notification"""
        audit = await self.get_by_id(audit_id)
        if audit is None:
            raise NotFound()

        new_status = workflow.transition(reviewer, audit, workflow.action_for_decision(decision))

        audit.status = new_status
        audit.admin_notes = notes or ""
        audit.reviewed_at = datetime.utcnow()
        audit.reviewed_by = reviewer.id
        await self.db.commit()

        logger.info("Audit %s %s by auditor %s", audit_id, new_status.value, reviewer.id)
        return ReviewOutcome(
            status=new_status,
            notified_user=await self.display_name(audit.created_by),
        )

    async def resubmit(self, audit_id: int, payload: PurchaseData, acting_user: Identity) -> ResubmitOutcome:
        """
        Replace the payload of a rejected request and send it back for review.

        Assignee, notes and all timestamps are left as they were.
        """
        audit = await self.get_by_id(audit_id)
        if audit is None:
            raise NotFound()

        new_status = workflow.transition(acting_user, audit, workflow.AuditAction.RESUBMIT)

        audit.purchase_data = dump_blob(payload)
        audit.status = new_status
        await self.db.commit()

        logger.info("Audit %s resubmitted by user %s", audit_id, acting_user.id)
        return ResubmitOutcome(
            status=new_status,
            notified_auditor=await self.display_name(audit.assigned_to),
        )


def _to_view(audit: AuditRequest, auditor_name: Optional[str], creator_name: Optional[str]) -> AuditView:
    return AuditView(
        id=audit.id,
        title=audit.title,
        type=audit.type,
        assigned_to=audit.assigned_to,
        created_by=audit.created_by,
        config=load_blob(audit.config, AuditConfig),
        purchase_data=load_blob(audit.purchase_data, PurchaseData),
        status=audit.status,
        admin_notes=audit.admin_notes,
        submitted_at=audit.submitted_at,
        reviewed_at=audit.reviewed_at,
        reviewed_by=audit.reviewed_by,
        created_at=audit.created_at,
        auditor_name=auditor_name or UNKNOWN_NAME,
        creator_name=creator_name or UNKNOWN_NAME,
    )
