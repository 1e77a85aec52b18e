"""
Audit request state machine.

    create ──> PENDING_REVIEW ──approve──> VERIFIED (terminal)
                    │   ^
               reject   resubmit
                    v   │
                  REJECTED

PENDING_DATA is a declared status that no transition produces.
Everything not in TRANSITIONS is refused.
"""
import logging
from enum import Enum
from typing import Dict, Tuple

from app.core.errors import InvalidTransition, PermissionDenied
from app.db.models import AuditRequest, AuditStatus, ReviewDecision, Role
from app.services.records import Identity

logger = logging.getLogger(__name__)


class AuditAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    RESUBMIT = "resubmit"


INITIAL_STATUS = AuditStatus.PENDING_REVIEW

TRANSITIONS: Dict[Tuple[AuditStatus, AuditAction], AuditStatus] = {
    (AuditStatus.PENDING_REVIEW, AuditAction.APPROVE): AuditStatus.VERIFIED,
    (AuditStatus.PENDING_REVIEW, AuditAction.REJECT): AuditStatus.REJECTED,
    (AuditStatus.REJECTED, AuditAction.RESUBMIT): AuditStatus.PENDING_REVIEW,
}

ACTION_ROLES: Dict[AuditAction, Role] = {
    AuditAction.APPROVE: Role.AUDITOR,
    AuditAction.REJECT: Role.AUDITOR,
    AuditAction.RESUBMIT: Role.USER,
}

TERMINAL_STATUSES = frozenset({AuditStatus.VERIFIED})


def action_for_decision(decision: ReviewDecision) -> AuditAction:
    return AuditAction.APPROVE if decision == ReviewDecision.APPROVED else AuditAction.REJECT


def next_status(current: AuditStatus, action: AuditAction) -> AuditStatus:
    """Target status for `action`, or InvalidTransition"""
    if current in TERMINAL_STATUSES:
        raise InvalidTransition(f"Audit is already {current.value}; no further changes are allowed")
    try:
        return TRANSITIONS[(current, action)]
    except KeyError:
        raise InvalidTransition(
            f"Cannot {action.value} an audit in status {current.value}"
        ) from None


def authorize(identity: Identity, audit: AuditRequest, action: AuditAction) -> None:
    """
    Role and ownership check for acting on `audit`.

    Reviews belong to the assigned auditor; resubmission to the creator.
    """
    if identity.role != ACTION_ROLES[action]:
        raise PermissionDenied()

    if action == AuditAction.RESUBMIT:
        if audit.created_by != identity.id:
            raise PermissionDenied()
    elif audit.assigned_to != identity.id:
        raise PermissionDenied()


def transition(identity: Identity, audit: AuditRequest, action: AuditAction) -> AuditStatus:
    """Validate role, ownership and current state; return the new status"""
    authorize(identity, audit, action)
    try:
        return next_status(audit.status, action)
    except InvalidTransition:
        logger.info(
            "Refused %s on audit %s in status %s by user %s",
            action.value, audit.id, audit.status.value, identity.id,
        )
        raise
