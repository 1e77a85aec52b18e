"""
Least-loaded reviewer assignment.

The workload read and the later insert are separate statements, so concurrent
creations can briefly skew the balance. That is accepted.
"""
import logging

from app.core.errors import NoReviewersAvailable
from app.services.audits import AuditRepository
from app.services.records import ReviewerLoad

logger = logging.getLogger(__name__)


class AssignmentPolicy:
    def __init__(self, audits: AuditRepository):
        self.audits = audits

    async def select_reviewer(self) -> ReviewerLoad:
        """AUDITOR with the fewest PENDING_REVIEW audits (lowest id wins ties)"""
        workload = await self.audits.reviewer_workload()
        if not workload:
            raise NoReviewersAvailable()

        chosen = min(workload, key=lambda load: (load.pending, load.id))
        logger.debug("Selected reviewer %s with %d pending", chosen.id, chosen.pending)
        return chosen
