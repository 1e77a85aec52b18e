"""
Tests for least-loaded reviewer assignment
"""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NoReviewersAvailable
from app.db.models import AuditStatus, Role
from app.services.assignment import AssignmentPolicy
from app.services.audits import AuditRepository
from app.services.credentials import CredentialStore
from app.services.records import Identity, PurchaseData


async def _file(repo: AuditRepository, creator: Identity, assignee_id: int, title: str = "Request") -> int:
    created = await repo.create(title, None, PurchaseData(vendor="Acme", amount="10"), creator.id, assignee_id)
    return created.id


class TestSelectReviewer:
    """Tests for AssignmentPolicy.select_reviewer"""

    @pytest.mark.asyncio
    async def test_no_auditors(self, db_session: AsyncSession, alice: Identity):
        policy = AssignmentPolicy(AuditRepository(db_session))

        with pytest.raises(NoReviewersAvailable):
            await policy.select_reviewer()

    @pytest.mark.asyncio
    async def test_only_auditor_is_selected(self, db_session: AsyncSession, alice: Identity, bob: Identity):
        chosen = await AssignmentPolicy(AuditRepository(db_session)).select_reviewer()

        assert chosen.id == bob.id
        assert chosen.username == "bob"
        assert chosen.pending == 0

    @pytest.mark.asyncio
    async def test_never_returns_a_user(self, db_session: AsyncSession, alice: Identity, carol: Identity, bob: Identity):
        # Users have ids lower than the auditor and zero load
        chosen = await AssignmentPolicy(AuditRepository(db_session)).select_reviewer()
        assert chosen.id == bob.id

    @pytest.mark.asyncio
    async def test_tie_breaks_on_lowest_id(self, db_session: AsyncSession, bob: Identity, dave: Identity):
        policy = AssignmentPolicy(AuditRepository(db_session))

        first = await policy.select_reviewer()
        second = await policy.select_reviewer()

        assert first.id == second.id == min(bob.id, dave.id)

    @pytest.mark.asyncio
    async def test_picks_least_loaded(
        self, db_session: AsyncSession, alice: Identity, bob: Identity, dave: Identity
    ):
        repo = AuditRepository(db_session)
        await _file(repo, alice, bob.id)
        await _file(repo, alice, bob.id)
        await _file(repo, alice, dave.id)

        chosen = await AssignmentPolicy(repo).select_reviewer()
        assert chosen.id == dave.id
        assert chosen.pending == 1

    @pytest.mark.asyncio
    async def test_only_pending_review_counts(
        self, db_session: AsyncSession, alice: Identity, bob: Identity, dave: Identity
    ):
        repo = AuditRepository(db_session)
        # bob has two audits but both are finished
        for title in ("A", "B"):
            audit = await repo.get_by_id(await _file(repo, alice, bob.id, title))
            audit.status = AuditStatus.VERIFIED
        await db_session.commit()
        await _file(repo, alice, dave.id)

        chosen = await AssignmentPolicy(repo).select_reviewer()
        assert chosen.id == bob.id
        assert chosen.pending == 0

    @pytest.mark.asyncio
    async def test_balances_sequential_creations(
        self, db_session: AsyncSession, alice: Identity, bob: Identity, dave: Identity
    ):
        repo = AuditRepository(db_session)
        policy = AssignmentPolicy(repo)

        assigned = []
        for i in range(4):
            reviewer = await policy.select_reviewer()
            await _file(repo, alice, reviewer.id, f"Request {i}")
            assigned.append(reviewer.id)

        assert assigned.count(bob.id) == 2
        assert assigned.count(dave.id) == 2


class TestReviewerWorkload:
    """Tests for AuditRepository.reviewer_workload"""

    @pytest.mark.asyncio
    async def test_workload_lists_auditors_only(self, db_session: AsyncSession):
        store = CredentialStore(db_session)
        await store.create_user("alice", "secret1", Role.USER)
        auditor_id = await store.create_user("bob", "secret1", Role.AUDITOR)

        workload = await AuditRepository(db_session).reviewer_workload()

        assert [load.id for load in workload] == [auditor_id]
