"""Integration tests for BIA generation and approval with real database."""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from bia_service.db.models import AuditEntry, FusionIntegrationLog
from bia_service.documents import ApprovalWorkflow, BIAAssembler, BIARequest
from bia_service.exceptions import InvalidTransitionError, PersistenceError
from bia_service.sources import FETCHED_SOURCES, ScaffoldSourceAdapter, SourceCollector

pytestmark = pytest.mark.integration


@pytest.fixture
def collector():
    return SourceCollector(
        {name: ScaffoldSourceAdapter(name) for name in FETCHED_SOURCES},
        predictive=None,
    )


@pytest.fixture
def assembler(collector, repository, audit_sink, risk_platform):
    return BIAAssembler(collector, repository, audit=audit_sink, risk_platform=risk_platform)


@pytest.fixture
def workflow(repository, audit_sink, risk_platform):
    return ApprovalWorkflow(repository, audit_sink, risk_platform)


def payments_request(**overrides) -> BIARequest:
    values = {
        "function_name": "PaymentsCore",
        "function_type": "product",
        "dri_name": "Jordan Lee",
        "dri_team": "payments-team",
        "regions": ["na"],
    }
    values.update(overrides)
    return BIARequest(**values)


async def audit_actions(repository, doc_id: str) -> list[str]:
    return [entry.action for entry in await repository.audit_entries(doc_id)]


class TestStorage:
    """Tests for storing and loading documents."""

    @pytest.mark.asyncio
    async def test_generate_and_load(self, assembler, repository):
        result = await assembler.generate(payments_request(), created_by="alice")

        stored = await repository.get_by_id(result.document["id"])

        assert stored is not None
        assert stored.status == "draft"
        assert stored.iso_22301_data == result.document["iso_22301_compliance"]
        assert stored.confidence_assessment["data_completeness"] == pytest.approx(5 / 6 * 100)
        assert await audit_actions(repository, stored.id) == ["generated"]

    @pytest.mark.asyncio
    async def test_active_version_collision(self, assembler):
        await assembler.generate(payments_request())

        with pytest.raises(PersistenceError) as exc_info:
            await assembler.generate(payments_request())

        assert isinstance(exc_info.value.cause, IntegrityError)

    @pytest.mark.asyncio
    async def test_archived_document_frees_version(self, assembler, workflow, test_users):
        first = await assembler.generate(payments_request())
        doc_id = first.document["id"]
        await workflow.submit(doc_id, user_id=test_users["author"])
        await workflow.reject(doc_id, reviewer_id=test_users["reviewer"])
        await workflow.archive(doc_id, user_id=test_users["reviewer"])

        second = await assembler.generate(payments_request())

        assert second.document["id"] != doc_id

    @pytest.mark.asyncio
    async def test_list_newest_first(self, assembler, repository):
        await assembler.generate(payments_request())
        await assembler.generate(payments_request(function_name="Ledger", function_type="platform"))

        documents = await repository.list_documents()
        platform_only = await repository.list_documents(function_type="platform")

        assert [d.function_name for d in documents] == ["Ledger", "PaymentsCore"]
        assert [d.function_name for d in platform_only] == ["Ledger"]


class TestApprovalLifecycle:
    """Tests for the full document lifecycle."""

    @pytest.mark.asyncio
    async def test_invalid_transition_writes_nothing(self, assembler, workflow, repository, test_users):
        result = await assembler.generate(payments_request())
        doc_id = result.document["id"]

        with pytest.raises(InvalidTransitionError):
            await workflow.approve(doc_id, approver_id=test_users["approver"])

        stored = await repository.require(doc_id)
        assert stored.status == "draft"
        assert await audit_actions(repository, doc_id) == ["generated"]

    @pytest.mark.asyncio
    async def test_full_lifecycle(
        self, assembler, workflow, repository, session_factory, test_users
    ):
        result = await assembler.generate(payments_request())
        doc_id = result.document["id"]

        await workflow.submit(doc_id, user_id=test_users["author"])
        approval = await workflow.approve(
            doc_id, approver_id=test_users["approver"], comments="Reviewed with the DRI"
        )
        sync_result = await workflow.sync(doc_id, "bidirectional", user_id=test_users["author"])
        await workflow.archive(doc_id, user_id=test_users["approver"])

        stored = await repository.require(doc_id)
        assert stored.status == "archived"
        assert stored.approved_by == test_users["approver"]
        assert stored.approval_comments == "Reviewed with the DRI"
        assert stored.fusion_record_id == approval.push_result["record_id"]
        assert sync_result["changes_detected"] is False

        assert await audit_actions(repository, doc_id) == [
            "generated",
            "submitted_for_approval",
            "approved",
            "pushed_to_fusion",
            "synced_with_fusion",
            "archived",
        ]

        async with session_factory() as session:
            rows = (await session.execute(
                select(FusionIntegrationLog.action).order_by(FusionIntegrationLog.id)
            )).scalars().all()
        assert rows == ["check", "push", "sync"]


class TestAuditImmutability:
    """Tests that audit entries cannot be changed once written."""

    @pytest.mark.asyncio
    async def test_update_refused(self, assembler, session_factory):
        result = await assembler.generate(payments_request())

        async with session_factory() as session:
            entry = (await session.execute(
                select(AuditEntry).where(AuditEntry.bia_id == result.document["id"])
            )).scalar_one()
            entry.comments = "rewritten"

            with pytest.raises(ValueError):
                await session.commit()

    @pytest.mark.asyncio
    async def test_delete_refused(self, assembler, session_factory):
        result = await assembler.generate(payments_request())

        async with session_factory() as session:
            entry = (await session.execute(
                select(AuditEntry).where(AuditEntry.bia_id == result.document["id"])
            )).scalar_one()
            await session.delete(entry)

            with pytest.raises(ValueError):
                await session.commit()
