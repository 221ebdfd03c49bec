"""Tests for the approval workflow with a mocked store."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from bia_service.documents.approval import ApprovalWorkflow
from bia_service.documents.models import ApprovalDecision, BIAStatus
from bia_service.exceptions import (
    DocumentNotFoundError,
    InvalidTransitionError,
    RiskPlatformError,
    ValidationError,
)


def make_document(status: str, fusion_record_id: str | None = None):
    return SimpleNamespace(
        id="doc-1",
        status=status,
        fusion_record_id=fusion_record_id,
        fusion_status=None,
        fusion_last_sync=None,
        to_dict=lambda: {"id": "doc-1", "function_name": "PaymentsCore", "status": status},
    )


@pytest.fixture
def repository():
    mock = MagicMock()
    mock.require = AsyncMock(return_value=make_document("draft"))
    mock.update_status = AsyncMock()
    mock.update = AsyncMock()
    return mock


@pytest.fixture
def audit():
    mock = MagicMock()
    mock.append = AsyncMock(return_value=None)
    mock.log_integration = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def platform():
    mock = MagicMock()
    mock.push = AsyncMock(return_value={"record_id": "BIA-1", "status": "active"})
    mock.sync = AsyncMock(return_value={"status": "completed", "changes_detected": False})
    return mock


class TestTransitions:
    """Tests for status transitions."""

    @pytest.mark.asyncio
    async def test_submit_draft(self, repository, audit):
        workflow = ApprovalWorkflow(repository, audit)

        result = await workflow.submit("doc-1", user_id="alice")

        assert result.previous_status == "draft"
        assert result.status == "pending_approval"
        repository.update_status.assert_awaited_once()
        assert repository.update_status.call_args.args[:2] == ("doc-1", BIAStatus.PENDING_APPROVAL)
        audit.append.assert_awaited_once()
        assert audit.append.call_args.args == ("doc-1", "submitted_for_approval")
        assert audit.append.call_args.kwargs["old_values"] == {"status": "draft"}

    @pytest.mark.asyncio
    async def test_draft_cannot_be_approved(self, repository, audit):
        """Test an illegal transition writes nothing."""
        workflow = ApprovalWorkflow(repository, audit)

        with pytest.raises(InvalidTransitionError) as exc_info:
            await workflow.approve("doc-1", approver_id="bob")

        assert exc_info.value.current == "draft"
        assert exc_info.value.target == "approved"
        repository.update_status.assert_not_awaited()
        audit.append.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("approver", ["", "   "])
    async def test_approver_required(self, repository, audit, approver):
        repository.require.return_value = make_document("pending_approval")
        workflow = ApprovalWorkflow(repository, audit)

        with pytest.raises(ValidationError) as exc_info:
            await workflow.approve("doc-1", approver_id=approver)

        assert exc_info.value.field == "approver_id"
        repository.update_status.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_approve_sets_approver_fields(self, repository, audit):
        repository.require.return_value = make_document("pending_approval")
        workflow = ApprovalWorkflow(repository, audit)

        result = await workflow.approve("doc-1", approver_id="bob", comments="Looks good")

        kwargs = repository.update_status.call_args.kwargs
        assert kwargs["approved_by"] == "bob"
        assert kwargs["approved_at"] is not None
        assert kwargs["comment"] == "Looks good"
        assert result.push_result is None
        assert isinstance(audit.append.call_args.kwargs["new_values"]["approved_at"], str)

    @pytest.mark.asyncio
    async def test_approve_pushes_to_platform(self, repository, audit, platform):
        repository.require.side_effect = [
            make_document("pending_approval"),
            make_document("approved"),
        ]
        workflow = ApprovalWorkflow(repository, audit, platform)

        result = await workflow.approve("doc-1", approver_id="bob")

        assert result.status == "approved"
        assert result.push_result["record_id"] == "BIA-1"
        assert repository.update.call_args.kwargs["fusion_record_id"] == "BIA-1"
        actions = [c.args[1] for c in audit.append.call_args_list]
        assert actions == ["approved", "pushed_to_fusion"]

    @pytest.mark.asyncio
    async def test_push_audit_failure_reaches_approval_warnings(self, repository, audit, platform):
        repository.require.side_effect = [
            make_document("pending_approval"),
            make_document("approved"),
        ]
        audit.append.side_effect = [None, "Failed to write audit entry"]
        workflow = ApprovalWorkflow(repository, audit, platform)

        result = await workflow.approve("doc-1", approver_id="bob")

        assert result.push_result["record_id"] == "BIA-1"
        assert result.warnings == ["Failed to write audit entry"]

    @pytest.mark.asyncio
    async def test_push_failure_does_not_undo_approval(self, repository, audit, platform):
        repository.require.side_effect = [
            make_document("pending_approval"),
            make_document("approved"),
        ]
        platform.push.side_effect = RiskPlatformError("push", "connection refused")
        workflow = ApprovalWorkflow(repository, audit, platform)

        result = await workflow.approve("doc-1", approver_id="bob")

        assert result.status == "approved"
        assert result.push_result is None
        assert "connection refused" in result.warnings[0]
        repository.update.assert_not_awaited()
        assert audit.log_integration.call_args.kwargs["success"] is False

    @pytest.mark.asyncio
    async def test_audit_failure_becomes_warning(self, repository, audit):
        audit.append.return_value = "Failed to write audit entry"
        workflow = ApprovalWorkflow(repository, audit)

        result = await workflow.submit("doc-1")

        assert result.status == "pending_approval"
        assert result.warnings == ["Failed to write audit entry"]

    @pytest.mark.asyncio
    async def test_reject_then_redraft(self, repository, audit):
        workflow = ApprovalWorkflow(repository, audit)

        repository.require.return_value = make_document("pending_approval")
        rejected = await workflow.reject("doc-1", reviewer_id="bob", comments="Missing RTO")
        repository.require.return_value = make_document("rejected")
        redrafted = await workflow.redraft("doc-1", user_id="alice")

        assert rejected.status == "rejected"
        assert redrafted.status == "draft"

    @pytest.mark.asyncio
    async def test_archived_is_terminal(self, repository, audit):
        repository.require.return_value = make_document("archived")
        workflow = ApprovalWorkflow(repository, audit)

        for operation in (workflow.submit, workflow.redraft, workflow.archive):
            with pytest.raises(InvalidTransitionError):
                await operation("doc-1")

    @pytest.mark.asyncio
    async def test_missing_document(self, repository, audit):
        repository.require.side_effect = DocumentNotFoundError("nope")
        workflow = ApprovalWorkflow(repository, audit)

        with pytest.raises(DocumentNotFoundError):
            await workflow.submit("nope")

    @pytest.mark.asyncio
    async def test_decide_dispatches(self, repository, audit):
        repository.require.return_value = make_document("pending_approval")
        workflow = ApprovalWorkflow(repository, audit)

        result = await workflow.decide(
            ApprovalDecision(doc_id="doc-1", approved=False, approver_id="bob", comments="No")
        )

        assert result.status == "rejected"


class TestPushAndSync:
    """Tests for risk platform push and sync."""

    @pytest.mark.asyncio
    async def test_push_requires_approved(self, repository, audit, platform):
        workflow = ApprovalWorkflow(repository, audit, platform)

        with pytest.raises(InvalidTransitionError) as exc_info:
            await workflow.push("doc-1")

        assert exc_info.value.target == "synced"
        platform.push.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_push_without_platform(self, repository, audit):
        workflow = ApprovalWorkflow(repository, audit)

        with pytest.raises(RiskPlatformError):
            await workflow.push("doc-1")

    @pytest.mark.asyncio
    async def test_push_failure_leaves_document_unchanged(self, repository, audit, platform):
        repository.require.return_value = make_document("approved")
        platform.push.side_effect = RiskPlatformError("push", "503")
        workflow = ApprovalWorkflow(repository, audit, platform)

        with pytest.raises(RiskPlatformError):
            await workflow.push("doc-1")

        repository.update.assert_not_awaited()
        audit.append.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_direction(self, repository, audit, platform):
        workflow = ApprovalWorkflow(repository, audit, platform)

        with pytest.raises(ValidationError) as exc_info:
            await workflow.sync("doc-1", "sideways")

        assert exc_info.value.field == "direction"
        repository.require.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sync_requires_record(self, repository, audit, platform):
        repository.require.return_value = make_document("approved")
        workflow = ApprovalWorkflow(repository, audit, platform)

        with pytest.raises(ValidationError):
            await workflow.sync("doc-1", "bidirectional")

        platform.sync.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sync_requires_approved(self, repository, audit, platform):
        repository.require.return_value = make_document("pending_approval", fusion_record_id="BIA-1")
        workflow = ApprovalWorkflow(repository, audit, platform)

        with pytest.raises(InvalidTransitionError):
            await workflow.sync("doc-1", "push")

    @pytest.mark.asyncio
    async def test_sync_records_linkage(self, repository, audit, platform):
        repository.require.return_value = make_document("approved", fusion_record_id="BIA-1")
        workflow = ApprovalWorkflow(repository, audit, platform)

        result = await workflow.sync("doc-1", "pull", user_id="alice")

        assert result["status"] == "completed"
        assert platform.sync.call_args.args[0] == "BIA-1"
        assert repository.update.call_args.kwargs["fusion_status"] == "completed"
        assert audit.append.call_args.args[1] == "synced_with_fusion"
        assert audit.log_integration.call_args.args[0] == "sync"

    @pytest.mark.asyncio
    async def test_sync_audit_failure_is_reported(self, repository, audit, platform):
        repository.require.return_value = make_document("approved", fusion_record_id="BIA-1")
        audit.append.return_value = "Failed to write audit entry"
        workflow = ApprovalWorkflow(repository, audit, platform)

        result = await workflow.sync("doc-1", "bidirectional")

        assert result["status"] == "completed"
        assert result["warnings"] == ["Failed to write audit entry"]
        repository.update.assert_awaited_once()
