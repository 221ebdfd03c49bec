"""Approval workflow and risk-platform push/sync for BIA documents.

Status transitions follow ALLOWED_TRANSITIONS:

    draft -> pending_approval -> approved -> archived
                              -> rejected -> draft (explicit redraft)
                                          -> archived

An illegal request raises InvalidTransitionError before anything is
written. Every transition and every push/sync field change appends an
audit entry. Push and sync failures are reported and leave the document
as it was.
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from bia_service.db.models import BIADocument
from bia_service.documents.audit import AuditSink
from bia_service.documents.models import (
    ApprovalDecision,
    BIAStatus,
    SyncDirection,
    TransitionResult,
    can_transition,
)
from bia_service.documents.repository import BIARepository
from bia_service.exceptions import InvalidTransitionError, RiskPlatformError, ValidationError

if TYPE_CHECKING:
    from bia_service.fusion.client import RiskPlatformClient

logger = logging.getLogger(__name__)

# Pseudo-target used in errors for push/sync on a document that is not approved
SYNCED = "synced"


def _jsonable(values: dict[str, Any]) -> dict[str, Any]:
    return {k: v.isoformat() if isinstance(v, datetime) else v for k, v in values.items()}


class ApprovalWorkflow:
    """Manages BIA document status transitions.

    Handles:
    - Submitting drafts for approval
    - Approval and rejection decisions
    - Re-drafting rejected documents and archiving
    - Pushing approved documents to the risk platform and syncing them
    """

    def __init__(
        self,
        repository: BIARepository,
        audit: AuditSink,
        risk_platform: "RiskPlatformClient | None" = None,
    ):
        """Initialize the workflow.

        Args:
            repository: Document store
            audit: Audit sink for transition and integration records
            risk_platform: Risk platform client (None = approvals are not pushed)
        """
        self.repository = repository
        self.audit = audit
        self.risk_platform = risk_platform

    async def _transition(
        self,
        doc_id: str,
        target: BIAStatus,
        action: str,
        user_id: str | None = None,
        comments: str | None = None,
        **fields: Any,
    ) -> TransitionResult:
        document = await self.repository.require(doc_id)
        current = document.status

        if not can_transition(current, target):
            logger.warning(f"Refused transition of BIA {doc_id}: {current} -> {target.value}")
            raise InvalidTransitionError(doc_id, current, target.value)

        await self.repository.update_status(doc_id, target, comment=comments, **fields)

        result = TransitionResult(doc_id=doc_id, previous_status=current, status=target.value)
        warning = await self.audit.append(
            doc_id,
            action,
            user_id=user_id,
            old_values={"status": current},
            new_values=_jsonable({"status": target.value, **fields}),
            comments=comments,
        )
        if warning:
            result.warnings.append(warning)

        logger.info(f"BIA {doc_id}: {current} -> {target.value} by {user_id or 'unknown'}")
        return result

    async def submit(
        self,
        doc_id: str,
        user_id: str | None = None,
        comments: str | None = None,
    ) -> TransitionResult:
        """Request review of a draft."""
        return await self._transition(
            doc_id, BIAStatus.PENDING_APPROVAL, "submitted_for_approval", user_id, comments
        )

    async def approve(
        self,
        doc_id: str,
        approver_id: str,
        comments: str | None = None,
    ) -> TransitionResult:
        """Approve a pending document and push it to the risk platform.

        Args:
            doc_id: Document ID
            approver_id: Identity of the approver (required)
            comments: Approval comments

        Returns:
            TransitionResult; push_result is set when the push succeeded,
            otherwise the failure is listed in warnings

        Raises:
            ValidationError: approver identity is missing
            InvalidTransitionError: document is not pending approval
        """
        if not approver_id or not approver_id.strip():
            raise ValidationError("Approver identity is required", field="approver_id")

        result = await self._transition(
            doc_id,
            BIAStatus.APPROVED,
            "approved",
            approver_id,
            comments,
            approved_by=approver_id,
            approved_at=datetime.utcnow(),
        )

        if self.risk_platform is not None:
            try:
                result.push_result = await self.push(doc_id, comments=comments, user_id=approver_id)
            except RiskPlatformError as e:
                result.warnings.append(str(e))
            else:
                result.warnings.extend(result.push_result.get("warnings", []))

        return result

    async def reject(
        self,
        doc_id: str,
        reviewer_id: str | None = None,
        comments: str | None = None,
    ) -> TransitionResult:
        """Reject a pending document; it stays rejected until redrafted."""
        return await self._transition(doc_id, BIAStatus.REJECTED, "rejected", reviewer_id, comments)

    async def decide(self, decision: ApprovalDecision) -> TransitionResult:
        """Apply an approval decision."""
        if decision.approved:
            return await self.approve(decision.doc_id, decision.approver_id, decision.comments)
        return await self.reject(decision.doc_id, decision.approver_id, decision.comments)

    async def redraft(
        self,
        doc_id: str,
        user_id: str | None = None,
        comments: str | None = None,
    ) -> TransitionResult:
        """Return a rejected document to draft."""
        return await self._transition(doc_id, BIAStatus.DRAFT, "redrafted", user_id, comments)

    async def archive(
        self,
        doc_id: str,
        user_id: str | None = None,
        comments: str | None = None,
    ) -> TransitionResult:
        """Archive an approved or rejected document. Terminal."""
        return await self._transition(doc_id, BIAStatus.ARCHIVED, "archived", user_id, comments)

    def _require_platform(self, operation: str) -> "RiskPlatformClient":
        if self.risk_platform is None:
            raise RiskPlatformError(operation, "risk platform is not configured")
        return self.risk_platform

    async def push(
        self,
        doc_id: str,
        comments: str | None = None,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        """Push an approved document and record the linkage fields.

        Returns:
            The platform's push result; a failed audit write is listed
            under "warnings"

        Raises:
            InvalidTransitionError: document is not approved
            RiskPlatformError: the push failed; the document is unchanged
        """
        platform = self._require_platform("push")
        document = await self.repository.require(doc_id)
        if document.status != BIAStatus.APPROVED.value:
            raise InvalidTransitionError(doc_id, document.status, SYNCED)

        request_data = {"bia_id": doc_id, "comments": comments}
        try:
            push_result = await platform.push(document.to_dict(), comments)
        except RiskPlatformError as e:
            logger.warning(f"Push of BIA {doc_id} failed: {e}")
            await self.audit.log_integration(
                "push", bia_id=doc_id, success=False, request_data=request_data, error_message=str(e)
            )
            raise

        warning = await self._record_linkage(
            document,
            "pushed_to_fusion",
            user_id,
            comments,
            fusion_record_id=push_result["record_id"],
            fusion_status=push_result.get("status", "active"),
            fusion_last_sync=datetime.utcnow(),
        )
        if warning:
            push_result = {**push_result, "warnings": [warning]}
        await self.audit.log_integration(
            "push",
            bia_id=doc_id,
            fusion_record_id=push_result["record_id"],
            request_data=request_data,
            response_data=push_result,
        )

        logger.info(f"Pushed BIA {doc_id} as record {push_result['record_id']}")
        return push_result

    async def sync(
        self,
        doc_id: str,
        direction: SyncDirection | str,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        """Sync an approved, already-pushed document with its record.

        Raises:
            ValidationError: unknown direction or no record to sync with
            InvalidTransitionError: document is not approved
            RiskPlatformError: the sync failed; the document is unchanged
        """
        try:
            direction = SyncDirection(direction)
        except ValueError:
            allowed = ", ".join(d.value for d in SyncDirection)
            raise ValidationError(
                f"Invalid sync direction '{direction}' (expected one of: {allowed})",
                field="direction",
            ) from None

        platform = self._require_platform("sync")
        document = await self.repository.require(doc_id)
        if document.status != BIAStatus.APPROVED.value:
            raise InvalidTransitionError(doc_id, document.status, SYNCED)
        if not document.fusion_record_id:
            raise ValidationError(f"BIA {doc_id} has not been pushed yet", field="biaId")

        record_id = document.fusion_record_id
        request_data = {"bia_id": doc_id, "direction": direction.value}
        try:
            sync_result = await platform.sync(record_id, document.to_dict(), direction)
        except RiskPlatformError as e:
            logger.warning(f"Sync of BIA {doc_id} failed: {e}")
            await self.audit.log_integration(
                "sync",
                bia_id=doc_id,
                fusion_record_id=record_id,
                success=False,
                request_data=request_data,
                error_message=str(e),
            )
            raise

        warning = await self._record_linkage(
            document,
            "synced_with_fusion",
            user_id,
            f"direction: {direction.value}",
            fusion_status=sync_result.get("status", "completed"),
            fusion_last_sync=datetime.utcnow(),
        )
        if warning:
            sync_result = {**sync_result, "warnings": [warning]}
        await self.audit.log_integration(
            "sync",
            bia_id=doc_id,
            fusion_record_id=record_id,
            request_data=request_data,
            response_data=sync_result,
        )
        return sync_result

    async def _record_linkage(
        self,
        document: BIADocument,
        action: str,
        user_id: str | None,
        comments: str | None,
        **fields: Any,
    ) -> str | None:
        """Apply the linkage fields and audit them; returns the audit warning, if any."""
        old_values = _jsonable({name: getattr(document, name) for name in fields})
        await self.repository.update(document.id, **fields)
        return await self.audit.append(
            document.id,
            action,
            user_id=user_id,
            old_values=old_values,
            new_values=_jsonable(fields),
            comments=comments,
        )
