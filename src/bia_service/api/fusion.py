"""Risk-management platform (Fusion) endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from bia_service.api.deps import get_audit_sink, get_risk_platform, get_workflow
from bia_service.api.schemas import (
    FusionCheckResponse,
    FusionPushRequest,
    FusionPushResponse,
    FusionSyncRequest,
    FusionSyncResponse,
)
from bia_service.documents import ApprovalWorkflow, AuditSink
from bia_service.exceptions import RiskPlatformError
from bia_service.fusion import RiskPlatformClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/fusion", tags=["fusion"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/check/{function_name}", response_model=FusionCheckResponse)
async def check_record(
    function_name: str,
    risk_platform: RiskPlatformClient = Depends(get_risk_platform),
    audit: AuditSink = Depends(get_audit_sink),
) -> FusionCheckResponse:
    """Check whether the risk platform already holds a record for a function."""
    try:
        record = await risk_platform.check_existing(function_name)
    except RiskPlatformError as e:
        await audit.log_integration(
            "check",
            success=False,
            request_data={"function_name": function_name},
            error_message=str(e),
        )
        raise

    await audit.log_integration(
        "check",
        fusion_record_id=record.get("record_id"),
        request_data={"function_name": function_name},
        response_data=record,
    )
    return FusionCheckResponse(function_name=function_name, fusion_record=record, timestamp=_now())


@router.post("/push", response_model=FusionPushResponse)
async def push_record(
    request: FusionPushRequest,
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> FusionPushResponse:
    """Push an approved document; a failure leaves the document unchanged."""
    result = await workflow.push(request.bia_id, comments=request.comments, user_id=request.user_id)
    return FusionPushResponse(bia_id=request.bia_id, fusion_result=result, pushed_at=_now())


@router.post("/sync", response_model=FusionSyncResponse)
async def sync_record(
    request: FusionSyncRequest,
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> FusionSyncResponse:
    """Sync a pushed document with its record (push, pull or bidirectional)."""
    result = await workflow.sync(request.bia_id, request.direction, user_id=request.user_id)
    return FusionSyncResponse(sync_result=result, timestamp=_now())
