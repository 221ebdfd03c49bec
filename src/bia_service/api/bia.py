"""BIA document endpoints."""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from bia_service.api.deps import get_assembler, get_repository, get_workflow
from bia_service.api.schemas import (
    ApproveRequest,
    AuditLogResponse,
    BIAListResponse,
    GenerateBIARequest,
    GenerateBIAResponse,
    TransitionRequest,
    TransitionResponse,
)
from bia_service.config import settings
from bia_service.documents import (
    ApprovalWorkflow,
    BIAAssembler,
    BIARepository,
    BIARequest,
    BIAStatus,
    FunctionType,
    TransitionResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/bia", tags=["bia"])


# Simple in-memory rate limiter
_request_timestamps: dict[str, list[float]] = {}


def _check_rate_limit(client_ip: str) -> None:
    now = time.time()
    window = settings.RATE_LIMIT_WINDOW_SECONDS

    # Keep only timestamps within the window
    recent = [t for t in _request_timestamps.get(client_ip, []) if now - t < window]

    if len(recent) >= settings.RATE_LIMIT_MAX_REQUESTS:
        _request_timestamps[client_ip] = recent
        logger.warning(f"Rate limit exceeded for IP: {client_ip}")
        raise HTTPException(status_code=429, detail="Too many requests")

    recent.append(now)
    _request_timestamps[client_ip] = recent


def _transition_response(result: TransitionResult) -> TransitionResponse:
    return TransitionResponse(
        bia_id=result.doc_id,
        previous_status=result.previous_status,
        status=result.status,
        push_result=result.push_result,
        warnings=result.warnings,
    )


@router.post("/generate", response_model=GenerateBIAResponse)
async def generate_bia(
    request: GenerateBIARequest,
    raw_request: Request,
    assembler: BIAAssembler = Depends(get_assembler),
) -> GenerateBIAResponse:
    """Generate a BIA document from all data sources.

    Source failures degrade the document (placeholders, lower confidence)
    but never fail the request; only validation and storage errors do.
    """
    client_ip = raw_request.client.host if raw_request.client else "unknown"
    _check_rate_limit(client_ip)

    bia_request = BIARequest(
        function_name=request.function_name,
        function_type=request.function_type,
        dri_name=request.dri_name,
        dri_team=request.dri_team,
        regions=request.regions,
    )

    result = await assembler.generate(bia_request, created_by=request.created_by)

    return GenerateBIAResponse(
        bia=result.document,
        fusion_status=result.fusion_status,
        data_source_status=result.data_source_status,
        warnings=result.warnings,
        generated_at=result.document["generated_at"],
    )


@router.get("", response_model=BIAListResponse)
async def list_bias(
    status: BIAStatus | None = None,
    function_type: FunctionType | None = None,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    repository: BIARepository = Depends(get_repository),
) -> BIAListResponse:
    """List BIA documents, newest first."""
    documents = await repository.list_documents(
        status=status, function_type=function_type, limit=limit, offset=offset
    )
    return BIAListResponse(
        items=[d.to_dict() for d in documents],
        count=len(documents),
        limit=limit,
        offset=offset,
    )


@router.get("/{bia_id}")
async def get_bia(bia_id: str, repository: BIARepository = Depends(get_repository)) -> dict:
    document = await repository.require(bia_id)
    return document.to_dict()


@router.get("/{bia_id}/audit", response_model=AuditLogResponse)
async def get_audit_log(
    bia_id: str,
    repository: BIARepository = Depends(get_repository),
) -> AuditLogResponse:
    """Audit trail of a document, oldest first."""
    await repository.require(bia_id)
    entries = await repository.audit_entries(bia_id)
    return AuditLogResponse(bia_id=bia_id, entries=[e.to_dict() for e in entries])


@router.post("/{bia_id}/submit", response_model=TransitionResponse)
async def submit_bia(
    bia_id: str,
    body: TransitionRequest | None = None,
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> TransitionResponse:
    body = body or TransitionRequest()
    result = await workflow.submit(bia_id, user_id=body.user_id, comments=body.comments)
    return _transition_response(result)


@router.post("/{bia_id}/approve", response_model=TransitionResponse)
async def approve_bia(
    bia_id: str,
    body: ApproveRequest,
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> TransitionResponse:
    """Approve a pending document and push it to the risk platform.

    A failed push is reported in `warnings`; the approval stands.
    """
    result = await workflow.approve(bia_id, approver_id=body.approver_id, comments=body.comments)
    return _transition_response(result)


@router.post("/{bia_id}/reject", response_model=TransitionResponse)
async def reject_bia(
    bia_id: str,
    body: TransitionRequest | None = None,
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> TransitionResponse:
    body = body or TransitionRequest()
    result = await workflow.reject(bia_id, reviewer_id=body.user_id, comments=body.comments)
    return _transition_response(result)


@router.post("/{bia_id}/redraft", response_model=TransitionResponse)
async def redraft_bia(
    bia_id: str,
    body: TransitionRequest | None = None,
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> TransitionResponse:
    body = body or TransitionRequest()
    result = await workflow.redraft(bia_id, user_id=body.user_id, comments=body.comments)
    return _transition_response(result)


@router.post("/{bia_id}/archive", response_model=TransitionResponse)
async def archive_bia(
    bia_id: str,
    body: TransitionRequest | None = None,
    workflow: ApprovalWorkflow = Depends(get_workflow),
) -> TransitionResponse:
    body = body or TransitionRequest()
    result = await workflow.archive(bia_id, user_id=body.user_id, comments=body.comments)
    return _transition_response(result)
