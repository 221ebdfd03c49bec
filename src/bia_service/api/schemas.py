"""API request and response schemas."""

from typing import Any

from pydantic import BaseModel, Field


class GenerateBIARequest(BaseModel):
    """BIA generation request schema."""

    function_name: str = Field(..., description="Business function name", min_length=1)
    function_type: str = Field(
        ..., description="product, platform, support, infrastructure or compliance"
    )
    dri_name: str | None = Field(default=None, description="Directly responsible individual")
    dri_team: str | None = Field(
        default=None, description="DRI team; used to look up personnel data"
    )
    regions: list[str] = Field(
        default_factory=list, description="Region codes for regional overlays (na, eu, apac)"
    )
    created_by: str | None = Field(default=None, description="User requesting the document")

    model_config = {"json_schema_extra": {
        "example": {
            "function_name": "PaymentsCore",
            "function_type": "product",
            "dri_name": "Jane Doe",
            "dri_team": "payments-platform",
            "regions": ["na", "eu"],
        }
    }}


class GenerateBIAResponse(BaseModel):
    """BIA generation response schema."""

    success: bool = Field(default=True)
    bia: dict[str, Any] = Field(..., description="The generated document")
    fusion_status: dict[str, Any] | None = Field(
        default=None, description="Existing-record check against the risk platform"
    )
    data_source_status: dict[str, str] = Field(
        default_factory=dict, description="Per-source fulfilled/rejected status"
    )
    warnings: list[str] = Field(default_factory=list, description="Degraded side effects")
    generated_at: str = Field(..., description="Generation timestamp")

    model_config = {"json_schema_extra": {
        "example": {
            "success": True,
            "bia": {"id": "5d0c...", "function_name": "PaymentsCore", "status": "draft"},
            "fusion_status": {"exists": False, "record_id": None, "recommended_action": "create"},
            "data_source_status": {"registry": "fulfilled", "predictive": "rejected"},
            "warnings": [],
            "generated_at": "2025-01-15T10:30:00",
        }
    }}


class BIAListResponse(BaseModel):
    """Paginated document list."""

    items: list[dict[str, Any]] = Field(default_factory=list)
    count: int = Field(..., description="Number of documents returned")
    limit: int
    offset: int


class TransitionRequest(BaseModel):
    """Body for submit, reject, redraft and archive."""

    user_id: str | None = Field(default=None, description="User performing the action")
    comments: str | None = Field(default=None, description="Comments recorded in the audit log")


class ApproveRequest(BaseModel):
    """Body for approve."""

    approver_id: str = Field(..., description="Approver identity", min_length=1)
    comments: str | None = Field(default=None, description="Approval comments")

    model_config = {"json_schema_extra": {
        "example": {"approver_id": "bcm-lead", "comments": "Reviewed with the DRI"}
    }}


class TransitionResponse(BaseModel):
    """Result of a status transition."""

    success: bool = Field(default=True)
    bia_id: str
    previous_status: str
    status: str
    push_result: dict[str, Any] | None = Field(
        default=None, description="Risk platform push result after approval"
    )
    warnings: list[str] = Field(default_factory=list)


class AuditLogResponse(BaseModel):
    bia_id: str
    entries: list[dict[str, Any]] = Field(default_factory=list)


class FusionCheckResponse(BaseModel):
    success: bool = Field(default=True)
    function_name: str
    fusion_record: dict[str, Any]
    timestamp: str


class FusionPushRequest(BaseModel):
    """Push an approved document to the risk platform."""

    bia_id: str = Field(..., description="Document ID", min_length=1)
    comments: str | None = Field(default=None)
    user_id: str | None = Field(default=None)


class FusionPushResponse(BaseModel):
    success: bool = Field(default=True)
    bia_id: str
    fusion_result: dict[str, Any]
    pushed_at: str


class FusionSyncRequest(BaseModel):
    """Sync a pushed document with its risk platform record."""

    bia_id: str = Field(..., description="Document ID", min_length=1)
    direction: str = Field(default="bidirectional", description="push, pull or bidirectional")
    user_id: str | None = Field(default=None)

    model_config = {"json_schema_extra": {
        "example": {"bia_id": "5d0c...", "direction": "bidirectional"}
    }}


class FusionSyncResponse(BaseModel):
    success: bool = Field(default=True)
    sync_result: dict[str, Any]
    timestamp: str
