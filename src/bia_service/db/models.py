"""SQLAlchemy models for BIA documents.

- BIADocument: the assembled document; sections are stored as JSON columns
- AuditEntry: append-only audit trail, rows are immutable once flushed
- FusionIntegrationLog: every check/push/sync against the risk platform
"""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    event,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


# Document key -> JSON column
SECTION_COLUMNS = {
    "personnel_information": "personnel_data",
    "business_impact": "business_impact_data",
    "technology_dependencies": "technology_data",
    "recovery_requirements": "recovery_data",
    "risk_compliance": "risk_compliance_data",
    "iso_22301_compliance": "iso_22301_data",
}


class BIADocument(Base):
    """A generated Business Impact Analysis document."""

    __tablename__ = "bia_documents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    function_name: Mapped[str] = mapped_column(String(255), index=True)
    function_type: Mapped[str] = mapped_column(String(50))
    # Types: product, platform, support, infrastructure, compliance
    version: Mapped[str] = mapped_column(String(20), default="1.0")

    # Ownership
    dri_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    dri_team: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Lifecycle
    status: Mapped[str] = mapped_column(String(50), default="draft", index=True)
    # Statuses: draft, pending_approval, approved, rejected, archived
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approval_comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Auto-populated sections
    personnel_data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    business_impact_data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    technology_data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    recovery_data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    risk_compliance_data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    iso_22301_data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    regional_overlays: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    predictive_analysis: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    # Source tracking
    data_sources: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    confidence_assessment: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    # Fusion linkage (set only after a successful push)
    fusion_record_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    fusion_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    fusion_last_sync: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index(
            "uq_bia_function_version_active",
            "function_name",
            "version",
            unique=True,
            sqlite_where=text("status != 'archived'"),
            postgresql_where=text("status != 'archived'"),
        ),
    )

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "BIADocument":
        """Build a row from an assembled document dict."""
        generated_at = document.get("generated_at")
        if isinstance(generated_at, str):
            generated_at = datetime.fromisoformat(generated_at)

        row = cls(
            id=document["id"],
            function_name=document["function_name"],
            function_type=document["function_type"],
            version=document.get("version", "1.0"),
            dri_name=document.get("dri_name"),
            dri_team=document.get("dri_team"),
            status=document.get("status", "draft"),
            regional_overlays=document.get("regional_overlays", []),
            predictive_analysis=document.get("predictive_analysis", {}),
            data_sources=document.get("data_sources", []),
            confidence_assessment=document.get("confidence_assessment", {}),
        )
        if generated_at is not None:
            row.created_at = generated_at
        for key, column in SECTION_COLUMNS.items():
            setattr(row, column, document.get(key, {}))
        return row

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the document shape returned by the API."""
        return {
            "id": self.id,
            "function_name": self.function_name,
            "function_type": self.function_type,
            "version": self.version,
            "dri_name": self.dri_name,
            "dri_team": self.dri_team,
            "status": self.status,
            "generated_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "approved_at": _iso(self.approved_at),
            "approved_by": self.approved_by,
            "approval_comments": self.approval_comments,
            "personnel_information": self.personnel_data,
            "business_impact": self.business_impact_data,
            "technology_dependencies": self.technology_data,
            "recovery_requirements": self.recovery_data,
            "risk_compliance": self.risk_compliance_data,
            "iso_22301_compliance": self.iso_22301_data,
            "regional_overlays": self.regional_overlays,
            "predictive_analysis": self.predictive_analysis,
            "data_sources": self.data_sources,
            "confidence_assessment": self.confidence_assessment,
            "fusion_record_id": self.fusion_record_id,
            "fusion_status": self.fusion_status,
            "fusion_last_sync": _iso(self.fusion_last_sync),
        }

    def __repr__(self) -> str:
        return (
            f"<BIADocument(id={self.id}, function={self.function_name}, "
            f"version={self.version}, status={self.status})>"
        )


class AuditEntry(Base):
    """Append-only record of status transitions and approval/sync mutations."""

    __tablename__ = "bia_audit_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    bia_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("bia_documents.id", ondelete="CASCADE"), index=True
    )
    action: Mapped[str] = mapped_column(String(100))
    user_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    old_values: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    new_values: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "bia_id": self.bia_id,
            "action": self.action,
            "user_id": self.user_id,
            "old_values": self.old_values,
            "new_values": self.new_values,
            "comments": self.comments,
            "timestamp": _iso(self.timestamp),
        }

    def __repr__(self) -> str:
        return f"<AuditEntry(bia_id={self.bia_id}, action={self.action})>"


class FusionIntegrationLog(Base):
    """One row per check/push/sync attempt against the risk platform."""

    __tablename__ = "fusion_integration_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    bia_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    action: Mapped[str] = mapped_column(String(50))
    # Actions: check, push, pull, sync
    fusion_record_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    success: Mapped[bool] = mapped_column(Boolean, default=True)
    request_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    response_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    def __repr__(self) -> str:
        return f"<FusionIntegrationLog(bia_id={self.bia_id}, action={self.action})>"


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@event.listens_for(AuditEntry, "before_update")
@event.listens_for(AuditEntry, "before_delete")
def _refuse_audit_mutation(mapper, connection, target) -> None:
    """Audit rows are write-once."""
    raise ValueError(f"Audit entry {target.id} is immutable")
