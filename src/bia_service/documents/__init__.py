"""BIA document module.

This module provides functionality for:
- Pure section builders over collected source outcomes and rule tables
- Confidence aggregation
- Document assembly and persistence
- The approval workflow and risk-platform push/sync
"""

from bia_service.documents.approval import ApprovalWorkflow
from bia_service.documents.assembler import BIAAssembler, GenerationResult, assemble_document
from bia_service.documents.audit import AuditSink
from bia_service.documents.confidence import aggregate_confidence, assess_outcomes
from bia_service.documents.models import (
    ALLOWED_TRANSITIONS,
    ApprovalDecision,
    BIARequest,
    BIAStatus,
    ConfidenceLevel,
    FunctionType,
    SyncDirection,
    TransitionResult,
    can_transition,
)
from bia_service.documents.repository import BIARepository
from bia_service.documents.rules import DEFAULT_RULES, RuleTables
from bia_service.documents.sections import SECTION_BUILDERS, SectionParams, build_sections

__all__ = [
    # Assembly
    "BIAAssembler",
    "GenerationResult",
    "assemble_document",
    "SECTION_BUILDERS",
    "SectionParams",
    "build_sections",
    "aggregate_confidence",
    "assess_outcomes",
    "DEFAULT_RULES",
    "RuleTables",
    # Persistence
    "AuditSink",
    "BIARepository",
    # Workflow
    "ApprovalWorkflow",
    # Models
    "ALLOWED_TRANSITIONS",
    "ApprovalDecision",
    "BIARequest",
    "BIAStatus",
    "ConfidenceLevel",
    "FunctionType",
    "SyncDirection",
    "TransitionResult",
    "can_transition",
]
