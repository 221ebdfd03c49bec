"""Data models and enums for BIA documents."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from bia_service.exceptions import ValidationError


class FunctionType(str, Enum):
    """Business function categories; keys of the rule tables."""

    PRODUCT = "product"
    PLATFORM = "platform"
    SUPPORT = "support"
    INFRASTRUCTURE = "infrastructure"
    COMPLIANCE = "compliance"


class BIAStatus(str, Enum):
    """Document lifecycle status."""

    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    ARCHIVED = "archived"


class ConfidenceLevel(str, Enum):
    """Qualitative band for the overall confidence score."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class SyncDirection(str, Enum):
    """Direction of a risk-platform sync."""

    PUSH = "push"
    PULL = "pull"
    BIDIRECTIONAL = "bidirectional"


# Permitted status transitions; anything else is an InvalidTransitionError.
# rejected -> draft is an explicit caller action (redraft), never automatic.
ALLOWED_TRANSITIONS: dict[BIAStatus, frozenset[BIAStatus]] = {
    BIAStatus.DRAFT: frozenset({BIAStatus.PENDING_APPROVAL}),
    BIAStatus.PENDING_APPROVAL: frozenset({BIAStatus.APPROVED, BIAStatus.REJECTED}),
    BIAStatus.APPROVED: frozenset({BIAStatus.ARCHIVED}),
    BIAStatus.REJECTED: frozenset({BIAStatus.DRAFT, BIAStatus.ARCHIVED}),
    BIAStatus.ARCHIVED: frozenset(),
}


def can_transition(current: BIAStatus | str, target: BIAStatus | str) -> bool:
    """Check if a status transition is in the transition table.

    Args:
        current: Current document status
        target: Requested status

    Returns:
        True if the transition is permitted
    """
    try:
        current = BIAStatus(current)
        target = BIAStatus(target)
    except ValueError:
        return False

    return target in ALLOWED_TRANSITIONS[current]


@dataclass
class BIARequest:
    """Parameters for generating one BIA document.

    Validated on construction so nothing downstream contacts a source
    with a malformed request.
    """

    function_name: str
    function_type: FunctionType | str
    dri_name: str | None = None
    dri_team: str | None = None
    regions: list[str] = field(default_factory=list)

    def __post_init__(self):
        """Validate identifiers and convert string values to enums."""
        if not self.function_name or not self.function_name.strip():
            raise ValidationError("Function name is required", field="function_name")
        self.function_name = self.function_name.strip()

        if isinstance(self.function_type, str):
            try:
                self.function_type = FunctionType(self.function_type)
            except ValueError:
                allowed = ", ".join(t.value for t in FunctionType)
                raise ValidationError(
                    f"Invalid function type '{self.function_type}' (expected one of: {allowed})",
                    field="function_type",
                ) from None

        self.regions = [r.strip().lower() for r in self.regions if r and r.strip()]

    @property
    def team_identifier(self) -> str:
        """Identifier used for the personnel source."""
        return self.dri_team or self.function_name


@dataclass
class ApprovalDecision:
    """A decision on a document pending approval."""

    doc_id: str
    approved: bool
    approver_id: str
    comments: str | None = None
    decided_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class TransitionResult:
    """Outcome of a workflow operation.

    `warnings` collects degraded side effects (audit write failed, push
    failed) that did not block the status change.
    """

    doc_id: str
    previous_status: str
    status: str
    push_result: dict | None = None
    warnings: list[str] = field(default_factory=list)
