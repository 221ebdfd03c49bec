"""BIA service exceptions.

Source and predictive-engine failures are recovered inside the generation
pipeline; persistence, validation and transition errors reach the caller.
"""


class BIAError(Exception):
    """Base exception for BIA operations."""

    pass


class SourceUnavailableError(BIAError):
    """A data source failed, timed out or returned an unusable payload."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"[{source}] {reason}")


class PredictiveEngineUnavailableError(SourceUnavailableError):
    """Predictive engine missing, exited non-zero, timed out or returned bad output."""

    def __init__(self, reason: str):
        super().__init__("predictive", reason)


class PersistenceError(BIAError):
    """The document store rejected or failed an operation."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)


class DocumentNotFoundError(BIAError):
    """No document exists with the requested id."""

    def __init__(self, doc_id: str):
        self.doc_id = doc_id
        super().__init__(f"BIA document {doc_id} not found")


class InvalidTransitionError(BIAError):
    """Requested status change is not in the transition table."""

    def __init__(self, doc_id: str, current: str, target: str):
        self.doc_id = doc_id
        self.current = current
        self.target = target
        super().__init__(
            f"BIA document {doc_id} cannot move from '{current}' to '{target}'"
        )


class ValidationError(BIAError):
    """Malformed request parameters, raised before any source is contacted."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class RiskPlatformError(BIAError):
    """A check, push or sync against the risk-management platform failed."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Risk platform {operation} failed: {reason}")
