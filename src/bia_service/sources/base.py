"""Source adapter contract and per-source outcomes."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from bia_service.exceptions import SourceUnavailableError


class SourceName(str, Enum):
    """The six independent data sources, in summary order."""

    REGISTRY = "registry"
    ESCALATION = "escalation"
    PERSONNEL = "personnel"
    FINANCIAL = "financial"
    MONITORING = "monitoring"
    PREDICTIVE = "predictive"


SOURCE_DISPLAY_NAMES: dict[SourceName, str] = {
    SourceName.REGISTRY: "Registry (CMDB)",
    SourceName.ESCALATION: "Escalation Service",
    SourceName.PERSONNEL: "HR Directory",
    SourceName.FINANCIAL: "Financial Metrics",
    SourceName.MONITORING: "Monitoring",
    SourceName.PREDICTIVE: "Predictive Analytics",
}


def utcnow_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def clamp_confidence(value: Any) -> float:
    """Coerce a reported confidence score into [0, 1]."""
    score = float(value)
    return min(1.0, max(0.0, score))


@dataclass(frozen=True)
class SourceOutcome:
    """Settled result of one source call: a payload or a rejection reason."""

    source: SourceName
    payload: dict[str, Any] | None = None
    error: str | None = None

    @classmethod
    def fulfilled_with(cls, source: SourceName, payload: dict[str, Any]) -> "SourceOutcome":
        return cls(source=source, payload=payload)

    @classmethod
    def rejected_with(cls, source: SourceName, error: BaseException | str) -> "SourceOutcome":
        return cls(source=source, error=str(error) or type(error).__name__)

    @property
    def fulfilled(self) -> bool:
        return self.payload is not None

    @property
    def status(self) -> str:
        return "fulfilled" if self.fulfilled else "rejected"

    @property
    def confidence(self) -> float | None:
        """Confidence reported by the source, None when rejected."""
        if not self.fulfilled:
            return None
        key = "confidence_overall" if self.source == SourceName.PREDICTIVE else "confidence_score"
        return clamp_confidence(self.payload[key])

    @property
    def last_updated(self) -> str | None:
        if not self.fulfilled:
            return None
        key = "generated_at" if self.source == SourceName.PREDICTIVE else "last_updated"
        return self.payload.get(key)

    def get(self, key: str, default: Any = None) -> Any:
        """Field from the payload, or `default` when rejected or missing.

        Falsy values (None, "", [], {}) count as missing.
        """
        if not self.fulfilled:
            return default
        value = self.payload.get(key)
        return value if value else default


def validate_payload(source: SourceName, payload: Any) -> dict[str, Any]:
    """Check the fields every source payload must carry.

    Raises:
        SourceUnavailableError: payload is not a mapping or lacks
            confidence_score / last_updated
    """
    if not isinstance(payload, dict):
        raise SourceUnavailableError(source.value, "payload is not a JSON object")

    missing = [k for k in ("confidence_score", "last_updated") if k not in payload]
    if missing:
        raise SourceUnavailableError(
            source.value, f"payload missing required fields: {', '.join(missing)}"
        )

    try:
        payload["confidence_score"] = clamp_confidence(payload["confidence_score"])
    except (TypeError, ValueError):
        raise SourceUnavailableError(
            source.value, f"invalid confidence_score {payload['confidence_score']!r}"
        ) from None

    return payload


class SourceAdapter(ABC):
    """A data source that returns a structured payload or fails."""

    name: SourceName

    @abstractmethod
    async def fetch(self, identifier: str) -> dict[str, Any]:
        """Fetch the payload for a function or team identifier.

        Raises:
            SourceUnavailableError: on any failure
        """

    async def check_health(self) -> dict[str, Any]:
        """Probe the source; returns {status, response_time_ms, last_check}."""
        start = time.monotonic()
        await self._ping()
        return {
            "status": "healthy",
            "response_time_ms": int((time.monotonic() - start) * 1000),
            "last_check": utcnow_iso(),
        }

    async def _ping(self) -> None:
        """Reach the source; raise on failure."""
        return None

    @property
    def display_name(self) -> str:
        return SOURCE_DISPLAY_NAMES[self.name]
