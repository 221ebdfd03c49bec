"""Overall confidence assessment for a BIA document."""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from bia_service.documents.models import ConfidenceLevel
from bia_service.sources.base import SourceName
from bia_service.sources.collector import OutcomeMap

TOTAL_SOURCES = len(SourceName)

# Score used when nothing contributed
NO_DATA_CONFIDENCE = 0.5

HIGH_THRESHOLD = Decimal("0.8")
MEDIUM_THRESHOLD = Decimal("0.6")
RECOMMENDATION_THRESHOLD = Decimal("0.7")

RECOMMENDATIONS = (
    "Verify data source connections",
    "Update missing information",
    "Schedule data validation review",
)


def round_score(value: float | Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def confidence_level(score: Decimal) -> ConfidenceLevel:
    if score >= HIGH_THRESHOLD:
        return ConfidenceLevel.HIGH
    if score >= MEDIUM_THRESHOLD:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def aggregate_confidence(scores: Iterable[float | None], total: int = TOTAL_SOURCES) -> dict[str, Any]:
    """Combine per-slot confidence scores into the document assessment.

    Args:
        scores: One entry per source slot; None marks an absent slot, which
            lowers completeness but is left out of the mean
        total: Number of possible slots

    Returns:
        Dict with overall_confidence, data_completeness, confidence_level
        and recommendations
    """
    present = [Decimal(str(min(1.0, max(0.0, s)))) for s in scores if s is not None]

    if present:
        overall = round_score(sum(present) / len(present))
    else:
        overall = round_score(NO_DATA_CONFIDENCE)

    completeness = len(present) / total * 100 if total else 0.0

    return {
        "overall_confidence": float(overall),
        "data_completeness": completeness,
        "confidence_level": confidence_level(overall).value,
        "recommendations": list(RECOMMENDATIONS) if overall < RECOMMENDATION_THRESHOLD else [],
    }


def assess_outcomes(outcomes: OutcomeMap) -> dict[str, Any]:
    """Assessment over the six source slots of a collection run."""
    return aggregate_confidence(
        outcomes[name].confidence if name in outcomes else None for name in SourceName
    )
