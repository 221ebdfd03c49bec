"""BIA document generation.

Orchestrates collect -> build sections -> regional overlays -> aggregate
confidence -> stamp metadata -> store. Source failures degrade the
document but never fail it; only persistence errors reach the caller.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from bia_service.documents.audit import AuditSink
from bia_service.documents.confidence import assess_outcomes
from bia_service.documents.models import BIARequest, BIAStatus
from bia_service.documents.repository import BIARepository
from bia_service.documents.rules import DEFAULT_RULES, RuleTables
from bia_service.documents.sections import (
    SectionParams,
    build_data_source_summary,
    build_regional_overlays,
    build_sections,
)
from bia_service.exceptions import RiskPlatformError
from bia_service.sources.base import SourceName
from bia_service.sources.collector import OutcomeMap, SourceCollector
from bia_service.sources.predictive import fallback_prediction

if TYPE_CHECKING:
    from bia_service.fusion.client import RiskPlatformClient

logger = logging.getLogger(__name__)

INITIAL_VERSION = "1.0"


@dataclass
class GenerationResult:
    """A generated document plus what the caller needs to report on it."""

    document: dict[str, Any]
    outcomes: OutcomeMap
    fusion_status: dict[str, Any] | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def data_source_status(self) -> dict[str, str]:
        """Per-source fulfilled/rejected status."""
        return {name.value: outcome.status for name, outcome in self.outcomes.items()}


def assemble_document(
    request: BIARequest,
    outcomes: OutcomeMap,
    rules: RuleTables = DEFAULT_RULES,
    doc_id: str | None = None,
    generated_at: datetime | None = None,
) -> dict[str, Any]:
    """Build a complete document from collected outcomes.

    Pure apart from the generated id and timestamp, which can be injected.

    Args:
        request: Validated generation request
        outcomes: One outcome per source
        rules: Rule tables for the rule-derived sections
        doc_id: Document id (new UUID when omitted)
        generated_at: Generation time, naive UTC (now when omitted)

    Returns:
        The document dict with all six sections present
    """
    generated_at = generated_at or datetime.utcnow()

    # One prediction feeds every section; the slot itself stays rejected
    predictive = outcomes.get(SourceName.PREDICTIVE)
    if predictive is not None and predictive.fulfilled:
        predictive_analysis = dict(predictive.payload)
    else:
        predictive_analysis = fallback_prediction(generated_at.isoformat())

    params = SectionParams(
        function_type=request.function_type,
        generated_at=generated_at,
        prediction=predictive_analysis,
    )

    document: dict[str, Any] = {
        "id": doc_id or str(uuid.uuid4()),
        "function_name": request.function_name,
        "function_type": request.function_type.value,
        "dri_name": request.dri_name,
        "dri_team": request.dri_team,
        "generated_at": generated_at.isoformat(),
        "status": BIAStatus.DRAFT.value,
        "version": INITIAL_VERSION,
    }
    document.update(build_sections(outcomes, rules, params))
    document["regional_overlays"] = build_regional_overlays(request.regions, rules)
    document["predictive_analysis"] = predictive_analysis
    document["data_sources"] = build_data_source_summary(outcomes)
    document["confidence_assessment"] = assess_outcomes(outcomes)

    return document


class BIAAssembler:
    """Generates and stores BIA documents."""

    def __init__(
        self,
        collector: SourceCollector,
        repository: BIARepository,
        audit: AuditSink | None = None,
        risk_platform: "RiskPlatformClient | None" = None,
        rules: RuleTables = DEFAULT_RULES,
    ):
        """Initialize the assembler.

        Args:
            collector: Fan-out collector over the six sources
            repository: Document store
            audit: Audit sink for the creation entry (optional)
            risk_platform: Risk platform client for the existing-record check
            rules: Rule tables for the rule-derived sections
        """
        self.collector = collector
        self.repository = repository
        self.audit = audit
        self.risk_platform = risk_platform
        self.rules = rules

    async def generate(self, request: BIARequest, created_by: str | None = None) -> GenerationResult:
        """Generate, store and return a BIA document.

        Args:
            request: Validated generation request
            created_by: Actor recorded on the creation audit entry

        Returns:
            GenerationResult with the stored document

        Raises:
            PersistenceError: if the document could not be stored
        """
        start = time.monotonic()
        logger.info(f"Generating BIA for {request.function_name} ({request.function_type.value})")

        outcomes = await self.collector.collect(request.function_name, request.team_identifier)

        if not outcomes[SourceName.PREDICTIVE].fulfilled:
            logger.warning(
                f"Predictive engine unavailable for {request.function_name}, "
                f"using fallback predictions: {outcomes[SourceName.PREDICTIVE].error}"
            )

        document = assemble_document(request, outcomes, self.rules)
        await self.repository.store(document)

        result = GenerationResult(document=document, outcomes=outcomes)

        if self.audit is not None:
            warning = await self.audit.append(
                document["id"],
                "generated",
                user_id=created_by,
                new_values={
                    "status": document["status"],
                    "version": document["version"],
                    "overall_confidence": document["confidence_assessment"]["overall_confidence"],
                },
            )
            if warning:
                result.warnings.append(warning)

        result.fusion_status = await self._check_risk_platform(request.function_name, document["id"])

        assessment = document["confidence_assessment"]
        logger.info(
            f"Generated BIA {document['id']} for {request.function_name}: "
            f"confidence {assessment['overall_confidence']} ({assessment['confidence_level']}), "
            f"completeness {assessment['data_completeness']:.0f}%, "
            f"took {int((time.monotonic() - start) * 1000)}ms"
        )
        return result

    async def _check_risk_platform(self, function_name: str, doc_id: str) -> dict[str, Any] | None:
        """Existing-record check; a failure is reported, not raised."""
        if self.risk_platform is None:
            return None

        try:
            status = await self.risk_platform.check_existing(function_name)
        except RiskPlatformError as e:
            logger.warning(f"Risk platform check failed for {function_name}: {e}")
            status = {"error": str(e)}
            success = False
        else:
            success = True

        if self.audit is not None:
            await self.audit.log_integration(
                "check",
                bia_id=doc_id,
                fusion_record_id=status.get("record_id"),
                success=success,
                request_data={"function_name": function_name},
                response_data=status,
                error_message=status.get("error"),
            )
        return status
