"""Section builders for BIA documents.

Each builder is a pure function of the collected source outcomes, the rule
tables and the request parameters. Absent source data is replaced by
literal placeholders so every field is always present.

Multi-source sections take the minimum confidence of the sources that
actually contributed; with no contributing source the section falls back
to its fixed default score.
"""

import calendar
import copy
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from bia_service.documents.models import FunctionType
from bia_service.documents.rules import (
    CONTINUITY_STRATEGIES,
    IMPACT_TIMELINE,
    RECOVERY_TIMELINE,
    SECURITY_CONSIDERATIONS,
    TEST_INTERVAL_MONTHS,
    RuleTables,
)
from bia_service.sources.base import SOURCE_DISPLAY_NAMES, SourceName, SourceOutcome
from bia_service.sources.collector import OutcomeMap

# Default section scores when no contributing source was fulfilled
PERSONNEL_DEFAULT_CONFIDENCE = 0.5
BUSINESS_IMPACT_DEFAULT_CONFIDENCE = 0.6
TECHNOLOGY_DEFAULT_CONFIDENCE = 0.7
RECOVERY_DEFAULT_CONFIDENCE = 0.7

# Rule-derived sections have fixed scores
RISK_COMPLIANCE_CONFIDENCE = 0.8
ISO_22301_CONFIDENCE = 0.85

KNOWN_REGION_CONFIDENCE = 0.75
UNKNOWN_REGION_CONFIDENCE = 0.5


@dataclass(frozen=True)
class SectionParams:
    """Request values the builders need beyond the outcomes."""

    function_type: FunctionType | str
    generated_at: datetime
    # Substitute prediction used when the predictive outcome was rejected
    prediction: Mapping[str, Any] | None = None


Section = dict[str, Any]
SectionBuilder = Callable[[OutcomeMap, RuleTables, SectionParams], Section]


def _outcome(outcomes: OutcomeMap, name: SourceName) -> SourceOutcome:
    # A missing key is treated like a rejected source
    return outcomes.get(name) or SourceOutcome.rejected_with(name, "not collected")


def _value(outcome: SourceOutcome, key: str, default: Any) -> Any:
    """Copy of a payload field, or the default when absent."""
    return copy.deepcopy(outcome.get(key, default))


def _lookup(data: Mapping[str, Any] | None, *keys: str, default: Any) -> Any:
    """Walk nested dicts; any missing or falsy step yields the default."""
    value: Any = data
    for key in keys:
        if not isinstance(value, Mapping):
            return default
        value = value.get(key)
    return copy.deepcopy(value) if value else default


def _nested(outcome: SourceOutcome, *keys: str, default: Any) -> Any:
    return _lookup(outcome.payload if outcome.fulfilled else None, *keys, default=default)


def _prediction(outcomes: OutcomeMap, params: SectionParams) -> Mapping[str, Any] | None:
    """The engine's prediction, or the substitute carried in params."""
    predictive = _outcome(outcomes, SourceName.PREDICTIVE)
    if predictive.fulfilled:
        return predictive.payload
    return params.prediction


def _confidence(outcomes: list[SourceOutcome], default: float) -> tuple[float, list[str]]:
    """Weakest-link score over fulfilled sources, plus their display names.

    Returns:
        (score, contributing source names); (default, []) when none contributed
    """
    contributing = [o for o in outcomes if o.fulfilled]
    if not contributing:
        return default, []
    score = min(o.confidence for o in contributing)
    return score, [SOURCE_DISPLAY_NAMES[o.source] for o in contributing]


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def build_personnel_section(outcomes: OutcomeMap, rules: RuleTables, params: SectionParams) -> Section:
    """Team, key personnel and escalation from the HR directory and escalation service."""
    hr = _outcome(outcomes, SourceName.PERSONNEL)
    escalation = _outcome(outcomes, SourceName.ESCALATION)
    score, sources = _confidence([hr, escalation], PERSONNEL_DEFAULT_CONFIDENCE)

    return {
        "team_size": _value(hr, "team_size", "Unknown"),
        "key_personnel": _value(hr, "key_personnel", [
            {"name": "Tech Lead (TBD)", "role": "Technical Leadership", "backup": "Senior Engineer"},
            {"name": "Product Manager (TBD)", "role": "Product Strategy", "backup": "Associate PM"},
            {"name": "Operations Manager (TBD)", "role": "Operations", "backup": "Senior Ops"},
        ]),
        "escalation_policy": _value(escalation, "escalation_policy", "Standard escalation path"),
        "on_call_schedule": _value(escalation, "on_call_schedule", "24/7 rotation"),
        "manager_chain": _value(hr, "manager_chain", ["Team Lead", "Manager", "Director", "VP"]),
        "business_hours": _value(hr, "business_hours", "24/7 operations"),
        "confidence_score": score,
        "data_sources": sources,
        "auto_populated": True,
    }


def build_business_impact_section(
    outcomes: OutcomeMap, rules: RuleTables, params: SectionParams
) -> Section:
    """Revenue and customer impact from financial metrics and predictions."""
    financial = _outcome(outcomes, SourceName.FINANCIAL)
    predictive = _outcome(outcomes, SourceName.PREDICTIVE)
    score, sources = _confidence([financial, predictive], BUSINESS_IMPACT_DEFAULT_CONFIDENCE)
    prediction = _prediction(outcomes, params)

    return {
        "daily_revenue_impact": _value(financial, "daily_revenue_impact", "TBD"),
        "monthly_revenue_impact": _value(financial, "monthly_revenue_impact", "TBD"),
        "active_customers": _value(financial, "active_customers", "TBD"),
        "transaction_volume": _value(
            financial, "transaction_volume", {"daily": "TBD", "peak_hourly": "TBD"}
        ),
        "customer_segments": _value(
            financial, "customer_segments", {"enterprise": "TBD", "smb": "TBD", "consumer": "TBD"}
        ),
        "impact_timeline": dict(IMPACT_TIMELINE),
        "predictive_impact": {
            "twelve_month_forecast": _lookup(
                prediction, "performance_predictions", "availability_forecast", default="TBD"
            ),
            "risk_level": _lookup(prediction, "risk_assessment", "overall_risk", default="Medium"),
            "improvement_potential": _lookup(
                prediction, "rto_analysis", "improvement_potential", default="TBD"
            ),
        },
        "confidence_score": score,
        "data_sources": sources,
        "auto_populated": True,
    }


def build_technology_section(outcomes: OutcomeMap, rules: RuleTables, params: SectionParams) -> Section:
    registry = _outcome(outcomes, SourceName.REGISTRY)
    score, sources = _confidence([registry], TECHNOLOGY_DEFAULT_CONFIDENCE)

    return {
        "core_technologies": _value(registry, "technology_stack", ["Unknown"]),
        "service_dependencies": _value(registry, "dependencies", ["Unknown"]),
        "reliability_tier": _value(registry, "reliability_tier", "Unknown"),
        "deployment_info": _value(
            registry,
            "deployment_info",
            {"regions": ["Unknown"], "replicas": "Unknown", "auto_scaling": "Unknown"},
        ),
        "documentation": {
            "runbook_url": _value(registry, "runbook_url", "TBD"),
            "documentation_url": _value(registry, "documentation_url", "TBD"),
            "slack_channel": _value(registry, "slack_channel", "TBD"),
        },
        "confidence_score": score,
        "data_sources": sources,
        "auto_populated": True,
    }


def build_recovery_section(outcomes: OutcomeMap, rules: RuleTables, params: SectionParams) -> Section:
    """RTO/RPO targets and scenarios from predictions and monitoring."""
    predictive = _outcome(outcomes, SourceName.PREDICTIVE)
    monitoring = _outcome(outcomes, SourceName.MONITORING)
    score, sources = _confidence([predictive, monitoring], RECOVERY_DEFAULT_CONFIDENCE)
    prediction = _prediction(outcomes, params)

    return {
        "rto": {
            "current": _lookup(prediction, "rto_analysis", "current_estimate", default="4 hours"),
            "target": _lookup(prediction, "rto_analysis", "twelve_month_forecast", default="2 hours"),
            "confidence": _lookup(prediction, "rto_analysis", "confidence_score", default=0.7),
        },
        "rpo": {
            "current": _lookup(prediction, "rpo_analysis", "current_estimate", default="1 hour"),
            "target": _lookup(prediction, "rpo_analysis", "twelve_month_forecast", default="30 minutes"),
            "confidence": _lookup(prediction, "rpo_analysis", "confidence_score", default=0.7),
        },
        "current_availability": _value(monitoring, "current_availability", "99.5%"),
        "sla_target": _value(monitoring, "sla_target", "99.9%"),
        "mttr": _nested(monitoring, "performance_metrics", "avg_response_time", default="TBD"),
        "recovery_timeline": dict(RECOVERY_TIMELINE),
        "scenarios": _lookup(prediction, "scenarios", default={
            "best_case": {"rto": "TBD", "rpo": "TBD", "probability": "25%"},
            "most_likely": {"rto": "TBD", "rpo": "TBD", "probability": "50%"},
            "worst_case": {"rto": "TBD", "rpo": "TBD", "probability": "25%"},
        }),
        "confidence_score": score,
        "data_sources": sources,
        "auto_populated": True,
    }


def build_risk_compliance_section(
    outcomes: OutcomeMap, rules: RuleTables, params: SectionParams
) -> Section:
    """Compliance requirements and data classification from the rule tables."""
    rule = rules.for_function(params.function_type)

    return {
        "compliance_requirements": list(rule.compliance_requirements),
        "data_classification": rule.data_classification,
        "regulatory_impact": rule.regulatory_impact,
        "security_considerations": list(SECURITY_CONSIDERATIONS),
        "confidence_score": RISK_COMPLIANCE_CONFIDENCE,
        "data_sources": ["Compliance Rules", "Security Policies"],
        "auto_populated": True,
    }


def build_iso22301_section(outcomes: OutcomeMap, rules: RuleTables, params: SectionParams) -> Section:
    """ISO 22301 classification from the rule tables.

    The risk assessment comes from the prediction (the engine's, or the
    substitute in params). The next test date is derived from the
    generation time so repeated calls with the same inputs are identical.
    """
    rule = rules.for_function(params.function_type)
    predictive = _outcome(outcomes, SourceName.PREDICTIVE)

    sources = ["ISO 22301 Framework", "BCM Policies"]
    risk_assessment = _lookup(_prediction(outcomes, params), "risk_assessment", default=None)
    if risk_assessment is None:
        risk_assessment = {
            "overall_risk": "Medium",
            "risk_factors": ["Standard operational risks"],
            "mitigation_recommendations": ["Standard mitigation strategies"],
        }
    elif predictive.fulfilled:
        sources.append(SOURCE_DISPLAY_NAMES[SourceName.PREDICTIVE])

    next_test = _add_months(params.generated_at.date(), TEST_INTERVAL_MONTHS)

    return {
        "business_function_classification": rule.bcm_classification,
        "mtpd": rule.mtpd,
        "mbco": rule.mbco,
        "resource_requirements": rule.resource_requirements,
        "continuity_strategies": list(CONTINUITY_STRATEGIES),
        "testing_requirements": {
            "frequency": "Quarterly",
            "scope": "Full system recovery",
            "success_criteria": "RTO/RPO targets met",
            "next_test_date": next_test.strftime("%Y-%m-%d"),
        },
        "risk_assessment": risk_assessment,
        "confidence_score": ISO_22301_CONFIDENCE,
        "data_sources": sources,
        "auto_populated": True,
    }


# Document key -> builder, in document order
SECTION_BUILDERS: dict[str, SectionBuilder] = {
    "personnel_information": build_personnel_section,
    "business_impact": build_business_impact_section,
    "technology_dependencies": build_technology_section,
    "recovery_requirements": build_recovery_section,
    "risk_compliance": build_risk_compliance_section,
    "iso_22301_compliance": build_iso22301_section,
}


def build_sections(outcomes: OutcomeMap, rules: RuleTables, params: SectionParams) -> dict[str, Section]:
    """Build all six sections."""
    return {key: builder(outcomes, rules, params) for key, builder in SECTION_BUILDERS.items()}


def build_regional_overlay(region: str, rules: RuleTables) -> Section:
    """Overlay for one region; unknown codes get TBD values and a lower score."""
    rule = rules.for_region(region)
    known = rules.is_known_region(region)

    return {
        "region": region,
        "legal_entity": rule.legal_entity,
        "regulatory_framework": rule.regulatory_framework,
        "data_residency": rule.data_residency,
        "local_requirements": list(rule.local_requirements),
        "regional_rto": rule.regional_rto,
        "regional_rpo": rule.regional_rpo,
        "confidence_score": KNOWN_REGION_CONFIDENCE if known else UNKNOWN_REGION_CONFIDENCE,
        "auto_populated": True,
    }


def build_regional_overlays(regions: list[str], rules: RuleTables) -> list[Section]:
    return [build_regional_overlay(region, rules) for region in regions]


def build_data_source_summary(outcomes: OutcomeMap) -> list[dict[str, Any]]:
    """Connected sources in summary order with their confidence and freshness."""
    summary = []
    for name in SourceName:
        outcome = _outcome(outcomes, name)
        if not outcome.fulfilled:
            continue
        summary.append({
            "name": SOURCE_DISPLAY_NAMES[name],
            "status": "connected",
            "confidence": outcome.confidence,
            "last_updated": outcome.last_updated,
        })
    return summary
