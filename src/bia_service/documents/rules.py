"""Static business rule tables for rule-derived BIA sections.

Tables are read-only mappings built once at import. Builders receive a
RuleTables instance explicitly; lookups never raise and fall back to a
documented default row for unknown keys.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from bia_service.documents.models import FunctionType


@dataclass(frozen=True)
class FunctionRule:
    """Compliance and continuity parameters for one function type."""

    bcm_classification: str
    mtpd: str
    mbco: str
    resource_requirements: str
    compliance_requirements: tuple[str, ...]
    data_classification: str
    regulatory_impact: str


@dataclass(frozen=True)
class RegionRule:
    """Regulatory and recovery parameters for one region."""

    legal_entity: str
    regulatory_framework: str
    data_residency: str
    regional_rto: str
    regional_rpo: str
    local_requirements: tuple[str, ...] = (
        "Data localization",
        "Local incident reporting",
        "Regulatory notifications",
    )


FUNCTION_RULES: Mapping[str, FunctionRule] = MappingProxyType({
    FunctionType.PRODUCT.value: FunctionRule(
        bcm_classification="Critical - Customer Facing",
        mtpd="2 hours",
        mbco="80% capacity within MTPD",
        resource_requirements="Dedicated DR site, 24/7 support",
        compliance_requirements=("PCI-DSS", "SOX Controls", "Data Privacy"),
        data_classification="PII/Financial",
        regulatory_impact="High - Customer facing",
    ),
    FunctionType.PLATFORM.value: FunctionRule(
        bcm_classification="Important - Business Enabling",
        mtpd="4 hours",
        mbco="60% capacity within MTPD",
        resource_requirements="Hot standby, business hours support",
        compliance_requirements=("SOX Controls", "Data Privacy", "Security Standards"),
        data_classification="Internal/Confidential",
        regulatory_impact="Medium - Internal operations",
    ),
    FunctionType.SUPPORT.value: FunctionRule(
        bcm_classification="Supporting - Internal Operations",
        mtpd="24 hours",
        mbco="50% capacity within MTPD",
        resource_requirements="Workarounds, extended hours support",
        compliance_requirements=("Data Privacy", "Access Controls"),
        data_classification="Internal/Confidential",
        regulatory_impact="Medium - Internal operations",
    ),
    FunctionType.INFRASTRUCTURE.value: FunctionRule(
        bcm_classification="Critical - Foundation Service",
        mtpd="1 hour",
        mbco="95% capacity within MTPD",
        resource_requirements="Real-time replication, immediate response",
        compliance_requirements=("Security Standards", "Audit Logging", "Change Management"),
        data_classification="Internal/Confidential",
        regulatory_impact="Medium - Internal operations",
    ),
    FunctionType.COMPLIANCE.value: FunctionRule(
        bcm_classification="Important - Regulatory Required",
        mtpd="8 hours",
        mbco="70% capacity within MTPD",
        resource_requirements="Backup systems, priority restoration",
        compliance_requirements=("All Applicable Standards", "Regulatory Reporting", "Audit Trail"),
        data_classification="Internal/Confidential",
        regulatory_impact="Medium - Internal operations",
    ),
})

DEFAULT_FUNCTION_RULE = FunctionRule(
    bcm_classification="To Be Determined",
    mtpd="4 hours",
    mbco="60% capacity within MTPD",
    resource_requirements="Standard backup procedures",
    compliance_requirements=("Standard Controls",),
    data_classification="Internal/Confidential",
    regulatory_impact="Medium - Internal operations",
)

REGION_RULES: Mapping[str, RegionRule] = MappingProxyType({
    "na": RegionRule(
        legal_entity="NA Operating Company, Inc. (Delaware)",
        regulatory_framework="SOX/FDIC",
        data_residency="US/Canada Only",
        regional_rto="2 hours",
        regional_rpo="30 minutes",
    ),
    "eu": RegionRule(
        legal_entity="EU Operating Company Limited (Ireland)",
        regulatory_framework="GDPR/DORA",
        data_residency="EU Only",
        regional_rto="4 hours",
        regional_rpo="1 hour",
    ),
    "apac": RegionRule(
        legal_entity="APAC Operating Company KK (Japan)",
        regulatory_framework="JFSA (Japan)",
        data_residency="Local + Singapore",
        regional_rto="6 hours",
        regional_rpo="2 hours",
    ),
})

DEFAULT_REGION_RULE = RegionRule(
    legal_entity="TBD",
    regulatory_framework="TBD",
    data_residency="TBD",
    regional_rto="TBD",
    regional_rpo="TBD",
)

SECURITY_CONSIDERATIONS = (
    "Data encryption in transit and at rest",
    "Access controls and authentication",
    "Audit logging and monitoring",
    "Incident response procedures",
)

CONTINUITY_STRATEGIES = (
    "Automated failover procedures",
    "Geographic redundancy",
    "Data backup and recovery",
    "Alternative processing sites",
)

IMPACT_TIMELINE: Mapping[str, str] = MappingProxyType({
    "1_4_hours": "Minimal customer impact, <$100K revenue",
    "4_24_hours": "Moderate customer impact, $100K-$1M revenue",
    "1_7_days": "Significant customer impact, $1M-$10M revenue",
    "7_plus_days": "Severe customer impact, >$10M revenue",
})

RECOVERY_TIMELINE: Mapping[str, str] = MappingProxyType({
    "detection": "0-15 minutes",
    "initial_response": "15-30 minutes",
    "mitigation": "30 minutes - 2 hours",
    "full_recovery": "2-4 hours",
})

# Months between continuity tests
TEST_INTERVAL_MONTHS = 3


@dataclass(frozen=True)
class RuleTables:
    """Read-only rule configuration handed to the section builders."""

    function_rules: Mapping[str, FunctionRule] = field(default_factory=lambda: FUNCTION_RULES)
    default_function_rule: FunctionRule = DEFAULT_FUNCTION_RULE
    region_rules: Mapping[str, RegionRule] = field(default_factory=lambda: REGION_RULES)
    default_region_rule: RegionRule = DEFAULT_REGION_RULE

    def for_function(self, function_type: FunctionType | str) -> FunctionRule:
        """Rule row for a function type; unknown types get the default row."""
        key = function_type.value if isinstance(function_type, FunctionType) else str(function_type)
        return self.function_rules.get(key.lower(), self.default_function_rule)

    def for_region(self, region: str) -> RegionRule:
        """Rule row for a region code; unknown codes get the TBD row."""
        return self.region_rules.get(str(region).lower(), self.default_region_rule)

    def is_known_region(self, region: str) -> bool:
        return str(region).lower() in self.region_rules


DEFAULT_RULES = RuleTables()
