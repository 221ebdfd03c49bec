"""Scaffolding adapters used when no endpoint is configured for a source.

They return representative payloads so documents can be generated end to
end before the real integrations are wired in.
"""

import logging
from collections.abc import Callable
from typing import Any

from bia_service.sources.base import SourceAdapter, SourceName, utcnow_iso, validate_payload

logger = logging.getLogger(__name__)


def _registry_payload(function_name: str) -> dict[str, Any]:
    return {
        "app_name": function_name,
        "description": f"{function_name} service",
        "reliability_tier": "Tier 1",
        "team_id": "unknown",
        "slack_channel": "#unknown",
        "documentation_url": "https://docs.internal.example.com/unknown",
        "runbook_url": "https://runbooks.internal.example.com/unknown",
        "dependencies": ["Authentication Service", "Database Cluster", "Cache Layer"],
        "technology_stack": ["Python", "PostgreSQL", "Redis", "Kubernetes"],
        "deployment_info": {
            "regions": ["us-west-2", "us-east-1"],
            "replicas": 3,
            "auto_scaling": True,
        },
        "confidence_score": 0.7,
        "data_source": "Registry (CMDB)",
        "last_updated": utcnow_iso(),
    }


def _escalation_payload(function_name: str) -> dict[str, Any]:
    return {
        "service_name": function_name,
        "escalation_policy": "L1 Ops → L2 Engineering → Manager → Director",
        "escalation_timeout": "15 minutes per level",
        "on_call_schedule": "Follow-the-sun rotation",
        "incident_stats": {
            "last_30_days": 3,
            "mttr_minutes": 45,
            "p1_incidents": 1,
            "p2_incidents": 2,
        },
        "availability_sla": "99.9%",
        "current_status": "operational",
        "confidence_score": 0.8,
        "data_source": "Escalation Service",
        "last_updated": utcnow_iso(),
    }


def _personnel_payload(team_name: str) -> dict[str, Any]:
    return {
        "team_name": team_name,
        "team_size": 25,
        "key_personnel": [
            {"name": "Tech Lead (TBD)", "role": "Technical Leadership", "backup": "Senior Engineer"},
            {"name": "Product Manager (TBD)", "role": "Product Strategy", "backup": "Associate PM"},
            {"name": "Operations Manager (TBD)", "role": "Day-to-day Operations", "backup": "Senior Ops"},
        ],
        "manager_chain": [
            "Team Lead",
            "Engineering Manager",
            "Director of Engineering",
            "VP Engineering",
        ],
        "team_location": "Distributed (SF, NYC, Remote)",
        "business_hours": "24/7 on-call rotation",
        "confidence_score": 0.6,
        "data_source": "HR Directory",
        "last_updated": utcnow_iso(),
    }


def _financial_payload(function_name: str) -> dict[str, Any]:
    return {
        "function_name": function_name,
        "daily_revenue_impact": "$1.2M",
        "monthly_revenue_impact": "$36M",
        "active_customers": 250000,
        "transaction_volume": {"daily": 1500000, "peak_hourly": 180000},
        "revenue_per_transaction": "$0.80",
        "customer_segments": {"enterprise": "15%", "smb": "60%", "consumer": "25%"},
        "confidence_score": 0.75,
        "data_source": "Financial Metrics API",
        "last_updated": utcnow_iso(),
    }


def _monitoring_payload(function_name: str) -> dict[str, Any]:
    return {
        "service_name": function_name,
        "current_availability": "99.85%",
        "sla_target": "99.9%",
        "performance_metrics": {
            "avg_response_time": "250ms",
            "p95_response_time": "500ms",
            "p99_response_time": "1.2s",
            "error_rate": "0.15%",
        },
        "infrastructure_health": {
            "cpu_utilization": "65%",
            "memory_utilization": "70%",
            "disk_utilization": "45%",
            "network_latency": "15ms",
        },
        "recent_incidents": [
            {
                "date": "2024-09-15",
                "duration": "23 minutes",
                "impact": "Elevated latency",
                "root_cause": "Database connection pool exhaustion",
            }
        ],
        "confidence_score": 0.9,
        "data_source": "Monitoring API",
        "last_updated": utcnow_iso(),
    }


SCAFFOLD_PAYLOADS: dict[SourceName, Callable[[str], dict[str, Any]]] = {
    SourceName.REGISTRY: _registry_payload,
    SourceName.ESCALATION: _escalation_payload,
    SourceName.PERSONNEL: _personnel_payload,
    SourceName.FINANCIAL: _financial_payload,
    SourceName.MONITORING: _monitoring_payload,
}


class ScaffoldSourceAdapter(SourceAdapter):
    """Returns the representative payload for its source."""

    def __init__(self, name: SourceName):
        if name not in SCAFFOLD_PAYLOADS:
            raise ValueError(f"No scaffolding payload for source {name.value}")
        self.name = name
        self._build = SCAFFOLD_PAYLOADS[name]

    async def fetch(self, identifier: str) -> dict[str, Any]:
        logger.debug(f"Using scaffolding payload for {self.name.value}: {identifier}")
        return validate_payload(self.name, self._build(identifier))
