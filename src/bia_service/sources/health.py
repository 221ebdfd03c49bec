"""Data-source health checks."""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from bia_service.sources.base import SourceAdapter, SourceName, utcnow_iso
from bia_service.sources.predictive import PredictiveAdapter

logger = logging.getLogger(__name__)

# Minimum healthy data-source checks (out of six) for an overall "healthy" report
HEALTHY_THRESHOLD = 4


async def check_data_source_health(
    adapters: Mapping[SourceName, SourceAdapter],
    predictive: PredictiveAdapter | None = None,
    extra_checks: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Run every health check concurrently, settle-all.

    Only the six data sources count towards `overall`; extra checks are
    reported alongside them but never counted.

    Args:
        adapters: Fetched-source adapters
        predictive: Predictive adapter; counts as healthy only when its
            engine reports "healthy"
        extra_checks: Additional name -> coroutine checks (e.g. risk platform)

    Returns:
        Per-check status dicts plus `overall` ("healthy" when at least
        four data sources are healthy)
    """
    checks: dict[str, Any] = {name.value: adapter.check_health() for name, adapter in adapters.items()}
    if predictive is not None:
        checks[SourceName.PREDICTIVE.value] = predictive.check_health()
    source_keys = set(checks)
    if extra_checks:
        checks.update(extra_checks)

    results = await asyncio.gather(*checks.values(), return_exceptions=True)

    report: dict[str, Any] = {}
    healthy = 0
    for key, result in zip(checks.keys(), results):
        if isinstance(result, Exception):
            logger.warning(f"Health check failed for {key}: {result}")
            report[key] = {"status": "error", "error": str(result), "last_check": utcnow_iso()}
            continue
        report[key] = result
        if key in source_keys and result.get("status") == "healthy":
            healthy += 1

    report["overall"] = "healthy" if healthy >= HEALTHY_THRESHOLD else "degraded"
    return report
