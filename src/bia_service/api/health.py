"""Health check endpoints for the BIA API."""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from bia_service.api.deps import get_collector, get_risk_platform
from bia_service.db import get_session
from bia_service.fusion import RiskPlatformClient
from bia_service.sources import SourceCollector, check_data_source_health

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Basic health check - returns ok if the service is running."""
    return {"status": "ok"}


@router.get("/health/data-sources")
async def data_sources(
    collector: SourceCollector = Depends(get_collector),
    risk_platform: RiskPlatformClient = Depends(get_risk_platform),
) -> dict[str, Any]:
    """Health of every data source plus the risk platform."""
    return await check_data_source_health(
        collector.adapters,
        predictive=collector.predictive,
        extra_checks={"fusion": risk_platform.check_health()},
    )


@router.get("/health/ready")
async def ready(
    session: AsyncSession = Depends(get_session),
    collector: SourceCollector = Depends(get_collector),
    risk_platform: RiskPlatformClient = Depends(get_risk_platform),
) -> dict[str, Any]:
    """
    Readiness check - verifies dependent services.

    Checks:
    - Database: document store connection
    - Predictive engine: script present (fallback mode otherwise, not fatal)
    - Data sources: at least four of the six sources healthy
    """
    services: dict[str, str] = {}
    all_ok = True

    # Check database
    try:
        await session.execute(text("SELECT 1"))
        services["database"] = "ok"
    except Exception as e:
        services["database"] = f"error: {type(e).__name__}"
        all_ok = False

    # Predictive engine is optional; documents fall back to conservative predictions
    if collector.predictive is not None:
        engine = await collector.predictive.check_health()
        if engine.get("status") == "healthy":
            services["predictive_engine"] = "ok"
        else:
            services["predictive_engine"] = "warning: fallback mode"
    else:
        services["predictive_engine"] = "warning: not configured"

    sources = await check_data_source_health(
        collector.adapters,
        predictive=collector.predictive,
        extra_checks={"fusion": risk_platform.check_health()},
    )
    services["data_sources"] = sources["overall"]
    if sources["overall"] != "healthy":
        all_ok = False

    status = "ready" if all_ok else "degraded"
    return {"status": status, "services": services}
