"""Risk-management platform (Fusion) integration."""

from bia_service.config import Settings, settings as default_settings
from bia_service.fusion.client import (
    HttpRiskPlatformClient,
    RiskPlatformClient,
    ScaffoldRiskPlatformClient,
)


def build_risk_platform_client(config: Settings | None = None) -> RiskPlatformClient:
    """HTTP client when RISK_PLATFORM_URL is set, else the in-memory scaffold."""
    config = config or default_settings
    if config.RISK_PLATFORM_URL:
        return HttpRiskPlatformClient(
            base_url=config.RISK_PLATFORM_URL,
            api_token=config.RISK_PLATFORM_TOKEN,
        )
    return ScaffoldRiskPlatformClient(review_days=config.RISK_PLATFORM_REVIEW_DAYS)


__all__ = [
    "HttpRiskPlatformClient",
    "RiskPlatformClient",
    "ScaffoldRiskPlatformClient",
    "build_risk_platform_client",
]
