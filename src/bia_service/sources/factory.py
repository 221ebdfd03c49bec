"""Build source adapters and the collector from settings."""

import logging

from bia_service.config import Settings, settings as default_settings
from bia_service.sources.base import SourceAdapter, SourceName
from bia_service.sources.collector import FETCHED_SOURCES, SourceCollector
from bia_service.sources.http import HttpSourceAdapter
from bia_service.sources.predictive import PredictiveAdapter, PredictiveEngine
from bia_service.sources.scaffold import ScaffoldSourceAdapter

logger = logging.getLogger(__name__)


def build_adapters(config: Settings | None = None) -> dict[SourceName, SourceAdapter]:
    """One adapter per fetched source: HTTP when a URL is set, else scaffolding."""
    config = config or default_settings
    urls = config.source_urls

    adapters: dict[SourceName, SourceAdapter] = {}
    for name in FETCHED_SOURCES:
        url = urls.get(name.value, "")
        if url:
            adapters[name] = HttpSourceAdapter(
                name,
                base_url=url,
                api_token=config.SOURCE_API_TOKEN,
                timeout=config.SOURCE_TIMEOUT_SECONDS,
            )
        else:
            adapters[name] = ScaffoldSourceAdapter(name)
            logger.debug(f"No URL configured for {name.value}, using scaffolding adapter")

    return adapters


def build_predictive_engine(config: Settings | None = None) -> PredictiveEngine:
    config = config or default_settings
    return PredictiveEngine(
        engine_path=config.PREDICTIVE_ENGINE_PATH,
        script=config.PREDICTIVE_ENGINE_SCRIPT,
        python=config.PREDICTIVE_PYTHON,
        timeout=config.PREDICTIVE_TIMEOUT_SECONDS,
        horizon=config.PREDICTION_HORIZON,
    )


def build_collector(config: Settings | None = None) -> SourceCollector:
    """Collector wired to the configured adapters and predictive engine."""
    config = config or default_settings
    return SourceCollector(
        adapters=build_adapters(config),
        predictive=PredictiveAdapter(build_predictive_engine(config)),
        timeout=config.SOURCE_TIMEOUT_SECONDS,
        snapshot_wait=config.PREDICTIVE_SNAPSHOT_WAIT_SECONDS,
    )
