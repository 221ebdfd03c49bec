"""Data sources feeding BIA generation.

This module provides:
- The source adapter contract and per-source outcomes
- Scaffolding and HTTP-backed adapters
- The predictive engine subprocess integration with its fallback
- The settle-all collector and data-source health checks
"""

from bia_service.sources.base import (
    SOURCE_DISPLAY_NAMES,
    SourceAdapter,
    SourceName,
    SourceOutcome,
    validate_payload,
)
from bia_service.sources.collector import FETCHED_SOURCES, OutcomeMap, SourceCollector
from bia_service.sources.factory import build_adapters, build_collector, build_predictive_engine
from bia_service.sources.health import check_data_source_health
from bia_service.sources.http import HttpSourceAdapter
from bia_service.sources.predictive import (
    PredictionAvailable,
    PredictionUnavailable,
    PredictiveAdapter,
    PredictiveEngine,
    fallback_prediction,
)
from bia_service.sources.scaffold import ScaffoldSourceAdapter

__all__ = [
    # Contract
    "SOURCE_DISPLAY_NAMES",
    "SourceAdapter",
    "SourceName",
    "SourceOutcome",
    "validate_payload",
    # Adapters
    "HttpSourceAdapter",
    "ScaffoldSourceAdapter",
    # Predictive
    "PredictionAvailable",
    "PredictionUnavailable",
    "PredictiveAdapter",
    "PredictiveEngine",
    "fallback_prediction",
    # Collection
    "FETCHED_SOURCES",
    "OutcomeMap",
    "SourceCollector",
    "build_adapters",
    "build_collector",
    "build_predictive_engine",
    "check_data_source_health",
]
