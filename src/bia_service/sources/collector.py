"""Concurrent fan-out across all six data sources.

All calls are launched together and joined at a single settle-all point:
a failure or timeout in one source becomes a rejected outcome and never
cancels or delays the others.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Mapping
from types import MappingProxyType
from typing import Any

from bia_service.sources.base import SourceAdapter, SourceName, SourceOutcome, validate_payload
from bia_service.sources.predictive import PredictiveAdapter

logger = logging.getLogger(__name__)

# Sources fetched by identifier; the predictive slot is driven separately
FETCHED_SOURCES = [
    SourceName.REGISTRY,
    SourceName.ESCALATION,
    SourceName.PERSONNEL,
    SourceName.FINANCIAL,
    SourceName.MONITORING,
]

OutcomeMap = Mapping[SourceName, SourceOutcome]


class SourceCollector:
    """Invokes every source for one BIA request and collects the outcomes."""

    def __init__(
        self,
        adapters: Mapping[SourceName, SourceAdapter],
        predictive: PredictiveAdapter | None,
        timeout: float = 10.0,
        snapshot_wait: float | None = None,
    ):
        """Initialize the collector.

        Args:
            adapters: Adapter per fetched source
            predictive: Predictive adapter (None = slot always rejected)
            timeout: Per-adapter bound for fetched sources; the predictive
                engine enforces its own timeout
            snapshot_wait: How long the predictive engine waits for the
                registry and monitoring snapshots before starting without
                the unsettled ones (None = until they settle)
        """
        self.adapters = dict(adapters)
        self.predictive = predictive
        self.timeout = timeout
        self.snapshot_wait = snapshot_wait

    async def collect(self, function_name: str, team_identifier: str) -> OutcomeMap:
        """Fetch from all sources concurrently.

        Args:
            function_name: Identifier for registry, escalation, financial,
                monitoring and predictive sources
            team_identifier: Identifier for the personnel source

        Returns:
            Read-only mapping with exactly one outcome per source
        """
        start = time.monotonic()

        tasks: dict[SourceName, asyncio.Task[SourceOutcome]] = {}
        for name in FETCHED_SOURCES:
            identifier = team_identifier if name == SourceName.PERSONNEL else function_name
            tasks[name] = asyncio.create_task(self._fetch(name, identifier))

        tasks[SourceName.PREDICTIVE] = asyncio.create_task(
            self._predict(function_name, tasks[SourceName.REGISTRY], tasks[SourceName.MONITORING])
        )

        # Settle-all join point; the wrapped calls never raise
        await asyncio.gather(*tasks.values())
        outcomes = {name: task.result() for name, task in tasks.items()}

        fulfilled = sum(1 for o in outcomes.values() if o.fulfilled)
        logger.info(
            f"Collected sources for {function_name}: {fulfilled}/{len(outcomes)} fulfilled, "
            f"took {int((time.monotonic() - start) * 1000)}ms"
        )
        return MappingProxyType(outcomes)

    async def _fetch(self, name: SourceName, identifier: str) -> SourceOutcome:
        adapter = self.adapters.get(name)
        if adapter is None:
            return SourceOutcome.rejected_with(name, "no adapter configured")
        return await self._settle(name, adapter.fetch(identifier), self.timeout)

    async def _predict(
        self,
        function_name: str,
        registry: asyncio.Task[SourceOutcome],
        monitoring: asyncio.Task[SourceOutcome],
    ) -> SourceOutcome:
        if self.predictive is None:
            return SourceOutcome.rejected_with(SourceName.PREDICTIVE, "no predictive engine configured")

        # Snapshots only; a rejected or unsettled outcome passes None
        await asyncio.wait({registry, monitoring}, timeout=self.snapshot_wait)
        snapshot = {
            "registry": registry.result().payload if registry.done() else None,
            "monitoring": monitoring.result().payload if monitoring.done() else None,
        }
        return await self._settle(
            SourceName.PREDICTIVE,
            self.predictive.predict(function_name, snapshot),
            None,
        )

    async def _settle(
        self,
        name: SourceName,
        call: Awaitable[dict[str, Any]],
        timeout: float | None,
    ) -> SourceOutcome:
        try:
            payload = await asyncio.wait_for(call, timeout=timeout)
            if name != SourceName.PREDICTIVE:
                payload = validate_payload(name, payload)
        except asyncio.TimeoutError:
            logger.warning(f"Source {name.value} timed out after {timeout}s")
            return SourceOutcome.rejected_with(name, f"timed out after {timeout}s")
        except Exception as e:
            logger.warning(f"Source {name.value} unavailable: {e}")
            return SourceOutcome.rejected_with(name, e)

        return SourceOutcome.fulfilled_with(name, payload)
