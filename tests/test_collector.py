"""Tests for the concurrent source collector."""

import asyncio
import time
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from bia_service.exceptions import PredictiveEngineUnavailableError, SourceUnavailableError
from bia_service.sources.base import SourceAdapter, SourceName
from bia_service.sources.collector import FETCHED_SOURCES, SourceCollector


class FakeAdapter(SourceAdapter):
    """Adapter returning a canned payload after an optional delay."""

    def __init__(self, name: SourceName, score: float = 0.8, delay: float = 0.0, error: Exception | None = None):
        self.name = name
        self.score = score
        self.delay = delay
        self.error = error
        self.calls: list[str] = []

    async def fetch(self, identifier: str) -> dict[str, Any]:
        self.calls.append(identifier)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return {
            "confidence_score": self.score,
            "last_updated": "2025-01-15T00:00:00+00:00",
            "identifier": identifier,
        }


def make_adapters(**overrides: FakeAdapter) -> dict[SourceName, SourceAdapter]:
    adapters = {name: FakeAdapter(name) for name in FETCHED_SOURCES}
    for key, adapter in overrides.items():
        adapters[SourceName(key)] = adapter
    return adapters


@pytest.fixture
def predictive():
    adapter = MagicMock()
    adapter.predict = AsyncMock(return_value={
        "confidence_overall": 0.82,
        "generated_at": "2025-01-15T00:00:00+00:00",
    })
    return adapter


class TestCollect:
    """Tests for SourceCollector.collect."""

    @pytest.mark.asyncio
    async def test_all_sources_fulfilled(self, predictive):
        collector = SourceCollector(make_adapters(), predictive, timeout=1.0)

        outcomes = await collector.collect("PaymentsCore", "payments-team")

        assert set(outcomes) == set(SourceName)
        assert all(o.fulfilled for o in outcomes.values())
        assert outcomes[SourceName.PREDICTIVE].confidence == 0.82

    @pytest.mark.asyncio
    async def test_personnel_uses_team_identifier(self, predictive):
        adapters = make_adapters()
        collector = SourceCollector(adapters, predictive)

        await collector.collect("PaymentsCore", "payments-team")

        assert adapters[SourceName.PERSONNEL].calls == ["payments-team"]
        assert adapters[SourceName.REGISTRY].calls == ["PaymentsCore"]

    @pytest.mark.asyncio
    async def test_one_failure_does_not_abort_others(self, predictive):
        """Test settle-all: a failing source becomes a rejected outcome."""
        adapters = make_adapters(
            escalation=FakeAdapter(SourceName.ESCALATION, error=SourceUnavailableError("escalation", "503")),
            financial=FakeAdapter(SourceName.FINANCIAL, delay=0.05),
        )
        collector = SourceCollector(adapters, predictive)

        outcomes = await collector.collect("PaymentsCore", "payments-team")

        assert len(outcomes) == 6
        assert outcomes[SourceName.ESCALATION].status == "rejected"
        assert "503" in outcomes[SourceName.ESCALATION].error
        assert outcomes[SourceName.FINANCIAL].fulfilled

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_contained(self, predictive):
        adapters = make_adapters(registry=FakeAdapter(SourceName.REGISTRY, error=RuntimeError("boom")))
        collector = SourceCollector(adapters, predictive)

        outcomes = await collector.collect("PaymentsCore", "team")

        assert outcomes[SourceName.REGISTRY].error == "boom"
        assert outcomes[SourceName.MONITORING].fulfilled

    @pytest.mark.asyncio
    async def test_all_sources_failing(self):
        error = SourceUnavailableError("any", "down")
        adapters = {name: FakeAdapter(name, error=error) for name in FETCHED_SOURCES}
        predictive = MagicMock()
        predictive.predict = AsyncMock(side_effect=PredictiveEngineUnavailableError("missing"))
        collector = SourceCollector(adapters, predictive)

        outcomes = await collector.collect("PaymentsCore", "team")

        assert len(outcomes) == 6
        assert not any(o.fulfilled for o in outcomes.values())

    @pytest.mark.asyncio
    async def test_slow_source_times_out(self, predictive):
        """Test a source past its timeout is rejected without blocking past the bound."""
        adapters = make_adapters(monitoring=FakeAdapter(SourceName.MONITORING, delay=2.0))
        collector = SourceCollector(adapters, predictive, timeout=0.1)

        start = time.monotonic()
        outcomes = await collector.collect("PaymentsCore", "team")
        elapsed = time.monotonic() - start

        assert elapsed < 1.5
        assert "timed out" in outcomes[SourceName.MONITORING].error
        assert outcomes[SourceName.REGISTRY].fulfilled

    @pytest.mark.asyncio
    async def test_sources_run_concurrently(self, predictive):
        adapters = {name: FakeAdapter(name, delay=0.2) for name in FETCHED_SOURCES}
        collector = SourceCollector(adapters, predictive)

        start = time.monotonic()
        await collector.collect("PaymentsCore", "team")

        assert time.monotonic() - start < 0.8

    @pytest.mark.asyncio
    async def test_invalid_payload_is_rejected(self, predictive):
        class NoScoreAdapter(FakeAdapter):
            async def fetch(self, identifier):
                return {"last_updated": "2025-01-15"}

        adapters = make_adapters(financial=NoScoreAdapter(SourceName.FINANCIAL))
        collector = SourceCollector(adapters, predictive)

        outcomes = await collector.collect("PaymentsCore", "team")

        assert "confidence_score" in outcomes[SourceName.FINANCIAL].error

    @pytest.mark.asyncio
    async def test_missing_adapter_is_rejected(self, predictive):
        adapters = make_adapters()
        del adapters[SourceName.FINANCIAL]
        collector = SourceCollector(adapters, predictive)

        outcomes = await collector.collect("PaymentsCore", "team")

        assert outcomes[SourceName.FINANCIAL].error == "no adapter configured"

    @pytest.mark.asyncio
    async def test_no_predictive_engine(self):
        collector = SourceCollector(make_adapters(), None)

        outcomes = await collector.collect("PaymentsCore", "team")

        assert outcomes[SourceName.PREDICTIVE].error == "no predictive engine configured"

    @pytest.mark.asyncio
    async def test_predictive_gets_registry_and_monitoring_snapshots(self, predictive):
        adapters = make_adapters(
            monitoring=FakeAdapter(SourceName.MONITORING, error=SourceUnavailableError("monitoring", "down"))
        )
        collector = SourceCollector(adapters, predictive)

        await collector.collect("PaymentsCore", "team")

        function_name, snapshot = predictive.predict.call_args.args
        assert function_name == "PaymentsCore"
        assert snapshot["registry"]["identifier"] == "PaymentsCore"
        assert snapshot["monitoring"] is None

    @pytest.mark.asyncio
    async def test_outcome_map_is_read_only(self, predictive):
        collector = SourceCollector(make_adapters(), predictive)

        outcomes = await collector.collect("PaymentsCore", "team")

        with pytest.raises(TypeError):
            outcomes[SourceName.REGISTRY] = None  # type: ignore[index]

    @pytest.mark.asyncio
    async def test_predictive_starts_without_slow_snapshot(self, predictive):
        """Test the engine starts once the snapshot wait expires; the slow source still settles."""
        adapters = make_adapters(registry=FakeAdapter(SourceName.REGISTRY, delay=0.5))
        collector = SourceCollector(adapters, predictive, timeout=2.0, snapshot_wait=0.05)

        outcomes = await collector.collect("PaymentsCore", "team")

        _, snapshot = predictive.predict.call_args.args
        assert snapshot["registry"] is None
        assert snapshot["monitoring"]["identifier"] == "PaymentsCore"
        assert outcomes[SourceName.REGISTRY].fulfilled
        assert outcomes[SourceName.PREDICTIVE].fulfilled
