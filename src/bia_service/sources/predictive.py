"""Predictive analytics engine integration.

The engine is an external script run as a child process. Input and output
are exchanged through JSON files in a per-call temporary directory that is
removed on every exit path. Callers see two outcomes only:
PredictionAvailable or PredictionUnavailable.
"""

import asyncio
import contextlib
import json
import logging
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from bia_service.exceptions import PredictiveEngineUnavailableError
from bia_service.sources.base import SourceName, clamp_confidence, utcnow_iso

logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE = 0.6
FALLBACK_NOTE = (
    "Fallback predictions used - predictive engine unavailable; "
    "connect the engine for enhanced accuracy"
)
SCENARIOS = ["best_case", "worst_case", "most_likely"]


@dataclass(frozen=True)
class PredictionAvailable:
    """The engine returned a structured prediction."""

    prediction: dict[str, Any]


@dataclass(frozen=True)
class PredictionUnavailable:
    """The engine could not produce a prediction."""

    reason: str


PredictionResult = PredictionAvailable | PredictionUnavailable


def build_engine_input(
    function_name: str,
    snapshot: dict[str, Any],
    horizon: str,
) -> dict[str, Any]:
    """Build the JSON document handed to the engine."""
    return {
        "function_name": function_name,
        "registry_data": snapshot.get("registry"),
        "monitoring_data": snapshot.get("monitoring"),
        "analysis_type": "comprehensive",
        "prediction_horizon": horizon,
        "scenarios": SCENARIOS,
        "timestamp": utcnow_iso(),
    }


def format_engine_output(raw: dict[str, Any]) -> dict[str, Any]:
    """Map raw engine output onto the prediction shape used in documents."""
    return {
        "rto_analysis": {
            "current_estimate": raw.get("current_rto") or "45 minutes",
            "confidence_score": clamp_confidence(raw.get("confidence") or 0.8),
            "twelve_month_forecast": raw.get("forecast_rto") or "35 minutes",
            "improvement_potential": raw.get("improvement") or "22%",
        },
        "rpo_analysis": {
            "current_estimate": raw.get("current_rpo") or "15 minutes",
            "confidence_score": clamp_confidence(raw.get("rpo_confidence") or 0.75),
            "twelve_month_forecast": raw.get("forecast_rpo") or "10 minutes",
            "improvement_potential": raw.get("rpo_improvement") or "33%",
        },
        "risk_assessment": {
            "overall_risk": raw.get("risk_level") or "Medium",
            "risk_factors": raw.get("risk_factors") or [
                "Elevated latency trends",
                "Dependency complexity",
                "Limited redundancy",
            ],
            "mitigation_recommendations": raw.get("recommendations") or [
                "Implement circuit breakers",
                "Add regional failover",
                "Optimize database queries",
            ],
        },
        "performance_predictions": {
            "availability_forecast": raw.get("availability_forecast") or "99.92%",
            "capacity_utilization": raw.get("capacity_forecast") or "68%",
            "scaling_requirements": raw.get("scaling_needs") or "Moderate growth expected",
        },
        "scenarios": {
            "best_case": {
                "rto": raw.get("best_case_rto") or "25 minutes",
                "rpo": raw.get("best_case_rpo") or "5 minutes",
                "probability": raw.get("best_case_probability") or "25%",
            },
            "most_likely": {
                "rto": raw.get("likely_rto") or "35 minutes",
                "rpo": raw.get("likely_rpo") or "10 minutes",
                "probability": raw.get("likely_probability") or "50%",
            },
            "worst_case": {
                "rto": raw.get("worst_case_rto") or "60 minutes",
                "rpo": raw.get("worst_case_rpo") or "30 minutes",
                "probability": raw.get("worst_case_probability") or "25%",
            },
        },
        "data_sources": raw.get("data_sources") or [
            "Historical incident data",
            "Performance metrics",
            "Dependency analysis",
            "Capacity planning models",
        ],
        "generated_at": utcnow_iso(),
        "engine_version": str(raw.get("version") or "2.0"),
        "confidence_overall": clamp_confidence(raw.get("overall_confidence") or 0.82),
    }


def fallback_prediction(generated_at: str | None = None) -> dict[str, Any]:
    """Conservative prediction used when the engine is unavailable."""
    return {
        "rto_analysis": {
            "current_estimate": "45 minutes",
            "confidence_score": FALLBACK_CONFIDENCE,
            "twelve_month_forecast": "40 minutes",
            "improvement_potential": "11%",
        },
        "rpo_analysis": {
            "current_estimate": "15 minutes",
            "confidence_score": FALLBACK_CONFIDENCE,
            "twelve_month_forecast": "12 minutes",
            "improvement_potential": "20%",
        },
        "risk_assessment": {
            "overall_risk": "Medium",
            "risk_factors": [
                "Limited historical data",
                "Standard architecture patterns",
                "Typical operational complexity",
            ],
            "mitigation_recommendations": [
                "Establish baseline monitoring",
                "Implement standard DR procedures",
                "Regular testing and validation",
            ],
        },
        "performance_predictions": {
            "availability_forecast": "99.5%",
            "capacity_utilization": "70%",
            "scaling_requirements": "Standard growth patterns",
        },
        "scenarios": {
            "best_case": {"rto": "30 minutes", "rpo": "8 minutes", "probability": "25%"},
            "most_likely": {"rto": "45 minutes", "rpo": "15 minutes", "probability": "50%"},
            "worst_case": {"rto": "90 minutes", "rpo": "30 minutes", "probability": "25%"},
        },
        "data_sources": [
            "Industry benchmarks",
            "Standard patterns",
            "Conservative estimates",
        ],
        "generated_at": generated_at or utcnow_iso(),
        "engine_version": "fallback",
        "confidence_overall": FALLBACK_CONFIDENCE,
        "note": FALLBACK_NOTE,
    }


class PredictiveEngine:
    """Runs the predictive engine script as a child process."""

    def __init__(
        self,
        engine_path: str | Path,
        script: str = "rto_rpo_predictor.py",
        python: str = "python3",
        timeout: float = 60.0,
        horizon: str = "12_months",
    ):
        self.engine_path = Path(engine_path)
        self.script = script
        self.python = python
        self.timeout = timeout
        self.horizon = horizon

    @property
    def script_path(self) -> Path:
        return self.engine_path / self.script

    async def predict(self, function_name: str, snapshot: dict[str, Any]) -> PredictionResult:
        """Run the engine for one function.

        Args:
            function_name: Business function being analysed
            snapshot: Settled registry/monitoring payloads (None when rejected)

        Returns:
            PredictionAvailable or PredictionUnavailable; never raises for
            engine failures
        """
        if not self.script_path.is_file():
            return PredictionUnavailable(f"engine script not found at {self.script_path}")

        engine_input = build_engine_input(function_name, snapshot, self.horizon)

        with tempfile.TemporaryDirectory(prefix="bia_predict_") as tmpdir:
            input_file = Path(tmpdir) / "input.json"
            output_file = Path(tmpdir) / "output.json"
            input_file.write_text(json.dumps(engine_input, indent=2), encoding="utf-8")

            try:
                proc = await asyncio.create_subprocess_exec(
                    self.python,
                    str(self.script_path),
                    "--input",
                    str(input_file),
                    "--output",
                    str(output_file),
                    cwd=str(self.engine_path),
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except OSError as e:
                return PredictionUnavailable(f"failed to start engine: {e}")

            try:
                _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
            except asyncio.TimeoutError:
                return PredictionUnavailable(f"engine timed out after {self.timeout}s")
            finally:
                if proc.returncode is None:
                    with contextlib.suppress(ProcessLookupError):
                        proc.kill()
                    await proc.wait()

            if proc.returncode != 0:
                detail = (stderr or b"").decode(errors="ignore")[:500]
                return PredictionUnavailable(
                    f"engine exited with code {proc.returncode}: {detail}"
                )

            try:
                raw = json.loads(output_file.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                return PredictionUnavailable(f"malformed engine output: {e}")

        if not isinstance(raw, dict):
            return PredictionUnavailable("malformed engine output: expected a JSON object")

        try:
            return PredictionAvailable(format_engine_output(raw))
        except (TypeError, ValueError) as e:
            return PredictionUnavailable(f"malformed engine output: {e}")

    async def check_health(self) -> dict[str, Any]:
        """Report whether the engine script is present."""
        if self.script_path.is_file():
            return {
                "status": "healthy",
                "engine_path": str(self.engine_path),
                "script_available": True,
                "last_check": utcnow_iso(),
            }
        return {
            "status": "unavailable",
            "error": f"engine script not found at {self.script_path}",
            "fallback_mode": True,
            "last_check": utcnow_iso(),
        }


class PredictiveAdapter:
    """Source-slot wrapper: a prediction payload or PredictiveEngineUnavailableError."""

    name = SourceName.PREDICTIVE

    def __init__(self, engine: PredictiveEngine):
        self.engine = engine

    async def predict(self, function_name: str, snapshot: dict[str, Any]) -> dict[str, Any]:
        start = time.monotonic()
        result = await self.engine.predict(function_name, snapshot)

        if isinstance(result, PredictionUnavailable):
            raise PredictiveEngineUnavailableError(result.reason)

        logger.info(
            f"Predictive engine finished for {function_name} in "
            f"{int((time.monotonic() - start) * 1000)}ms, "
            f"confidence: {result.prediction['confidence_overall']}"
        )
        return result.prediction

    async def check_health(self) -> dict[str, Any]:
        return await self.engine.check_health()
