"""Tests for the risk platform clients."""

import json

import httpx
import pytest

from bia_service.config import Settings
from bia_service.documents.models import SyncDirection
from bia_service.exceptions import RiskPlatformError
from bia_service.fusion import (
    HttpRiskPlatformClient,
    ScaffoldRiskPlatformClient,
    build_risk_platform_client,
)
from bia_service.fusion.client import AUTOMATED_ACTIONS

DOCUMENT = {"id": "doc-1", "function_name": "PaymentsCore", "status": "approved"}


class TestScaffoldClient:
    """Tests for the in-memory risk platform."""

    @pytest.mark.asyncio
    async def test_check_before_push(self):
        client = ScaffoldRiskPlatformClient()

        existing = await client.check_existing("PaymentsCore")

        assert existing["exists"] is False
        assert existing["recommended_action"] == "create"

    @pytest.mark.asyncio
    async def test_push_creates_record(self):
        client = ScaffoldRiskPlatformClient(review_days=30)

        result = await client.push(DOCUMENT, comments="Quarterly review")
        existing = await client.check_existing("PaymentsCore")

        assert result["record_id"].startswith("BIA-")
        assert result["status"] == "active"
        assert result["comments"] == "Quarterly review"
        assert result["automated_actions"] == AUTOMATED_ACTIONS
        assert existing["exists"] is True
        assert existing["record_id"] == result["record_id"]
        assert existing["recommended_action"] == "update"

    @pytest.mark.asyncio
    async def test_repeat_push_keeps_record_id(self):
        client = ScaffoldRiskPlatformClient()

        first = await client.push(DOCUMENT)
        second = await client.push(DOCUMENT)

        assert first["record_id"] == second["record_id"]

    @pytest.mark.asyncio
    async def test_sync_known_record(self):
        client = ScaffoldRiskPlatformClient()
        pushed = await client.push(DOCUMENT)

        result = await client.sync(pushed["record_id"], DOCUMENT, SyncDirection.PUSH)

        assert result["changes_detected"] is False
        assert result["direction"] == SyncDirection.PUSH.value
        assert result["status"] == "completed"

    @pytest.mark.asyncio
    async def test_sync_unknown_record(self):
        client = ScaffoldRiskPlatformClient()

        result = await client.sync("BIA-UNKNOWN", DOCUMENT, SyncDirection.BIDIRECTIONAL)

        assert result["changes_detected"] is True
        assert result["records_updated"] == 1


class TestHttpClient:
    """Tests for HttpRiskPlatformClient."""

    @pytest.mark.asyncio
    async def test_check_existing_not_found(self):
        client = HttpRiskPlatformClient(
            "https://fusion.example.com/api",
            transport=httpx.MockTransport(lambda request: httpx.Response(404)),
        )

        existing = await client.check_existing("PaymentsCore")

        assert existing == {
            "exists": False,
            "record_id": None,
            "last_updated": None,
            "recommended_action": "create",
        }

    @pytest.mark.asyncio
    async def test_check_existing_found(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"record_id": "BIA-42", "last_updated": "2025-01-01"})

        client = HttpRiskPlatformClient(
            "https://fusion.example.com/api",
            api_token="fusion-token",
            transport=httpx.MockTransport(handler),
        )

        existing = await client.check_existing("PaymentsCore")

        assert existing["record_id"] == "BIA-42"
        assert existing["recommended_action"] == "update"
        assert seen[0].url.params["function_name"] == "PaymentsCore"
        assert seen[0].headers["Authorization"] == "Bearer fusion-token"

    @pytest.mark.asyncio
    async def test_push_sends_document(self):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={"record_id": "BIA-7", "review_date": "2026-01-15"})

        client = HttpRiskPlatformClient(
            "https://fusion.example.com/api", transport=httpx.MockTransport(handler)
        )

        result = await client.push(DOCUMENT, comments="ok")

        assert result["record_id"] == "BIA-7"
        assert result["status"] == "active"
        assert bodies[0] == {"bia": DOCUMENT, "comments": "ok"}

    @pytest.mark.asyncio
    async def test_push_without_record_id_fails(self):
        client = HttpRiskPlatformClient(
            "https://fusion.example.com/api",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})),
        )

        with pytest.raises(RiskPlatformError) as exc_info:
            await client.push(DOCUMENT)

        assert exc_info.value.operation == "push"

    @pytest.mark.asyncio
    async def test_client_error_maps_to_platform_error(self):
        client = HttpRiskPlatformClient(
            "https://fusion.example.com/api",
            transport=httpx.MockTransport(lambda request: httpx.Response(403)),
        )

        with pytest.raises(RiskPlatformError, match="403"):
            await client.push(DOCUMENT)

    @pytest.mark.asyncio
    async def test_sync_record(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"changes_detected": True, "records_updated": 2})

        client = HttpRiskPlatformClient(
            "https://fusion.example.com/api", transport=httpx.MockTransport(handler)
        )

        result = await client.sync("BIA-7", DOCUMENT, SyncDirection.PULL)

        assert seen[0].url.path == "/api/records/BIA-7/sync"
        assert json.loads(seen[0].content)["direction"] == SyncDirection.PULL.value
        assert result["changes_detected"] is True
        assert result["records_updated"] == 2

    @pytest.mark.asyncio
    async def test_sync_missing_record(self):
        client = HttpRiskPlatformClient(
            "https://fusion.example.com/api",
            transport=httpx.MockTransport(lambda request: httpx.Response(404)),
        )

        with pytest.raises(RiskPlatformError, match="not found"):
            await client.sync("BIA-7", DOCUMENT, SyncDirection.BIDIRECTIONAL)


class TestBuildClient:
    """Tests for build_risk_platform_client."""

    def test_scaffold_without_url(self):
        client = build_risk_platform_client(Settings(_env_file=None))

        assert isinstance(client, ScaffoldRiskPlatformClient)

    def test_http_with_url(self):
        config = Settings(
            _env_file=None,
            RISK_PLATFORM_URL="https://fusion.example.com",
            RISK_PLATFORM_TOKEN="t",
        )

        assert isinstance(build_risk_platform_client(config), HttpRiskPlatformClient)
