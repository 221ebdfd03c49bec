"""Risk-management platform (Fusion) record store clients."""

import logging
import time
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import quote

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from bia_service.documents.models import SyncDirection
from bia_service.exceptions import RiskPlatformError
from bia_service.sources.http import ServerError

logger = logging.getLogger(__name__)

AUTOMATED_ACTIONS = [
    "BCM team notified",
    "Continuity plan review scheduled",
    "Stakeholder notifications sent",
    "Risk register updated",
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RiskPlatformClient(ABC):
    """Thin pass-through to the external BIA record store."""

    @abstractmethod
    async def check_existing(self, function_name: str) -> dict[str, Any]:
        """Look up an existing record for a function.

        Returns:
            {exists, record_id, last_updated, recommended_action}
        """

    @abstractmethod
    async def push(self, document: dict[str, Any], comments: str | None = None) -> dict[str, Any]:
        """Create or update the record for an approved document.

        Returns:
            {record_id, status, review_date, automated_actions, ...}
        """

    @abstractmethod
    async def sync(
        self,
        record_id: str,
        document: dict[str, Any],
        direction: SyncDirection,
    ) -> dict[str, Any]:
        """Reconcile a document with its record.

        Returns:
            {changes_detected, records_updated, conflicts_resolved, last_sync}
        """

    @abstractmethod
    async def check_health(self) -> dict[str, Any]:
        """Returns {status, response_time_ms, last_check}."""


class ScaffoldRiskPlatformClient(RiskPlatformClient):
    """In-memory record store used when no platform URL is configured.

    Record ids are derived from the document id so repeated pushes of the
    same document land on the same record.
    """

    def __init__(self, review_days: int = 365):
        self.review_days = review_days
        self._records: dict[str, dict[str, Any]] = {}

    async def check_existing(self, function_name: str) -> dict[str, Any]:
        record = self._records.get(function_name)
        if record is None:
            return {
                "exists": False,
                "record_id": None,
                "last_updated": None,
                "recommended_action": "create",
            }
        return {
            "exists": True,
            "record_id": record["record_id"],
            "last_updated": record["last_updated"],
            "recommended_action": "update",
        }

    async def push(self, document: dict[str, Any], comments: str | None = None) -> dict[str, Any]:
        record_id = f"BIA-{uuid.uuid5(uuid.NAMESPACE_URL, document['id']).hex[:8].upper()}"
        now = _utcnow()

        self._records[document["function_name"]] = {
            "record_id": record_id,
            "last_updated": now.isoformat(),
        }
        logger.info(f"Scaffold push of BIA {document['id']} as {record_id}")

        return {
            "record_id": record_id,
            "status": "active",
            "review_date": (now + timedelta(days=self.review_days)).date().isoformat(),
            "iso_compliance": "verified",
            "comments": comments or "",
            "automated_actions": list(AUTOMATED_ACTIONS),
            "pushed_at": now.isoformat(),
        }

    async def sync(
        self,
        record_id: str,
        document: dict[str, Any],
        direction: SyncDirection,
    ) -> dict[str, Any]:
        known = any(r["record_id"] == record_id for r in self._records.values())
        return {
            "record_id": record_id,
            "direction": SyncDirection(direction).value,
            "status": "completed",
            "changes_detected": not known,
            "records_updated": 0 if known else 1,
            "conflicts_resolved": 0,
            "last_sync": _utcnow().isoformat(),
        }

    async def check_health(self) -> dict[str, Any]:
        return {"status": "healthy", "response_time_ms": 0, "last_check": _utcnow().isoformat()}


class HttpRiskPlatformClient(RiskPlatformClient):
    """JSON-over-HTTP client for the risk platform's record API."""

    def __init__(
        self,
        base_url: str,
        api_token: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Platform API base URL
            api_token: Bearer token
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    @retry(
        retry=retry_if_exception_type((httpx.TransportError, ServerError)),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            response = await client.request(
                method,
                f"{self.base_url}{path}",
                headers=self._headers(),
                json=json,
                params=params,
            )

        if response.status_code >= 500:
            logger.warning(f"Risk platform returned {response.status_code}, retrying")
            raise ServerError(response.status_code)

        return response

    async def _call(self, operation: str, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._request(method, path, **kwargs)
            if response.status_code != 404:
                response.raise_for_status()
        except (httpx.HTTPError, ServerError) as e:
            raise RiskPlatformError(operation, f"{type(e).__name__}: {e}") from e
        return response

    @staticmethod
    def _json(operation: str, response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise RiskPlatformError(operation, f"invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise RiskPlatformError(operation, "response is not a JSON object")
        return data

    async def check_existing(self, function_name: str) -> dict[str, Any]:
        response = await self._call(
            "check", "GET", "/records", params={"function_name": function_name}
        )
        if response.status_code == 404:
            return {
                "exists": False,
                "record_id": None,
                "last_updated": None,
                "recommended_action": "create",
            }

        data = self._json("check", response)
        exists = bool(data.get("record_id"))
        return {
            "exists": exists,
            "record_id": data.get("record_id"),
            "last_updated": data.get("last_updated"),
            "recommended_action": "update" if exists else "create",
        }

    async def push(self, document: dict[str, Any], comments: str | None = None) -> dict[str, Any]:
        response = await self._call(
            "push", "POST", "/records", json={"bia": document, "comments": comments or ""}
        )
        if response.status_code == 404:
            raise RiskPlatformError("push", "record endpoint not found")

        data = self._json("push", response)
        if not data.get("record_id"):
            raise RiskPlatformError("push", "response carries no record_id")

        return {
            "record_id": data["record_id"],
            "status": data.get("status", "active"),
            "review_date": data.get("review_date"),
            "automated_actions": data.get("automated_actions", []),
            "pushed_at": data.get("pushed_at") or _utcnow().isoformat(),
        }

    async def sync(
        self,
        record_id: str,
        document: dict[str, Any],
        direction: SyncDirection,
    ) -> dict[str, Any]:
        direction = SyncDirection(direction)
        response = await self._call(
            "sync",
            "POST",
            f"/records/{quote(record_id, safe='')}/sync",
            json={"direction": direction.value, "bia": document},
        )
        if response.status_code == 404:
            raise RiskPlatformError("sync", f"record {record_id} not found")

        data = self._json("sync", response)
        return {
            "record_id": record_id,
            "direction": direction.value,
            "status": data.get("status", "completed"),
            "changes_detected": bool(data.get("changes_detected", False)),
            "records_updated": int(data.get("records_updated", 0)),
            "conflicts_resolved": int(data.get("conflicts_resolved", 0)),
            "last_sync": data.get("last_sync") or _utcnow().isoformat(),
        }

    async def check_health(self) -> dict[str, Any]:
        start = time.monotonic()
        await self._call("health", "GET", "/health")
        return {
            "status": "healthy",
            "response_time_ms": int((time.monotonic() - start) * 1000),
            "last_check": _utcnow().isoformat(),
        }
