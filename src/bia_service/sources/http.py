"""JSON-over-HTTP source adapter with retry logic."""

import logging
from typing import Any
from urllib.parse import quote

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from bia_service.exceptions import SourceUnavailableError
from bia_service.sources.base import SourceAdapter, SourceName, validate_payload

logger = logging.getLogger(__name__)


class ServerError(Exception):
    """Raised on 5xx so the request is retried."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"Server error {status_code}")


class HttpSourceAdapter(SourceAdapter):
    """Fetches `GET {base_url}/{identifier}` and validates the payload."""

    def __init__(
        self,
        name: SourceName,
        base_url: str,
        api_token: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.name = name
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    @retry(
        retry=retry_if_exception_type((httpx.TransportError, ServerError)),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _get(self, path: str) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            response = await client.get(f"{self.base_url}{path}", headers=self._headers())

        if response.status_code >= 500:
            logger.warning(f"{self.name.value} returned {response.status_code}, retrying")
            raise ServerError(response.status_code)

        response.raise_for_status()
        return response

    async def fetch(self, identifier: str) -> dict[str, Any]:
        try:
            response = await self._get(f"/{quote(identifier, safe='')}")
            payload = response.json()
        except (httpx.HTTPError, ServerError) as e:
            raise SourceUnavailableError(self.name.value, f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise SourceUnavailableError(self.name.value, f"invalid JSON: {e}") from e

        return validate_payload(self.name, payload)

    async def _ping(self) -> None:
        try:
            await self._get("/health")
        except (httpx.HTTPError, ServerError) as e:
            raise SourceUnavailableError(self.name.value, str(e)) from e
