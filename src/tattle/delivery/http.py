"""HTTP collector transport.

POSTs each record as a JSON body. Optional Basic auth, optional timeout,
no retries.
"""

from __future__ import annotations

from typing import Any

import httpx

from tattle.exceptions import DeliveryError
from tattle.observability import get_logger

logger = get_logger(__name__)


class HttpTransport:
    """Deliver records to a collector endpoint with ``POST``."""

    name = "url"

    def __init__(
        self,
        endpoint: str,
        auth: tuple[str, str] | None = None,
        timeout: float | None = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.endpoint = endpoint
        self.auth = httpx.BasicAuth(*auth) if auth else None
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def deliver(self, payload: dict[str, Any]) -> None:
        """POST the record; non-2xx responses and transport errors raise."""
        client = self._get_client()
        request_kwargs: dict[str, Any] = {"json": payload, "timeout": self.timeout}
        if self.auth is not None:
            request_kwargs["auth"] = self.auth

        try:
            response = await client.post(self.endpoint, **request_kwargs)
        except httpx.HTTPError as e:
            raise DeliveryError("transport", f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise DeliveryError(
                "http_status",
                f"collector responded {response.status_code}: {response.text[:200]}",
            )

        logger.debug(
            "Collector accepted record",
            endpoint=self.endpoint,
            status_code=response.status_code,
        )

    async def aclose(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
