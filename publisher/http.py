"""Thin async JSON client shared by the backend adapters."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# Back off and retry on 429
_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 2.0  # seconds


class BackendError(RuntimeError):
    """A backend answered with an error.

    ``payload`` holds the backend's raw error body (parsed JSON when possible)
    so it can be logged as-is.
    """

    def __init__(self, message: str, status: int | None = None, payload: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.payload = payload


def _error_payload(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text[:500]


class ApiClient:
    """JSON-over-HTTP helper around a lazily created ``httpx.AsyncClient``.

    Parameters
    ----------
    name:
        Backend name, used in log and error messages.
    headers:
        Default headers for every request (auth lives here).
    transport:
        Optional httpx transport, e.g. ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        name: str,
        headers: dict[str, str],
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
        retry_delay: float = _RETRY_BASE_DELAY,
    ) -> None:
        self.name = name
        self.headers = headers
        self.timeout = timeout
        self.retry_delay = retry_delay
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers=self.headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _send_with_retry(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, retrying automatically on 429 rate-limit responses."""
        client = await self._get_client()
        for attempt in range(1, _MAX_RETRIES + 1):
            resp = await client.request(method, url, **kwargs)
            if resp.status_code != 429:
                return resp
            delay = self.retry_delay * attempt
            logger.warning(
                "%s rate-limited (429), retrying in %.1fs (attempt %d/%d)",
                self.name, delay, attempt, _MAX_RETRIES,
            )
            await asyncio.sleep(delay)
        return resp  # return last response even if still 429

    async def request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send a request and return the decoded JSON body.

        Raises :class:`BackendError` for any non-2xx answer or a body that
        is not JSON, and lets ``httpx.HTTPError`` through for transport
        problems.
        """
        resp = await self._send_with_retry(method, url, **kwargs)
        if not resp.is_success:
            raise BackendError(
                f"{self.name} API returned {resp.status_code} for {method} {url}",
                status=resp.status_code,
                payload=_error_payload(resp),
            )
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise BackendError(
                f"{self.name} API returned a non-JSON body for {method} {url}",
                status=resp.status_code,
                payload=resp.text[:500],
            ) from exc

    async def graphql(self, url: str, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a GraphQL operation and return its ``data`` object.

        A 200 response that carries ``errors`` is still a failure.
        """
        body: dict[str, Any] = {"query": query}
        if variables:
            body["variables"] = variables
        result = await self.request_json("POST", url, json=body) or {}
        if not isinstance(result, dict):
            raise BackendError(
                f"{self.name} API returned an unexpected body", status=200, payload=result
            )
        if result.get("errors"):
            raise BackendError(
                f"{self.name} API errors: {result['errors']}",
                status=200,
                payload=result["errors"],
            )
        return result.get("data") or {}
