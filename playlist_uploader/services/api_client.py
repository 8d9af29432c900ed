"""HTTP adapter for platform API operations."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from ..errors import PlatformAPIError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.yotoplay.com"
MAX_RETRIES = 3


class HTTPAPIClient:
    """
    Bearer-token HTTP client adapter for API calls.

    Implements IAPIClient protocol. 5xx responses and transport errors are
    retried with linear backoff; 4xx responses raise immediately.
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_URL,
        timeout: int = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._token = token
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Accept": "application/json",
            },
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def post(self, endpoint: str, json: Dict) -> Any:
        return await self._request("POST", endpoint, json=json)

    async def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request("GET", endpoint, params=params)

    @staticmethod
    def _error_detail(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    async def _request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        if not self._client:
            raise RuntimeError("HTTPAPIClient not initialized. Use 'async with' context.")

        last_exception: Optional[Exception] = None

        for attempt in range(MAX_RETRIES):
            try:
                response = await self._client.request(method, endpoint, **kwargs)

                if response.status_code >= 500 and attempt < MAX_RETRIES - 1:
                    logger.debug(
                        "%s %s returned %d, retrying (attempt %d/%d)",
                        method, endpoint, response.status_code, attempt + 1, MAX_RETRIES,
                    )
                    await asyncio.sleep(0.5 * (attempt + 1))
                    continue

                if response.status_code >= 400:
                    raise PlatformAPIError(
                        response.status_code, method, endpoint, self._error_detail(response)
                    )

                return response
            except (httpx.RequestError, httpx.TimeoutException) as exc:
                last_exception = exc
                if attempt < MAX_RETRIES - 1:
                    logger.debug("%s %s transport error: %s, retrying", method, endpoint, exc)
                    await asyncio.sleep(0.5 * (attempt + 1))
                    continue
                raise

        if last_exception:
            raise last_exception
        raise RuntimeError(f"Failed to {method} {endpoint} after {MAX_RETRIES} attempts")
