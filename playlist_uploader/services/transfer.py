"""Raw byte transfer to pre-signed upload destinations."""
from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..errors import TransferFailed

logger = logging.getLogger(__name__)


class HTTPTransferClient:
    """
    PUTs bytes to a signed URL.

    Implements ITransferClient protocol. The destination carries its own
    credentials, so no platform auth header is sent. Never retries.
    """

    def __init__(self, timeout: int = 300, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def put(self, url: str, data: bytes, content_type: str) -> None:
        if not self._client:
            raise RuntimeError("HTTPTransferClient not initialized. Use 'async with' context.")

        try:
            response = await self._client.put(url, content=data, headers={"Content-Type": content_type})
        except httpx.HTTPError as exc:
            raise TransferFailed(f"Upload failed: {exc}") from exc

        if not response.is_success:
            raise TransferFailed(
                f"Upload failed with status {response.status_code}: {response.text}",
                status_code=response.status_code,
                detail=response.text,
            )
        logger.debug("Transferred %d bytes (%s)", len(data), content_type)
