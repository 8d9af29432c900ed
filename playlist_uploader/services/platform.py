"""
Platform Repository - Single Responsibility: talk to the content platform.

Implements Repository Pattern for the platform's media and content endpoints.
Every method returns the decoded JSON body; errors surface as PlatformAPIError.
"""
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

from ..protocols import IAPIClient

logger = logging.getLogger(__name__)


class PlatformRepository:
    """
    Repository for the remote content platform.

    Endpoints:
        GET  /media/transcode/audio/uploadUrl   negotiate an upload slot
        GET  /media/upload/{id}/transcoded      transcode status
        GET  /content/{cardId}                  fetch a playlist
        GET  /content/mine                      list own playlists
        POST /content                           create or update a playlist
    """

    def __init__(self, api_client: IAPIClient):
        """
        Initialize repository.

        Args:
            api_client: HTTP client for API calls
        """
        self._api = api_client

    @staticmethod
    def _json(response: Any) -> Dict[str, Any]:
        if not getattr(response, "content", b""):
            return {}
        return response.json()

    async def get_upload_url(self, sha256: str, filename: Optional[str] = None) -> Dict[str, Any]:
        """
        Ask for a destination for content with this digest.

        Returns:
            {"upload": {"uploadUrl": str | None, "uploadId": str}}
        """
        params = {"sha256": sha256}
        if filename:
            params["filename"] = filename
        response = await self._api.get("/media/transcode/audio/uploadUrl", params=params)
        return self._json(response)

    async def get_transcode_status(self, upload_id: str, loudnorm: bool = False) -> Dict[str, Any]:
        """
        Query transcode progress for an upload.

        Returns:
            {"transcode": {"transcodedSha256": ..., "transcodedInfo": {...}}} once ready
        """
        response = await self._api.get(
            f"/media/upload/{quote(upload_id, safe='')}/transcoded",
            params={"loudnorm": "true" if loudnorm else "false"},
        )
        return self._json(response)

    async def get_content(self, card_id: str) -> Dict[str, Any]:
        """Fetch an existing playlist document (untrusted shape)."""
        response = await self._api.get(f"/content/{quote(card_id, safe='')}")
        return self._json(response)

    async def list_content(self, show_deleted: bool = False) -> Dict[str, Any]:
        """List playlists owned by the authenticated user."""
        params = {"showdeleted": "true"} if show_deleted else None
        response = await self._api.get("/content/mine", params=params)
        return self._json(response)

    async def save_content(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create (body without cardId) or update (body with cardId) a playlist.

        Args:
            body: Payload produced by compose_body
        """
        logger.debug("Saving content (update=%s)", "cardId" in body)
        response = await self._api.post("/content", json=body)
        return self._json(response)
