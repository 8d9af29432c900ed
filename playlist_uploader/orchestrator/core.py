"""Core orchestrator - coordinates ingest, merge, and playlist writes."""
import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from ..errors import BatchIngestError, UploaderError
from ..models import BatchResult, LocalAudioFile, PlaylistContent, PlaylistResult, UploadConfig
from ..protocols import IPlatform, ITransferClient
from ..services.api_client import DEFAULT_API_URL, HTTPAPIClient
from ..services.platform import PlatformRepository
from ..services.transfer import HTTPTransferClient
from ..use_cases.chapters import build_chapters
from ..use_cases.compose import compose_body, content_totals
from ..use_cases.merge import extract_title, merge_chapters_into_content
from .batch import BatchUploadHandler, ProgressCallback

logger = logging.getLogger(__name__)

FileLike = Union[LocalAudioFile, Path, str]


def _as_local_file(item: FileLike) -> LocalAudioFile:
    if isinstance(item, LocalAudioFile):
        return item
    return LocalAudioFile.from_path(Path(item))


def _card_id(response: Dict[str, Any]) -> Optional[str]:
    card = response.get("card")
    if isinstance(card, dict) and card.get("cardId"):
        return str(card["cardId"])
    if response.get("cardId"):
        return str(response["cardId"])
    return None


class PlaylistUploader:
    """
    Uploads audio and writes playlists using injected services.

    Follows:
    - Dependency Injection (platform / transfer client injectable)
    - Single Responsibility (batch work delegated to BatchUploadHandler)

    Usage:
        async with PlaylistUploader(token) as uploader:
            result = await uploader.create_playlist([Path("a.mp3"), Path("b.mp3")], title="Bedtime")
            await uploader.append_to_playlist(result.card_id, [Path("c.mp3")])
    """

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        config: Optional[UploadConfig] = None,
        platform: Optional[IPlatform] = None,
        transfer_client: Optional[ITransferClient] = None,
    ):
        """
        Initialize orchestrator with dependencies.

        Args:
            token: Platform access token (required unless platform is injected)
            api_url: Platform API base URL
            config: Upload configuration
            platform: Pre-built platform repository
            transfer_client: Pre-built byte transfer client
        """
        if platform is None and not token:
            raise ValueError("Either token or platform must be provided")

        self._token = token
        self._api_url = api_url
        self._config = config or UploadConfig()
        self._platform = platform
        self._transfer = transfer_client

        # Clients we create ourselves and must close
        self._api_client: Optional[HTTPAPIClient] = None
        self._transfer_client: Optional[HTTPTransferClient] = None
        self._batch_handler: Optional[BatchUploadHandler] = None

    async def __aenter__(self):
        """Initialize services and handlers."""
        if self._platform is None:
            self._api_client = HTTPAPIClient(
                self._token, self._api_url, timeout=self._config.request_timeout
            )
            await self._api_client.__aenter__()
            self._platform = PlatformRepository(self._api_client)

        if self._transfer is None:
            self._transfer_client = HTTPTransferClient()
            await self._transfer_client.__aenter__()
            self._transfer = self._transfer_client

        self._batch_handler = BatchUploadHandler(self._platform, self._transfer, self._config)
        return self

    async def __aexit__(self, *args):
        """Cleanup resources."""
        if self._transfer_client:
            await self._transfer_client.__aexit__(*args)
            self._transfer_client = None
            self._transfer = None
        if self._api_client:
            await self._api_client.__aexit__(*args)
            self._api_client = None
            self._platform = None

    async def ingest(
        self,
        files: Sequence[FileLike],
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> BatchResult:
        """Upload and transcode files; never raises for per-file failures."""
        assert self._batch_handler is not None
        local_files = [_as_local_file(f) for f in files]
        return await self._batch_handler.run(local_files, progress_callback, cancel_event)

    @staticmethod
    def _check_batch(batch: BatchResult, accept_partial: bool) -> None:
        if batch.success or accept_partial:
            return
        raise BatchIngestError(batch)

    async def create_playlist(
        self,
        files: Sequence[FileLike],
        title: Optional[str] = None,
        icon: Optional[str] = None,
        cover_image_l: Optional[str] = None,
        accept_partial: bool = False,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> PlaylistResult:
        """Upload files and create a new playlist from them."""
        batch = await self.ingest(files, progress_callback, cancel_event)
        self._check_batch(batch, accept_partial)

        chapters = build_chapters(batch.results, icon)
        if not chapters:
            raise UploaderError("no audio was ingested; playlist not created")

        content = PlaylistContent(chapters=tuple(chapters))
        if not title:
            if len(chapters) == 1:
                title = chapters[0].title
            else:
                title = f"Playlist {datetime.now():%Y-%m-%d %H:%M:%S}"

        duration_total, file_size_total = content_totals(content)
        body = compose_body(
            title,
            content,
            cover_image_l=cover_image_l,
            duration_total=duration_total,
            file_size_total=file_size_total,
        )
        logger.info("Creating playlist %r with %d chapter(s)", title, len(chapters))
        response = await self._platform.save_content(body)

        card_id = _card_id(response)
        logger.info("Created playlist cardId: %s", card_id or "(see response)")
        return PlaylistResult(
            card_id=card_id,
            title=title,
            content=content,
            added_chapters=len(chapters),
            batch=batch,
            response=response,
        )

    async def append_to_playlist(
        self,
        card_id: str,
        files: Sequence[FileLike],
        title: Optional[str] = None,
        icon: Optional[str] = None,
        accept_partial: bool = False,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> PlaylistResult:
        """
        Upload files and merge them into an existing playlist.

        Tracks already on the playlist are not added again; if nothing new
        survives the merge the playlist is left untouched.
        """
        batch = await self.ingest(files, progress_callback, cancel_event)
        self._check_batch(batch, accept_partial)

        new_chapters = build_chapters(batch.results, icon)
        existing = await self._platform.get_content(card_id)
        current = merge_chapters_into_content(existing, [])
        merged = merge_chapters_into_content(current, new_chapters, icon)
        added = len(merged.chapters) - len(current.chapters)

        final_title = extract_title(existing) or title or ""
        response: Dict[str, Any] = {}
        if added:
            body = compose_body(final_title, merged, card_id=card_id)
            logger.info("Appending %d chapter(s) to %s", added, card_id)
            response = await self._platform.save_content(body)
        else:
            logger.info("Nothing new to add to %s", card_id)

        return PlaylistResult(
            card_id=card_id,
            title=final_title,
            content=merged,
            added_chapters=added,
            batch=batch,
            response=response,
        )

    async def list_playlists(self, show_deleted: bool = False) -> List[Dict[str, Optional[str]]]:
        """List own playlists as [{"cardId", "title"}]."""
        data = await self._platform.list_content(show_deleted)
        cards = data.get("cards") if isinstance(data, dict) else None
        playlists = []
        for card in cards or []:
            if not isinstance(card, dict):
                continue
            metadata = card.get("metadata") if isinstance(card.get("metadata"), dict) else {}
            playlists.append({
                "cardId": card.get("cardId"),
                "title": card.get("title") or metadata.get("title") or card.get("cardId"),
            })
        return playlists
