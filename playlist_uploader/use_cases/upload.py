"""Use cases for the per-file ingest pipeline: negotiate, transfer, poll."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from playlist_uploader.errors import (
    NegotiationFailed,
    PlatformAPIError,
    TranscodeCancelled,
    TranscodeTimedOut,
)
from playlist_uploader.models import (
    DEFAULT_CONTENT_TYPE,
    IngestResult,
    LocalAudioFile,
    TranscodeDescriptor,
    UploadConfig,
    UploadSlot,
)
from playlist_uploader.services.hasher import content_identifier, hash_file

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_POLL_ATTEMPTS = 120


def _describe_exception(exc: Exception) -> str:
    message = str(exc).strip()
    if message:
        return message
    return f"{type(exc).__name__}: {repr(exc)}"


class NegotiateUploadUseCase:
    """Ask the platform where to upload content with a given digest."""

    async def execute(
        self,
        platform: Any,
        sha256: str,
        filename: Optional[str] = None,
    ) -> UploadSlot:
        try:
            payload = await platform.get_upload_url(sha256, filename)
        except PlatformAPIError as exc:
            raise NegotiationFailed(
                f"uploadUrl failed: {exc.status_code} {exc.detail}",
                status_code=exc.status_code,
                detail=exc.detail,
            ) from exc
        except httpx.HTTPError as exc:
            raise NegotiationFailed(f"uploadUrl failed: {_describe_exception(exc)}") from exc

        try:
            slot = UploadSlot.from_payload(payload)
        except ValueError as exc:
            raise NegotiationFailed(str(exc), detail=payload) from exc

        if slot.needs_transfer:
            logger.debug("Upload slot %s issued for %s", slot.slot_id, sha256[:16])
        else:
            logger.debug("Content %s already on platform (slot %s)", sha256[:16], slot.slot_id)
        return slot


class TransferUseCase:
    """Send raw bytes to a negotiated destination. Not retried."""

    async def execute(
        self,
        transfer: Any,
        slot: UploadSlot,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> None:
        if not slot.needs_transfer:
            raise ValueError(f"slot {slot.slot_id} has no destination; nothing to transfer")
        await transfer.put(slot.destination_url, data, content_type or DEFAULT_CONTENT_TYPE)


class PollTranscodeUseCase:
    """Poll transcode status until a descriptor appears, the budget runs out, or the caller cancels."""

    async def execute(
        self,
        platform: Any,
        slot_id: str,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_attempts: int = DEFAULT_POLL_ATTEMPTS,
        loudnorm: bool = False,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> TranscodeDescriptor:
        for attempt in range(1, max_attempts + 1):
            if cancel_event is not None and cancel_event.is_set():
                raise TranscodeCancelled(slot_id)

            payload = await platform.get_transcode_status(slot_id, loudnorm)
            descriptor = TranscodeDescriptor.from_payload(payload)
            if descriptor is not None:
                logger.debug(
                    "Transcode ready for %s after %d attempt(s): %s",
                    slot_id, attempt, descriptor.content_identifier[:16],
                )
                return descriptor

            if attempt < max_attempts:
                await self._wait(interval, cancel_event, slot_id)

        raise TranscodeTimedOut(slot_id, max_attempts)

    @staticmethod
    async def _wait(interval: float, cancel_event: Optional[asyncio.Event], slot_id: str) -> None:
        if cancel_event is None:
            await asyncio.sleep(interval)
            return
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            return
        raise TranscodeCancelled(slot_id)


class IngestFileUseCase:
    """Hash → negotiate → transfer if needed → poll, for one file."""

    def __init__(
        self,
        negotiate: Optional[NegotiateUploadUseCase] = None,
        transfer: Optional[TransferUseCase] = None,
        poll: Optional[PollTranscodeUseCase] = None,
    ):
        self._negotiate = negotiate or NegotiateUploadUseCase()
        self._transfer = transfer or TransferUseCase()
        self._poll = poll or PollTranscodeUseCase()

    async def execute(
        self,
        platform: Any,
        transfer_client: Any,
        file: LocalAudioFile,
        config: Optional[UploadConfig] = None,
        cancel_event: Optional[asyncio.Event] = None,
        data: Optional[bytes] = None,
    ) -> IngestResult:
        config = config or UploadConfig()

        if data is not None:
            sha256 = content_identifier(data)
        elif file.data is None and file.path is not None:
            # on-disk files are hashed in chunks; bytes are loaded only for a transfer
            sha256 = await hash_file(file.path)
        else:
            data = await file.read()
            sha256 = content_identifier(data)
        logger.debug("Ingest started: file=%s sha256=%s size=%d", file.name, sha256[:16], file.size)

        slot = await self._negotiate.execute(platform, sha256, file.name)
        if slot.needs_transfer:
            if data is None:
                data = await file.read()
            await self._transfer.execute(transfer_client, slot, data, file.content_type)

        descriptor = await self._poll.execute(
            platform,
            slot.slot_id,
            interval=config.poll_interval,
            max_attempts=config.poll_attempts,
            loudnorm=config.loudnorm,
            cancel_event=cancel_event,
        )
        return IngestResult(
            file=file,
            descriptor=descriptor,
            content_identifier=sha256,
            transferred=slot.needs_transfer,
        )
