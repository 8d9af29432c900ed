"""Tests for the per-file ingest use cases."""
import asyncio
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from conftest import audio, sha
from playlist_uploader.errors import (
    NegotiationFailed,
    PlatformAPIError,
    TranscodeCancelled,
    TranscodeTimedOut,
    TransferFailed,
)
from playlist_uploader.models import LocalAudioFile, UploadConfig, UploadSlot
from playlist_uploader.use_cases import upload
from playlist_uploader.use_cases.upload import (
    IngestFileUseCase,
    NegotiateUploadUseCase,
    PollTranscodeUseCase,
    TransferUseCase,
)


class TestNegotiateUpload:
    @pytest.mark.asyncio
    async def test_returns_slot_with_destination(self, platform):
        slot = await NegotiateUploadUseCase().execute(platform, "abc", "song.mp3")

        assert slot == UploadSlot(slot_id="up-abc", destination_url="https://upload.example/abc")
        assert platform.calls == [("negotiate", "abc", "song.mp3")]

    @pytest.mark.asyncio
    async def test_no_destination_when_content_exists(self, platform):
        platform.existing_shas.add("abc")

        slot = await NegotiateUploadUseCase().execute(platform, "abc")

        assert slot.needs_transfer is False

    @pytest.mark.asyncio
    async def test_platform_error_becomes_negotiation_failed(self):
        platform = Mock()
        platform.get_upload_url = AsyncMock(
            side_effect=PlatformAPIError(403, "GET", "/media/transcode/audio/uploadUrl", {"error": "denied"})
        )

        with pytest.raises(NegotiationFailed) as exc_info:
            await NegotiateUploadUseCase().execute(platform, "abc")

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == {"error": "denied"}

    @pytest.mark.asyncio
    async def test_transport_error_becomes_negotiation_failed(self):
        platform = Mock()
        platform.get_upload_url = AsyncMock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(NegotiationFailed, match="refused"):
            await NegotiateUploadUseCase().execute(platform, "abc")

    @pytest.mark.asyncio
    async def test_malformed_payload_becomes_negotiation_failed(self):
        platform = Mock()
        platform.get_upload_url = AsyncMock(return_value={"upload": {}})

        with pytest.raises(NegotiationFailed):
            await NegotiateUploadUseCase().execute(platform, "abc")


class TestTransfer:
    @pytest.mark.asyncio
    async def test_puts_bytes_with_content_type(self, transfer):
        slot = UploadSlot("u1", "https://upload.example/x")

        await TransferUseCase().execute(transfer, slot, b"data", "audio/mpeg")

        assert transfer.puts == [("https://upload.example/x", b"data", "audio/mpeg")]

    @pytest.mark.asyncio
    async def test_default_content_type(self, transfer):
        await TransferUseCase().execute(transfer, UploadSlot("u1", "https://x"), b"data")
        assert transfer.puts[0][2] == "application/octet-stream"

    @pytest.mark.asyncio
    async def test_failure_propagates(self, transfer):
        transfer.fail_for.add(b"data")

        with pytest.raises(TransferFailed) as exc_info:
            await TransferUseCase().execute(transfer, UploadSlot("u1", "https://x"), b"data")

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_slot_without_destination_rejected(self, transfer):
        with pytest.raises(ValueError):
            await TransferUseCase().execute(transfer, UploadSlot("u1"), b"data")


class TestPollTranscode:
    @pytest.mark.asyncio
    async def test_returns_descriptor_once_ready(self, platform):
        platform.pending_polls = 2
        platform.titles["abc"] = "Intro"

        descriptor = await PollTranscodeUseCase().execute(platform, "up-abc", interval=0, max_attempts=5)

        assert descriptor.content_identifier == "abc"
        assert descriptor.source_title == "Intro"
        assert descriptor.channel_layout == "stereo"
        assert platform.count("poll") == 3

    @pytest.mark.asyncio
    async def test_times_out_after_budget(self, platform):
        platform.never_ready = True

        with pytest.raises(TranscodeTimedOut) as exc_info:
            await PollTranscodeUseCase().execute(platform, "up-abc", interval=0.001, max_attempts=5)

        assert exc_info.value.slot_id == "up-abc"
        assert exc_info.value.attempts == 5
        assert platform.count("poll") == 5

    @pytest.mark.asyncio
    async def test_no_wait_after_last_attempt(self, platform, monkeypatch):
        platform.never_ready = True
        sleeps = []

        async def fake_sleep(delay):
            sleeps.append(delay)

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)

        with pytest.raises(TranscodeTimedOut):
            await PollTranscodeUseCase().execute(platform, "up-abc", interval=2, max_attempts=3)

        assert sleeps == [2, 2]

    @pytest.mark.asyncio
    async def test_cancel_before_first_query(self, platform):
        cancel = asyncio.Event()
        cancel.set()

        with pytest.raises(TranscodeCancelled):
            await PollTranscodeUseCase().execute(platform, "up-abc", cancel_event=cancel)

        assert platform.count("poll") == 0

    @pytest.mark.asyncio
    async def test_cancel_interrupts_wait(self, platform):
        platform.never_ready = True
        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.02, cancel.set)

        with pytest.raises(TranscodeCancelled):
            await PollTranscodeUseCase().execute(
                platform, "up-abc", interval=10, max_attempts=10, cancel_event=cancel
            )

    @pytest.mark.asyncio
    async def test_loudnorm_passed_through(self):
        platform = Mock()
        platform.get_transcode_status = AsyncMock(return_value={"transcode": {"transcodedSha256": "x"}})

        await PollTranscodeUseCase().execute(platform, "u1", loudnorm=True)

        platform.get_transcode_status.assert_awaited_once_with("u1", True)


class TestIngestFile:
    @pytest.mark.asyncio
    async def test_full_pipeline(self, platform, transfer, fast_config):
        f = audio("song.mp3", b"song-bytes")

        result = await IngestFileUseCase().execute(platform, transfer, f, fast_config)

        assert result.file is f
        assert result.content_identifier == sha(b"song-bytes")
        assert result.descriptor.media_reference == f"yoto:#{sha(b'song-bytes')}"
        assert result.transferred is True
        assert transfer.puts == [(f"https://upload.example/{sha(b'song-bytes')}", b"song-bytes", "audio/mpeg")]

    @pytest.mark.asyncio
    async def test_existing_content_skips_transfer_but_polls(self, platform, transfer, fast_config):
        platform.existing_shas.add(sha(b"song-bytes"))

        result = await IngestFileUseCase().execute(platform, transfer, audio("song.mp3", b"song-bytes"), fast_config)

        assert transfer.puts == []
        assert platform.count("poll") == 1
        assert result.transferred is False

    @pytest.mark.asyncio
    async def test_transfer_failure_stops_before_polling(self, platform, transfer, fast_config):
        transfer.fail_for.add(b"x")

        with pytest.raises(TransferFailed):
            await IngestFileUseCase().execute(platform, transfer, audio("x.mp3", b"x"), fast_config)

        assert platform.count("poll") == 0

    @pytest.mark.asyncio
    async def test_uses_preloaded_bytes(self, platform, transfer):
        f = Mock()
        f.name = "remote.mp3"
        f.size = 9
        f.content_type = "audio/mpeg"
        f.read = AsyncMock()

        result = await IngestFileUseCase().execute(
            platform, transfer, f, UploadConfig(poll_interval=0), data=b"preloaded"
        )

        f.read.assert_not_awaited()
        assert result.content_identifier == sha(b"preloaded")

    @pytest.mark.asyncio
    async def test_on_disk_file_hashed_without_loading_when_already_present(
        self, platform, transfer, fast_config, tmp_path, monkeypatch
    ):
        path = tmp_path / "song.mp3"
        path.write_bytes(b"on-disk")
        platform.existing_shas.add(sha(b"on-disk"))
        hashed = []
        real_hash_file = upload.hash_file

        async def spy_hash_file(p):
            hashed.append(p)
            return await real_hash_file(p)

        async def no_read(self):
            raise AssertionError("bytes should not be loaded")

        monkeypatch.setattr(upload, "hash_file", spy_hash_file)
        monkeypatch.setattr(LocalAudioFile, "read", no_read)

        result = await IngestFileUseCase().execute(platform, transfer, LocalAudioFile.from_path(path), fast_config)

        assert hashed == [path]
        assert result.content_identifier == sha(b"on-disk")
        assert transfer.puts == []

    @pytest.mark.asyncio
    async def test_on_disk_file_loaded_for_transfer(self, platform, transfer, fast_config, tmp_path):
        path = tmp_path / "song.mp3"
        path.write_bytes(b"on-disk")

        result = await IngestFileUseCase().execute(platform, transfer, LocalAudioFile.from_path(path), fast_config)

        assert result.transferred is True
        assert transfer.puts == [(f"https://upload.example/{sha(b'on-disk')}", b"on-disk", "audio/mpeg")]
