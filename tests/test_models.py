"""Tests for playlist_uploader models."""
import pytest

from playlist_uploader.models import (
    BatchResult,
    Chapter,
    IngestFailure,
    LocalAudioFile,
    PlaylistContent,
    Track,
    TranscodeDescriptor,
    UploadConfig,
    UploadSlot,
    as_channel_layout,
    pad2,
)


def test_pad2():
    assert pad2(0) == "00"
    assert pad2(9) == "09"
    assert pad2(10) == "10"
    assert pad2(123) == "123"


@pytest.mark.parametrize(
    "value,expected",
    [(1, "mono"), ("1", "mono"), ("mono", "mono"), (2, "stereo"), ("stereo", "stereo"),
     (6, None), (None, None), ("surround", None), (True, None), (False, None)],
)
def test_as_channel_layout(value, expected):
    assert as_channel_layout(value) == expected


class TestUploadConfig:
    def test_defaults(self):
        config = UploadConfig()
        assert config.poll_interval == 1.0
        assert config.poll_attempts == 120
        assert config.poll_timeout == 120.0
        assert config.concurrency == 1

    def test_immutable(self):
        config = UploadConfig()
        with pytest.raises(Exception):
            config.poll_attempts = 5


class TestLocalAudioFile:
    def test_from_bytes(self):
        f = LocalAudioFile.from_bytes("song.mp3", b"abc", mtime=5)
        assert f.size == 3
        assert f.identity == ("song.mp3", 3, 5)
        assert f.content_type == "audio/mpeg"

    def test_unknown_type_falls_back(self):
        f = LocalAudioFile.from_bytes("blob.zzz-unknown", b"abc")
        assert f.content_type == "application/octet-stream"

    @pytest.mark.asyncio
    async def test_from_path_reads_bytes(self, tmp_path):
        path = tmp_path / "track.mp3"
        path.write_bytes(b"audio-bytes")

        f = LocalAudioFile.from_path(path)

        assert f.name == "track.mp3"
        assert f.size == len(b"audio-bytes")
        assert await f.read() == b"audio-bytes"

    @pytest.mark.asyncio
    async def test_unreadable_file_raises_os_error(self, tmp_path):
        path = tmp_path / "gone.mp3"
        path.write_bytes(b"x")
        f = LocalAudioFile.from_path(path)
        path.unlink()

        with pytest.raises(OSError):
            await f.read()


class TestUploadSlot:
    def test_with_destination(self):
        slot = UploadSlot.from_payload({"upload": {"uploadUrl": "https://s3/put", "uploadId": "u1"}})
        assert slot.slot_id == "u1"
        assert slot.needs_transfer is True

    def test_already_present(self):
        slot = UploadSlot.from_payload({"upload": {"uploadUrl": None, "uploadId": "u2"}})
        assert slot.destination_url is None
        assert slot.needs_transfer is False

    def test_missing_upload_id(self):
        with pytest.raises(ValueError):
            UploadSlot.from_payload({"upload": {"uploadUrl": "x"}})


class TestTranscodeDescriptor:
    def test_not_ready(self):
        assert TranscodeDescriptor.from_payload({}) is None
        assert TranscodeDescriptor.from_payload({"transcode": {}}) is None
        assert TranscodeDescriptor.from_payload({"transcode": {"transcodedSha256": ""}}) is None

    def test_ready(self):
        descriptor = TranscodeDescriptor.from_payload({
            "transcode": {
                "transcodedSha256": "abc123",
                "transcodedInfo": {
                    "duration": 61.2,
                    "fileSize": 1000,
                    "format": "opus",
                    "channels": 1,
                    "metadata": {"title": "Chapter One"},
                },
            }
        })
        assert descriptor.content_identifier == "abc123"
        assert descriptor.media_reference == "yoto:#abc123"
        assert descriptor.duration == 61.2
        assert descriptor.codec_format == "opus"
        assert descriptor.channel_layout == "mono"
        assert descriptor.source_title == "Chapter One"

    def test_ready_without_info(self):
        descriptor = TranscodeDescriptor.from_payload({"transcode": {"transcodedSha256": "abc"}})
        assert descriptor.duration is None
        assert descriptor.channel_layout is None
        assert descriptor.source_title is None


class TestTrackAndChapter:
    def test_track_to_dict(self):
        track = Track(
            key="01", title="A", overlay_label="1", media_reference="yoto:#a",
            duration=3, byte_size=4, channel_layout="stereo", display="yoto:#icon",
        )
        assert track.to_dict() == {
            "key": "01",
            "title": "A",
            "format": "aac",
            "trackUrl": "yoto:#a",
            "type": "audio",
            "overlayLabel": "1",
            "duration": 3,
            "fileSize": 4,
            "channels": "stereo",
            "display": {"icon16x16": "yoto:#icon"},
        }

    def test_track_omits_optional_fields(self):
        data = Track(key="01", title="A", overlay_label="1", media_reference="yoto:#a").to_dict()
        assert "channels" not in data
        assert "display" not in data

    def test_chapter_holds_one_track(self):
        track = Track(key="01", title="A", overlay_label="1", media_reference="yoto:#a")
        chapter = Chapter(key="00", title="A", overlay_label="1", track=track)
        assert chapter.tracks == (track,)
        data = chapter.to_dict()
        assert data["display"] == {"icon16x16": None}
        assert len(data["tracks"]) == 1

    def test_playlist_content_default_config(self):
        assert PlaylistContent().to_dict() == {"chapters": [], "config": {"onlineOnly": False}}


class TestBatchResult:
    def test_success(self):
        batch = BatchResult(results=[], total=0)
        assert batch.success is True
        assert batch.error is None

    def test_error_is_first_failure(self):
        f = LocalAudioFile.from_bytes("a.mp3", b"a")
        first, second = RuntimeError("first"), RuntimeError("second")
        batch = BatchResult(
            results=[], total=2,
            failures=[IngestFailure(f, first), IngestFailure(f, second)],
        )
        assert batch.success is False
        assert batch.error is first

    def test_cancelled_is_not_success(self):
        assert BatchResult(results=[], total=1, cancelled=True).success is False
