"""Shared fakes for playlist_uploader tests."""
import asyncio
import hashlib
from typing import Any, Dict, List, Optional

import pytest

from playlist_uploader.errors import TransferFailed
from playlist_uploader.models import LocalAudioFile, UploadConfig


def sha(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def audio(name: str, data: bytes, mtime: float = 0.0) -> LocalAudioFile:
    return LocalAudioFile.from_bytes(name, data, mtime=mtime)


class FakePlatform:
    """In-memory stand-in for PlatformRepository."""

    def __init__(self):
        self.existing_shas = set()
        self.transcoded: Dict[str, str] = {}
        self.titles: Dict[str, str] = {}
        self.pending_polls = 0
        self.never_ready = False
        self.info = {"duration": 12.5, "fileSize": 2048, "format": "aac", "channels": 2}
        self.content: Dict[str, Any] = {}
        self.cards: List[Dict[str, Any]] = []
        self.saved: List[Dict[str, Any]] = []
        self.save_response: Dict[str, Any] = {"card": {"cardId": "new-card"}}
        self.calls: List[tuple] = []
        self._polls: Dict[str, int] = {}

    async def get_upload_url(self, sha256: str, filename: Optional[str] = None) -> Dict[str, Any]:
        self.calls.append(("negotiate", sha256, filename))
        url = None if sha256 in self.existing_shas else f"https://upload.example/{sha256}"
        return {"upload": {"uploadUrl": url, "uploadId": f"up-{sha256}"}}

    async def get_transcode_status(self, upload_id: str, loudnorm: bool = False) -> Dict[str, Any]:
        self.calls.append(("poll", upload_id))
        count = self._polls.get(upload_id, 0) + 1
        self._polls[upload_id] = count
        if self.never_ready or count <= self.pending_polls:
            return {"transcode": {}}

        source_sha = upload_id[len("up-"):]
        info = dict(self.info)
        if source_sha in self.titles:
            info["metadata"] = {"title": self.titles[source_sha]}
        return {
            "transcode": {
                "transcodedSha256": self.transcoded.get(source_sha, source_sha),
                "transcodedInfo": info,
            }
        }

    async def get_content(self, card_id: str) -> Dict[str, Any]:
        self.calls.append(("get_content", card_id))
        return self.content.get(card_id, {})

    async def list_content(self, show_deleted: bool = False) -> Dict[str, Any]:
        self.calls.append(("list_content", show_deleted))
        return {"cards": self.cards}

    async def save_content(self, body: Dict[str, Any]) -> Dict[str, Any]:
        self.saved.append(body)
        return self.save_response

    def count(self, kind: str) -> int:
        return sum(1 for call in self.calls if call[0] == kind)


class FakeTransfer:
    """Records PUTs; fails or delays per payload."""

    def __init__(self):
        self.puts: List[tuple] = []
        self.fail_for = set()
        self.delays: Dict[bytes, float] = {}

    async def put(self, url: str, data: bytes, content_type: str) -> None:
        delay = self.delays.get(data, 0)
        if delay:
            await asyncio.sleep(delay)
        if data in self.fail_for:
            raise TransferFailed("Upload failed with status 500: boom", status_code=500, detail="boom")
        self.puts.append((url, data, content_type))


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture
def transfer():
    return FakeTransfer()


@pytest.fixture
def fast_config():
    return UploadConfig(poll_interval=0, poll_attempts=3)
