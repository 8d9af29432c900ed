"""
Models for playlist_uploader module.

Immutable dataclasses following Single Responsibility Principle.
"""
import asyncio
import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

MEDIA_REF_PREFIX = "yoto:#"
DEFAULT_FORMAT = "aac"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def pad2(n: int) -> str:
    """Zero-pad a positional index to two digits ("00", "01", ... "10")."""
    return f"{n:02d}"


def as_channel_layout(value: Any) -> Optional[str]:
    """Map a numeric or textual channel count to "mono"/"stereo"."""
    if isinstance(value, bool):
        return None
    if value in (1, "1", "mono"):
        return "mono"
    if value in (2, "2", "stereo"):
        return "stereo"
    return None


class FailurePolicy(Enum):
    """What the batch does when one file fails."""
    ABORT = "abort"
    CONTINUE = "continue"


@dataclass(frozen=True)
class UploadConfig:
    """Immutable configuration for upload operations."""
    poll_interval: float = 1.0
    poll_attempts: int = 120
    loudnorm: bool = False
    failure_policy: FailurePolicy = FailurePolicy.ABORT
    concurrency: int = 1
    request_timeout: int = 60

    @property
    def poll_timeout(self) -> float:
        """Upper bound on time spent waiting for one transcode."""
        return self.poll_interval * self.poll_attempts


@dataclass(frozen=True)
class LocalAudioFile:
    """
    A locally selected file: identity (name, size, mtime) plus byte access.

    Backed either by a path on disk or by bytes already held in memory.
    """
    name: str
    size: int
    mtime: float = 0.0
    content_type: str = DEFAULT_CONTENT_TYPE
    path: Optional[Path] = None
    data: Optional[bytes] = field(default=None, repr=False)

    @classmethod
    def from_path(cls, path: Path, content_type: Optional[str] = None) -> "LocalAudioFile":
        file_path = Path(path)
        stat = file_path.stat()
        if content_type is None:
            content_type, _ = mimetypes.guess_type(file_path.name)
        return cls(
            name=file_path.name,
            size=stat.st_size,
            mtime=stat.st_mtime,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            path=file_path,
        )

    @classmethod
    def from_bytes(
        cls,
        name: str,
        data: bytes,
        mtime: float = 0.0,
        content_type: Optional[str] = None,
    ) -> "LocalAudioFile":
        if content_type is None:
            content_type, _ = mimetypes.guess_type(name)
        return cls(
            name=name,
            size=len(data),
            mtime=mtime,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            data=data,
        )

    @property
    def identity(self) -> Tuple[str, int, float]:
        """Client-side identity used for pre-flight de-duplication."""
        return (self.name, self.size, self.mtime)

    async def read(self) -> bytes:
        """Return the raw bytes (read off the event loop for path-backed files)."""
        if self.data is not None:
            return self.data
        if self.path is None:
            raise ValueError(f"LocalAudioFile {self.name!r} has neither path nor data")
        return await asyncio.to_thread(self.path.read_bytes)


@dataclass(frozen=True)
class UploadSlot:
    """Negotiated upload destination. No destination_url means the platform already has the content."""
    slot_id: str
    destination_url: Optional[str] = None

    @property
    def needs_transfer(self) -> bool:
        return bool(self.destination_url)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "UploadSlot":
        upload = payload.get("upload") if isinstance(payload, dict) else None
        if not isinstance(upload, dict) or not upload.get("uploadId"):
            raise ValueError(f"missing upload.uploadId in response: {payload!r}")
        return cls(
            slot_id=str(upload["uploadId"]),
            destination_url=upload.get("uploadUrl") or None,
        )


@dataclass(frozen=True)
class TranscodeDescriptor:
    """Server-reported outcome of transcoding uploaded bytes."""
    content_identifier: str
    duration: Optional[float] = None
    byte_size: Optional[int] = None
    codec_format: Optional[str] = None
    channel_layout: Optional[str] = None
    source_title: Optional[str] = None

    @property
    def media_reference(self) -> str:
        return f"{MEDIA_REF_PREFIX}{self.content_identifier}"

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["TranscodeDescriptor"]:
        """
        Parse a poll-status response.

        Returns None while the transcode is not ready (no transcodedSha256).
        """
        transcode = payload.get("transcode") if isinstance(payload, dict) else None
        if not isinstance(transcode, dict) or not transcode.get("transcodedSha256"):
            return None

        info = transcode.get("transcodedInfo") or {}
        if not isinstance(info, dict):
            info = {}
        metadata = info.get("metadata") or {}
        title = metadata.get("title") if isinstance(metadata, dict) else None

        return cls(
            content_identifier=str(transcode["transcodedSha256"]),
            duration=info.get("duration"),
            byte_size=info.get("fileSize"),
            codec_format=info.get("format"),
            channel_layout=as_channel_layout(info.get("channels")),
            source_title=title or None,
        )


@dataclass(frozen=True)
class Track:
    """Playable leaf node referencing transcoded media."""
    key: str
    title: str
    overlay_label: str
    media_reference: str
    duration: float = 1
    byte_size: float = 1
    codec_format: str = DEFAULT_FORMAT
    channel_layout: Optional[str] = None
    display: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "key": self.key,
            "title": self.title,
            "format": self.codec_format,
            "trackUrl": self.media_reference,
            "type": "audio",
            "overlayLabel": self.overlay_label,
            "duration": self.duration,
            "fileSize": self.byte_size,
        }
        if self.channel_layout:
            data["channels"] = self.channel_layout
        if self.display is not None:
            data["display"] = {"icon16x16": self.display}
        return data


@dataclass(frozen=True)
class Chapter:
    """Addressable playlist unit. Holds exactly one Track."""
    key: str
    title: str
    overlay_label: str
    track: Track
    display: Optional[str] = None

    @property
    def tracks(self) -> Tuple[Track, ...]:
        return (self.track,)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "title": self.title,
            "overlayLabel": self.overlay_label,
            "display": {"icon16x16": self.display},
            "tracks": [self.track.to_dict()],
        }


@dataclass(frozen=True)
class PlaylistContent:
    """Ordered chapters plus platform-specific config flags."""
    chapters: Tuple[Chapter, ...] = ()
    config: Dict[str, Any] = field(default_factory=lambda: {"onlineOnly": False})

    @property
    def tracks(self) -> List[Track]:
        return [chapter.track for chapter in self.chapters]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chapters": [chapter.to_dict() for chapter in self.chapters],
            "config": dict(self.config),
        }


@dataclass(frozen=True)
class IngestResult:
    """One file that made it through hash → negotiate → transfer → poll."""
    file: LocalAudioFile
    descriptor: TranscodeDescriptor
    content_identifier: str
    transferred: bool = True


@dataclass(frozen=True)
class IngestFailure:
    """A file whose ingestion raised."""
    file: LocalAudioFile
    error: Exception


@dataclass
class BatchResult:
    """Result of a batch ingestion: survivors plus whatever went wrong."""
    results: List[IngestResult]
    total: int
    failures: List[IngestFailure] = field(default_factory=list)
    cancelled: bool = False

    @property
    def success(self) -> bool:
        return not self.failures and not self.cancelled

    @property
    def error(self) -> Optional[Exception]:
        """First error encountered (the one that aborted the batch under ABORT)."""
        return self.failures[0].error if self.failures else None


@dataclass
class PlaylistResult:
    """Result of a create or append flow."""
    card_id: Optional[str]
    title: str
    content: PlaylistContent
    added_chapters: int
    batch: BatchResult
    response: Dict[str, Any] = field(default_factory=dict)

    @property
    def chapter_count(self) -> int:
        return len(self.content.chapters)
