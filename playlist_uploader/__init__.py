"""
playlist_uploader - Upload audio and assemble platform playlists.

Follows SOLID principles:
- Single Responsibility: Each service handles one concern
- Open/Closed: Extend via new services
- Liskov Substitution: Services implement protocols
- Interface Segregation: Small focused interfaces
- Dependency Injection: Services injected into orchestrator

Usage:
    from playlist_uploader import PlaylistUploader, UploadConfig

    # New playlist from a batch of files
    async with PlaylistUploader(token) as uploader:
        result = await uploader.create_playlist(paths, title="Bedtime")

    # Append to an existing playlist, skipping tracks it already has
    result = await uploader.append_to_playlist("31yYU", more_paths)

    # Just upload and transcode, then build/merge yourself
    batch = await uploader.ingest(paths, progress_callback=lambda done, total: ...)
    chapters = build_chapters(batch.results)
"""
from .errors import (
    BatchIngestError,
    InvalidContentError,
    NegotiationFailed,
    PlatformAPIError,
    TranscodeCancelled,
    TranscodeTimedOut,
    TransferFailed,
    UploaderError,
)
from .models import (
    BatchResult,
    Chapter,
    FailurePolicy,
    IngestResult,
    LocalAudioFile,
    PlaylistContent,
    PlaylistResult,
    Track,
    TranscodeDescriptor,
    UploadConfig,
    UploadSlot,
)
from .orchestrator import BatchUploadHandler, PlaylistUploader
from .use_cases import (
    build_chapters,
    compose_body,
    merge_chapters_into_content,
)

__version__ = "0.3.0"
__all__ = [
    # Main
    "PlaylistUploader",
    "BatchUploadHandler",
    # Models
    "BatchResult",
    "Chapter",
    "FailurePolicy",
    "IngestResult",
    "LocalAudioFile",
    "PlaylistContent",
    "PlaylistResult",
    "Track",
    "TranscodeDescriptor",
    "UploadConfig",
    "UploadSlot",
    # Errors
    "BatchIngestError",
    "InvalidContentError",
    "NegotiationFailed",
    "PlatformAPIError",
    "TranscodeCancelled",
    "TranscodeTimedOut",
    "TransferFailed",
    "UploaderError",
    # Building blocks
    "build_chapters",
    "compose_body",
    "merge_chapters_into_content",
]
