"""Application use cases for playlist upload workflows."""

from .chapters import (
    build_chapters,
    build_chapters_from_tracks,
    normalize_icon,
)
from .compose import compose_body, compose_create_body, compose_update_body, content_totals
from .deduplication import dedupe_by_content, dedupe_files
from .merge import (
    extract_content,
    extract_title,
    merge_chapters_into_content,
    merge_tracks_into_content,
    rekey,
    sanitize_chapter,
    sanitize_track,
)
from .upload import (
    IngestFileUseCase,
    NegotiateUploadUseCase,
    PollTranscodeUseCase,
    TransferUseCase,
)

__all__ = [
    "build_chapters",
    "build_chapters_from_tracks",
    "normalize_icon",
    "compose_body",
    "compose_create_body",
    "compose_update_body",
    "content_totals",
    "dedupe_by_content",
    "dedupe_files",
    "extract_content",
    "extract_title",
    "merge_chapters_into_content",
    "merge_tracks_into_content",
    "rekey",
    "sanitize_chapter",
    "sanitize_track",
    "IngestFileUseCase",
    "NegotiateUploadUseCase",
    "PollTranscodeUseCase",
    "TransferUseCase",
]
