"""
Chapter/Track builder.

Turns ingestion results into playlist chapters, one track per chapter, the
way the platform's own client lays them out.
"""
from __future__ import annotations

import re
from typing import Any, Iterable, List, Optional

from playlist_uploader.models import (
    DEFAULT_FORMAT,
    MEDIA_REF_PREFIX,
    Chapter,
    IngestResult,
    Track,
    pad2,
)
from playlist_uploader.use_cases.deduplication import dedupe_by_content

_EXTENSION_RE = re.compile(r"\.[^.]+$")


def normalize_icon(value: Any) -> Optional[str]:
    """
    Normalize an icon reference to a URL, a ``yoto:#`` reference, or None.

    Empty strings become None; a bare id is treated as a media id.
    """
    if not isinstance(value, str):
        return None
    v = value.strip()
    if not v:
        return None
    if v.startswith(("http://", "https://", MEDIA_REF_PREFIX)):
        return v
    return f"{MEDIA_REF_PREFIX}{v}"


def strip_extension(filename: str) -> str:
    return _EXTENSION_RE.sub("", filename)


def _number_or_default(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 1
    return value


def build_track(result: IngestResult, index: int, icon: Optional[str] = None) -> Track:
    """Build the track for the result at 0-based position ``index``."""
    descriptor = result.descriptor
    return Track(
        key=pad2(index + 1),
        title=descriptor.source_title or strip_extension(result.file.name),
        overlay_label=str(index + 1),
        media_reference=descriptor.media_reference,
        duration=_number_or_default(descriptor.duration),
        byte_size=_number_or_default(descriptor.byte_size),
        codec_format=str(descriptor.codec_format or DEFAULT_FORMAT),
        channel_layout=descriptor.channel_layout,
        display=icon,
    )


def build_chapters(results: Iterable[IngestResult], icon: Optional[str] = None) -> List[Chapter]:
    """One chapter per surviving result, keyed "00", "01", ... in order."""
    icon = normalize_icon(icon)
    chapters: List[Chapter] = []
    for i, result in enumerate(dedupe_by_content(results)):
        track = build_track(result, i, icon)
        chapters.append(
            Chapter(
                key=pad2(i),
                title=track.title,
                overlay_label=str(i + 1),
                track=track,
                display=icon,
            )
        )
    return chapters


def build_chapters_from_tracks(tracks: Iterable[Track], icon: Optional[str] = None) -> List[Chapter]:
    """Wrap loose tracks one per chapter."""
    icon = normalize_icon(icon)
    return [
        Chapter(
            key=pad2(i),
            title=track.title,
            overlay_label=str(i + 1),
            track=track,
            display=icon,
        )
        for i, track in enumerate(tracks)
    ]
