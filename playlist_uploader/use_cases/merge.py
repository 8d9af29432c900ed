"""
Content merger.

Existing playlist documents come from the platform and may have been written
by other clients or older versions of this one, so they are normalized field
by field instead of validated. New chapters are appended without repeating any
media reference, and every chapter is re-keyed by position afterwards.
"""
from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from playlist_uploader.errors import InvalidContentError
from playlist_uploader.models import (
    DEFAULT_FORMAT,
    Chapter,
    PlaylistContent,
    Track,
    as_channel_layout,
    pad2,
)
from playlist_uploader.use_cases.chapters import build_chapters_from_tracks, normalize_icon

logger = logging.getLogger(__name__)


def _finite_or_default(value: Any, default: float = 1) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return value if math.isfinite(value) else default


def _str_or_default(value: Any, default: str) -> str:
    return default if value is None else str(value)


def _display_icon(container: Any) -> Optional[str]:
    display = container.get("display") if isinstance(container, dict) else None
    if not isinstance(display, dict):
        return None
    return normalize_icon(display.get("icon16x16"))


def sanitize_track(raw: Any) -> Track:
    """
    Coerce an untrusted track dict into a Track.

    Raises:
        InvalidContentError: if there is no media reference to point at.
    """
    track_url = raw.get("trackUrl") if isinstance(raw, dict) else None
    if not isinstance(track_url, str) or not track_url.strip():
        raise InvalidContentError(f"track has no media reference: {raw!r}")

    return Track(
        key=_str_or_default(raw.get("key"), "01"),
        title=_str_or_default(raw.get("title"), "Track"),
        overlay_label=_str_or_default(raw.get("overlayLabel"), "1"),
        media_reference=track_url.strip(),
        duration=_finite_or_default(raw.get("duration")),
        byte_size=_finite_or_default(raw.get("fileSize")),
        codec_format=str(raw.get("format") or DEFAULT_FORMAT),
        channel_layout=as_channel_layout(raw.get("channels")),
        display=_display_icon(raw),
    )


def sanitize_chapter(raw: Any) -> List[Chapter]:
    """
    Coerce an untrusted chapter dict into one chapter per distinct track.

    A chapter carrying several tracks is split so every chapter keeps exactly
    one; a chapter carrying none yields nothing.
    """
    if not isinstance(raw, dict):
        logger.warning("Dropping malformed chapter entry: %r", raw)
        return []

    raw_tracks = raw.get("tracks")
    if not isinstance(raw_tracks, list):
        raw_tracks = []

    tracks: List[Track] = []
    seen: Set[str] = set()
    for raw_track in raw_tracks:
        track = sanitize_track(raw_track)
        if track.media_reference in seen:
            continue
        seen.add(track.media_reference)
        tracks.append(track)

    if not tracks:
        logger.warning("Dropping chapter %r with no tracks", raw.get("title"))
        return []
    if len(tracks) > 1:
        logger.warning(
            "Splitting chapter %r with %d tracks into one chapter per track",
            raw.get("title"), len(tracks),
        )

    title = _str_or_default(raw.get("title"), "")
    display = _display_icon(raw)
    return [
        Chapter(
            key=_str_or_default(raw.get("key"), "00"),
            title=title if i == 0 else track.title,
            overlay_label=_str_or_default(raw.get("overlayLabel"), "1"),
            track=track,
            display=display,
        )
        for i, track in enumerate(tracks)
    ]


def extract_content(document: Any) -> Dict[str, Any]:
    """Find the content dict in a fetched document ({"card": {"content"}}, {"content"}, or bare)."""
    if document is None:
        return {}
    if isinstance(document, PlaylistContent):
        return document.to_dict()
    if not isinstance(document, dict):
        return {}
    card = document.get("card")
    if isinstance(card, dict) and isinstance(card.get("content"), dict):
        return card["content"]
    if isinstance(document.get("content"), dict):
        return document["content"]
    if "chapters" in document:
        return document
    return {}


def extract_title(document: Any) -> Optional[str]:
    if not isinstance(document, dict):
        return None
    card = document.get("card")
    if isinstance(card, dict) and card.get("title"):
        return str(card["title"])
    if document.get("title"):
        return str(document["title"])
    return None


def rekey(chapters: Sequence[Chapter]) -> List[Chapter]:
    """Recompute positional keys and labels; each chapter's single track is "01"."""
    return [
        replace(
            chapter,
            key=pad2(i),
            overlay_label=str(i + 1),
            track=replace(chapter.track, key="01", overlay_label=str(i + 1)),
        )
        for i, chapter in enumerate(chapters)
    ]


def merge_chapters_into_content(
    existing: Any,
    new_chapters: Iterable[Chapter],
    default_icon: Optional[str] = None,
) -> PlaylistContent:
    """
    Append new chapters to existing content, skipping any track whose media
    reference is already present, then re-key everything from "00".

    Merging the same batch into the result again changes nothing.
    """
    source = extract_content(existing)
    raw_chapters = source.get("chapters")
    if not isinstance(raw_chapters, list):
        raw_chapters = []

    seen: Set[str] = set()
    kept: List[Chapter] = []
    for raw in raw_chapters:
        for chapter in sanitize_chapter(raw):
            ref = chapter.track.media_reference
            if ref in seen:
                logger.warning("Dropping repeated existing track %s", ref)
                continue
            seen.add(ref)
            kept.append(chapter)

    existing_count = len(kept)
    default_icon = normalize_icon(default_icon)
    for chapter in new_chapters:
        ref = chapter.track.media_reference
        if not ref:
            raise InvalidContentError(f"new chapter {chapter.title!r} has no media reference")
        if ref in seen:
            logger.debug("Skipping %s: already in playlist", ref)
            continue
        seen.add(ref)
        if chapter.display is None and default_icon is not None:
            chapter = replace(chapter, display=default_icon)
        kept.append(chapter)

    logger.info(
        "Merged content: %d existing + %d new chapter(s)",
        existing_count, len(kept) - existing_count,
    )

    config = source.get("config")
    merged_config = {"onlineOnly": False}
    if isinstance(config, dict):
        merged_config.update(config)
    return PlaylistContent(chapters=tuple(rekey(kept)), config=merged_config)


def merge_tracks_into_content(
    existing: Any,
    tracks: Iterable[Track],
    icon: Optional[str] = None,
) -> PlaylistContent:
    """Wrap loose tracks one per chapter, then merge."""
    return merge_chapters_into_content(existing, build_chapters_from_tracks(tracks, icon), icon)
