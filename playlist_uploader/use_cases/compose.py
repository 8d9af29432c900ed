"""Compose request bodies for POST /content (create vs. update)."""
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Tuple, Union

from playlist_uploader.models import Chapter, PlaylistContent

ACTIVITY = "yoto_Player"
CONTENT_VERSION = "1"


def _as_content(content: Union[PlaylistContent, Iterable[Chapter]]) -> PlaylistContent:
    if isinstance(content, PlaylistContent):
        return content
    return PlaylistContent(chapters=tuple(content))


def content_totals(content: Union[PlaylistContent, Iterable[Chapter]]) -> Tuple[float, float]:
    """Sum (duration, file size) over every chapter's track."""
    content = _as_content(content)
    duration = sum(track.duration or 0 for track in content.tracks)
    file_size = sum(track.byte_size or 0 for track in content.tracks)
    return duration, file_size


def compose_create_body(
    title: str,
    content: Union[PlaylistContent, Iterable[Chapter]],
    cover_image_l: Optional[str] = None,
    duration_total: Optional[float] = None,
    file_size_total: Optional[float] = None,
) -> Dict[str, Any]:
    content = _as_content(content)
    body: Dict[str, Any] = {
        "title": title,
        "content": {
            "activity": ACTIVITY,
            "version": CONTENT_VERSION,
            "chapters": [chapter.to_dict() for chapter in content.chapters],
            "config": dict(content.config),
        },
        "metadata": {},
    }
    if cover_image_l:
        body["metadata"]["cover"] = {"imageL": cover_image_l}
    if duration_total or file_size_total:
        body["metadata"]["media"] = {
            "duration": duration_total or 0,
            "fileSize": file_size_total or 0,
        }
    return body


def compose_update_body(
    card_id: str,
    title: str,
    content: Union[PlaylistContent, Iterable[Chapter]],
) -> Dict[str, Any]:
    content = _as_content(content)
    return {
        "cardId": card_id,
        "title": title,
        "content": {
            "activity": ACTIVITY,
            "version": CONTENT_VERSION,
            "playbackType": "linear",
            "chapters": [chapter.to_dict() for chapter in content.chapters],
            "config": dict(content.config),
        },
    }


def compose_body(
    title: str,
    content: Union[PlaylistContent, Iterable[Chapter]],
    cover_image_l: Optional[str] = None,
    duration_total: Optional[float] = None,
    file_size_total: Optional[float] = None,
    card_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the create body, or the update body when ``card_id`` is given.

    Update bodies carry no metadata block; cover and totals are ignored there.
    """
    if card_id:
        return compose_update_body(card_id, title, content)
    return compose_create_body(title, content, cover_image_l, duration_total, file_size_total)
