"""Shared deduplication helpers for the two batch de-dup layers."""
from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Set, TypeVar

from playlist_uploader.models import IngestResult, LocalAudioFile

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _dedupe(items: Iterable[T], key: Callable[[T], object]) -> List[T]:
    seen: Set[object] = set()
    out: List[T] = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        out.append(item)
    return out


def dedupe_files(files: Iterable[LocalAudioFile]) -> List[LocalAudioFile]:
    """
    Drop repeated selections of the same local file.

    Identity is (name, size, mtime); nothing is read or hashed here.
    First occurrence wins.
    """
    files = list(files)
    unique = _dedupe(files, lambda f: f.identity)
    if len(unique) != len(files):
        logger.debug("Pre-flight dedup removed %d duplicate selection(s)", len(files) - len(unique))
    return unique


def dedupe_by_content(results: Iterable[IngestResult]) -> List[IngestResult]:
    """
    Drop results whose transcoded content identifier was already seen.

    Differently named local files can transcode to identical remote content.
    Selection order of survivors is preserved.
    """
    results = list(results)
    unique = _dedupe(results, lambda r: r.descriptor.content_identifier)
    if len(unique) != len(results):
        logger.info(
            "Dropped %d result(s) with duplicate transcoded content",
            len(results) - len(unique),
        )
    return unique
