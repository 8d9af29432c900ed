"""File collection utilities for batch uploads."""
import mimetypes
from pathlib import Path
from typing import Iterable, List

_EXTRA_AUDIO_EXTS = {".m4a", ".m4b", ".opus", ".ogg", ".flac", ".aac", ".wav", ".mp3"}


def is_audio(path: Path) -> bool:
    mimetype, _ = mimetypes.guess_type(str(path))
    if mimetype and mimetype.startswith("audio/"):
        return True
    return Path(path).suffix.lower() in _EXTRA_AUDIO_EXTS


class FileCollector:
    """Collects audio files from paths given on the command line."""

    @staticmethod
    def collect_files(folder: Path) -> List[Path]:
        """
        Collect all audio files recursively.

        Args:
            folder: Root folder to scan

        Returns:
            Sorted list of audio file paths
        """
        files = []
        for item in folder.rglob("*"):
            if item.is_file() and is_audio(item):
                files.append(item)
        return sorted(files)

    @classmethod
    def expand(cls, paths: Iterable[Path]) -> List[Path]:
        """Expand directories to their audio files; explicit files are kept in the order given."""
        out: List[Path] = []
        for path in paths:
            if path.is_dir():
                out.extend(cls.collect_files(path))
            elif path.is_file():
                out.append(path)
            else:
                raise FileNotFoundError(f"source does not exist: {path}")
        return out
