"""
Content hashing.

The platform keys uploaded audio by the SHA-256 of the raw bytes, so the
same digest doubles as this package's de-duplication key.
"""
import asyncio
import hashlib
from pathlib import Path

CHUNK_SIZE = 65536  # 64KB chunks


def content_identifier(data: bytes) -> str:
    """Return the lowercase SHA-256 hex digest of ``data``."""
    return hashlib.sha256(data).hexdigest()


async def hash_file(path: Path) -> str:
    """Calculate SHA-256 of a file asynchronously (non-blocking)."""
    def _hash_file():
        """Synchronous hash calculation to run in thread pool."""
        hasher = hashlib.sha256()
        with open(path, "rb") as f:
            while True:
                chunk = f.read(CHUNK_SIZE)
                if not chunk:
                    break
                hasher.update(chunk)
        return hasher.hexdigest()

    # Run in thread pool to avoid blocking the event loop
    return await asyncio.to_thread(_hash_file)
