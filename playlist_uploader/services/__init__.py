"""Services for playlist_uploader module."""
from .api_client import DEFAULT_API_URL, HTTPAPIClient
from .hasher import content_identifier, hash_file
from .platform import PlatformRepository
from .transfer import HTTPTransferClient

__all__ = [
    "DEFAULT_API_URL",
    "HTTPAPIClient",
    "HTTPTransferClient",
    "PlatformRepository",
    "content_identifier",
    "hash_file",
]
