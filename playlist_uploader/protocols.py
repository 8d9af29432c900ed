"""
Protocols (Interfaces) for Dependency Inversion.

Following Interface Segregation Principle - small, focused interfaces.
"""
from typing import Any, Dict, Optional, Protocol, runtime_checkable


@runtime_checkable
class IAPIClient(Protocol):
    """Interface for authenticated JSON API operations."""

    async def post(self, endpoint: str, json: Dict) -> Any:
        """POST request to API."""
        ...

    async def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET request to API."""
        ...


@runtime_checkable
class ITransferClient(Protocol):
    """Interface for raw byte transfer to a pre-signed destination."""

    async def put(self, url: str, data: bytes, content_type: str) -> None:
        """PUT bytes; raise TransferFailed on any non-success outcome."""
        ...


@runtime_checkable
class IPlatform(Protocol):
    """Interface for the remote content platform."""

    async def get_upload_url(self, sha256: str, filename: Optional[str] = None) -> Dict[str, Any]:
        ...

    async def get_transcode_status(self, upload_id: str, loudnorm: bool = False) -> Dict[str, Any]:
        ...

    async def get_content(self, card_id: str) -> Dict[str, Any]:
        ...

    async def list_content(self, show_deleted: bool = False) -> Dict[str, Any]:
        ...

    async def save_content(self, body: Dict[str, Any]) -> Dict[str, Any]:
        ...
