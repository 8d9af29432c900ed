"""Typed error kinds raised by the upload pipeline."""
from typing import Any, Optional


class UploaderError(RuntimeError):
    """Base class for playlist_uploader failures."""


class PlatformAPIError(UploaderError):
    """Platform JSON endpoint answered with a non-success status."""

    def __init__(self, status_code: int, method: str, endpoint: str, detail: Any = None):
        self.status_code = status_code
        self.method = method
        self.endpoint = endpoint
        self.detail = detail
        super().__init__(f"API error {status_code} on {method} {endpoint}: {detail}")


class NegotiationFailed(UploaderError):
    """Platform rejected the upload-slot request."""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Any = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class TransferFailed(UploaderError):
    """Byte transfer to the negotiated destination failed."""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Any = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class TranscodeTimedOut(UploaderError):
    """
    No transcode descriptor appeared within the polling budget.

    The bytes did arrive; polling alone may be retried with the same slot_id.
    """

    def __init__(self, slot_id: str, attempts: int):
        self.slot_id = slot_id
        self.attempts = attempts
        super().__init__(f"Transcoding timed out for upload {slot_id} after {attempts} attempts")


class TranscodeCancelled(UploaderError):
    """Polling was stopped by the caller before a descriptor appeared."""

    def __init__(self, slot_id: str):
        self.slot_id = slot_id
        super().__init__(f"Polling cancelled for upload {slot_id}")


class BatchIngestError(UploaderError):
    """A batch finished with failures and the caller did not accept a partial result."""

    def __init__(self, batch):
        self.batch = batch
        failed = ", ".join(f.file.name for f in batch.failures) or "-"
        reason = "cancelled" if batch.cancelled and not batch.failures else str(batch.error)
        super().__init__(
            f"batch ingestion incomplete ({len(batch.results)}/{batch.total} ok, failed: {failed}): {reason}"
        )


class InvalidContentError(ValueError):
    """Merge input that cannot be repaired (e.g. a track with no media reference)."""
