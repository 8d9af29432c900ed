"""Orchestrator package - coordinates upload workflows."""
from .batch import BatchUploadHandler
from .core import PlaylistUploader

__all__ = ["PlaylistUploader", "BatchUploadHandler"]
