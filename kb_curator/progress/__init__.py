"""Progress reporting for batch operations."""

from .registry import ProgressChannel, ProgressEvent, ProgressRegistry

__all__ = ["ProgressChannel", "ProgressEvent", "ProgressRegistry"]
