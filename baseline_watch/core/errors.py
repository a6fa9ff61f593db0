"""
Baseline Watch - Exceptions carried by monitor error events.
"""

from typing import Optional


class MonitorError(Exception):
    """Base class for non-fatal monitoring failures."""

    def __init__(self, message: str, file_path: Optional[str] = None) -> None:
        super().__init__(message)
        self.file_path = file_path


class WatchError(MonitorError):
    """A native watch could not be established for a path."""


class AnalysisError(MonitorError):
    """Reading or analyzing a file failed."""
