"""Domain errors raised by manifest storage and parsing."""

from __future__ import annotations


class ShishoError(Exception):
    """Base class for tracked-directory errors."""


class NotTrackedError(ShishoError):
    """Raised when a directory has no metadata subdirectory."""

    def __init__(self, directory: str) -> None:
        super().__init__(f"Not a tracked directory: {directory}")
        self.directory = directory


class MissingMarkerError(ShishoError):
    """Raised when an identity or version marker is absent."""

    def __init__(self, directory: str, marker: str) -> None:
        super().__init__(f"No {marker} marker found in {directory}")
        self.directory = directory
        self.marker = marker


class FormatError(ShishoError):
    """Raised when a manifest line or marker name cannot be parsed."""

    def __init__(self, reason: str, line_number: int | None = None) -> None:
        message = reason if line_number is None else f"line {line_number}: {reason}"
        super().__init__(message)
        self.reason = reason
        self.line_number = line_number
