"""Error taxonomy for the regex distance renderer."""

from __future__ import annotations


class DistRegexError(Exception):
    """Base class for render failures. ``stage`` names the step that failed."""

    def __init__(self, message: str, *, stage: str) -> None:
        super().__init__(message)
        self.stage = stage


class InvalidDepth(DistRegexError, ValueError):
    """The canvas depth is negative, not an integer, or too large."""


class CapacityExceeded(InvalidDepth):
    """The address grid would not fit in the configured memory ceiling."""


class InvalidPattern(DistRegexError, ValueError):
    """The regular expression failed to compile."""


class ImageWriteFailure(DistRegexError, OSError):
    """The rendered image could not be written to disk."""
