"""Error types raised across the resolution domain."""

from __future__ import annotations


class ResolutionError(RuntimeError):
    """Base class for resolution engine failures."""


class RemoteSourceError(ResolutionError):
    """Raised when an authoritative remote source cannot provide usable data."""


class SourceUnavailableError(RemoteSourceError):
    """The remote source timed out, refused, or answered with a non-success status."""


class MalformedPayloadError(RemoteSourceError):
    """The remote source answered, but the payload did not match the expected shape."""
