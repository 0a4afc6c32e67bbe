"""stream-aiter exception hierarchy."""

from __future__ import annotations

from typing import Any

__all__ = [
    "SourceError",
    "StreamAiterError",
    "ValidationError",
]


class StreamAiterError(Exception):
    """Base class for stream-aiter exceptions."""


class ValidationError(StreamAiterError):
    """Raised when options or source usage fail validation."""


class SourceError(StreamAiterError):
    """Raised for an error event whose payload is not an exception."""

    def __init__(self, payload: Any) -> None:
        super().__init__(f"Source emitted a non-exception error: {payload!r}")
        self.payload = payload
