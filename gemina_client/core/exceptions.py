"""Error taxonomy for the Gemina client.

Network failures are not wrapped: ``httpx.TransportError`` propagates from the
HTTP call unchanged and is re-exported here as ``TransportError``.
"""

from __future__ import annotations

from httpx import TransportError

__all__ = ["GeminaError", "DecodeError", "ConfigurationError", "TransportError"]


class GeminaError(Exception):
    """Base class for errors raised by this package."""


class DecodeError(GeminaError, ValueError):
    """A response body does not match the expected schema."""

    def __init__(self, field: str, expected: str, detail: str | None = None) -> None:
        self.field = field
        self.expected = expected
        self.detail = detail
        message = f"Field '{field}': expected {expected}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class ConfigurationError(GeminaError):
    """Required settings (api key, client id) are missing."""
