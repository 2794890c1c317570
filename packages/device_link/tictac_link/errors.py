"""Transport error hierarchy."""

from __future__ import annotations


class TransportError(Exception):
    pass


class TransportOpenError(TransportError):
    """Port or mock files could not be opened. Fatal for the session."""


class TransportIOError(TransportError):
    """A single read or write failed. The exchange yields no response."""
