"""Exception types raised by bac-discover."""

from __future__ import annotations


class BACnetBaseError(Exception):
    """Base exception for bac-discover errors."""


class ConfigurationError(BACnetBaseError, ValueError):
    """A session or datalink was configured with out-of-range values."""


class TransportError(BACnetBaseError):
    """The datalink was used before it was opened, or after it was closed."""
