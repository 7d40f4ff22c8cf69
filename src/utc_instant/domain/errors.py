from __future__ import annotations


class InstantError(Exception):
    """Base class for errors raised by :class:`Instant`."""


class ConstructionMisuseError(InstantError, TypeError):
    """Raised when an Instant is built without going through a factory method."""


class ParseError(InstantError, ValueError):
    """Raised when a string does not start with a recognised ISO-8601 form."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Unable to parse date: {value}")
        self.value = value


class InstantRangeError(InstantError, ValueError):
    """Raised when a value lies beyond 100 million days either side of the epoch."""
