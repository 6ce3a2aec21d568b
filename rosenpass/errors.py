"""Errors raised while handling protocol messages."""

from __future__ import annotations

from .lenses import LenseError

__all__ = [
    "RosenpassError",
    "BufferSizeMismatchError",
    "InvalidMessageTypeError",
    "from_lense_error",
]


class RosenpassError(Exception):
    """Base class of protocol errors."""


class BufferSizeMismatchError(RosenpassError):
    """A buffer has the wrong size for the message it should hold."""

    def __init__(self) -> None:
        super().__init__("buffer size mismatch")


class InvalidMessageTypeError(RosenpassError):
    """A message carries an unknown type byte."""

    def __init__(self, value: int) -> None:
        super().__init__("invalid message type")
        self.value = value


def from_lense_error(error: LenseError) -> RosenpassError:
    """Convert a :class:`LenseError` to the matching protocol error."""
    if not isinstance(error, LenseError):
        raise TypeError(f"expected a LenseError, got {type(error).__name__}")
    return BufferSizeMismatchError()