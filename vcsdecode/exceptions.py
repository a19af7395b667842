"""Exception hierarchy for VCS decoding."""

from __future__ import annotations

from typing import Any, Optional


class VcsDecodeError(Exception):
    """Base class for all decoding errors.

    ``stage`` names the section being decoded when the error was raised and
    ``value`` holds the offending raw value, when there is one.
    """

    def __init__(self, message: str, *, stage: Optional[str] = None, value: Any = None) -> None:
        self.message = message
        self.stage = stage
        self.value = value
        super().__init__(self._render())

    def _render(self) -> str:
        text = self.message
        if self.value is not None:
            text = f"{text} (value={self.value!r})"
        if self.stage:
            text = f"[{self.stage}] {text}"
        return text

    def __str__(self) -> str:
        return self._render()


class UnexpectedMagic(VcsDecodeError):
    """Raised for a wrong file signature or an undefined enum value."""


class UnsupportedVersion(VcsDecodeError):
    """Raised when the container version is outside the supported range."""


class TruncatedInput(VcsDecodeError):
    """Raised on a short read or a count that runs past the stream."""


class StructuralMismatch(VcsDecodeError):
    """Raised when internal offsets or references are inconsistent."""


class IdentifierDecodeOverflow(VcsDecodeError):
    """Raised when a combo identifier does not fit the dynamic combo space."""


class UnrecognizedFileName(VcsDecodeError):
    """Raised when a file name does not follow the VCS naming convention."""


class FrameDecodeError(VcsDecodeError):
    """Raised when a single zframe cannot be decoded.

    These errors are scoped to one frame; the directory stays usable.
    """


class UnknownCompressionTag(FrameDecodeError):
    """Raised for a zframe header with an unrecognised compression tag."""


class FrameOutOfBounds(FrameDecodeError):
    """Raised when a zframe header or payload lies outside the stream."""


class ZFrameNotFound(VcsDecodeError, KeyError):
    """Raised when no zframe exists for the requested identifier."""


class ZFramePositionError(VcsDecodeError, IndexError):
    """Raised when a positional zframe lookup is out of range."""


__all__ = [
    "VcsDecodeError",
    "UnexpectedMagic",
    "UnsupportedVersion",
    "TruncatedInput",
    "StructuralMismatch",
    "IdentifierDecodeOverflow",
    "UnrecognizedFileName",
    "FrameDecodeError",
    "UnknownCompressionTag",
    "FrameOutOfBounds",
    "ZFrameNotFound",
    "ZFramePositionError",
]
