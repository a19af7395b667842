"""Decoder for Valve compiled shader (``.vcs``) containers."""

from __future__ import annotations

from .combos import Combo, ComboRule, ConditionalRule, ConditionalType
from .config_state import ComboIndexDecoder
from .exceptions import (
    FrameDecodeError,
    FrameOutOfBounds,
    IdentifierDecodeOverflow,
    StructuralMismatch,
    TruncatedInput,
    UnexpectedMagic,
    UnknownCompressionTag,
    UnrecognizedFileName,
    UnsupportedVersion,
    VcsDecodeError,
    ZFrameNotFound,
    ZFramePositionError,
)
from .filename import PlatformType, ProgramType, ShaderModel, parse_vcs_filename
from .program import ProgramData, open_program
from .versions import AdditionalFiles, TargetRuntime
from .zframes import CompressionType, ZFrameDirectory, ZFrameEntry

__version__ = "0.1.0"

__all__ = [
    "AdditionalFiles",
    "Combo",
    "ComboIndexDecoder",
    "ComboRule",
    "CompressionType",
    "ConditionalRule",
    "ConditionalType",
    "FrameDecodeError",
    "FrameOutOfBounds",
    "IdentifierDecodeOverflow",
    "PlatformType",
    "ProgramData",
    "ProgramType",
    "ShaderModel",
    "StructuralMismatch",
    "TargetRuntime",
    "TruncatedInput",
    "UnexpectedMagic",
    "UnknownCompressionTag",
    "UnrecognizedFileName",
    "UnsupportedVersion",
    "VcsDecodeError",
    "ZFrameDirectory",
    "ZFrameEntry",
    "ZFrameNotFound",
    "ZFramePositionError",
    "open_program",
    "parse_vcs_filename",
]
