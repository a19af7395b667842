"""Header block that only ``*_features.vcs`` files carry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .reader import ByteCursor
from .versions import VersionCapabilities

__all__ = ["FeatureMode", "FeatureParameter", "FeaturesHeader"]

_PARAM_FIELD = 128
_MODE_FIELD = 64
_ARGUMENT_COUNT = 8


@dataclass(frozen=True)
class FeatureParameter:
    name: str
    value: str


@dataclass(frozen=True)
class FeatureMode:
    name: str
    shader: str
    static_config: str
    value: int


@dataclass(frozen=True)
class FeaturesHeader:
    """Compiler settings recorded at the top of a features file.

    ``has_psrs_file`` is only stored by versions without the header-level
    additional-files field; for later versions it is ``None``.
    """

    has_psrs_file: bool | None
    dev_shader: bool
    description: str
    arguments: Tuple[int, ...]
    parameters: Tuple[FeatureParameter, ...]
    modes: Tuple[FeatureMode, ...]

    @classmethod
    def read(cls, cursor: ByteCursor, caps: VersionCapabilities) -> "FeaturesHeader":
        has_psrs_file = None
        if not caps.additional_files:
            has_psrs_file = cursor.read_int32() != 0

        dev_shader = cursor.read_int32() != 0
        description = cursor.read_blob().rstrip(b"\x00").decode("utf-8", errors="replace")
        arguments = cursor.read_int32_array(_ARGUMENT_COUNT)

        count = cursor.read_uint32()
        cursor.require_records(count, 2 * _PARAM_FIELD, "feature parameters")
        parameters = tuple(
            FeatureParameter(
                name=cursor.read_fixed_string(_PARAM_FIELD),
                value=cursor.read_fixed_string(_PARAM_FIELD),
            )
            for _ in range(count)
        )

        count = cursor.read_uint32()
        cursor.require_records(count, 3 * _MODE_FIELD + 4, "feature modes")
        modes = tuple(
            FeatureMode(
                name=cursor.read_fixed_string(_MODE_FIELD),
                shader=cursor.read_fixed_string(_MODE_FIELD),
                static_config=cursor.read_fixed_string(_MODE_FIELD),
                value=cursor.read_int32(),
            )
            for _ in range(count)
        )

        return cls(
            has_psrs_file=has_psrs_file,
            dev_shader=dev_shader,
            description=description,
            arguments=arguments,
            parameters=parameters,
            modes=modes,
        )
