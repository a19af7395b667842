"""Derive program type, platform and shader model from a VCS file name."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from pathlib import PurePath
from typing import Dict, List, Tuple

from .exceptions import UnrecognizedFileName

__all__ = [
    "PlatformType",
    "ProgramType",
    "ShaderModel",
    "VcsFileProperties",
    "parse_vcs_filename",
]


class ProgramType(IntEnum):
    """Program types in the order the container iterates them."""

    FEATURES = 0
    VERTEX_SHADER = 1
    PIXEL_SHADER = 2
    GEOMETRY_SHADER = 3
    HULL_SHADER = 4
    DOMAIN_SHADER = 5
    COMPUTE_SHADER = 6
    PIXEL_SHADER_RENDER_STATE = 7
    RAYTRACING_SHADER = 8

    @property
    def suffix(self) -> str:
        return _PROGRAM_SUFFIXES[self]


_PROGRAM_SUFFIXES: Dict[ProgramType, str] = {
    ProgramType.FEATURES: "features",
    ProgramType.VERTEX_SHADER: "vs",
    ProgramType.PIXEL_SHADER: "ps",
    ProgramType.GEOMETRY_SHADER: "gs",
    ProgramType.HULL_SHADER: "hs",
    ProgramType.DOMAIN_SHADER: "ds",
    ProgramType.COMPUTE_SHADER: "cs",
    ProgramType.PIXEL_SHADER_RENDER_STATE: "psrs",
    ProgramType.RAYTRACING_SHADER: "rtx",
}
_PROGRAM_BY_SUFFIX = {suffix: program for program, suffix in _PROGRAM_SUFFIXES.items()}


class PlatformType(Enum):
    PC = "pc"
    PCGL = "pcgl"
    GLES = "gles"
    MOBILE_GLES = "mobile_gles"
    VULKAN = "vulkan"
    IOS_VULKAN = "ios_vulkan"
    ANDROID_VULKAN = "android_vulkan"


# Platforms whose token is preceded by a qualifier token.
_QUALIFIED_PLATFORMS: Dict[Tuple[str, str], PlatformType] = {
    ("mobile", "gles"): PlatformType.MOBILE_GLES,
    ("ios", "vulkan"): PlatformType.IOS_VULKAN,
    ("android", "vulkan"): PlatformType.ANDROID_VULKAN,
}
_SIMPLE_PLATFORMS = {
    "pc": PlatformType.PC,
    "pcgl": PlatformType.PCGL,
    "gles": PlatformType.GLES,
    "vulkan": PlatformType.VULKAN,
}


class ShaderModel(Enum):
    SM_20 = "20"
    SM_2B = "2b"
    SM_30 = "30"
    SM_31 = "31"
    SM_40 = "40"
    SM_41 = "41"
    SM_50 = "50"
    SM_60 = "60"


@dataclass(frozen=True)
class VcsFileProperties:
    """Everything the file name tells us about a container."""

    shader_name: str
    program_type: ProgramType
    platform: PlatformType
    shader_model: ShaderModel


def parse_vcs_filename(name: str) -> VcsFileProperties:
    """Parse ``<shader>_<platform>_<model>_<program>.vcs``.

    Only the final path component is considered.  Any deviation from the
    convention raises :class:`UnrecognizedFileName` because nothing read from
    the file can be interpreted without the program type.
    """

    path = PurePath(name)
    if path.suffix.lower() != ".vcs":
        raise UnrecognizedFileName("expected a .vcs file", stage="file name", value=path.name)

    tokens: List[str] = path.stem.lower().split("_")
    if len(tokens) < 4:
        raise UnrecognizedFileName(
            "file name needs shader, platform, model and program tokens",
            stage="file name",
            value=path.name,
        )

    program_type = _PROGRAM_BY_SUFFIX.get(tokens[-1])
    if program_type is None:
        raise UnrecognizedFileName("unknown program type", stage="file name", value=tokens[-1])

    try:
        shader_model = ShaderModel(tokens[-2])
    except ValueError:
        raise UnrecognizedFileName(
            "unknown shader model", stage="file name", value=tokens[-2]
        ) from None

    platform = _QUALIFIED_PLATFORMS.get((tokens[-4], tokens[-3]))
    if platform is not None:
        name_tokens = tokens[:-4]
    else:
        platform = _SIMPLE_PLATFORMS.get(tokens[-3])
        if platform is None:
            raise UnrecognizedFileName("unknown platform", stage="file name", value=tokens[-3])
        name_tokens = tokens[:-3]

    if not name_tokens:
        raise UnrecognizedFileName("missing shader name", stage="file name", value=path.name)

    return VcsFileProperties(
        shader_name="_".join(name_tokens),
        program_type=program_type,
        platform=platform,
        shader_model=shader_model,
    )
