"""Per-version capability table for the VCS container format.

The supported range and the capabilities of each version live in
``config.json`` next to this module so the version matrix can be audited in
one place.  Decoders look up a :class:`VersionCapabilities` once and branch
on its flags instead of comparing version numbers inline.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum, IntEnum
from pathlib import Path
from typing import Any, Dict, Iterator

from ..exceptions import UnsupportedVersion
from ..filename import ProgramType

_CONFIG_PATH = Path(__file__).with_name("config.json")
_DATA: Dict[str, Any] = json.loads(_CONFIG_PATH.read_text(encoding="utf-8"))

MAGIC: int = _DATA["magic"]
EARLIEST_VERSION: int = _DATA["supported"]["earliest"]
LATEST_VERSION: int = _DATA["supported"]["latest"]

__all__ = [
    "AdditionalFiles",
    "EARLIEST_VERSION",
    "LATEST_VERSION",
    "MAGIC",
    "TargetRuntime",
    "VersionCapabilities",
    "capabilities_for",
    "iter_program_types",
    "supported_versions",
]


class AdditionalFiles(IntEnum):
    """Companion files declared by the container header."""

    NONE = 0
    PSRS = 1
    PSRS_AND_RTX = 2

    @property
    def count(self) -> int:
        return int(self)


class TargetRuntime(Enum):
    """Engine build that produced the file.

    Only :attr:`SBOX` changes decoding: its compiler writes an RTX
    additional-files value that the payload does not honour.
    """

    SOURCE2 = "source2"
    SBOX = "sbox"


@dataclass(frozen=True)
class VersionCapabilities:
    version: int
    additional_files: bool
    compute_shaders: bool
    hull_domain_shaders: bool
    ui_visibility_expression: bool
    variable_extra_data: bool


def _load_capabilities() -> Dict[int, VersionCapabilities]:
    table: Dict[int, VersionCapabilities] = {}
    for key, flags in _DATA["versions"].items():
        version = int(key)
        table[version] = VersionCapabilities(version=version, **flags)
    missing = set(range(EARLIEST_VERSION, LATEST_VERSION + 1)) - set(table)
    if missing:  # pragma: no cover - guards config.json edits
        raise RuntimeError(f"config.json lacks capability rows for {sorted(missing)}")
    return table


_CAPABILITIES = _load_capabilities()


def supported_versions() -> range:
    return range(EARLIEST_VERSION, LATEST_VERSION + 1)


def capabilities_for(version: int) -> VersionCapabilities:
    """Return the capability row for ``version`` or raise :class:`UnsupportedVersion`."""

    caps = _CAPABILITIES.get(version)
    if caps is None:
        raise UnsupportedVersion(
            f"only VCS versions {EARLIEST_VERSION} through {LATEST_VERSION} are supported",
            stage="header",
            value=version,
        )
    return caps


def iter_program_types(version: int, additional_file_count: int = 0) -> Iterator[ProgramType]:
    """Yield the program types a Features file records editor IDs for."""

    caps = capabilities_for(version)
    last = ProgramType.COMPUTE_SHADER + additional_file_count
    for value in range(last + 1):
        program_type = ProgramType(value)
        if program_type is ProgramType.COMPUTE_SHADER and not caps.compute_shaders:
            continue
        if (
            program_type in (ProgramType.HULL_SHADER, ProgramType.DOMAIN_SHADER)
            and not caps.hull_domain_shaders
        ):
            continue
        yield program_type
