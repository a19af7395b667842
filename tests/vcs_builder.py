"""Build synthetic VCS containers for tests."""

from __future__ import annotations

import lzma
import struct
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import zstandard

MAGIC = 0x32736376

# program types with a vertex input signature section
SIGNATURE_SUFFIXES = ("features", "vs")


def fixed(text: str, size: int) -> bytes:
    raw = text.encode("utf-8")
    assert len(raw) < size
    return raw + b"\x00" * (size - len(raw))


def i32(*values: int) -> bytes:
    return struct.pack(f"<{len(values)}i", *values)


def u32(*values: int) -> bytes:
    return struct.pack(f"<{len(values)}I", *values)


def f32(*values: float) -> bytes:
    return struct.pack(f"<{len(values)}f", *values)


def blob(data: bytes) -> bytes:
    return u32(len(data)) + data


def padded(values: Sequence[int], slots: int = 16) -> bytes:
    return i32(*values, *([-1] * (slots - len(values))))


def combo_record(
    name: str, range_min: int = 0, range_max: int = 1, *, alias: str = "", combo_type: int = 1
) -> bytes:
    return fixed(name, 64) + fixed(alias, 64) + i32(combo_type, range_min, range_max, 0, 0, 0)


def rule_record(
    rule: int,
    indices: Sequence[int],
    values: Sequence[int] = (),
    *,
    operand_types: Sequence[int] = (),
    description: str = "",
    block_type: int = 0,
) -> bytes:
    types = bytes(operand_types) + b"\x00" * (16 - len(operand_types))
    return (
        i32(rule, block_type)
        + types
        + padded(indices)
        + padded(values)
        + padded(())
        + fixed(description, 256)
    )


def variable_record(
    name: str,
    version: int,
    *,
    dynamic_expression: bytes = b"",
    visibility_expression: bytes = b"",
    int_defaults: Sequence[int] = (0, 0, 0, 0),
    float_defaults: Sequence[float] = (0.0, 0.0, 0.0, 0.0),
    image_suffix: str = "",
) -> bytes:
    out = fixed(name, 64) + fixed("group", 64) + i32(2) + f32(0.5) + fixed("attr", 64)
    out += i32(3, 5)
    out += blob(dynamic_expression)
    if version >= 64:
        out += blob(visibility_expression)
    out += i32(*int_defaults) + f32(*float_defaults)
    out += i32(0, 0, 0, 0) + i32(1, 1, 1, 1)
    out += f32(0, 0, 0, 0) + f32(1, 1, 1, 1)
    out += i32(7, 4) + i32(0, 1, 2, 3) + i32(1, 0)
    out += fixed(image_suffix, 32) + fixed("", 32)
    if version >= 65:
        out += b"\x01\x02\x03\x04\x05\x06"
    return out


def channel_record(channels: Sequence[int], inputs: Sequence[int], processor: str) -> bytes:
    packed = 0
    slots = list(channels) + [0xFF] * (4 - len(channels))
    for shift, value in zip((0, 8, 16, 24), slots):
        packed |= value << shift
    return u32(packed) + padded(inputs, 4) + i32(0) + fixed(processor, 256)


def buffer_record(name: str, members: Sequence[Tuple[str, int]], size: int = 64, crc: int = 0xDEADBEEF) -> bytes:
    out = fixed(name, 64) + i32(size) + u32(len(members))
    for member_name, offset in members:
        out += fixed(member_name, 64) + i32(offset, 4, 0, 1)
    return out + u32(crc)


def vs_input_record(symbols: Sequence[Tuple[str, str, str, int]]) -> bytes:
    out = u32(len(symbols))
    for name, semantic, d3d, index in symbols:
        out += name.encode() + b"\x00" + semantic.encode() + b"\x00" + d3d.encode() + b"\x00"
        out += i32(index)
    return out


def features_header(version: int, *, has_psrs: bool = False, description: str = "test shader") -> bytes:
    out = b""
    if version < 64:
        out += i32(1 if has_psrs else 0)
    out += i32(1) + blob(description.encode() + b"\x00") + i32(*range(8))
    out += u32(1) + fixed("F_EXAMPLE", 128) + fixed("1", 128)
    out += u32(1) + fixed("ToolsVis", 64) + fixed("", 64) + fixed("S_MODE_TOOLS_VIS", 64) + i32(1)
    return out


def frame(payload: bytes, tag: int = 0) -> bytes:
    """Encode ``payload`` as a zframe (header + compressed data)."""

    if tag == 0:
        data = payload
    elif tag == 1:
        filters = [{"id": lzma.FILTER_LZMA1, "dict_size": 1 << 16}]
        alone = lzma.compress(payload, format=lzma.FORMAT_ALONE, filters=filters)
        # .lzma files carry props(5) + size(8); zframes keep only the props
        data = alone[:5] + alone[13:]
    elif tag == 2:
        data = zstandard.ZstdCompressor().compress(payload)
    else:
        data = payload
    return u32(tag, len(payload), len(data)) + data


@dataclass
class VcsBuilder:
    """Assembles a container section by section.

    ``program`` is the file name suffix (``vs``, ``ps``, ``features`` ...).
    Record lists hold pre-encoded bytes so tests can inject broken records.
    """

    version: int = 66
    program: str = "ps"
    additional_files: Optional[int] = 0
    has_psrs: bool = False
    editor_id_count: Optional[int] = None
    static_combos: List[bytes] = field(default_factory=list)
    static_rules: List[bytes] = field(default_factory=list)
    dynamic_combos: List[bytes] = field(default_factory=list)
    dynamic_rules: List[bytes] = field(default_factory=list)
    variables: List[bytes] = field(default_factory=list)
    channels: List[bytes] = field(default_factory=list)
    buffers: List[bytes] = field(default_factory=list)
    vs_inputs: List[bytes] = field(default_factory=list)
    zframes: List[Tuple[int, bytes]] = field(default_factory=list)
    file_hash: uuid.UUID = uuid.UUID("00112233-4455-6677-8899-aabbccddeeff")
    eof_adjust: int = 0
    trailing: bytes = b""

    @property
    def filename(self) -> str:
        return f"test_shader_pcgl_50_{self.program}.vcs"

    def expected_editor_ids(self) -> int:
        if self.editor_id_count is not None:
            return self.editor_id_count
        if self.program != "features":
            return 1
        extra = self.additional_files or 0
        if self.version < 64 and self.has_psrs:
            extra = 1
        count = 7 + extra
        if self.version < 63:
            count -= 1
        if self.version >= 68:
            count -= 2
        return count

    def header(self) -> bytes:
        out = u32(MAGIC) + i32(self.version)
        if self.version >= 64 and self.additional_files is not None:
            out += i32(self.additional_files)
        return out

    def body(self) -> bytes:
        out = b""
        if self.program == "features":
            out += features_header(self.version, has_psrs=self.has_psrs)
        for index in range(self.expected_editor_ids()):
            out += uuid.UUID(int=index + 1).bytes_le
        out += self.file_hash.bytes_le + i32(17)
        for records in (
            self.static_combos,
            self.static_rules,
            self.dynamic_combos,
            self.dynamic_rules,
            self.variables,
            self.channels,
            self.buffers,
        ):
            out += u32(len(records)) + b"".join(records)
        if self.program in SIGNATURE_SUFFIXES:
            out += u32(len(self.vs_inputs)) + b"".join(self.vs_inputs)
        return out

    def build(self) -> bytes:
        prefix = self.header() + self.body()
        if not self.zframes:
            return prefix + u32(0) + self.trailing

        count = len(self.zframes)
        table_size = 4 + 8 * count + 4 * count + 4
        offsets = []
        cursor = len(prefix) + table_size
        for _, data in self.zframes:
            offsets.append(cursor)
            cursor += len(data)
        total = cursor + len(self.trailing)
        table = u32(count)
        table += b"".join(struct.pack("<q", zid) for zid, _ in self.zframes)
        table += u32(*offsets)
        table += u32(total + self.eof_adjust)
        return prefix + table + b"".join(data for _, data in self.zframes) + self.trailing

    def write(self, directory: Path) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / self.filename
        path.write_bytes(self.build())
        return path
