"""Reflection records: variables, channel processors, buffers, vertex inputs.

Field sets that changed between versions are selected through the
:class:`~vcsdecode.versions.VersionCapabilities` row passed to each reader.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .reader import ByteCursor
from .versions import VersionCapabilities

__all__ = [
    "CHANNEL_PROCESSOR_RECORD_SIZE",
    "ConstantBufferDescription",
    "ConstantBufferMember",
    "TextureChannelProcessor",
    "VariableDescription",
    "VsInputSignatureElement",
    "VsInputSymbol",
    "variable_description_min_size",
]

_NAME_FIELD = 64
_IMAGE_FIELD = 32
_PROCESSOR_FIELD = 256
_EXTRA_DATA_SIZE = 6

CHANNEL_PROCESSOR_RECORD_SIZE = 4 + 16 + 4 + _PROCESSOR_FIELD
CONSTANT_BUFFER_MIN_SIZE = _NAME_FIELD + 4 + 4 + 4
CONSTANT_BUFFER_MEMBER_SIZE = _NAME_FIELD + 16
VS_INPUT_MIN_SIZE = 4
# three empty strings plus the semantic index
VS_INPUT_SYMBOL_MIN_SIZE = 3 + 4


def variable_description_min_size(caps: VersionCapabilities) -> int:
    """Smallest encoding of a variable description (empty expressions)."""

    size = 3 * _NAME_FIELD + 4 * 4  # names, ui_type, ui_step, vfx_type, source
    size += 4  # dynamic expression length
    if caps.ui_visibility_expression:
        size += 4
    size += 6 * 16  # default/min/max vectors
    size += 4 + 4 + 16 + 4 + 4  # image format .. texture flags
    size += 2 * _IMAGE_FIELD
    if caps.variable_extra_data:
        size += _EXTRA_DATA_SIZE
    return size


@dataclass(frozen=True)
class VariableDescription:
    """One reflected shader input variable."""

    index: int
    name: str
    ui_group: str
    ui_type: int
    ui_step: float
    attribute: str
    vfx_type: int
    source: int
    dynamic_expression: bytes
    ui_visibility_expression: bytes | None
    int_defaults: Tuple[int, ...]
    float_defaults: Tuple[float, ...]
    int_mins: Tuple[int, ...]
    int_maxs: Tuple[int, ...]
    float_mins: Tuple[float, ...]
    float_maxs: Tuple[float, ...]
    image_format: int
    channel_count: int
    channel_indices: Tuple[int, ...]
    color_mode: int
    texture_flags: int
    image_suffix: str
    image_processor: str
    extra_data: bytes | None

    @property
    def has_dynamic_expression(self) -> bool:
        return bool(self.dynamic_expression)

    @classmethod
    def read(
        cls, cursor: ByteCursor, index: int, caps: VersionCapabilities
    ) -> "VariableDescription":
        name = cursor.read_fixed_string(_NAME_FIELD)
        ui_group = cursor.read_fixed_string(_NAME_FIELD)
        ui_type = cursor.read_int32()
        ui_step = cursor.read_float()
        attribute = cursor.read_fixed_string(_NAME_FIELD)
        vfx_type = cursor.read_int32()
        source = cursor.read_int32()
        dynamic_expression = cursor.read_blob()
        ui_visibility_expression = (
            cursor.read_blob() if caps.ui_visibility_expression else None
        )
        int_defaults = cursor.read_int32_array(4)
        float_defaults = cursor.read_float_array(4)
        int_mins = cursor.read_int32_array(4)
        int_maxs = cursor.read_int32_array(4)
        float_mins = cursor.read_float_array(4)
        float_maxs = cursor.read_float_array(4)
        image_format = cursor.read_int32()
        channel_count = cursor.read_int32()
        channel_indices = cursor.read_int32_array(4)
        color_mode = cursor.read_int32()
        texture_flags = cursor.read_int32()
        image_suffix = cursor.read_fixed_string(_IMAGE_FIELD)
        image_processor = cursor.read_fixed_string(_IMAGE_FIELD)
        extra_data = cursor.read_bytes(_EXTRA_DATA_SIZE) if caps.variable_extra_data else None
        return cls(
            index=index,
            name=name,
            ui_group=ui_group,
            ui_type=ui_type,
            ui_step=ui_step,
            attribute=attribute,
            vfx_type=vfx_type,
            source=source,
            dynamic_expression=dynamic_expression,
            ui_visibility_expression=ui_visibility_expression,
            int_defaults=int_defaults,
            float_defaults=float_defaults,
            int_mins=int_mins,
            int_maxs=int_maxs,
            float_mins=float_mins,
            float_maxs=float_maxs,
            image_format=image_format,
            channel_count=channel_count,
            channel_indices=channel_indices,
            color_mode=color_mode,
            texture_flags=texture_flags,
            image_suffix=image_suffix,
            image_processor=image_processor,
            extra_data=extra_data,
        )


@dataclass(frozen=True)
class TextureChannelProcessor:
    index: int
    channels: Tuple[int, ...]
    input_textures: Tuple[int, ...]
    color_mode: int
    processor: str

    @classmethod
    def read(cls, cursor: ByteCursor, index: int) -> "TextureChannelProcessor":
        packed = cursor.read_uint32()
        # one byte per channel, 0xFF marks an unused slot
        channels = tuple(
            (packed >> shift) & 0xFF for shift in (0, 8, 16, 24) if (packed >> shift) & 0xFF != 0xFF
        )
        input_textures = tuple(value for value in cursor.read_int32_array(4) if value != -1)
        color_mode = cursor.read_int32()
        processor = cursor.read_fixed_string(_PROCESSOR_FIELD)
        return cls(
            index=index,
            channels=channels,
            input_textures=input_textures,
            color_mode=color_mode,
            processor=processor,
        )


@dataclass(frozen=True)
class ConstantBufferMember:
    name: str
    offset: int
    vector_size: int
    depth: int
    length: int


@dataclass(frozen=True)
class ConstantBufferDescription:
    index: int
    name: str
    size: int
    members: Tuple[ConstantBufferMember, ...]
    crc: int

    @classmethod
    def read(cls, cursor: ByteCursor, index: int) -> "ConstantBufferDescription":
        name = cursor.read_fixed_string(_NAME_FIELD)
        size = cursor.read_int32()
        count = cursor.read_uint32()
        cursor.require_records(count, CONSTANT_BUFFER_MEMBER_SIZE, f"members of buffer {name!r}")
        members = []
        for _ in range(count):
            member_name = cursor.read_fixed_string(_NAME_FIELD)
            offset, vector_size, depth, length = cursor.read_int32_array(4)
            members.append(
                ConstantBufferMember(
                    name=member_name,
                    offset=offset,
                    vector_size=vector_size,
                    depth=depth,
                    length=length,
                )
            )
        crc = cursor.read_uint32()
        return cls(index=index, name=name, size=size, members=tuple(members), crc=crc)


@dataclass(frozen=True)
class VsInputSymbol:
    name: str
    semantic: str
    d3d_semantic: str
    semantic_index: int


@dataclass(frozen=True)
class VsInputSignatureElement:
    index: int
    symbols: Tuple[VsInputSymbol, ...]

    @classmethod
    def read(cls, cursor: ByteCursor, index: int) -> "VsInputSignatureElement":
        count = cursor.read_uint32()
        cursor.require_records(count, VS_INPUT_SYMBOL_MIN_SIZE, "vertex input symbols")
        symbols = []
        for _ in range(count):
            name = cursor.read_cstring()
            semantic = cursor.read_cstring()
            d3d_semantic = cursor.read_cstring()
            semantic_index = cursor.read_int32()
            symbols.append(
                VsInputSymbol(
                    name=name,
                    semantic=semantic,
                    d3d_semantic=d3d_semantic,
                    semantic_index=semantic_index,
                )
            )
        return cls(index=index, symbols=tuple(symbols))
