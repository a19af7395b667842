"""Top-level decoding of a compiled shader (``.vcs``) container.

:func:`open_program` validates the header, walks every section in file
order and returns a fully decoded :class:`ProgramData`.  Decoding is all or
nothing: any error propagates and no container is returned.  Only zframe
payloads are read lazily, through :attr:`ProgramData.zframes`.
"""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, List, Optional, Sequence, Tuple, TypeVar, Union

from .combos import COMBO_RECORD_SIZE, RULE_RECORD_SIZE, Combo, ComboRule, ConditionalType
from .config_state import ComboIndexDecoder
from .exceptions import StructuralMismatch, UnexpectedMagic
from .features import FeaturesHeader
from .filename import PlatformType, ProgramType, ShaderModel, parse_vcs_filename
from .reader import ByteCursor
from .variables import (
    CHANNEL_PROCESSOR_RECORD_SIZE,
    CONSTANT_BUFFER_MIN_SIZE,
    VS_INPUT_MIN_SIZE,
    ConstantBufferDescription,
    TextureChannelProcessor,
    VariableDescription,
    VsInputSignatureElement,
    variable_description_min_size,
)
from .versions import (
    MAGIC,
    AdditionalFiles,
    TargetRuntime,
    VersionCapabilities,
    capabilities_for,
    iter_program_types,
)
from .zframes import ZFrameDirectory, ZFrameEntry

LOG = logging.getLogger(__name__)

Source = Union[str, "os.PathLike[str]", BinaryIO]
T = TypeVar("T")

__all__ = ["ProgramData", "Source", "open_program"]

# zframe id (int64) + offset (uint32)
_ZFRAME_ENTRY_SIZE = 12
_SIGNATURE_PROGRAMS = (ProgramType.FEATURES, ProgramType.VERTEX_SHADER)


@dataclass(eq=False)
class ProgramData:
    """A decoded VCS container.

    Everything except zframe payloads is decoded eagerly and must be treated
    as read-only.  The container owns its stream when it opened it from a
    path; use it as a context manager or call :meth:`close`.
    """

    filename: str
    shader_name: str
    program_type: ProgramType
    platform: PlatformType
    shader_model: ShaderModel
    runtime: TargetRuntime
    version: int
    capabilities: VersionCapabilities
    additional_files: AdditionalFiles
    features_header: Optional[FeaturesHeader]
    editor_ids: List[Tuple[uuid.UUID, Optional[ProgramType]]]
    file_hash: uuid.UUID
    variable_source_max: int
    static_combos: List[Combo]
    static_combo_rules: List[ComboRule]
    dynamic_combos: List[Combo]
    dynamic_combo_rules: List[ComboRule]
    variable_descriptions: List[VariableDescription]
    texture_channel_processors: List[TextureChannelProcessor]
    constant_buffers: List[ConstantBufferDescription]
    vs_input_signatures: List[VsInputSignatureElement]
    zframes: ZFrameDirectory = field(repr=False)
    config_decoder: ComboIndexDecoder = field(repr=False)
    _stream: Optional[BinaryIO] = field(default=None, repr=False)
    _owns_stream: bool = field(default=False, repr=False)

    @classmethod
    def open(
        cls,
        source: Source,
        *,
        filename: Optional[str] = None,
        runtime: TargetRuntime = TargetRuntime.SOURCE2,
    ) -> "ProgramData":
        return open_program(source, filename=filename, runtime=runtime)

    # --- lifetime --------------------------------------------------
    def close(self) -> None:
        self.zframes.close()
        if self._stream is not None and self._owns_stream:
            self._stream.close()
        self._stream = None

    @property
    def closed(self) -> bool:
        return self._stream is None

    def __enter__(self) -> "ProgramData":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # --- header helpers --------------------------------------------
    @property
    def additional_file_count(self) -> int:
        return self.additional_files.count

    def program_types(self) -> List[ProgramType]:
        return list(iter_program_types(self.version, self.additional_file_count))

    def validate_rules(self) -> None:
        """Check that every rule operand names an existing combo.

        Feature operands of static and dynamic rules point into the features
        file and are not checked here.
        """

        for rule in (*self.static_combo_rules, *self.dynamic_combo_rules):
            rule.resolve(self.static_combos, self.dynamic_combos)

    # --- zframes ---------------------------------------------------
    @property
    def zframe_count(self) -> int:
        return len(self.zframes)

    def get_zframe(self, zframe_id: int) -> ZFrameEntry:
        return self.zframes.get(zframe_id)

    def get_zframe_by_position(self, index: int) -> ZFrameEntry:
        return self.zframes.get_by_position(index)

    def decompress_zframe(self, zframe_id: int) -> bytes:
        return self.zframes.decompress(zframe_id)

    def decompress_zframe_by_position(self, index: int) -> bytes:
        return self.zframes.decompress_by_position(index)

    def get_config_state(self, zframe_id: int) -> Tuple[int, ...]:
        """Decode ``zframe_id`` into one value per dynamic combo."""

        return self.config_decoder.decode(zframe_id)


def open_program(
    source: Source,
    *,
    filename: Optional[str] = None,
    runtime: TargetRuntime = TargetRuntime.SOURCE2,
) -> ProgramData:
    """Decode a VCS container from a path or a seekable binary stream.

    The file name drives program type detection, so it is required when
    ``source`` is a stream without a ``name`` attribute.  Streams opened here
    are closed again if decoding fails; caller-provided streams are left
    untouched.
    """

    if isinstance(source, (str, os.PathLike)):
        path = os.fspath(source)
        name = filename or path
        # a bad name must fail before a handle is acquired
        parse_vcs_filename(name)
        stream: BinaryIO = open(path, "rb")
        owns_stream = True
    else:
        name = filename or getattr(source, "name", None)
        if not isinstance(name, str):
            raise ValueError("filename is required when decoding from a stream")
        stream = source
        owns_stream = False

    try:
        return _ProgramDecoder(stream, name, runtime).decode(owns_stream=owns_stream)
    except BaseException:
        if owns_stream:
            stream.close()
        raise


class _ProgramDecoder:
    """Sequences the container sections; record layouts live in their types."""

    def __init__(self, stream: BinaryIO, filename: str, runtime: TargetRuntime) -> None:
        self.stream = stream
        self.filename = filename
        self.runtime = runtime
        self.cursor = ByteCursor(stream)

    def decode(self, *, owns_stream: bool) -> ProgramData:
        properties = parse_vcs_filename(self.filename)
        program_type = properties.program_type
        cursor = self.cursor

        version, additional_files = self._read_header()
        caps = capabilities_for(version)

        features_header: Optional[FeaturesHeader] = None
        editor_ids: List[Tuple[uuid.UUID, Optional[ProgramType]]] = []
        if program_type is ProgramType.FEATURES:
            with cursor.section("features header"):
                features_header = FeaturesHeader.read(cursor, caps)
            if features_header.has_psrs_file:
                additional_files = AdditionalFiles.PSRS
            with cursor.section("editor ids"):
                for editor_program in iter_program_types(version, additional_files.count):
                    editor_ids.append((cursor.read_guid(), editor_program))
        else:
            with cursor.section("editor ids"):
                editor_ids.append((cursor.read_guid(), None))

        with cursor.section("file hash"):
            file_hash = cursor.read_guid()
            variable_source_max = cursor.read_int32()

        static_kind = (
            ConditionalType.FEATURE
            if program_type is ProgramType.FEATURES
            else ConditionalType.STATIC
        )
        static_combos = self._read_table(
            "static combos", COMBO_RECORD_SIZE, lambda i: Combo.read(cursor, i)
        )
        static_rules = self._read_table(
            "static combo rules", RULE_RECORD_SIZE, lambda i: ComboRule.read(cursor, i, static_kind)
        )
        dynamic_combos = self._read_table(
            "dynamic combos", COMBO_RECORD_SIZE, lambda i: Combo.read(cursor, i)
        )
        dynamic_rules = self._read_table(
            "dynamic combo rules",
            RULE_RECORD_SIZE,
            lambda i: ComboRule.read(cursor, i, ConditionalType.DYNAMIC),
        )

        # identifiers can only be decoded once every dynamic range is known
        config_decoder = ComboIndexDecoder(dynamic_combos)

        variables = self._read_table(
            "variable descriptions",
            variable_description_min_size(caps),
            lambda i: VariableDescription.read(cursor, i, caps),
        )
        channel_processors = self._read_table(
            "texture channel processors",
            CHANNEL_PROCESSOR_RECORD_SIZE,
            lambda i: TextureChannelProcessor.read(cursor, i),
        )
        constant_buffers = self._read_table(
            "constant buffers",
            CONSTANT_BUFFER_MIN_SIZE,
            lambda i: ConstantBufferDescription.read(cursor, i),
        )
        vs_inputs: List[VsInputSignatureElement] = []
        if program_type in _SIGNATURE_PROGRAMS:
            vs_inputs = self._read_table(
                "vertex input signatures",
                VS_INPUT_MIN_SIZE,
                lambda i: VsInputSignatureElement.read(cursor, i),
            )

        entries = self._read_zframe_table()

        program = ProgramData(
            filename=self.filename,
            shader_name=properties.shader_name,
            program_type=program_type,
            platform=properties.platform,
            shader_model=properties.shader_model,
            runtime=self.runtime,
            version=version,
            capabilities=caps,
            additional_files=additional_files,
            features_header=features_header,
            editor_ids=editor_ids,
            file_hash=file_hash,
            variable_source_max=variable_source_max,
            static_combos=static_combos,
            static_combo_rules=static_rules,
            dynamic_combos=dynamic_combos,
            dynamic_combo_rules=dynamic_rules,
            variable_descriptions=variables,
            texture_channel_processors=channel_processors,
            constant_buffers=constant_buffers,
            vs_input_signatures=vs_inputs,
            zframes=ZFrameDirectory(cursor, entries),
            config_decoder=config_decoder,
            _stream=self.stream,
            _owns_stream=owns_stream,
        )
        LOG.info(
            "decoded %s: v%d %s, %d static / %d dynamic combos, %d zframes",
            self.filename,
            version,
            program_type.name.lower(),
            len(static_combos),
            len(dynamic_combos),
            len(entries),
        )
        return program

    def _read_header(self) -> Tuple[int, AdditionalFiles]:
        cursor = self.cursor
        with cursor.section("header"):
            magic = cursor.read_uint32()
            if magic != MAGIC:
                raise UnexpectedMagic(
                    "not a vcs2 container", stage=cursor.stage, value=f"0x{magic:08x}"
                )
            version = cursor.read_int32()
            caps = capabilities_for(version)

            additional_files = AdditionalFiles.NONE
            if caps.additional_files:
                raw = cursor.read_int32()
                try:
                    additional_files = AdditionalFiles(raw)
                except ValueError:
                    raise UnexpectedMagic(
                        "undefined additional files value", stage=cursor.stage, value=raw
                    ) from None

            if self.runtime is TargetRuntime.SBOX and additional_files is AdditionalFiles.PSRS_AND_RTX:
                LOG.warning(
                    "%s: s&box file declares RTX additional files; treating as v%d without extras",
                    self.filename,
                    version - 1,
                )
                cursor.skip(4)
                additional_files = AdditionalFiles.NONE
                version -= 1
        return version, additional_files

    def _read_table(self, stage: str, min_record_size: int, read_record: Callable[[int], T]) -> List[T]:
        cursor = self.cursor
        with cursor.section(stage):
            start = cursor.position
            count = cursor.read_uint32()
            cursor.require_records(count, min_record_size, stage)
            records = [read_record(index) for index in range(count)]
        LOG.debug("%s: %d records at offset %d", stage, count, start)
        return records

    def _read_zframe_table(self) -> List[ZFrameEntry]:
        cursor = self.cursor
        with cursor.section("zframe table"):
            count = cursor.read_uint32()
            if count == 0:
                if not cursor.at_end():
                    raise StructuralMismatch(
                        "data after an empty zframe table, end of file expected",
                        stage=cursor.stage,
                        value=cursor.remaining,
                    )
                return []

            cursor.require_records(count, _ZFRAME_ENTRY_SIZE, "zframe entries")
            ids = [cursor.read_int64() for _ in range(count)]
            offsets = [cursor.read_uint32() for _ in range(count)]
            end_of_file = cursor.read_uint32()
            if end_of_file != cursor.length:
                raise StructuralMismatch(
                    f"end of file pointer does not match stream length {cursor.length}",
                    stage=cursor.stage,
                    value=end_of_file,
                )
            _check_ascending(ids, cursor.stage)
        LOG.debug("zframe table: %d entries, data ends at %d", count, end_of_file)
        return [ZFrameEntry(zframe_id=zid, offset=offset) for zid, offset in zip(ids, offsets)]


def _check_ascending(ids: Sequence[int], stage: Optional[str]) -> None:
    for previous, current in zip(ids, ids[1:]):
        if current <= previous:
            raise StructuralMismatch(
                f"zframe identifiers not strictly ascending after {previous}",
                stage=stage,
                value=current,
            )
