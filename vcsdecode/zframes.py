"""Directory of compiled zframes and on-demand decompression."""

from __future__ import annotations

import logging
import lzma
import struct
import threading
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterator, List, Sequence, Tuple

import zstandard

from .exceptions import (
    FrameDecodeError,
    FrameOutOfBounds,
    UnknownCompressionTag,
    ZFrameNotFound,
    ZFramePositionError,
)
from .reader import ByteCursor

LOG = logging.getLogger(__name__)

__all__ = [
    "CompressionType",
    "FRAME_HEADER_SIZE",
    "ZFrameDirectory",
    "ZFrameEntry",
    "decompress_payload",
]

_FRAME_HEADER = struct.Struct("<III")
FRAME_HEADER_SIZE = _FRAME_HEADER.size
_LZMA_PROPS_SIZE = 5


class CompressionType(IntEnum):
    UNCOMPRESSED = 0
    LZMA = 1
    ZSTD = 2


@dataclass(frozen=True)
class ZFrameEntry:
    """Location of one compressed frame; the payload is never stored here."""

    zframe_id: int
    offset: int


def _decompress_lzma(payload: bytes, uncompressed_size: int) -> bytes:
    if len(payload) < _LZMA_PROPS_SIZE:
        raise FrameDecodeError("LZMA payload shorter than its properties", value=len(payload))
    # rebuild a .lzma "alone" header: properties, then the 64-bit size
    header = payload[:_LZMA_PROPS_SIZE] + struct.pack("<Q", uncompressed_size)
    decompressor = lzma.LZMADecompressor(format=lzma.FORMAT_ALONE)
    return decompressor.decompress(header + payload[_LZMA_PROPS_SIZE:])


def decompress_payload(tag: int, payload: bytes, uncompressed_size: int) -> bytes:
    """Decompress one frame payload according to its compression tag."""

    try:
        compression = CompressionType(tag)
    except ValueError:
        raise UnknownCompressionTag("unrecognised zframe compression tag", value=tag) from None

    try:
        if compression is CompressionType.UNCOMPRESSED:
            data = payload
        elif compression is CompressionType.LZMA:
            data = _decompress_lzma(payload, uncompressed_size)
        else:
            data = zstandard.ZstdDecompressor().decompress(
                payload, max_output_size=uncompressed_size
            )
    except (lzma.LZMAError, zstandard.ZstdError) as exc:
        raise FrameDecodeError(f"{compression.name} decompression failed: {exc}") from exc

    if len(data) != uncompressed_size:
        raise FrameDecodeError(
            f"{compression.name} frame produced {len(data)} bytes, header declares "
            f"{uncompressed_size}",
            value=len(data),
        )
    return data


class ZFrameDirectory:
    """Ordered zframe entries with keyed and positional access.

    Entries keep file order, which is ascending by identifier.  Positional
    access (:meth:`get_by_position`) and identifier access (:meth:`get`) are
    separate methods.  Decompressed frames are retained in an
    insert-once cache; the stream is only touched inside a lock so
    independent requests may come from several threads.
    """

    def __init__(self, cursor: ByteCursor, entries: Sequence[ZFrameEntry] = ()) -> None:
        self._cursor = cursor
        self._entries: List[ZFrameEntry] = list(entries)
        self._positions: Dict[int, int] = {
            entry.zframe_id: position for position, entry in enumerate(self._entries)
        }
        self._cache: Dict[int, bytes] = {}
        self._lock = threading.Lock()
        self._closed = False

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ZFrameEntry]:
        return iter(self._entries)

    def __contains__(self, zframe_id: object) -> bool:
        return zframe_id in self._positions

    @property
    def count(self) -> int:
        return len(self._entries)

    @property
    def ids(self) -> Tuple[int, ...]:
        return tuple(entry.zframe_id for entry in self._entries)

    def get(self, zframe_id: int) -> ZFrameEntry:
        position = self._positions.get(zframe_id)
        if position is None:
            raise ZFrameNotFound("no zframe with this identifier", value=zframe_id)
        return self._entries[position]

    def get_by_position(self, index: int) -> ZFrameEntry:
        if not 0 <= index < len(self._entries):
            raise ZFramePositionError(
                f"zframe position outside 0..{len(self._entries) - 1}", value=index
            )
        return self._entries[index]

    def position_of(self, zframe_id: int) -> int:
        self.get(zframe_id)
        return self._positions[zframe_id]

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Refuse further decompression; entries stay readable."""

        self._closed = True

    def is_cached(self, zframe_id: int) -> bool:
        return zframe_id in self._cache

    def decompress(self, zframe_id: int) -> bytes:
        """Return the decompressed bytes of the frame with ``zframe_id``."""

        entry = self.get(zframe_id)
        if self._closed:
            raise ValueError("I/O operation on closed program")
        cached = self._cache.get(zframe_id)
        if cached is not None:
            LOG.debug("zframe 0x%08x served from cache", zframe_id)
            return cached

        tag, uncompressed_size, payload = self._read_frame(entry)
        data = decompress_payload(tag, payload, uncompressed_size)
        with self._lock:
            data = self._cache.setdefault(zframe_id, data)
        LOG.debug(
            "zframe 0x%08x decompressed %d -> %d bytes", zframe_id, len(payload), len(data)
        )
        return data

    def decompress_by_position(self, index: int) -> bytes:
        return self.decompress(self.get_by_position(index).zframe_id)

    def _read_frame(self, entry: ZFrameEntry) -> Tuple[int, int, bytes]:
        length = self._cursor.length
        if not 0 <= entry.offset <= length - FRAME_HEADER_SIZE:
            raise FrameOutOfBounds(
                f"zframe 0x{entry.zframe_id:08x} header offset outside stream of {length} bytes",
                value=entry.offset,
            )
        with self._lock:
            self._cursor.seek(entry.offset)
            tag, uncompressed_size, compressed_size = _FRAME_HEADER.unpack(
                self._cursor.read_bytes(FRAME_HEADER_SIZE)
            )
            if compressed_size > self._cursor.remaining:
                raise FrameOutOfBounds(
                    f"zframe 0x{entry.zframe_id:08x} payload of {compressed_size} bytes at "
                    f"offset {self._cursor.position} runs past end of stream",
                    value=compressed_size,
                )
            payload = self._cursor.read_bytes(compressed_size)
        return tag, uncompressed_size, payload
