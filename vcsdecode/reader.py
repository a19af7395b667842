"""Position-tracking little-endian reader over a seekable byte stream."""

from __future__ import annotations

import io
import struct
import uuid
from contextlib import contextmanager
from typing import BinaryIO, Iterator, Optional, Tuple

from .exceptions import TruncatedInput

_INT32 = struct.Struct("<i")
_UINT32 = struct.Struct("<I")
_INT64 = struct.Struct("<q")
_UINT64 = struct.Struct("<Q")
_FLOAT = struct.Struct("<f")

GUID_SIZE = 16

__all__ = ["ByteCursor", "GUID_SIZE", "decode_fixed_string"]


def decode_fixed_string(raw: bytes) -> str:
    """Return the text before the first NUL in ``raw``."""

    end = raw.find(b"\x00")
    if end >= 0:
        raw = raw[:end]
    return raw.decode("utf-8", errors="replace")


class ByteCursor:
    """Sequential reader that knows the total stream length.

    Every read checks the remaining length first so a truncated stream
    raises :class:`TruncatedInput` naming the current stage instead of
    returning short data.  The cursor is stateful and must not be shared
    between threads without external locking.
    """

    def __init__(self, stream: BinaryIO) -> None:
        if not stream.seekable():
            raise ValueError("VCS streams must be seekable")
        self._stream = stream
        stream.seek(0, io.SEEK_END)
        self._length = stream.tell()
        stream.seek(0)
        self.stage: Optional[str] = None

    @classmethod
    def from_bytes(cls, data: bytes) -> "ByteCursor":
        return cls(io.BytesIO(data))

    @property
    def stream(self) -> BinaryIO:
        return self._stream

    @property
    def length(self) -> int:
        return self._length

    @property
    def position(self) -> int:
        return self._stream.tell()

    @property
    def remaining(self) -> int:
        return self._length - self.position

    def at_end(self) -> bool:
        return self.position == self._length

    @contextmanager
    def section(self, name: str) -> Iterator["ByteCursor"]:
        """Label reads inside the block with ``name`` for error reporting."""

        previous = self.stage
        self.stage = name
        try:
            yield self
        finally:
            self.stage = previous

    def seek(self, offset: int) -> None:
        if offset < 0 or offset > self._length:
            raise TruncatedInput(
                f"seek to {offset} outside stream of {self._length} bytes",
                stage=self.stage,
                value=offset,
            )
        self._stream.seek(offset)

    def skip(self, count: int) -> None:
        self.seek(self.position + count)

    def require(self, size: int, what: str = "data") -> None:
        """Raise unless ``size`` more bytes are available."""

        if size > self.remaining:
            raise TruncatedInput(
                f"{what} needs {size} bytes at offset {self.position}, "
                f"only {self.remaining} remain",
                stage=self.stage,
                value=size,
            )

    def require_records(self, count: int, min_record_size: int, what: str) -> None:
        """Reject a record count that cannot fit in the rest of the stream."""

        self.require(count * min_record_size, f"{count} {what}")

    def read_bytes(self, size: int) -> bytes:
        if size < 0:
            raise TruncatedInput("negative read length", stage=self.stage, value=size)
        self.require(size)
        data = self._stream.read(size)
        if len(data) != size:  # pragma: no cover - stream shrank underneath us
            raise TruncatedInput(
                f"short read of {len(data)}/{size} bytes", stage=self.stage, value=size
            )
        return data

    def _unpack(self, fmt: struct.Struct) -> int:
        return fmt.unpack(self.read_bytes(fmt.size))[0]

    def read_int32(self) -> int:
        return self._unpack(_INT32)

    def read_uint32(self) -> int:
        return self._unpack(_UINT32)

    def read_int64(self) -> int:
        return self._unpack(_INT64)

    def read_uint64(self) -> int:
        return self._unpack(_UINT64)

    def read_float(self) -> float:
        return self._unpack(_FLOAT)

    def read_guid(self) -> uuid.UUID:
        return uuid.UUID(bytes_le=self.read_bytes(GUID_SIZE))

    def read_int32_array(self, count: int) -> Tuple[int, ...]:
        raw = self.read_bytes(4 * count)
        return struct.unpack(f"<{count}i", raw)

    def read_float_array(self, count: int) -> Tuple[float, ...]:
        raw = self.read_bytes(4 * count)
        return struct.unpack(f"<{count}f", raw)

    def read_fixed_string(self, size: int) -> str:
        return decode_fixed_string(self.read_bytes(size))

    def read_cstring(self) -> str:
        start = self.position
        buffer = bytearray()
        while True:
            if self.at_end():
                raise TruncatedInput(
                    f"unterminated string starting at offset {start}",
                    stage=self.stage,
                    value=start,
                )
            byte = self._stream.read(1)
            if byte == b"\x00":
                break
            buffer += byte
        return buffer.decode("utf-8", errors="replace")

    def read_blob(self) -> bytes:
        """Read a uint32 length followed by that many bytes."""

        return self.read_bytes(self.read_uint32())

    def peek_int32(self) -> int:
        start = self.position
        try:
            return self.read_int32()
        finally:
            self._stream.seek(start)

    def peek_uint32(self) -> int:
        start = self.position
        try:
            return self.read_uint32()
        finally:
            self._stream.seek(start)
