"""Reading and writing Win32 BackupRead/BackupWrite stream format."""

from __future__ import annotations

import io
import struct
from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum
from typing import BinaryIO


class BackupStreamId(IntEnum):
    """Identifiers of the streams that make up a backup stream."""

    DATA = 1
    EA_DATA = 2
    SECURITY = 3
    ALTERNATE_DATA = 4
    LINK = 5
    PROPERTY_DATA = 6
    OBJECT_ID = 7
    REPARSE_DATA = 8
    SPARSE_BLOCK = 9
    TXFS_DATA = 10


STREAM_SPARSE_ATTRIBUTES = 8

# StreamId (u32), Attributes (u32), Size (u64), NameSize (u32)
_STREAM_ID = struct.Struct("<IIQI")
_OFFSET = struct.Struct("<q")
_U64_MASK = (1 << 64) - 1
_SKIP_CHUNK = 64 * 1024


class BackupStreamError(Exception):
    """Raised for truncated or inconsistent backup streams."""


@dataclass
class BackupHeader:
    """Header of one stream within a backup stream."""

    id: int
    attributes: int = 0
    size: int = 0
    name: str = ""
    offset: int = 0


def _to_int64(value: int) -> int:
    return value - (1 << 64) if value >= 1 << 63 else value


class BackupStreamReader:
    """Splits a backup stream into its component streams."""

    def __init__(self, r: BinaryIO) -> None:
        self._r = r
        self._bytes_left = 0

    def _read_exact(self, n: int) -> bytes:
        chunks = []
        remaining = n
        while remaining > 0:
            chunk = self._r.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def _skip_rest(self) -> None:
        try:
            self._r.seek(0, io.SEEK_CUR)
        except (AttributeError, OSError, ValueError):
            pass
        else:
            self._r.seek(self._bytes_left, io.SEEK_CUR)
            self._bytes_left = 0
        while self._bytes_left > 0:
            self.read(_SKIP_CHUNK)

    def next(self) -> BackupHeader | None:
        """Return the next stream header, or None at the end of the backup stream.

        Any unread data of the current stream is skipped.
        """
        if self._bytes_left > 0:
            self._skip_rest()

        raw = self._read_exact(_STREAM_ID.size)
        if not raw:
            return None
        if len(raw) < _STREAM_ID.size:
            raise BackupStreamError("truncated backup stream header")
        stream_id, attributes, size, name_size = _STREAM_ID.unpack(raw)
        hdr = BackupHeader(id=stream_id, attributes=attributes, size=_to_int64(size))

        if name_size:
            want = (name_size // 2) * 2
            raw_name = self._read_exact(want)
            if len(raw_name) < want:
                raise BackupStreamError("truncated backup stream name")
            hdr.name = raw_name.decode("utf-16-le", "replace").split("\x00", 1)[0]

        if stream_id == BackupStreamId.SPARSE_BLOCK:
            raw_offset = self._read_exact(_OFFSET.size)
            if len(raw_offset) < _OFFSET.size:
                raise BackupStreamError("truncated sparse block offset")
            (hdr.offset,) = _OFFSET.unpack(raw_offset)
            hdr.size -= 8

        self._bytes_left = hdr.size
        return hdr

    def read(self, size: int | None = -1) -> bytes:
        """Read from the current stream; returns b"" at its end."""
        if self._bytes_left <= 0:
            return b""
        read_all = size is None or size < 0
        want = self._bytes_left if read_all else min(size, self._bytes_left)
        chunks = []
        while want > 0:
            chunk = self._r.read(want)
            if not chunk:
                raise BackupStreamError("unexpected end of backup stream")
            chunks.append(chunk)
            self._bytes_left -= len(chunk)
            want -= len(chunk)
            if not read_all:
                break
        return b"".join(chunks)

    def __iter__(self) -> Iterator[BackupHeader]:
        while (hdr := self.next()) is not None:
            yield hdr


class BackupStreamWriter:
    """Writes a stream in the format accepted by BackupWrite."""

    def __init__(self, w: BinaryIO) -> None:
        self._w = w
        self._bytes_left = 0

    def write_header(self, hdr: BackupHeader) -> None:
        """Write the header of the next stream."""
        if self._bytes_left != 0:
            raise BackupStreamError(f"missing {self._bytes_left} bytes")
        name = hdr.name.encode("utf-16-le", "surrogatepass")
        sparse = hdr.id == BackupStreamId.SPARSE_BLOCK
        size = hdr.size + 8 if sparse else hdr.size
        parts = [_STREAM_ID.pack(hdr.id, hdr.attributes, size & _U64_MASK, len(name))]
        if name:
            parts.append(name)
        if sparse:
            parts.append(_OFFSET.pack(hdr.offset))
        self._w.write(b"".join(parts))
        self._bytes_left = hdr.size

    def write(self, b: bytes) -> int:
        """Write data to the current stream."""
        if self._bytes_left < len(b):
            raise BackupStreamError(f"too many bytes by {len(b) - self._bytes_left}")
        n = self._w.write(b)
        if n is None:
            n = len(b)
        self._bytes_left -= n
        return n