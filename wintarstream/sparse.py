"""Readers for regular and sparse tar entries and GNU sparse maps."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import BinaryIO, Protocol

from .common import BLOCK_SIZE, HeaderError, UnexpectedEOFError
from .pax import PAX_GNU_SPARSE_MAP, PAX_GNU_SPARSE_NUM_BLOCKS, _parse_int

_INT64_MAX = (1 << 63) - 1
_CHUNK = 32 * 1024


class _Readable(Protocol):
    def read(self, size: int = ...) -> bytes: ...


@dataclass(frozen=True)
class SparseEntry:
    """One data fragment of a sparse file; everything else reads as zeros."""

    offset: int
    num_bytes: int


class RegFileReader:
    """Reads at most nb bytes of entry data from an underlying stream."""

    def __init__(self, r: BinaryIO, nb: int) -> None:
        self._r = r
        self._nb = nb

    def _read_once(self, want: int) -> bytes:
        data = self._r.read(want)
        if not data:
            raise UnexpectedEOFError()
        self._nb -= len(data)
        return data

    def read(self, size: int | None = -1) -> bytes:
        """Read up to size bytes of the entry; b"" at its end.

        Raises UnexpectedEOFError if the stream ends before the entry does.
        """
        if self._nb <= 0 or size == 0:
            return b""
        if size is None or size < 0:
            chunks = []
            while self._nb > 0:
                chunks.append(self._read_once(self._nb))
            return b"".join(chunks)
        return self._read_once(min(size, self._nb))

    def num_bytes(self) -> int:
        """Return the number of entry bytes not yet read."""
        return self._nb


class SparseFileReader:
    """Expands sparse-encoded entry data into the full file contents."""

    def __init__(self, rfr: RegFileReader, sp: Iterable[SparseEntry], total: int) -> None:
        if total < 0:
            raise HeaderError()
        entries = list(sp)
        prev_end: int | None = None
        for entry in entries:
            if entry.offset < 0 or entry.num_bytes < 0:
                raise HeaderError()
            if entry.offset > _INT64_MAX - entry.num_bytes:
                raise HeaderError()
            if entry.offset + entry.num_bytes > total:
                raise HeaderError()
            if prev_end is not None and prev_end > entry.offset:
                raise HeaderError()
            prev_end = entry.offset + entry.num_bytes
        self._rfr = rfr
        self._sp = deque(entries)
        self._pos = 0
        self._total = total

    def _hole(self, n: int, end_offset: int) -> bytes:
        count = min(end_offset - self._pos, n)
        self._pos += count
        return bytes(count)

    def _read_some(self, n: int) -> bytes:
        while self._sp and self._sp[0].num_bytes == 0:
            self._sp.popleft()

        if not self._sp:
            if self._pos < self._total:
                return self._hole(n, self._total)
            return b""

        first = self._sp[0]
        if self._pos < first.offset:
            return self._hole(n, first.offset)

        end = first.offset + first.num_bytes
        data = self._rfr.read(min(n, end - self._pos))
        if not data:
            raise UnexpectedEOFError()
        self._pos += len(data)
        if self._pos == end:
            self._sp.popleft()
        return data

    def read(self, size: int | None = -1) -> bytes:
        """Read up to size bytes of expanded data (all of it if size < 0)."""
        if size == 0:
            return b""
        limit = None if size is None or size < 0 else size
        chunks = []
        got = 0
        while limit is None or got < limit:
            chunk = self._read_some(_CHUNK if limit is None else limit - got)
            if not chunk:
                break
            chunks.append(chunk)
            got += len(chunk)
        return b"".join(chunks)

    def num_bytes(self) -> int:
        """Return the number of sparse-encoded bytes left in the archive."""
        return self._rfr.num_bytes()


def read_gnu_sparse_map_0x1(ext_hdrs: Mapping[str, str]) -> list[SparseEntry]:
    """Read a sparse map stored in PAX headers (GNU sparse format 0.1)."""
    num_entries = _parse_int(ext_hdrs.get(PAX_GNU_SPARSE_NUM_BLOCKS, ""))
    if num_entries < 0 or 2 * num_entries > _INT64_MAX:
        raise HeaderError()

    parts = ext_hdrs.get(PAX_GNU_SPARSE_MAP, "").split(",")
    if len(parts) != 2 * num_entries:
        raise HeaderError()

    numbers = [_parse_int(part) for part in parts]
    return [SparseEntry(offset, nb) for offset, nb in zip(numbers[::2], numbers[1::2])]


def _read_full(r: _Readable, n: int) -> bytes:
    chunks = []
    got = 0
    while got < n:
        chunk = r.read(n - got)
        if not chunk:
            break
        chunks.append(chunk)
        got += len(chunk)
    return b"".join(chunks)


class _TokenFeed:
    """Newline-delimited tokens pulled from a stream one block at a time."""

    def __init__(self, r: _Readable) -> None:
        self._r = r
        self._buf = bytearray()
        self._newlines = 0

    def feed(self, count: int) -> None:
        while self._newlines < count:
            block = _read_full(self._r, BLOCK_SIZE)
            if len(block) < BLOCK_SIZE:
                raise UnexpectedEOFError()
            self._buf += block
            self._newlines += block.count(b"\n")

    def next_token(self) -> str:
        self._newlines -= 1
        index = self._buf.index(b"\n")
        token = bytes(self._buf[:index])
        del self._buf[:index + 1]
        return token.decode("latin-1")


def read_gnu_sparse_map_1x0(r: _Readable) -> list[SparseEntry]:
    """Read a sparse map stored in the data section (GNU sparse format 1.0).

    Reads whole blocks only, stopping at the end of the block holding the
    last newline needed.
    """
    tokens = _TokenFeed(r)
    tokens.feed(1)
    num_entries = _parse_int(tokens.next_token())
    if num_entries < 0 or 2 * num_entries > _INT64_MAX:
        raise HeaderError()

    tokens.feed(2 * num_entries)
    entries = []
    for _ in range(num_entries):
        offset = _parse_int(tokens.next_token())
        num_bytes = _parse_int(tokens.next_token())
        entries.append(SparseEntry(offset, num_bytes))
    return entries