"""PAX extended header records, PAX times and USTAR path splitting."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import BinaryIO, Union

from .common import (
    FILE_NAME_PREFIX_SIZE,
    FILE_NAME_SIZE,
    PAX_ATIME,
    PAX_CREATION_TIME,
    PAX_CTIME,
    PAX_GID,
    PAX_GNAME,
    PAX_LINKPATH,
    PAX_MTIME,
    PAX_PATH,
    PAX_SIZE,
    PAX_UID,
    PAX_UNAME,
    PAX_WINDOWS,
    PAX_XATTR,
    Header,
    HeaderError,
    is_ascii,
)

# Keywords for GNU sparse files in a PAX extended header.
PAX_GNU_SPARSE_NUM_BLOCKS = "GNU.sparse.numblocks"
PAX_GNU_SPARSE_OFFSET = "GNU.sparse.offset"
PAX_GNU_SPARSE_NUM_BYTES = "GNU.sparse.numbytes"
PAX_GNU_SPARSE_MAP = "GNU.sparse.map"
PAX_GNU_SPARSE_NAME = "GNU.sparse.name"
PAX_GNU_SPARSE_MAJOR = "GNU.sparse.major"
PAX_GNU_SPARSE_MINOR = "GNU.sparse.minor"
PAX_GNU_SPARSE_SIZE = "GNU.sparse.size"
PAX_GNU_SPARSE_REAL_SIZE = "GNU.sparse.realsize"

_MAX_NANO_DIGITS = 9
_NS_PER_SECOND = 1_000_000_000
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_DECIMAL = re.compile(r"[+-]?[0-9]+")

_Text = Union[str, bytes]


def _parse_int(s: str) -> int:
    """Parse a signed 64-bit decimal integer, raising HeaderError if invalid."""
    if not _DECIMAL.fullmatch(s):
        raise HeaderError()
    value = int(s)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise HeaderError()
    return value


def _to_bytes(s: str) -> bytes:
    return s.encode("utf-8", "surrogateescape")


def _to_text(b: bytes) -> str:
    return b.decode("utf-8", "surrogateescape")


def parse_pax_record(s: _Text) -> tuple[str, str, _Text]:
    """Parse one "%d %s=%s\\n" record from the start of s.

    Returns (key, value, residual); the residual has the same type as s.
    Lengths are counted in UTF-8 bytes. Raises HeaderError on a bad record.
    """
    text_input = isinstance(s, str)
    data = _to_bytes(s) if text_input else bytes(s)

    sp = data.find(b" ")
    if sp == -1:
        raise HeaderError()
    try:
        n = _parse_int(data[:sp].decode("ascii"))
    except UnicodeDecodeError:
        raise HeaderError() from None
    if n < 5 or len(data) < n or sp + 1 > n - 1:
        raise HeaderError()

    rec, nl, rem = data[sp + 1:n - 1], data[n - 1:n], data[n:]
    if nl != b"\n":
        raise HeaderError()
    key, eq, value = rec.partition(b"=")
    if not eq:
        raise HeaderError()
    residual: _Text = _to_text(rem) if text_input else rem
    return _to_text(key), _to_text(value), residual


def format_pax_record(k: str, v: str) -> str:
    """Format one PAX record, prefixed with its length in bytes."""
    size = len(_to_bytes(k)) + len(_to_bytes(v)) + 3  # ' ', '=' and '\n'
    size += len(str(size))
    record = f"{size} {k}={v}\n"
    actual = len(_to_bytes(record))
    if actual != size:
        record = f"{actual} {k}={v}\n"
    return record


def parse_pax_time(t: str) -> int:
    """Parse a "%d.%d" PAX time into nanoseconds since the Unix epoch."""
    seconds_text, dot, nano_text = t.partition(".")
    seconds = _parse_int(seconds_text)
    nanoseconds = 0
    if dot:
        nano_text = nano_text[:_MAX_NANO_DIGITS].ljust(_MAX_NANO_DIGITS, "0")
        nanoseconds = _parse_int(nano_text)
    return seconds * _NS_PER_SECOND + nanoseconds


def format_pax_time(t: int) -> str:
    """Format nanoseconds since the Unix epoch as a PAX time."""
    seconds, nanoseconds = divmod(t, _NS_PER_SECOND)
    if nanoseconds:
        return f"{seconds}.{nanoseconds:09d}"
    return str(seconds)


def parse_pax(data: bytes | str | BinaryIO) -> dict[str, str]:
    """Parse the body of a PAX extended header into a dictionary.

    GNU sparse 0.0 offset/numbytes records are collected into a single
    GNU.sparse.map entry. Raises HeaderError on any malformed record.
    """
    if hasattr(data, "read"):
        data = data.read()
    buf = _to_bytes(data) if isinstance(data, str) else bytes(data)

    headers: dict[str, str] = {}
    sparse_map: list[str] = []
    while buf:
        key, value, buf = parse_pax_record(buf)
        if key in (PAX_GNU_SPARSE_OFFSET, PAX_GNU_SPARSE_NUM_BYTES):
            sparse_map.append(value)
        else:
            headers[key] = value
    if sparse_map:
        headers[PAX_GNU_SPARSE_MAP] = ",".join(sparse_map)
    return headers


def merge_pax(hdr: Header, headers: Mapping[str, str]) -> None:
    """Apply well-known PAX records to hdr in place.

    Raises HeaderError when a numeric or time record cannot be parsed.
    """
    for key, value in headers.items():
        if key == PAX_PATH:
            hdr.name = value
        elif key == PAX_LINKPATH:
            hdr.linkname = value
        elif key == PAX_GNAME:
            hdr.gname = value
        elif key == PAX_UNAME:
            hdr.uname = value
        elif key == PAX_UID:
            hdr.uid = _parse_int(value)
        elif key == PAX_GID:
            hdr.gid = _parse_int(value)
        elif key == PAX_ATIME:
            hdr.access_time = parse_pax_time(value)
        elif key == PAX_MTIME:
            hdr.mod_time = parse_pax_time(value)
        elif key == PAX_CTIME:
            hdr.change_time = parse_pax_time(value)
        elif key == PAX_CREATION_TIME:
            hdr.creation_time = parse_pax_time(value)
        elif key == PAX_SIZE:
            hdr.size = _parse_int(value)
        elif key.startswith(PAX_XATTR):
            if hdr.xattrs is None:
                hdr.xattrs = {}
            hdr.xattrs[key[len(PAX_XATTR):]] = value
        elif key.startswith(PAX_WINDOWS):
            if hdr.winheaders is None:
                hdr.winheaders = {}
            hdr.winheaders[key[len(PAX_WINDOWS):]] = value


def split_ustar_path(name: str) -> tuple[str, str] | None:
    """Split name into a USTAR (prefix, suffix) pair, or return None if impossible."""
    length = len(name)
    if length <= FILE_NAME_SIZE or not is_ascii(name):
        return None
    if length > FILE_NAME_PREFIX_SIZE + 1:
        length = FILE_NAME_PREFIX_SIZE + 1
    elif name[length - 1] == "/":
        length -= 1

    i = name.rfind("/", 0, length)
    suffix_len = len(name) - i - 1
    prefix_len = i
    if i <= 0 or suffix_len > FILE_NAME_SIZE or suffix_len == 0 or prefix_len > FILE_NAME_PREFIX_SIZE:
        return None
    return name[:i], name[i + 1:]