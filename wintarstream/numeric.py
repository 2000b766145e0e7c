"""Encoding and decoding of fixed-width tar header fields."""

from __future__ import annotations

import re

from .common import FieldTooLongError, HeaderError, to_ascii

_OCTAL = re.compile(r"[0-7]+")


def _to_int64(value: int) -> int:
    value &= (1 << 64) - 1
    return value - (1 << 64) if value >= 1 << 63 else value


def parse_string(b: bytes) -> str:
    """Decode a NUL-terminated field; without a NUL the whole field is used."""
    raw = bytes(b).split(b"\x00", 1)[0]
    return raw.decode("utf-8", "surrogateescape")


def parse_octal(b: bytes) -> int:
    """Parse an octal field padded with spaces or NULs."""
    trimmed = bytes(b).strip(b" \x00")
    if not trimmed:
        return 0
    text = parse_string(trimmed)
    if not _OCTAL.fullmatch(text):
        raise HeaderError()
    value = int(text, 8)
    if value >= 1 << 64:
        raise HeaderError()
    return _to_int64(value)


def parse_numeric(b: bytes) -> int:
    """Parse a field encoded either in base-256 or in octal.

    Raises HeaderError on malformed input or on overflow of 64 bits.
    """
    data = bytes(b)
    if data and data[0] & 0x80:
        inv = 0xFF if data[0] & 0x40 else 0x00
        x = 0
        for i, c in enumerate(data):
            c ^= inv
            if i == 0:
                c &= 0x7F
            if x >> 56:
                raise HeaderError()
            x = (x << 8) | c
        if x >> 63:
            raise HeaderError()
        return ~x if inv else x
    return parse_octal(data)


def format_string(s: str, width: int) -> bytes:
    """Encode s into a field of width bytes, NUL-terminated if there is room.

    Non-ASCII characters are dropped.
    """
    if len(s.encode("utf-8", "surrogateescape")) > width:
        raise FieldTooLongError()
    ascii_bytes = to_ascii(s).encode("ascii")
    return ascii_bytes + b"\x00" * (width - len(ascii_bytes))


def format_octal(x: int, width: int) -> bytes:
    """Encode x as zero-padded octal, leaving room for a terminating NUL."""
    s = format(x, "o")
    if len(s) + 1 < width:
        s = "0" * (width - 1 - len(s)) + s
    return format_string(s, width)


def fits_in_base256(n: int, x: int) -> bool:
    """Report whether x can be stored in n bytes of base-256 encoding."""
    if n < 1:
        return False
    bin_bits = (n - 1) * 8
    return n >= 9 or (-(1 << bin_bits) <= x < (1 << bin_bits))


def format_numeric(x: int, width: int) -> bytes:
    """Encode x in base-256 (GNU binary extension) into width bytes."""
    if not fits_in_base256(width, x):
        raise FieldTooLongError()
    out = bytearray((x & ((1 << (8 * width)) - 1)).to_bytes(width, "big"))
    out[0] |= 0x80
    return bytes(out)