"""Encoding and decoding of FILE_FULL_EA_INFORMATION extended attribute buffers."""

from __future__ import annotations

import struct
from collections.abc import Iterable
from dataclasses import dataclass

# NextEntryOffset (u32), Flags (u8), NameLength (u8), ValueLength (u16)
_INFO = struct.Struct("<IBBH")


class ExtendedAttributeError(ValueError):
    """Raised for malformed extended attribute buffers or oversized attributes."""


@dataclass
class ExtendedAttribute:
    """A single Windows extended attribute."""

    name: str
    value: bytes = b""
    flags: int = 0


def _encode_name(name: str) -> bytes:
    return name.encode("utf-8", "surrogateescape")


def _decode_name(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


def _parse_ea(b: memoryview) -> tuple[ExtendedAttribute, memoryview]:
    if len(b) < _INFO.size:
        raise ExtendedAttributeError("invalid extended attribute buffer")
    next_offset, flags, name_len, value_len = _INFO.unpack_from(b)

    name_offset = _INFO.size
    value_offset = name_offset + name_len + 1
    if value_offset + value_len > len(b) or next_offset > len(b):
        raise ExtendedAttributeError("invalid extended attribute buffer")

    ea = ExtendedAttribute(
        name=_decode_name(bytes(b[name_offset:name_offset + name_len])),
        value=bytes(b[value_offset:value_offset + value_len]),
        flags=flags,
    )
    rest = b[next_offset:] if next_offset else b[len(b):]
    return ea, rest


def decode_extended_attributes(b: bytes | None) -> list[ExtendedAttribute]:
    """Decode a list of extended attributes from a FILE_FULL_EA_INFORMATION buffer."""
    view = memoryview(b or b"")
    eas: list[ExtendedAttribute] = []
    while len(view):
        ea, view = _parse_ea(view)
        eas.append(ea)
    return eas


def _encode_ea(ea: ExtendedAttribute, last: bool) -> bytes:
    name = _encode_name(ea.name)
    if len(name) > 0xFF:
        raise ExtendedAttributeError("extended attribute name too large")
    if len(ea.value) > 0xFFFF:
        raise ExtendedAttributeError("extended attribute value too large")
    if not 0 <= ea.flags <= 0xFF:
        raise ExtendedAttributeError("extended attribute flags out of range")

    entry_size = _INFO.size + len(name) + 1 + len(ea.value)
    with_padding = (entry_size + 3) & ~3
    next_offset = 0 if last else with_padding

    return b"".join(
        (
            _INFO.pack(next_offset, ea.flags, len(name), len(ea.value)),
            name,
            b"\x00",
            bytes(ea.value),
            b"\x00" * (with_padding - entry_size),
        )
    )


def encode_extended_attributes(eas: Iterable[ExtendedAttribute] | None) -> bytes:
    """Encode extended attributes into a FILE_FULL_EA_INFORMATION buffer."""
    items = list(eas or ())
    return b"".join(
        _encode_ea(ea, last=index == len(items) - 1) for index, ea in enumerate(items)
    )