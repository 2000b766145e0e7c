"""Basic Win32 file information and FILETIME conversions."""

from __future__ import annotations

from dataclasses import dataclass

FILE_ATTRIBUTE_DIRECTORY = 0x10

# 100-nanosecond intervals between 1601-01-01 and 1970-01-01.
_EPOCH_DIFFERENCE = 116444736000000000
_U64_MASK = (1 << 64) - 1


def _to_int64(value: int) -> int:
    value &= _U64_MASK
    return value - (1 << 64) if value >= 1 << 63 else value


def filetime_from_ns(ns: int) -> int:
    """Convert nanoseconds since the Unix epoch to a 64-bit FILETIME value."""
    intervals = abs(ns) // 100
    if ns < 0:
        intervals = -intervals
    return (intervals + _EPOCH_DIFFERENCE) & _U64_MASK


def ns_from_filetime(ft: int) -> int:
    """Convert a 64-bit FILETIME value to nanoseconds since the Unix epoch."""
    return _to_int64((_to_int64(ft) - _EPOCH_DIFFERENCE) * 100)


@dataclass
class FileBasicInfo:
    """File times (as FILETIME values) and attributes of a file."""

    creation_time: int = 0
    last_access_time: int = 0
    last_write_time: int = 0
    change_time: int = 0
    file_attributes: int = 0