"""Tar header model, mode bits, checksums and shared constants."""

from __future__ import annotations

import enum
import os
import posixpath
from dataclasses import dataclass
from typing import Any, Protocol

BLOCK_SIZE = 512
ZERO_BLOCK = bytes(BLOCK_SIZE)

# Type flags.
TYPE_REG = "0"
TYPE_REG_A = "\x00"
TYPE_LINK = "1"
TYPE_SYMLINK = "2"
TYPE_CHAR = "3"
TYPE_BLOCK = "4"
TYPE_DIR = "5"
TYPE_FIFO = "6"
TYPE_CONT = "7"
TYPE_X_HEADER = "x"
TYPE_X_GLOBAL_HEADER = "g"
TYPE_GNU_LONG_NAME = "L"
TYPE_GNU_LONG_LINK = "K"
TYPE_GNU_SPARSE = "S"

# Field sizes from the tar spec.
FILE_NAME_SIZE = 100
FILE_NAME_PREFIX_SIZE = 155

# Mode constants from the tar spec.
C_ISUID = 0o4000
C_ISGID = 0o2000
C_ISVTX = 0o1000
C_ISDIR = 0o40000
C_ISFIFO = 0o10000
C_ISREG = 0o100000
C_ISLNK = 0o120000
C_ISBLK = 0o60000
C_ISCHR = 0o20000
C_ISSOCK = 0o140000

# Keywords for the PAX extended header.
PAX_ATIME = "atime"
PAX_CHARSET = "charset"
PAX_COMMENT = "comment"
PAX_CTIME = "ctime"  # not a valid pax header, but written and read anyway
PAX_CREATION_TIME = "LIBARCHIVE.creationtime"
PAX_GID = "gid"
PAX_GNAME = "gname"
PAX_LINKPATH = "linkpath"
PAX_MTIME = "mtime"
PAX_PATH = "path"
PAX_SIZE = "size"
PAX_UID = "uid"
PAX_UNAME = "uname"
PAX_XATTR = "SCHILY.xattr."
PAX_WINDOWS = "MSWINDOWS."
PAX_NONE = ""


class TarError(Exception):
    """Base class for tar archive errors."""


class HeaderError(TarError):
    """Raised for an invalid tar header."""

    def __init__(self, message: str = "tar: invalid tar header") -> None:
        super().__init__(message)


class FieldTooLongError(TarError):
    """Raised when a header field does not fit its slot."""

    def __init__(self, message: str = "tar: header field too long") -> None:
        super().__init__(message)


class WriteTooLongError(TarError):
    """Raised when more data is written than the header announced."""

    def __init__(self, message: str = "tar: write too long") -> None:
        super().__init__(message)


class WriteAfterCloseError(TarError):
    """Raised when writing to a closed archive."""

    def __init__(self, message: str = "tar: write after close") -> None:
        super().__init__(message)


class InvalidHeaderError(TarError):
    """Raised when a header cannot be encoded, even with extensions."""

    def __init__(
        self, message: str = "tar: header field too long or contains invalid values"
    ) -> None:
        super().__init__(message)


class UnexpectedEOFError(TarError):
    """Raised when the input ends in the middle of an entry."""

    def __init__(self, message: str = "unexpected EOF") -> None:
        super().__init__(message)


class FileMode(enum.IntFlag):
    """File mode and permission bits."""

    DIR = 1 << 31
    APPEND = 1 << 30
    EXCLUSIVE = 1 << 29
    TEMPORARY = 1 << 28
    SYMLINK = 1 << 27
    DEVICE = 1 << 26
    NAMED_PIPE = 1 << 25
    SOCKET = 1 << 24
    SETUID = 1 << 23
    SETGID = 1 << 22
    CHAR_DEVICE = 1 << 21
    STICKY = 1 << 20
    IRREGULAR = 1 << 19

    def perm(self) -> FileMode:
        """Return only the Unix permission bits."""
        return FileMode(int(self) & 0o777)

    def is_dir(self) -> bool:
        """Report whether the mode describes a directory."""
        return bool(int(self) & int(FileMode.DIR))

    def is_regular(self) -> bool:
        """Report whether the mode describes a regular file."""
        return not int(self) & _MODE_TYPE


_MODE_TYPE = int(
    FileMode.DIR
    | FileMode.SYMLINK
    | FileMode.NAMED_PIPE
    | FileMode.SOCKET
    | FileMode.DEVICE
    | FileMode.CHAR_DEVICE
    | FileMode.IRREGULAR
)


@dataclass
class Header:
    """A single header in a tar archive.

    Times are integer nanoseconds since the Unix epoch; None means unset.
    """

    name: str = ""
    mode: int = 0
    uid: int = 0
    gid: int = 0
    size: int = 0
    mod_time: int | None = None
    typeflag: str = TYPE_REG_A
    linkname: str = ""
    uname: str = ""
    gname: str = ""
    devmajor: int = 0
    devminor: int = 0
    access_time: int | None = None
    change_time: int | None = None
    creation_time: int | None = None
    xattrs: dict[str, str] | None = None
    winheaders: dict[str, str] | None = None

    def file_info(self) -> HeaderFileInfo:
        """Return a file-info view of this header."""
        return HeaderFileInfo(self)


class FileInfo(Protocol):
    """Describes a file in the way file_info_header expects."""

    def name(self) -> str: ...
    def size(self) -> int: ...
    def mode(self) -> int: ...
    def mod_time(self) -> int | None: ...
    def is_dir(self) -> bool: ...
    def sys(self) -> Any: ...


def _path_base(p: str) -> str:
    if not p:
        return "."
    p = p.rstrip("/")
    if not p:
        return "/"
    return p.rsplit("/", 1)[-1]


class HeaderFileInfo:
    """File-info view over a Header."""

    def __init__(self, header: Header) -> None:
        self._h = header

    def size(self) -> int:
        return self._h.size

    def is_dir(self) -> bool:
        return self.mode().is_dir()

    def mod_time(self) -> int | None:
        return self._h.mod_time

    def sys(self) -> Header:
        return self._h

    def name(self) -> str:
        """Return the base name of the entry."""
        if self.is_dir():
            cleaned = posixpath.normpath(self._h.name) if self._h.name else "."
            return _path_base(cleaned)
        return _path_base(self._h.name)

    def mode(self) -> FileMode:
        """Return the permission and mode bits of the entry."""
        h = self._h
        mode = h.mode & 0o777
        if h.mode & C_ISUID:
            mode |= FileMode.SETUID
        if h.mode & C_ISGID:
            mode |= FileMode.SETGID
        if h.mode & C_ISVTX:
            mode |= FileMode.STICKY

        m = (h.mode & 0xFFFFFFFF) & ~0o7777
        if m == C_ISDIR:
            mode |= FileMode.DIR
        if m == C_ISFIFO:
            mode |= FileMode.NAMED_PIPE
        if m == C_ISLNK:
            mode |= FileMode.SYMLINK
        if m == C_ISBLK:
            mode |= FileMode.DEVICE
        if m == C_ISCHR:
            mode |= FileMode.DEVICE | FileMode.CHAR_DEVICE
        if m == C_ISSOCK:
            mode |= FileMode.SOCKET

        if h.typeflag == TYPE_SYMLINK:
            mode |= FileMode.SYMLINK
        elif h.typeflag == TYPE_CHAR:
            mode |= FileMode.DEVICE | FileMode.CHAR_DEVICE
        elif h.typeflag == TYPE_BLOCK:
            mode |= FileMode.DEVICE
        elif h.typeflag == TYPE_DIR:
            mode |= FileMode.DIR
        elif h.typeflag == TYPE_FIFO:
            mode |= FileMode.NAMED_PIPE
        return FileMode(int(mode))


def file_info_header(fi: FileInfo | None, link: str) -> Header:
    """Create a partially populated Header from a file-info object.

    Symlinks record link as their target; directories get a trailing slash.
    """
    if fi is None:
        raise TarError("tar: FileInfo is nil")
    fm = FileMode(int(fi.mode()))
    h = Header(name=fi.name(), mod_time=fi.mod_time(), mode=int(fm.perm()))
    if fm.is_regular():
        h.mode |= C_ISREG
        h.typeflag = TYPE_REG
        h.size = fi.size()
    elif fi.is_dir():
        h.typeflag = TYPE_DIR
        h.mode |= C_ISDIR
        h.name += "/"
    elif fm & FileMode.SYMLINK:
        h.typeflag = TYPE_SYMLINK
        h.mode |= C_ISLNK
        h.linkname = link
    elif fm & FileMode.DEVICE:
        if fm & FileMode.CHAR_DEVICE:
            h.mode |= C_ISCHR
            h.typeflag = TYPE_CHAR
        else:
            h.mode |= C_ISBLK
            h.typeflag = TYPE_BLOCK
    elif fm & FileMode.NAMED_PIPE:
        h.typeflag = TYPE_FIFO
        h.mode |= C_ISFIFO
    elif fm & FileMode.SOCKET:
        h.mode |= C_ISSOCK
    else:
        raise TarError(f"tar: unknown file mode {int(fm):#o}")

    if fm & FileMode.SETUID:
        h.mode |= C_ISUID
    if fm & FileMode.SETGID:
        h.mode |= C_ISGID
    if fm & FileMode.STICKY:
        h.mode |= C_ISVTX

    sys = fi.sys()
    if isinstance(sys, Header):
        h.uid = sys.uid
        h.gid = sys.gid
        h.uname = sys.uname
        h.gname = sys.gname
        h.access_time = sys.access_time
        h.change_time = sys.change_time
        if sys.xattrs is not None:
            h.xattrs = dict(sys.xattrs)
        if sys.typeflag == TYPE_LINK:
            h.typeflag = TYPE_LINK
            h.size = 0
            h.linkname = sys.linkname
    elif isinstance(sys, os.stat_result):
        h.uid = sys.st_uid
        h.gid = sys.st_gid
        h.access_time = sys.st_atime_ns
        h.change_time = sys.st_ctime_ns
    return h


def checksum(header: bytes) -> tuple[int, int]:
    """Return the (unsigned, signed) byte sums of a header block.

    The checksum field itself (bytes 148..156) counts as eight spaces.
    """
    data = bytes(header)
    rest = data[:148] + data[156:]
    unsigned = sum(rest)
    signed = sum(c - 256 if c >= 0x80 else c for c in rest)
    if len(data) > 148:
        unsigned += ord(" ") * 8
        signed += ord(" ") * 8
    return unsigned, signed


def is_ascii(s: str) -> bool:
    """Report whether every character of s is ASCII."""
    return all(ord(c) < 0x80 for c in s)


def to_ascii(s: str) -> str:
    """Drop every non-ASCII character of s."""
    if is_ascii(s):
        return s
    return "".join(c for c in s if ord(c) < 0x80)


def is_header_only_type(flag: str) -> bool:
    """Report whether entries of this type carry no data, whatever their size."""
    return flag in (TYPE_LINK, TYPE_SYMLINK, TYPE_CHAR, TYPE_BLOCK, TYPE_DIR, TYPE_FIFO)