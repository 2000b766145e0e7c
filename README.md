# wintarstream

A pure-Python library of building blocks for Windows backup data and tar
archives. It works on byte strings and binary file objects. It needs nothing
outside the standard library and runs on any operating system.

## What is in the package

| Module | Contents |
| --- | --- |
| `wintarstream.backup` | `BackupStreamReader`, `BackupStreamWriter`, `BackupHeader`, `BackupStreamId`, `BackupStreamError`, `STREAM_SPARSE_ATTRIBUTES` |
| `wintarstream.ea` | `ExtendedAttribute`, `encode_extended_attributes`, `decode_extended_attributes`, `ExtendedAttributeError` |
| `wintarstream.fileinfo` | `FileBasicInfo`, `filetime_from_ns`, `ns_from_filetime`, `FILE_ATTRIBUTE_DIRECTORY` |
| `wintarstream.common` | tar `Header`, `HeaderFileInfo`, `FileMode`, `file_info_header`, `checksum`, `is_ascii`, `to_ascii`, `is_header_only_type`, type-flag and mode constants, and the error classes (`TarError`, `HeaderError`, `FieldTooLongError`, `WriteTooLongError`, `WriteAfterCloseError`, `InvalidHeaderError`, `UnexpectedEOFError`) |
| `wintarstream.numeric` | fixed-width header fields: `parse_string`, `parse_octal`, `parse_numeric`, `format_string`, `format_octal`, `format_numeric`, `fits_in_base256` |
| `wintarstream.pax` | PAX records and times: `parse_pax_record`, `format_pax_record`, `parse_pax`, `merge_pax`, `parse_pax_time`, `format_pax_time`, `split_ustar_path` |
| `wintarstream.sparse` | `SparseEntry`, `RegFileReader`, `SparseFileReader`, `read_gnu_sparse_map_0x1`, `read_gnu_sparse_map_1x0` |

## Installation

```
pip install wintarstream
```

## Backup streams

A backup stream is a series of stream headers, each followed by its data.
`BackupStreamWriter` produces such a stream and `BackupStreamReader` splits
one back into its streams.

```python
import io
from wintarstream.backup import (
    BackupHeader, BackupStreamId, BackupStreamReader, BackupStreamWriter,
)

buf = io.BytesIO()
w = BackupStreamWriter(buf)
data = b"testing 1 2 3\n"
w.write_header(BackupHeader(id=BackupStreamId.DATA, size=len(data)))
w.write(data)
alt = b"alternate stream\n"
w.write_header(BackupHeader(id=BackupStreamId.ALTERNATE_DATA,
                            size=len(alt), name=":ads.txt:$DATA"))
w.write(alt)

buf.seek(0)
r = BackupStreamReader(buf)
for hdr in r:                 # same as calling r.next() until it returns None
    print(hdr.id, hdr.name, r.read())
```

The reader behaves as follows:

- `next()` skips any unread data of the current stream. It uses `seek` when
  the underlying object supports it.
- For `SPARSE_BLOCK` streams, `next()` reads the 8-byte block offset into
  `hdr.offset`. The header's `size` then counts only the data.
- A truncated stream raises `BackupStreamError`.

The writer raises `BackupStreamError` in two cases:

- `write_header` is called while bytes of the previous stream are still
  missing.
- `write` is given more bytes than the header announced.

## Extended attributes

```python
from wintarstream.ea import (
    ExtendedAttribute, decode_extended_attributes, encode_extended_attributes,
)

buf = encode_extended_attributes([
    ExtendedAttribute("foo", b"bar"),
    ExtendedAttribute("fizz", b"buzz"),
])
assert decode_extended_attributes(buf) == [
    ExtendedAttribute("foo", b"bar"),
    ExtendedAttribute("fizz", b"buzz"),
]
```

- Each entry is padded to a 4-byte boundary. The last entry needs no padding
  when decoding.
- A name longer than 255 bytes, a value longer than 65535 bytes, or a
  malformed buffer raises `ExtendedAttributeError`.

## File times

`FileBasicInfo` holds the creation, last-access, last-write and change
times as raw FILETIME integers, together with the file attributes.
`filetime_from_ns` and `ns_from_filetime` convert between FILETIME values
and nanoseconds since the Unix epoch.

## Tar header helpers

```python
import io
from wintarstream.common import Header, TYPE_DIR, C_ISDIR, FileMode
from wintarstream.numeric import parse_numeric, format_octal, format_numeric
from wintarstream.pax import (
    format_pax_record, parse_pax_record, parse_pax_time, format_pax_time,
)
from wintarstream.sparse import RegFileReader, SparseEntry, SparseFileReader

parse_numeric(b"0000660\x00 ")          # 0o660
format_octal(0o644, 8)                  # b"0000644\x00"
format_numeric(-1, 1)                   # b"\xff"

format_pax_record("path", "/etc/hosts") # "19 path=/etc/hosts\n"
parse_pax_record("19 path=/etc/hosts\n")  # ("path", "/etc/hosts", "")
parse_pax_time("1350244992.023960108")  # 1350244992023960108 (nanoseconds)
format_pax_time(946724400_000000100)    # "946724400.000000100"

hdr = Header(name="dir/", mode=0o755 | C_ISDIR, typeflag=TYPE_DIR)
hdr.file_info().mode() & FileMode.DIR   # set

sfr = SparseFileReader(RegFileReader(io.BytesIO(b"abcde"), 5),
                       [SparseEntry(0, 2), SparseEntry(5, 3)], 8)
sfr.read()                              # b"ab\x00\x00\x00cde"
```

Notes on these helpers:

- Header times are integer nanoseconds since the Unix epoch. `None` means
  the time is unset.
- `file_info_header` builds a `Header` from any object with the methods
  `name`, `size`, `mode`, `mod_time`, `is_dir` and `sys`.
- `merge_pax` applies parsed PAX records to a `Header`. This covers
  `SCHILY.xattr.*` into `xattrs` and `MSWINDOWS.*` into `winheaders`.
- `parse_pax` turns a whole extended-header body into a dictionary. It
  gathers GNU sparse 0.0 offset/size records into `GNU.sparse.map`.
- `read_gnu_sparse_map_0x1` and `read_gnu_sparse_map_1x0` read GNU sparse
  maps.
- Malformed input raises `HeaderError`. Input that ends too early raises
  `UnexpectedEOFError`.

## What the package does not do

- It has no tar archive reader or writer that walks or produces a whole
  archive. It offers only the header, field, PAX and sparse pieces such a
  reader or writer is built from.
- It does not convert between backup streams and tar archives.
- It does not call Windows APIs. Backup streams, extended attribute buffers
  and file information must come from, and go to, code outside this package.
- It has no command-line interface.

## Running the tests

```
pip install -e ".[test]"
pytest
```