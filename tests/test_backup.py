import io

import pytest

from wintarstream.backup import (
    STREAM_SPARSE_ATTRIBUTES,
    BackupHeader,
    BackupStreamError,
    BackupStreamId,
    BackupStreamReader,
    BackupStreamWriter,
)

DATA = b"testing 1 2 3\n"
ALT_DATA = b"alternate data stream\n"
ALT_NAME = ":ads.txt:$DATA"


class NoSeek:
    def __init__(self, data):
        self._inner = io.BytesIO(data)

    def read(self, n=-1):
        return self._inner.read(n)


class BadSeek:
    def __init__(self, data):
        self._inner = io.BytesIO(data)

    def read(self, n=-1):
        return self._inner.read(n)

    def seek(self, offset, whence=0):
        raise OSError("illegal seek")


def make_stream():
    buf = io.BytesIO()
    bw = BackupStreamWriter(buf)
    bw.write_header(BackupHeader(id=BackupStreamId.DATA, size=len(DATA)))
    assert bw.write(DATA) == len(DATA)
    bw.write_header(
        BackupHeader(id=BackupStreamId.ALTERNATE_DATA, size=len(ALT_DATA), name=ALT_NAME)
    )
    assert bw.write(ALT_DATA) == len(ALT_DATA)
    return buf.getvalue()


def test_stream_write_then_read():
    br = BackupStreamReader(io.BytesIO(make_stream()))
    got_data = got_alt = False
    for hdr in br:
        if hdr.id == BackupStreamId.DATA:
            assert not got_data
            assert hdr.name == ""
            assert br.read() == DATA
            got_data = True
        elif hdr.id == BackupStreamId.ALTERNATE_DATA:
            assert not got_alt
            assert hdr.name == ALT_NAME
            assert br.read() == ALT_DATA
            got_alt = True
        else:
            pytest.fail(f"unknown stream ID {hdr.id}")
    assert got_data and got_alt


def test_header_wire_bytes():
    buf = io.BytesIO()
    BackupStreamWriter(buf).write_header(BackupHeader(id=BackupStreamId.DATA, size=3))
    assert buf.getvalue() == (
        b"\x01\x00\x00\x00" b"\x00\x00\x00\x00" b"\x03\x00\x00\x00\x00\x00\x00\x00" b"\x00\x00\x00\x00"
    )


def test_name_wire_bytes():
    buf = io.BytesIO()
    BackupStreamWriter(buf).write_header(
        BackupHeader(id=BackupStreamId.ALTERNATE_DATA, size=0, name=":a")
    )
    raw = buf.getvalue()
    assert raw[16:20] == b"\x04\x00\x00\x00"
    assert raw[20:] == b":\x00a\x00"


def test_sparse_block_round_trip():
    payload = b"more data later\n"
    buf = io.BytesIO()
    bw = BackupStreamWriter(buf)
    bw.write_header(
        BackupHeader(
            id=BackupStreamId.SPARSE_BLOCK,
            attributes=STREAM_SPARSE_ATTRIBUTES,
            size=len(payload),
            offset=1000000,
        )
    )
    bw.write(payload)
    raw = buf.getvalue()
    assert raw[8:16] == (len(payload) + 8).to_bytes(8, "little")

    br = BackupStreamReader(io.BytesIO(raw))
    hdr = br.next()
    assert hdr.id == BackupStreamId.SPARSE_BLOCK
    assert hdr.offset == 1000000
    assert hdr.size == len(payload)
    assert hdr.attributes == STREAM_SPARSE_ATTRIBUTES
    assert br.read() == payload
    assert br.next() is None


@pytest.mark.parametrize("wrap", [io.BytesIO, NoSeek, BadSeek])
def test_next_skips_unread_data(wrap):
    br = BackupStreamReader(wrap(make_stream()))
    first = br.next()
    assert first.id == BackupStreamId.DATA
    second = br.next()
    assert second.id == BackupStreamId.ALTERNATE_DATA
    assert br.read() == ALT_DATA
    assert br.next() is None


@pytest.mark.parametrize("wrap", [io.BytesIO, NoSeek, BadSeek])
def test_next_skips_partially_read_data(wrap):
    br = BackupStreamReader(wrap(make_stream()))
    br.next()
    assert br.read(4) == DATA[:4]
    assert br.next().name == ALT_NAME
    assert br.read() == ALT_DATA


def test_empty_stream():
    br = BackupStreamReader(io.BytesIO(b""))
    assert br.next() is None
    assert list(BackupStreamReader(io.BytesIO(b""))) == []


def test_iteration_order():
    ids = [hdr.id for hdr in BackupStreamReader(io.BytesIO(make_stream()))]
    assert ids == [BackupStreamId.DATA, BackupStreamId.ALTERNATE_DATA]


def test_truncated_header_raises():
    with pytest.raises(BackupStreamError):
        BackupStreamReader(io.BytesIO(make_stream()[:10])).next()


def test_truncated_name_raises():
    raw = make_stream()
    alt_start = 20 + len(DATA)
    with pytest.raises(BackupStreamError):
        br = BackupStreamReader(io.BytesIO(raw[: alt_start + 24]))
        br.next()
        br.next()


def test_truncated_body_raises():
    raw = make_stream()[: 20 + 5]
    br = BackupStreamReader(io.BytesIO(raw))
    br.next()
    with pytest.raises(BackupStreamError, match="unexpected end"):
        br.read()


def test_read_after_end_of_stream_returns_empty():
    br = BackupStreamReader(io.BytesIO(make_stream()))
    br.next()
    assert br.read() == DATA
    assert br.read() == b""
    assert br.read(10) == b""


def test_bounded_read():
    br = BackupStreamReader(io.BytesIO(make_stream()))
    br.next()
    assert br.read(7) == DATA[:7]
    assert br.read(100) == DATA[7:]
    assert br.read(1) == b""


def test_name_stops_at_nul():
    raw = (
        (BackupStreamId.ALTERNATE_DATA).to_bytes(4, "little")
        + b"\x00" * 4
        + b"\x00" * 8
        + (8).to_bytes(4, "little")
        + "ab\x00c".encode("utf-16-le")
    )
    hdr = BackupStreamReader(io.BytesIO(raw)).next()
    assert hdr.name == "ab"
    assert hdr.size == 0


def test_writer_missing_bytes():
    bw = BackupStreamWriter(io.BytesIO())
    bw.write_header(BackupHeader(id=BackupStreamId.DATA, size=10))
    bw.write(b"abc")
    with pytest.raises(BackupStreamError, match="missing 7 bytes"):
        bw.write_header(BackupHeader(id=BackupStreamId.DATA, size=1))


def test_writer_too_many_bytes():
    bw = BackupStreamWriter(io.BytesIO())
    bw.write_header(BackupHeader(id=BackupStreamId.DATA, size=2))
    with pytest.raises(BackupStreamError, match="too many bytes by 3"):
        bw.write(b"abcde")


def test_writer_accepts_next_header_after_full_write():
    buf = io.BytesIO()
    bw = BackupStreamWriter(buf)
    bw.write_header(BackupHeader(id=BackupStreamId.SECURITY, size=2))
    bw.write(b"sd")
    bw.write_header(BackupHeader(id=BackupStreamId.DATA, size=0))
    hdrs = list(BackupStreamReader(io.BytesIO(buf.getvalue())))
    assert [h.id for h in hdrs] == [BackupStreamId.SECURITY, BackupStreamId.DATA]