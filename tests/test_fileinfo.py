import pytest

from wintarstream.fileinfo import (
    FILE_ATTRIBUTE_DIRECTORY,
    FileBasicInfo,
    filetime_from_ns,
    ns_from_filetime,
)


def test_unix_epoch_filetime():
    assert filetime_from_ns(0) == 116444736000000000


@pytest.mark.parametrize(
    "ns",
    [0, 100, 1_350_244_992_023_960_100, -315_579_600_000_000_000, 946_724_400_000_000_000],
)
def test_round_trip_multiples_of_100(ns):
    assert ns_from_filetime(filetime_from_ns(ns)) == ns


def test_sub_interval_precision_is_truncated():
    assert ns_from_filetime(filetime_from_ns(12345)) == 12300


def test_negative_values_truncate_toward_zero():
    assert filetime_from_ns(-150) == filetime_from_ns(-100)
    assert filetime_from_ns(150) == filetime_from_ns(100)


def test_filetime_is_monotonic():
    values = [filetime_from_ns(ns) for ns in (-10**12, -1000, 0, 1000, 10**12)]
    assert values == sorted(values)
    assert len(set(values)) == len(values)


def test_filetime_is_unsigned_64_bit():
    ft = filetime_from_ns(-(10**19))
    assert 0 <= ft < 1 << 64


def test_file_basic_info_holds_converted_times():
    info = FileBasicInfo(
        creation_time=filetime_from_ns(1_000_000_000),
        last_write_time=filetime_from_ns(2_000_000_000),
        file_attributes=FILE_ATTRIBUTE_DIRECTORY,
    )
    assert ns_from_filetime(info.creation_time) == 1_000_000_000
    assert ns_from_filetime(info.last_write_time) == 2_000_000_000
    assert info.file_attributes & FILE_ATTRIBUTE_DIRECTORY
    assert info == FileBasicInfo(
        creation_time=filetime_from_ns(1_000_000_000),
        last_write_time=filetime_from_ns(2_000_000_000),
        file_attributes=FILE_ATTRIBUTE_DIRECTORY,
    )