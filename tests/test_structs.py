import struct

import pytest

from conftest import make_devstat, make_statfs
from ops_telemetry.errors import DecodeError
from ops_telemetry.kernel.bintime import Bintime
from ops_telemetry.kernel.layouts import (
    DEVSTAT_AMD64,
    DEVSTAT_I386,
    STATFS_FREEBSD11,
    STATFS_FREEBSD12,
)
from ops_telemetry.kernel.structs import StructLayout, array, c_string, pad, u32, u64


def test_layout_sizes_match_kernel_headers():
    assert STATFS_FREEBSD11.size == 472
    assert STATFS_FREEBSD12.size == 2344
    assert DEVSTAT_AMD64.size == 288
    assert DEVSTAT_I386.size == 240


def test_explicit_padding_and_dict_factory():
    layout = StructLayout("pair", [u32("a"), pad(4), u64("b")])
    assert layout.size == 16

    decoded = layout.decode(struct.pack("<I4xQ", 7, 1 << 40))
    assert decoded == {"a": 7, "b": 1 << 40}


def test_array_field_decodes_to_tuple():
    layout = StructLayout("arr", [array("v", "I", 3)])
    assert layout.decode(struct.pack("<3I", 1, 2, 3)) == {"v": (1, 2, 3)}


def test_statfs_decode_encode_is_lossless():
    st = make_statfs("/dev/ada0p2", "/", fstype="ufs", flags=0x1000)
    assert STATFS_FREEBSD12.decode(STATFS_FREEBSD12.encode(st)) == st

    old = make_statfs("/dev/da0s1a", "/usr", mnamelen=88)
    assert STATFS_FREEBSD11.decode(STATFS_FREEBSD11.encode(old)) == old


def test_devstat_decode_encode_is_lossless_on_both_arches():
    d = make_devstat(
        "ada",
        3,
        reads=11,
        writes=22,
        read_bytes=4096,
        write_bytes=8192,
        read_time=Bintime(1, 1 << 63),
        busy_time=Bintime(9, 12345),
    )
    assert DEVSTAT_AMD64.decode(DEVSTAT_AMD64.encode(d)) == d
    assert DEVSTAT_I386.decode(DEVSTAT_I386.encode(d)) == d


def test_devstat_field_offsets():
    d = make_devstat("nvd", 1, reads=5)

    raw = DEVSTAT_AMD64.encode(d)
    assert raw[44:60] == b"nvd".ljust(16, b"\x00")
    assert struct.unpack_from("<i", raw, 60)[0] == 1
    assert struct.unpack_from("<4Q", raw, 96)[1] == 5

    raw32 = DEVSTAT_I386.encode(d)
    assert raw32[36:52] == b"nvd".ljust(16, b"\x00")
    assert struct.unpack_from("<i", raw32, 52)[0] == 1


def test_short_buffer_raises_decode_error():
    buf = STATFS_FREEBSD12.encode(make_statfs("/dev/ada0p2", "/"))

    with pytest.raises(DecodeError) as exc:
        STATFS_FREEBSD12.decode(buf[:-1])
    assert exc.value.needed == 2344
    assert exc.value.available == 2343


def test_decode_at_offset():
    d = make_devstat("da", 0, writes=3)
    buf = b"\xff" * 8 + DEVSTAT_AMD64.encode(d)

    assert DEVSTAT_AMD64.decode(buf, 8) == d
    with pytest.raises(DecodeError):
        DEVSTAT_AMD64.decode(buf, 9)


def test_iter_decode_reports_overrun_slots():
    layout = StructLayout("word", [u32("v")])
    buf = struct.pack("<2I", 1, 2)

    results = list(layout.iter_decode(buf, count=3))
    assert results[0] == (0, {"v": 1})
    assert results[1] == (1, {"v": 2})
    assert results[2][0] == 2
    assert isinstance(results[2][1], DecodeError)


def test_iter_decode_ignores_trailing_partial_record():
    layout = StructLayout("word", [u32("v")])
    assert [r for _, r in layout.iter_decode(struct.pack("<2I", 4, 5) + b"\x01\x02")] == [
        {"v": 4},
        {"v": 5},
    ]


def test_c_string_stops_at_first_nul():
    assert c_string(b"ufs\x00\x00garbage") == "ufs"
    assert c_string(b"full") == "full"
    assert c_string(b"\x00abc") == ""
