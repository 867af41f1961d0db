from ops_telemetry.kernel.bintime import Bintime, bintime_to_ms, to_seconds


def test_zero_fraction_is_exact():
    assert to_seconds(5, 0) == 5
    assert to_seconds(0, 0) == 0.0


def test_fraction_is_binary():
    assert to_seconds(1, 1 << 63) == 1.5
    assert to_seconds(0, 1 << 62) == 0.25


def test_smallest_fraction_is_not_truncated():
    assert to_seconds(0, 1) == 2.0**-64


def test_monotonic_in_both_fields():
    assert to_seconds(3, 1000) <= to_seconds(3, 1 << 40) <= to_seconds(3, 1 << 63)
    assert to_seconds(3, 1 << 63) < to_seconds(4, 0) <= to_seconds(4, 1)


def test_milliseconds():
    assert Bintime(2, 1 << 62).seconds() == 2.25
    assert bintime_to_ms(Bintime(2, 1 << 62)) == 2250
    assert bintime_to_ms(Bintime(0, 0)) == 0
