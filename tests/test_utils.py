import pytest

from subkit.utils import micros_to_timestamp, millis_to_micros, timestamp_to_micros


def test_timestamp_to_micros_with_hours():
    assert timestamp_to_micros("01:02:03.500") == 3_723_500_000


def test_timestamp_to_micros_without_hours_and_comma_fraction():
    assert timestamp_to_micros("02:03,5") == 123_500_000


def test_timestamp_to_micros_ssa_centiseconds():
    assert timestamp_to_micros("0:00:01.25") == 1_250_000


def test_timestamp_to_micros_rejects_garbage():
    with pytest.raises(ValueError):
        timestamp_to_micros("one second")


def test_micros_to_timestamp():
    assert micros_to_timestamp(90_500_000) == "00:01:30.500"
    assert micros_to_timestamp(-500_000) == "-00:00:00.500"


def test_millis_to_micros():
    assert millis_to_micros(500) == 500_000
    assert millis_to_micros(-250) == -250_000
