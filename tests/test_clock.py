from socketweave.engineio.clock import timestamp, timestamp_from_clock

ALPHABET = set("0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz-_")


def test_timestamp_from_clock_differs():
    first = timestamp_from_clock(lambda: 1000)
    second = timestamp_from_clock(lambda: 2000)
    assert first
    assert second
    assert first != second


def test_zero_gives_empty():
    assert timestamp_from_clock(lambda: 0) == ""


def test_single_digit_values():
    assert timestamp_from_clock(lambda: 63) == "_"
    assert timestamp_from_clock(lambda: 9) == "9"


def test_least_significant_first():
    assert timestamp_from_clock(lambda: 64) == "01"


def test_timestamp_uses_alphabet():
    value = timestamp()
    assert value
    assert set(value) <= ALPHABET