import pytest

from traptools.bits import (
    checked_cast,
    count_leading_zeros,
    random_below,
    random_full,
    sign_extend,
)


def _words(values):
    it = iter(values)
    return lambda: next(it)


def test_sign_extend_negative():
    assert sign_extend(0x80, 8) == -128


def test_sign_extend_positive_unchanged():
    assert sign_extend(0x7F, 8) == 0x7F


def test_sign_extend_ignores_high_bits():
    assert sign_extend(0xFF05, 8) == sign_extend(0x05, 8)


@pytest.mark.parametrize("value", [-(2**31), -1, 0, 1, 2**31 - 1])
def test_sign_extend_round_trip(value):
    assert sign_extend(value & 0xFFFFFFFF, 32) == value


def test_sign_extend_rejects_zero_width():
    with pytest.raises(ValueError):
        sign_extend(1, 0)


@pytest.mark.parametrize("width", [8, 32, 64])
def test_clz_extremes(width):
    assert count_leading_zeros(1, width) == width - 1
    assert count_leading_zeros((1 << width) - 1, width) == 0
    assert count_leading_zeros(0, width) == width


@pytest.mark.parametrize("shift", range(32))
def test_clz_of_power_of_two(shift):
    assert count_leading_zeros(1 << shift, 32) + shift == 31


def test_clz_rejects_out_of_range():
    with pytest.raises(ValueError):
        count_leading_zeros(1 << 32, 32)
    with pytest.raises(ValueError):
        count_leading_zeros(-1, 32)


def test_random_full_places_words_low_first():
    result = random_full(64, _words([0x11111111, 0x22222222]))
    assert result & 0xFFFFFFFF == 0x11111111
    assert result >> 32 == 0x22222222


def test_random_full_narrow_width_truncates_one_word():
    calls = []

    def source():
        calls.append(1)
        return 0xDEADBEEF

    assert random_full(16, source) == 0xDEADBEEF & 0xFFFF
    assert len(calls) == 1


def test_random_full_default_source_in_range():
    for _ in range(50):
        assert 0 <= random_full(64) < 2**64


def test_random_below_zero_limit():
    assert random_below(0, 32, _words([])) == 0


def test_random_below_rejects_until_in_range():
    # limit 5 masks draws to 3 bits; 7 is rejected, 3 accepted
    assert random_below(5, 32, _words([7, 3])) == 3


def test_random_below_masks_high_bits():
    assert random_below(5, 32, _words([0xFFFFFFF0 | 2])) == 2


@pytest.mark.parametrize("limit", [1, 2, 3, 100, 2**31 + 1])
def test_random_below_default_source_in_range(limit):
    for _ in range(50):
        assert 0 <= random_below(limit, 32) < limit


def test_random_below_64bit():
    for _ in range(20):
        assert 0 <= random_below(2**40 + 7, 64) < 2**40 + 7


@pytest.mark.parametrize(
    "value,bits,signed",
    [(0, 8, False), (255, 8, False), (-128, 8, True), (127, 8, True), (2**31 - 1, 32, True)],
)
def test_checked_cast_accepts_fitting_values(value, bits, signed):
    assert checked_cast(value, bits, signed) == value


@pytest.mark.parametrize(
    "value,bits,signed",
    [(256, 8, False), (-1, 8, False), (128, 8, True), (-129, 8, True), (2**32, 32, False)],
)
def test_checked_cast_rejects_overflow(value, bits, signed):
    with pytest.raises(ValueError, match="does not fit"):
        checked_cast(value, bits, signed)