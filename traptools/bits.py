"""Integer helpers: sign extension, bit counting, checked casts and random draws."""

from __future__ import annotations

import enum
import secrets
from typing import Callable, Optional

__all__ = [
    "PagePermissions",
    "AddressSpace",
    "sign_extend",
    "count_leading_zeros",
    "random_below",
    "random_full",
    "checked_cast",
]

WordSource = Callable[[], int]

_WORD_BITS = 32


class PagePermissions(enum.IntEnum):
    """Memory page access rights; UNKNOWN when they cannot be determined."""

    NONE = 0
    R = 1
    W = 2
    RW = 3
    X = 4
    RX = 5
    WX = 6
    RWX = 7
    UNKNOWN = 255


class AddressSpace(enum.IntEnum):
    """Address space an address inside a binary is expressed in."""

    MEMORY = 0  # absolute memory address
    TRAP = 1    # address as stored in TRaP information
    RVA = 2     # relative to the image base


def _check_width(width: int) -> None:
    if width <= 0:
        raise ValueError(f"bit width must be positive, got {width}")


def sign_extend(value: int, bits: int) -> int:
    """Interpret the low ``bits`` bits of ``value`` as a two's-complement number."""
    _check_width(bits)
    mask = (1 << bits) - 1
    value &= mask
    sign = 1 << (bits - 1)
    return value - (1 << bits) if value & sign else value


def count_leading_zeros(value: int, width: int) -> int:
    """Count the zero bits that start a ``width``-bit unsigned ``value``."""
    _check_width(width)
    if not 0 <= value < (1 << width):
        raise ValueError(f"{value} does not fit in {width} unsigned bits")
    return width - value.bit_length()


def _default_source() -> int:
    return secrets.randbits(_WORD_BITS)


def random_full(width: int, source: Optional[WordSource] = None) -> int:
    """Return a random ``width``-bit unsigned value built from 32-bit words.

    Words are drawn from ``source`` and placed least significant first.
    """
    _check_width(width)
    draw = source or _default_source
    words = -(-width // _WORD_BITS)
    result = 0
    for shift in range(0, words * _WORD_BITS, _WORD_BITS):
        result |= (draw() & 0xFFFFFFFF) << shift
    return result & ((1 << width) - 1)


def random_below(limit: int, width: int, source: Optional[WordSource] = None) -> int:
    """Return a uniformly distributed number in ``[0, limit)``; 0 when ``limit`` is 0.

    Candidates are masked to the next power of two above ``limit`` and
    rejected until one falls below it.
    """
    if limit == 0:
        return 0
    mask = ((1 << width) - 1) >> count_leading_zeros(limit, width)
    while True:
        candidate = random_full(width, source) & mask
        if candidate < limit:
            return candidate


def checked_cast(value: int, bits: int, signed: bool) -> int:
    """Return ``value`` if it fits in an integer of ``bits`` bits, else raise ValueError."""
    _check_width(bits)
    if signed:
        low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    else:
        low, high = 0, (1 << bits) - 1
    if not low <= value <= high:
        raise ValueError("Value for cast does not fit in target type")
    return value