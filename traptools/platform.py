"""Target platforms known to TRaP information and their pointer sizes."""

from __future__ import annotations

import enum
import struct

__all__ = ["TrapPlatform", "platform_pointer_size"]


class TrapPlatform(enum.IntEnum):
    """Platform a binary carrying TRaP information was built for."""

    UNKNOWN = 0
    POSIX_X86 = 1
    POSIX_X86_64 = 2
    POSIX_ARM = 3
    POSIX_ARM64 = 4
    WIN32 = 5
    WIN64 = 6


_POINTER_SIZES = {
    TrapPlatform.POSIX_X86: 32,
    TrapPlatform.POSIX_ARM: 32,
    TrapPlatform.WIN32: 32,
    TrapPlatform.POSIX_X86_64: 64,
    TrapPlatform.POSIX_ARM64: 64,
    TrapPlatform.WIN64: 64,
}


def _host_pointer_bits() -> int:
    return 8 * struct.calcsize("P")


def platform_pointer_size(platform: TrapPlatform | int) -> int:
    """Return the pointer size in bits for ``platform``.

    Platforms without a fixed size fall back to the pointer size of the
    host running this code.
    """
    try:
        key = TrapPlatform(platform)
    except ValueError:
        return _host_pointer_bits()
    return _POINTER_SIZES.get(key, _host_pointer_bits())