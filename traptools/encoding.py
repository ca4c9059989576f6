"""Low-level decoding of TRaP information: LEB128 values, addresses, relocations and the header."""

from __future__ import annotations

import dataclasses
import enum
import struct
from typing import Optional

from traptools.bits import sign_extend
from traptools.platform import TrapPlatform, platform_pointer_size
from traptools.relocs import RelocInfo, reloc_info

__all__ = [
    "HeaderFlags",
    "TrapHeader",
    "TrapReloc",
    "read_uleb128",
    "read_sleb128",
    "read_address",
    "read_reloc",
    "parse_header",
]

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF


class HeaderFlags(enum.IntFlag):
    """Feature flags stored above the version byte of a TRaP header."""

    NONE = 0
    FUNCTIONS_MARKED = 0x100
    PRE_SORTED = 0x200
    HAS_SYMBOL_SIZE = 0x400
    HAS_DATA_REFS = 0x800
    HAS_RECORD_RELOCS = 0x1000
    HAS_NONEXEC_RELOCS = 0x2000
    HAS_RECORD_PADDING = 0x4000
    PC_RELATIVE_ADDRESSES = 0x8000
    HAS_SYMBOL_P2ALIGN = 0x10000
    HAS_POINTER_SIZE = 0x20000
    BASE_RELATIVE_ADDRESSES = 0x40000


@dataclasses.dataclass(frozen=True)
class TrapHeader:
    """Decoded TRaP header.

    ``reloc_start``, ``reloc_end`` and ``record_start`` are offsets into the
    TRaP data. PC-relative addresses are computed relative to the start of
    that data.
    """

    flags: int
    pointer_size: int
    reloc_start: int
    reloc_end: int
    record_start: int
    platform: TrapPlatform | int = TrapPlatform.UNKNOWN
    base_address: int = 0

    @property
    def version(self) -> int:
        return self.flags & 0xFF

    def has_flag(self, flag: int) -> bool:
        """Return True if any bit of ``flag`` is set in the header flags."""
        return (self.flags & flag) != 0

    @property
    def has_symbol_size(self) -> bool:
        return self.has_flag(HeaderFlags.HAS_SYMBOL_SIZE)

    @property
    def has_data_refs(self) -> bool:
        return self.has_flag(HeaderFlags.HAS_DATA_REFS)

    @property
    def needs_sort(self) -> bool:
        return not self.has_flag(HeaderFlags.PRE_SORTED)

    @property
    def has_record_relocs(self) -> bool:
        return self.has_flag(HeaderFlags.HAS_RECORD_RELOCS)

    @property
    def has_nonexec_relocs(self) -> bool:
        return self.has_flag(HeaderFlags.HAS_NONEXEC_RELOCS)

    @property
    def has_record_padding(self) -> bool:
        return self.has_flag(HeaderFlags.HAS_RECORD_PADDING)

    @property
    def pc_relative_addresses(self) -> bool:
        return self.has_flag(HeaderFlags.PC_RELATIVE_ADDRESSES)

    @property
    def has_symbol_p2align(self) -> bool:
        return self.has_flag(HeaderFlags.HAS_SYMBOL_P2ALIGN)

    @property
    def has_pointer_size(self) -> bool:
        return self.has_flag(HeaderFlags.HAS_POINTER_SIZE)

    @property
    def base_relative_addresses(self) -> bool:
        return self.has_flag(HeaderFlags.BASE_RELATIVE_ADDRESSES)

    @property
    def elements_in_symbol(self) -> int:
        """Number of LEB128 values that make up one symbol entry."""
        return 1 + int(self.has_symbol_p2align) + int(self.has_symbol_size)


@dataclasses.dataclass(frozen=True)
class TrapReloc:
    """One relocation entry."""

    address: int
    type: int
    symbol: int = 0
    addend: int = 0


def _unpack(fmt: str, data: bytes, offset: int) -> tuple[int, int]:
    try:
        (value,) = struct.unpack_from(fmt, data, offset)
    except struct.error as exc:
        raise ValueError(f"truncated TRaP data at offset {offset}") from exc
    return value, offset + struct.calcsize(fmt)


def _read_leb(data: bytes, offset: int) -> tuple[int, int, int]:
    result = 0
    shift = 0
    while True:
        try:
            byte = data[offset]
        except IndexError:
            raise ValueError(f"truncated LEB128 value at offset {offset}") from None
        offset += 1
        result |= (byte & 0x7F) << shift
        shift += 7
        if not byte & 0x80:
            return result, shift, offset


def read_uleb128(data: bytes, offset: int) -> tuple[int, int]:
    """Decode an unsigned LEB128 value; return it with the offset past it."""
    value, _, offset = _read_leb(data, offset)
    return value & _MASK64, offset


def read_sleb128(data: bytes, offset: int) -> tuple[int, int]:
    """Decode a signed LEB128 value; return it with the offset past it."""
    value, shift, offset = _read_leb(data, offset)
    if value & (1 << (shift - 1)):
        value -= 1 << shift
    return sign_extend(value, 64), offset


def read_address(header: TrapHeader, data: bytes, offset: int) -> tuple[int, int]:
    """Decode one address according to the header's addressing mode."""
    narrow = header.pointer_size == 32
    if header.pc_relative_addresses or header.base_relative_addresses:
        base = header.base_address if header.base_relative_addresses else offset
        if narrow:
            delta, offset = _unpack("<i", data, offset)
            return (base + delta) & _MASK32, offset
        delta, offset = _unpack("<q", data, offset)
        return (base + delta) & _MASK64, offset
    if narrow:
        return _unpack("<I", data, offset)
    return _unpack("<Q", data, offset)


def read_reloc(
    header: TrapHeader, data: bytes, offset: int, address: int
) -> tuple[Optional[TrapReloc], int]:
    """Decode one relocation following ``address``.

    Returns the relocation (None for the terminating entry) and the offset
    past it.
    """
    delta, offset = read_uleb128(data, offset)
    rtype, offset = read_uleb128(data, offset)
    if delta == 0 and rtype == 0:
        return None, offset

    info = reloc_info(rtype, header.platform)
    symbol = 0
    addend = 0
    if info & RelocInfo.SYMBOL:
        symbol, offset = read_address(header, data, offset)
    if info & RelocInfo.ADDEND:
        addend, offset = read_sleb128(data, offset)
    if info & RelocInfo.ARM64_GOT_PAGE:
        # The instruction word is carried in the symbol slot.
        symbol, offset = _unpack("<I", data, offset)
    if info & RelocInfo.ARM64_GOT_GROUP:
        # Three words: the first in the symbol slot, the other two in the addend.
        symbol, offset = _unpack("<I", data, offset)
        low, offset = _unpack("<I", data, offset)
        high, offset = _unpack("<I", data, offset)
        addend = sign_extend(low | (high << 32), 64)

    return TrapReloc((address + delta) & _MASK64, rtype, symbol, addend), offset


def _skip_relocs(header: TrapHeader, data: bytes, offset: int) -> int:
    address = 0
    while True:
        reloc, offset = read_reloc(header, data, offset, address)
        if reloc is None:
            return offset
        address = reloc.address


def parse_header(
    data: bytes, platform: TrapPlatform | int, base_address: int = 0
) -> TrapHeader:
    """Decode the header at the start of ``data``."""
    flags, offset = _unpack("<I", data, 0)
    reloc_start = offset
    provisional = TrapHeader(
        flags=flags,
        pointer_size=platform_pointer_size(platform),
        reloc_start=reloc_start,
        reloc_end=reloc_start,
        record_start=reloc_start,
        platform=platform,
        base_address=base_address,
    )
    if flags & HeaderFlags.HAS_NONEXEC_RELOCS:
        offset = _skip_relocs(provisional, data, offset)
        reloc_end = offset - 2
    else:
        reloc_end = offset
    if flags & HeaderFlags.HAS_POINTER_SIZE:
        pointer_size, offset = read_uleb128(data, offset)
    else:
        pointer_size = platform_pointer_size(platform)
    return dataclasses.replace(
        provisional,
        pointer_size=pointer_size,
        reloc_end=reloc_end,
        record_start=offset,
    )