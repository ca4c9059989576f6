"""Records, symbols and relocations stored in a block of TRaP information."""

from __future__ import annotations

import dataclasses
from typing import Iterator, Optional

from traptools.encoding import (
    TrapHeader,
    TrapReloc,
    parse_header,
    read_address,
    read_reloc,
    read_uleb128,
)
from traptools.platform import TrapPlatform

__all__ = [
    "TrapSymbol",
    "TrapRecord",
    "TrapInfo",
    "read_symbol",
    "read_record",
]

_MASK64 = 0xFFFFFFFFFFFFFFFF


@dataclasses.dataclass(frozen=True)
class TrapSymbol:
    """One symbol (usually a function) inside a record."""

    address: int
    p2align: int = 0
    size: int = 0


def _decode_symbol(
    header: TrapHeader, data: bytes, offset: int, address: int
) -> tuple[TrapSymbol, int, bool]:
    delta, offset = read_uleb128(data, offset)
    size = 0
    p2align = 0
    if header.has_symbol_size:
        size, offset = read_uleb128(data, offset)
    if header.has_symbol_p2align:
        p2align, offset = read_uleb128(data, offset)
    symbol = TrapSymbol((address + delta) & _MASK64, p2align, size)
    more = not (delta == 0 and size == 0 and p2align == 0)
    return symbol, offset, more


def read_symbol(
    header: TrapHeader, data: bytes, offset: int, address: int
) -> tuple[Optional[TrapSymbol], int]:
    """Decode one symbol following ``address``.

    Returns the symbol (None for the terminating entry) and the offset past it.
    """
    symbol, offset, more = _decode_symbol(header, data, offset, address)
    return (symbol if more else None), offset


def _skip_symbols(header: TrapHeader, data: bytes, offset: int) -> int:
    more = True
    while more:
        _, offset, more = _decode_symbol(header, data, offset, 0)
    return offset


def _skip_relocs(header: TrapHeader, data: bytes, offset: int) -> int:
    address = 0
    while True:
        reloc, offset = read_reloc(header, data, offset, address)
        if reloc is None:
            return offset
        address = reloc.address


def _skip_uleb128_vector(data: bytes, offset: int) -> int:
    end = data.find(b"\x00", offset)
    if end < 0:
        raise ValueError(f"unterminated vector at offset {offset}")
    return end + 1


def _iter_relocs(
    header: TrapHeader, data: bytes, start: int, end: int, address: int
) -> Iterator[TrapReloc]:
    offset = start
    while offset < end:
        reloc, offset = read_reloc(header, data, offset, address)
        if reloc is None:
            return
        address = reloc.address
        yield reloc


@dataclasses.dataclass(frozen=True)
class TrapRecord:
    """One record: a section's symbols, relocations, data references and padding.

    The ``*_start`` and ``*_end`` fields are offsets into ``data``.
    """

    header: TrapHeader
    data: bytes = dataclasses.field(repr=False, compare=False)
    address: int
    first_symbol: TrapSymbol
    padding_ofs: int
    padding_size: int
    symbol_start: int
    symbol_end: int
    reloc_start: int
    reloc_end: int
    data_refs_start: int
    data_refs_end: int

    def padding_address(self) -> int:
        """Address of the padding that follows the record's code."""
        return (self.address + self.padding_ofs) & _MASK64

    def symbols(self) -> Iterator[TrapSymbol]:
        """Yield every symbol of the record, the first one included."""
        offset = self.symbol_start
        address = self.address
        while offset < self.symbol_end:
            symbol, offset, _ = _decode_symbol(self.header, self.data, offset, address)
            address = symbol.address
            yield symbol

    def relocations(self) -> Iterator[TrapReloc]:
        """Yield the relocations attached to the record."""
        return _iter_relocs(
            self.header, self.data, self.reloc_start, self.reloc_end, self.address
        )


def read_record(header: TrapHeader, data: bytes, offset: int) -> tuple[TrapRecord, int]:
    """Decode the record at ``offset``; return it with the offset past it."""
    record_address, offset = read_address(header, data, offset)
    symbol_start = offset
    # The first symbol's delta is its offset inside the section, so the
    # record address is moved back to the start of the section.
    first, offset, _ = _decode_symbol(header, data, offset, 0)
    address = (record_address - first.address) & _MASK64
    first = dataclasses.replace(first, address=(first.address + address) & _MASK64)
    offset = _skip_symbols(header, data, offset)
    symbol_end = offset - header.elements_in_symbol

    reloc_start = offset
    if header.has_record_relocs:
        offset = _skip_relocs(header, data, offset)
        reloc_end = offset - 2
    else:
        reloc_end = offset

    data_refs_start = offset
    if header.has_data_refs:
        offset = _skip_uleb128_vector(data, offset)
        data_refs_end = offset - 2
    else:
        data_refs_end = offset

    if header.has_record_padding:
        padding_ofs, offset = read_uleb128(data, offset)
        padding_size, offset = read_uleb128(data, offset)
    else:
        padding_ofs = padding_size = 0

    record = TrapRecord(
        header=header,
        data=data,
        address=address,
        first_symbol=first,
        padding_ofs=padding_ofs,
        padding_size=padding_size,
        symbol_start=symbol_start,
        symbol_end=symbol_end,
        reloc_start=reloc_start,
        reloc_end=reloc_end,
        data_refs_start=data_refs_start,
        data_refs_end=data_refs_end,
    )
    return record, offset


class TrapInfo:
    """A complete block of TRaP information with its decoded header."""

    def __init__(
        self, data: bytes, platform: TrapPlatform | int, base_address: int = 0
    ) -> None:
        self.data = bytes(data)
        self.header = parse_header(self.data, platform, base_address)

    def __iter__(self) -> Iterator[TrapRecord]:
        return self.records()

    def records(self) -> Iterator[TrapRecord]:
        """Yield every record, in storage order."""
        offset = self.header.record_start
        while offset < len(self.data):
            record, offset = read_record(self.header, self.data, offset)
            yield record

    def nonexec_relocations(self) -> Iterator[TrapReloc]:
        """Yield the relocations outside executable sections."""
        return _iter_relocs(
            self.header, self.data, self.header.reloc_start, self.header.reloc_end, 0
        )

    def all_relocations(self) -> Iterator[TrapReloc]:
        """Yield the non-executable relocations, then those of every record."""
        if self.header.has_nonexec_relocs:
            yield from self.nonexec_relocations()
        for record in self.records():
            yield from record.relocations()