import struct

import pytest

from traptools.encoding import HeaderFlags, parse_header
from traptools.platform import TrapPlatform
from traptools.trapinfo import TrapInfo, TrapSymbol, read_record, read_symbol

FLAGS = (
    HeaderFlags.HAS_SYMBOL_SIZE
    | HeaderFlags.HAS_RECORD_RELOCS
    | HeaderFlags.HAS_RECORD_PADDING
    | 1
)


def uleb(value):
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


SLEB_MINUS_FOUR = b"\x7c"


def sample_record(address=0x1010):
    return (
        struct.pack("<Q", address)
        + uleb(0x10) + uleb(5)
        + uleb(8) + uleb(3)
        + b"\x00\x00"
        + uleb(4) + uleb(2) + SLEB_MINUS_FOUR
        + b"\x00\x00"
        + uleb(0x20) + uleb(4)
    )


def make_info(*records, flags=FLAGS, prefix=b""):
    data = struct.pack("<I", flags) + prefix + b"".join(records)
    return TrapInfo(data, TrapPlatform.POSIX_X86_64)


def test_read_symbol_terminator_returns_none():
    header = parse_header(struct.pack("<I", FLAGS), TrapPlatform.POSIX_X86_64)
    symbol, offset = read_symbol(header, b"\x00\x00", 0, 0x50)
    assert symbol is None
    assert offset == 2


def test_read_symbol_with_size_and_alignment():
    flags = HeaderFlags.HAS_SYMBOL_SIZE | HeaderFlags.HAS_SYMBOL_P2ALIGN
    header = parse_header(struct.pack("<I", flags), TrapPlatform.POSIX_X86_64)
    data = uleb(6) + uleb(9) + uleb(4)
    symbol, offset = read_symbol(header, data, 0, 0x100)
    assert symbol == TrapSymbol(0x100 + 6, p2align=4, size=9)
    assert offset == len(data)


def test_record_first_symbol_and_address():
    record = next(make_info(sample_record(0x1010)).records())
    assert record.first_symbol.address == 0x1010
    assert record.address == 0x1010 - 0x10
    assert record.first_symbol.size == 5


def test_record_symbols_include_first():
    record = next(make_info(sample_record()).records())
    symbols = list(record.symbols())
    assert symbols[0] == record.first_symbol
    assert [s.size for s in symbols] == [5, 3]
    assert symbols[1].address - symbols[0].address == 8


def test_record_relocations():
    record = next(make_info(sample_record()).records())
    relocs = list(record.relocations())
    assert len(relocs) == 1
    assert relocs[0].type == 2
    assert relocs[0].addend == -4
    assert relocs[0].address == record.address + 4


def test_record_padding():
    record = next(make_info(sample_record()).records())
    assert record.padding_size == 4
    assert record.padding_address() == record.address + 0x20


def test_multiple_records():
    info = make_info(sample_record(0x1010), sample_record(0x2010))
    records = list(info)
    assert [r.first_symbol.address for r in records] == [0x1010, 0x2010]


def test_read_record_offset_consumes_record():
    info = make_info(sample_record())
    record, offset = read_record(info.header, info.data, info.header.record_start)
    assert offset == len(info.data)
    assert record.symbol_end < record.reloc_start


def test_nonexec_and_all_relocations():
    flags = FLAGS | HeaderFlags.HAS_NONEXEC_RELOCS
    nonexec = uleb(8) + uleb(1) + uleb(8) + uleb(1) + b"\x00\x00"
    info = make_info(sample_record(), flags=flags, prefix=nonexec)
    outer = list(info.nonexec_relocations())
    assert [r.address for r in outer] == [8, 16]
    everything = list(info.all_relocations())
    assert everything[:2] == outer
    assert len(everything) == 3
    assert everything[2].type == 2


def test_nonexec_relocations_empty_without_flag():
    info = make_info(sample_record())
    assert list(info.nonexec_relocations()) == []
    assert len(list(info.all_relocations())) == 1


def test_data_refs_are_skipped():
    flags = FLAGS | HeaderFlags.HAS_DATA_REFS
    record = (
        struct.pack("<Q", 0x1010)
        + uleb(0x10) + uleb(5)
        + b"\x00\x00"
        + uleb(4) + uleb(2) + SLEB_MINUS_FOUR
        + b"\x00\x00"
        + b"\x01\x02\x00"
        + uleb(0x20) + uleb(4)
    )
    parsed = next(make_info(record, flags=flags).records())
    assert parsed.data_refs_end - parsed.data_refs_start == 1
    assert parsed.padding_size == 4


def test_truncated_record_raises():
    with pytest.raises(ValueError):
        list(make_info(sample_record()[:-3]).records())