"""Human-readable listing of the TRaP information in a binary."""

from __future__ import annotations

import sys
from typing import Optional, Sequence

from traptools.bits import sign_extend
from traptools.elf import ElfError, TrapData, read_trap_data
from traptools.encoding import TrapReloc
from traptools.trapinfo import TrapInfo

__all__ = ["format_dump", "main"]

_PROG = "trapdump"
_MASK64 = 0xFFFFFFFFFFFFFFFF


def _reloc_line(reloc: TrapReloc, delta: int, indent: str) -> str:
    return (
        f"{indent}Rel[{sign_extend(reloc.type, 64)}]"
        f"@{(reloc.address + delta) & _MASK64:x}"
        f"={reloc.symbol & _MASK64:x}+{reloc.addend}"
    )


def format_dump(trap_data: TrapData) -> str:
    """Return the listing of ``trap_data``: header, relocations, records and totals."""
    # Addresses are shown relative to where .txtrp is loaded.
    delta = trap_data.txtrp_address
    info = TrapInfo(trap_data.data, trap_data.platform, trap_data.base_address)
    header = info.header

    lines = [f"Read TRaP data bytes: {trap_data.size}"]
    lines.append(
        f"Header: {header.flags:08x} Version: {header.version:02x} "
        f"Flags: {header.flags >> 8:06x} Ptrsize:{header.pointer_size}"
    )
    if header.has_nonexec_relocs:
        lines.extend(_reloc_line(r, delta, "") for r in info.nonexec_relocations())

    num_records = 0
    num_symbols = 0
    for record in info.records():
        first_ofs = sign_extend(record.first_symbol.address - record.address, 64)
        lines.append(f"Record@{(record.address + delta) & _MASK64:x}(sec+{first_ofs})")
        for symbol in record.symbols():
            lines.append(
                f"  Sym@{(symbol.address - record.address) & _MASK64:x}"
                f"/{(symbol.address + delta) & _MASK64:x}"
                f"[{symbol.size:x}] align:{1 << symbol.p2align}"
            )
            num_symbols += 1
        if header.has_record_relocs:
            lines.extend(_reloc_line(r, delta, "  ") for r in record.relocations())
        if header.has_record_padding:
            lines.append(
                f"  Padding[{sign_extend(record.padding_size, 64)}]"
                f"@{record.padding_ofs:x}"
                f"/{(record.padding_ofs + record.address + delta) & _MASK64:x}"
            )
        num_records += 1
    lines.append(f"Records:{num_records}")
    lines.append(f"Syms:{num_symbols}")
    return "\n".join(lines) + "\n"


def _fail(message: str) -> int:
    print(f"{_PROG}: {message}", file=sys.stderr)
    return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Dump the TRaP information of the binary named on the command line."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        return _fail(f"Usage: {_PROG} <binary>")
    path = args[0]
    try:
        trap_data = read_trap_data(path)
    except OSError:
        return _fail(f"Cannot open file: {path}")
    except ElfError as exc:
        return _fail(f"{exc}: {path}")
    if not trap_data.data:
        return _fail(f"File does not contain any TRaP data: {path}")
    try:
        listing = format_dump(trap_data)
    except ValueError as exc:
        return _fail(f"Malformed TRaP data in {path}: {exc}")
    sys.stdout.write(listing)
    return 0


if __name__ == "__main__":
    sys.exit(main())