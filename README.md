# traptools

Tools for reading TRaP metadata, which is stored in the `.txtrp` section of
ELF binaries. It records function boundaries, alignments, padding and
relocations, and so lets code be shuffled at load time. This package finds
that section, decodes it and prints it.

## Installation

```
pip install .
```

Install with the `test` extra to run the test suite:

```
pip install .[test]
pytest
```

## Dumping a binary

```
trapdump path/to/binary
```

The listing starts with the number of TRaP bytes read. It then shows the
header (flags, version, feature flags and pointer size), every non-executable
relocation, and each record with its symbols, its relocations and its padding.
It ends with the total number of records and symbols. Addresses are shown
offset by the load address of `.txtrp`.

Problems are reported on stderr and give exit status 1. These are a wrong
number of arguments, a file that cannot be opened, a file that is not ELF or
has an unknown machine type, a file with no TRaP data, and malformed TRaP
data.

## Library use

```python
from traptools.elf import read_trap_data
from traptools.trapinfo import TrapInfo

trap = read_trap_data("a.out")
info = TrapInfo(trap.data, trap.platform, trap.base_address)
for record in info.records():
    for symbol in record.symbols():
        print(hex(symbol.address), symbol.size, 1 << symbol.p2align)
for reloc in info.all_relocations():
    print(hex(reloc.address), reloc.type, reloc.addend)
```

`traptools.dump.format_dump(trap)` returns the same text that `trapdump`
prints.

Modules:

- `traptools.elf`: `read_trap_data(path)` and `parse_trap_data(raw_bytes)`
  return a `TrapData` holding the platform, the `.txtrp` address and its
  bytes. An image without the section gives empty data. Bad images raise
  `ElfError`. 32- and 64-bit ELF files are read in either byte order, for
  x86, x86-64, ARM and AArch64.
- `traptools.trapinfo`: `TrapInfo` (iterable over `TrapRecord`s), with
  `records()`, `nonexec_relocations()` and `all_relocations()`.
  `TrapRecord` has `symbols()`, `relocations()` and `padding_address()`.
  There are also `read_record` and `read_symbol`.
- `traptools.encoding`: `read_uleb128`, `read_sleb128`, `read_address`,
  `read_reloc`, `parse_header`, the `TrapHeader` and `TrapReloc`
  dataclasses, and the `HeaderFlags` flags. Truncated data raises
  `ValueError`.
- `traptools.relocs`: `reloc_info(type, platform)` returns the `RelocInfo`
  flags that say which extra fields follow a relocation.
- `traptools.platform`: `TrapPlatform` and `platform_pointer_size`.
- `traptools.bits`: `sign_extend`, `count_leading_zeros`, `checked_cast`,
  `random_full`, the unbiased `random_below`, and the `PagePermissions`
  and `AddressSpace` enums.
- `traptools.process`: `exec_child(args, quiet=False)` runs a command found
  on PATH and returns its exit status. The status is 255 if the command
  could not be started and 0 if it was killed by a signal.

## What it does not do

The package only reads TRaP data. It does not write TRaP information,
rewrite or randomize binaries, or apply relocations. It reads only ELF files.
It does not find TRaP data in PE images or in separate files. It has no
temporary-file helpers and no logging facility.