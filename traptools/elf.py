"""Extraction of the .txtrp section from ELF binaries."""

from __future__ import annotations

import dataclasses
import os
import struct
from typing import Optional, Union

from traptools.platform import TrapPlatform

__all__ = ["ElfError", "TrapData", "parse_trap_data", "read_trap_data"]

_TRAP_SECTION = b".txtrp"
_SHT_NOBITS = 8
_SHN_XINDEX = 0xFFFF

_FORMATS = {
    1: ("HHIIIIIHHHHHH", "IIIIIIIIII"),
    2: ("HHIQQQIHHHHHH", "IIQQQQIIQQ"),
}

_MACHINES = {
    3: TrapPlatform.POSIX_X86,       # EM_386
    62: TrapPlatform.POSIX_X86_64,   # EM_X86_64
    40: TrapPlatform.POSIX_ARM,      # EM_ARM
    183: TrapPlatform.POSIX_ARM64,   # EM_AARCH64
}


class ElfError(Exception):
    """The file is not a usable ELF binary."""


@dataclasses.dataclass(frozen=True)
class TrapData:
    """TRaP bytes from a binary, with the platform and the section's address."""

    platform: TrapPlatform
    txtrp_address: int
    base_address: int
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclasses.dataclass(frozen=True)
class _Section:
    name: int
    type: int
    addr: int
    offset: int
    size: int
    link: int


def _unpack(fmt: str, raw: bytes, offset: int, message: str) -> tuple:
    try:
        return struct.unpack_from(fmt, raw, offset)
    except struct.error as exc:
        raise ElfError(message) from exc


def _read_sections(
    raw: bytes, order: str, fmt: str, shoff: int, shentsize: int, shnum: int, shstrndx: int
) -> tuple[list[_Section], int]:
    if shoff == 0:
        return [], shstrndx
    if shentsize < struct.calcsize(fmt):
        raise ElfError("Cannot get section header")

    def section_at(index: int) -> _Section:
        fields = _unpack(order + fmt, raw, shoff + index * shentsize,
                         "Cannot get section header")
        return _Section(fields[0], fields[1], fields[3], fields[4], fields[5], fields[6])

    first = section_at(0)
    if shnum == 0:
        shnum = first.size
    if shstrndx == _SHN_XINDEX:
        shstrndx = first.link
    return [section_at(index) for index in range(shnum)], shstrndx


def _contents(raw: bytes, section: _Section) -> bytes:
    if section.type == _SHT_NOBITS:
        return bytes(section.size)
    content = raw[section.offset:section.offset + section.size]
    if len(content) != section.size:
        raise ElfError("Cannot get section data")
    return content


def _find_section(
    raw: bytes, sections: list[_Section], shstrndx: int, needle: bytes
) -> Optional[_Section]:
    if not 0 < shstrndx < len(sections):
        raise ElfError("Could not find string section in file")
    strtab = _contents(raw, sections[shstrndx])
    for section in sections[1:]:
        if section.name >= len(strtab):
            raise ElfError("Cannot get section name")
        end = strtab.find(b"\x00", section.name)
        name = strtab[section.name:end if end >= 0 else len(strtab)]
        if name == needle:
            return section
    return None


def parse_trap_data(raw: bytes) -> TrapData:
    """Return the TRaP data held in the ELF image ``raw``.

    An image without a .txtrp section yields empty data.
    """
    raw = bytes(raw)
    if len(raw) < 16 or raw[:4] != b"\x7fELF":
        raise ElfError("File is not ELF")
    elf_class, encoding = raw[4], raw[5]
    if elf_class not in _FORMATS or encoding not in (1, 2):
        raise ElfError("Unsupported ELF class or data encoding")
    order = "<" if encoding == 1 else ">"
    ehdr_fmt, shdr_fmt = _FORMATS[elf_class]
    fields = _unpack(order + ehdr_fmt, raw, 16, "Cannot get ELF header")
    machine, shoff = fields[1], fields[5]
    shentsize, shnum, shstrndx = fields[10], fields[11], fields[12]

    sections, shstrndx = _read_sections(
        raw, order, shdr_fmt, shoff, shentsize, shnum, shstrndx
    )
    txtrp = _find_section(raw, sections, shstrndx, _TRAP_SECTION)
    if txtrp is None:
        return TrapData(TrapPlatform.UNKNOWN, 0, 0, b"")

    platform = _MACHINES.get(machine)
    if platform is None:
        raise ElfError("Unknown ELF machine")
    return TrapData(platform, txtrp.addr, 0, _contents(raw, txtrp))


def read_trap_data(path: Union[str, os.PathLike]) -> TrapData:
    """Read the ELF file at ``path`` and return its TRaP data."""
    with open(path, "rb") as handle:
        raw = handle.read()
    return parse_trap_data(raw)