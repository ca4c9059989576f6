"""Extra data carried by each relocation type in TRaP information."""

from __future__ import annotations

import enum

from traptools.platform import TrapPlatform

__all__ = ["RelocInfo", "reloc_info"]


class RelocInfo(enum.IntFlag):
    """Flags describing which extra fields follow a relocation entry."""

    NONE = 0
    SYMBOL = 0x1
    ADDEND = 0x2
    IGNORE = 0x4  # the relocation is to be skipped
    ARM64_GOT_PAGE = 0x10000
    ARM64_GOT_GROUP = 0x20000


_X86_ADDEND = frozenset({
    2,   # R_386_PC32
    4,   # R_386_PLT32
    10,  # R_386_GOTPC
})
# None of the x86 TLS relocations are PC-relative or reference functions.
_X86_IGNORE = frozenset({
    14, 15, 16, 17, 18, 19,  # TLS_TPOFF .. TLS_LDM
    32, 33, 34,              # TLS_LDO_32, TLS_IE_32, TLS_LE_32
    35, 36, 37,              # DTPMOD32, DTPOFF32, TPOFF32
    39, 40, 41,              # TLS_GOTDESC, TLS_DESC_CALL, TLS_DESC
})

_X86_64_ADDEND = frozenset({
    2,   # R_X86_64_PC32
    3,   # R_X86_64_GOT32
    4,   # R_X86_64_PLT32
    9,   # R_X86_64_GOTPCREL
    19,  # R_X86_64_TLSGD
    20,  # R_X86_64_TLSLD
    22,  # R_X86_64_GOTTPOFF
    24,  # R_X86_64_PC64
    26,  # R_X86_64_GOTPC32
    27,  # R_X86_64_GOT64
    28,  # R_X86_64_GOTPCREL64
    29,  # R_X86_64_GOTPC64
    30,  # R_X86_64_GOTPLT64
    34,  # R_X86_64_GOTPC32_TLSDESC
    41,  # R_X86_64_GOTPCRELX
    42,  # R_X86_64_REX_GOTPCRELX
})
_X86_64_IGNORE = frozenset({
    17,  # R_X86_64_DTPOFF64
    18,  # R_X86_64_TPOFF64
    21,  # R_X86_64_DTPOFF32
    23,  # R_X86_64_TPOFF32
})

_ARM_ADDEND = frozenset({
    3,   # R_ARM_REL32
    24,  # R_ARM_GOTOFF32
    25,  # R_ARM_BASE_PREL
    26,  # R_ARM_GOT32
    41,  # R_ARM_TARGET2
    42,  # R_ARM_PREL31
    96,  # R_ARM_GOT_PREL
})
_ARM_SYMBOL_ADDEND = frozenset({
    43,  # R_ARM_MOVW_ABS_NC
    44,  # R_ARM_MOVT_ABS
    47,  # R_ARM_THM_MOVW_ABS_NC
    48,  # R_ARM_THM_MOVT_ABS
})

_ARM64_ADDEND = frozenset({
    260,  # R_AARCH64_PREL64
    261,  # R_AARCH64_PREL32
})
_ARM64_SYMBOL_ADDEND = frozenset({
    263, 264, 265, 266, 267, 268, 269,  # MOVW_UABS_G0 .. G3
    275,  # ADR_PREL_PG_HI21
    276,  # ADR_PREL_PG_HI21_NC
    277,  # ADD_ABS_LO12_NC
    278,  # LDST8_ABS_LO12_NC
    284,  # LDST16_ABS_LO12_NC
    285,  # LDST32_ABS_LO12_NC
    286,  # LDST64_ABS_LO12_NC
    299,  # LDST128_ABS_LO12_NC
})
_ARM64_GOT_GROUP = frozenset({
    300,  # R_AARCH64_MOVW_GOTOFF_G0
    301,  # R_AARCH64_MOVW_GOTOFF_G0_NC
})
_ARM64_GOT_PAGE = frozenset({
    311,  # R_AARCH64_ADR_GOT_PAGE
})

_TABLES: dict[TrapPlatform, tuple[tuple[frozenset[int], RelocInfo], ...]] = {
    TrapPlatform.POSIX_X86: (
        (_X86_ADDEND, RelocInfo.ADDEND),
        (_X86_IGNORE, RelocInfo.IGNORE),
    ),
    TrapPlatform.POSIX_X86_64: (
        (_X86_64_ADDEND, RelocInfo.ADDEND),
        (_X86_64_IGNORE, RelocInfo.IGNORE),
    ),
    TrapPlatform.POSIX_ARM: (
        (_ARM_ADDEND, RelocInfo.ADDEND),
        (_ARM_SYMBOL_ADDEND, RelocInfo.SYMBOL | RelocInfo.ADDEND),
    ),
    TrapPlatform.POSIX_ARM64: (
        (_ARM64_ADDEND, RelocInfo.ADDEND),
        (_ARM64_SYMBOL_ADDEND, RelocInfo.SYMBOL | RelocInfo.ADDEND),
        (_ARM64_GOT_GROUP, RelocInfo.ARM64_GOT_GROUP),
        (_ARM64_GOT_PAGE, RelocInfo.ARM64_GOT_PAGE),
    ),
}


def reloc_info(reloc_type: int, platform: TrapPlatform | int) -> RelocInfo:
    """Return the extra-data flags for relocation ``reloc_type`` on ``platform``."""
    try:
        key = TrapPlatform(platform)
    except ValueError:
        return RelocInfo.NONE
    for types, info in _TABLES.get(key, ()):
        if reloc_type in types:
            return info
    return RelocInfo.NONE