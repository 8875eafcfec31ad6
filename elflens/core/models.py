"""
ElfLens Data Models
====================

Enumerations describing the ELF identification fields ElfLens understands,
and the pydantic models that leave the core: one rendered listing line and
the header summary used by reports.

References:
    - TIS Committee. (1995). Tool Interface Standard (TIS) Executable and
      Linkable Format (ELF) Specification, Version 1.2.
    - System V Application Binary Interface, Edition 4.1.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Endianness(str, enum.Enum):
    """Byte order of multi-byte fields."""
    LITTLE = "little"
    BIG = "big"

    @property
    def struct_prefix(self) -> str:
        """Byte-order character for :mod:`struct` format strings."""
        return "<" if self is Endianness.LITTLE else ">"


class WordSize(int, enum.Enum):
    """ELF class (``EI_CLASS``) expressed as address width in bits."""
    BIT32 = 32
    BIT64 = 64


class OSAbi(str, enum.Enum):
    """Target OS ABI (``EI_OSABI``) values ElfLens accepts."""
    SYSTEM_V = "system_v"
    LINUX = "linux"


class InstructionSet(str, enum.Enum):
    """Machine type (``e_machine``) values ElfLens can disassemble."""
    AARCH64 = "aarch64"


# ---------------------------------------------------------------------------
# Header summary
# ---------------------------------------------------------------------------

class HeaderSummary(BaseModel):
    """Serialisable view of a validated ELF header.

    Attributes:
        word_size: Address width (always 64).
        endianness: Byte order of header and section fields.
        abi: OS ABI.
        instruction_set: Machine type.
        section_header_offset: File offset of the section header table.
        section_header_entry_size: Size of one section header record.
        section_header_entry_count: Number of section header records.
        section_header_names_index: Index of the section-name string table.
    """
    word_size: WordSize = WordSize.BIT64
    endianness: Endianness = Endianness.LITTLE
    abi: OSAbi = OSAbi.SYSTEM_V
    instruction_set: InstructionSet = InstructionSet.AARCH64
    section_header_offset: int = Field(default=0, ge=0)
    section_header_entry_size: int = Field(default=0, ge=0)
    section_header_entry_count: int = Field(default=0, ge=0)
    section_header_names_index: int = Field(default=0, ge=0)


# ---------------------------------------------------------------------------
# Listing line
# ---------------------------------------------------------------------------

class DecodedLine(BaseModel):
    """One line of a disassembly listing.

    The index is the zero-based position of the word within the code
    section; it orders the listing and is not an address.

    Attributes:
        index: Position of the instruction within the section.
        word: Raw 32-bit instruction word.
        text: Rendered instruction.
    """
    index: int = Field(ge=0)
    word: int = Field(ge=0, le=0xFFFFFFFF)
    text: str = ""

    def render(self) -> str:
        """Fixed-width listing line: index, ``0x``-prefixed word, text."""
        return f"{self.index:<5}          0x{self.word:08X}          {self.text}"
