"""
ELF64 Header Parser
====================

Validates the 64-byte ELF64 file header and extracts the geometry of the
section header table.  Only 64-bit, Linux or System V, AArch64 files are
accepted; anything else is rejected with a one-line diagnostic written to
the caller's :class:`~elflens.core.sink.OutputSink`.

Header fields consumed (offsets from the start of the file)::

    0x00        EI_MAG0     0x7F
    0x01-0x03   EI_MAG1-3   "ELF"
    0x04        EI_CLASS    1 = ELF32 (rejected), 2 = ELF64
    0x05        EI_DATA     1 = little endian, otherwise big endian
    0x07        EI_OSABI    0x00 System V, 0x03 Linux
    0x12-0x13   e_machine   0xB7 AArch64
    0x28-0x2F   e_shoff
    0x3A-0x3B   e_shentsize
    0x3C-0x3D   e_shnum
    0x3E-0x3F   e_shstrndx

References:
    - TIS Committee. (1995). Tool Interface Standard (TIS) Executable and
      Linkable Format (ELF) Specification, Version 1.2.
    - System V Application Binary Interface, Edition 4.1.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from elflens.core.fields import read_field
from elflens.core.models import (
    Endianness,
    HeaderSummary,
    InstructionSet,
    OSAbi,
    WordSize,
)
from elflens.core.sink import OutputSink
from elflens.disasm.pipeline import DisassemblyPipeline
from elflens.parsers.section_table import (
    CODE_SECTION_NAME,
    CodeSection,
    SectionTable,
)

if TYPE_CHECKING:
    from shared.logger import LensLogger


# ---------------------------------------------------------------------------
# ELF Constants
# ---------------------------------------------------------------------------

ELF_HEADER_SIZE: int = 64
ELF_MAGIC_NUMBER: int = 0x7F
ELF_IDENTITY: bytes = b"ELF"

# e_ident indices
EI_CLASS: int = 4
EI_DATA: int = 5
EI_OSABI: int = 7

# ELF Class
ELFCLASS32: int = 1
ELFCLASS64: int = 2

# Data encoding
ELFDATA2LSB: int = 1

# OS ABI
ELFOSABI_SYSV: int = 0x00
ELFOSABI_LINUX: int = 0x03

# Machine
EM_AARCH64: int = 0xB7

# Field offsets
E_MACHINE: int = 0x12
E_SHOFF: int = 0x28
E_SHENTSIZE: int = 0x3A
E_SHNUM: int = 0x3C
E_SHSTRNDX: int = 0x3E

_OSABI: dict[int, OSAbi] = {
    ELFOSABI_LINUX: OSAbi.LINUX,
    ELFOSABI_SYSV: OSAbi.SYSTEM_V,
}

_MACHINES: dict[int, InstructionSet] = {
    EM_AARCH64: InstructionSet.AARCH64,
}


# ---------------------------------------------------------------------------
# ElfHeader
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ElfHeader:
    """A validated ELF64 header together with the file it came from.

    Instances are only produced by :func:`parse_header`; the retained
    *data* is the whole file, used later to walk the section table.
    """
    data: bytes = field(repr=False)
    word_size: WordSize
    endianness: Endianness
    abi: OSAbi
    instruction_set: InstructionSet
    section_header_offset: int
    section_header_entry_size: int
    section_header_entry_count: int
    section_header_names_index: int

    @classmethod
    def parse(
        cls,
        data: bytes,
        sink: Optional[OutputSink] = None,
        logger: Optional[LensLogger] = None,
    ) -> Optional[ElfHeader]:
        """Alias of :func:`parse_header`."""
        return parse_header(data, sink, logger)

    def section_table(self) -> SectionTable:
        return SectionTable(self)

    def find_code_section(
        self, name: str = CODE_SECTION_NAME
    ) -> Optional[CodeSection]:
        """Locate the code section; ``None`` if the file has none."""
        return self.section_table().find_code_section(name)

    def dump_disassembly(
        self,
        sink: OutputSink,
        section_name: str = CODE_SECTION_NAME,
        pipeline: Optional[DisassemblyPipeline] = None,
    ) -> int:
        """Write the listing of the code section to *sink*.

        Writes nothing when the file has no section called *section_name*.

        Returns:
            Number of instruction lines written.

        Raises:
            SectionTableError: If the section table or the section data is
                truncated or corrupt.
        """
        table = self.section_table()
        section = table.find_code_section(section_name)
        if section is None:
            return 0
        pipeline = pipeline or DisassemblyPipeline()
        return pipeline.write(table.code_bytes(section), sink)

    def summary(self) -> HeaderSummary:
        """Serialisable copy of the header fields (without the file data)."""
        return HeaderSummary(
            word_size=self.word_size,
            endianness=self.endianness,
            abi=self.abi,
            instruction_set=self.instruction_set,
            section_header_offset=self.section_header_offset,
            section_header_entry_size=self.section_header_entry_size,
            section_header_entry_count=self.section_header_entry_count,
            section_header_names_index=self.section_header_names_index,
        )


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _reject(
    message: str,
    sink: Optional[OutputSink],
    logger: Optional[LensLogger],
) -> None:
    if sink is not None:
        sink.write_line(message)
    if logger is not None:
        logger.warning(message)


def parse_header(
    data: bytes,
    sink: Optional[OutputSink] = None,
    logger: Optional[LensLogger] = None,
) -> Optional[ElfHeader]:
    """Validate *data* as an ELF64 AArch64 file and return its header.

    Validation stops at the first failing check.  Each failure writes one
    diagnostic line to *sink* (and to *logger* at WARNING) and returns
    ``None``; no exception escapes for malformed input.

    Args:
        data: Complete file contents.
        sink: Destination for diagnostics.
        logger: Optional logger mirroring the diagnostics.

    Returns:
        The validated :class:`ElfHeader`, or ``None``.
    """
    if len(data) < ELF_HEADER_SIZE:
        _reject("invalid header", sink, logger)
        return None

    ident = data[:ELF_HEADER_SIZE]
    if ident[0] != ELF_MAGIC_NUMBER or ident[1:4] != ELF_IDENTITY:
        _reject("invalid header", sink, logger)
        return None

    elf_class = ident[EI_CLASS]
    if elf_class == ELFCLASS32:
        _reject("currently unsupported on 32 bit systems", sink, logger)
        return None
    if elf_class != ELFCLASS64:
        _reject(f"invalid elf class {elf_class:02X}", sink, logger)
        return None

    endianness = (
        Endianness.LITTLE if ident[EI_DATA] == ELFDATA2LSB else Endianness.BIG
    )

    abi = _OSABI.get(ident[EI_OSABI])
    if abi is None:
        _reject(f"unsupported abi {ident[EI_OSABI]:02X}", sink, logger)
        return None

    machine = read_field(ident, E_MACHINE, 2, endianness)
    instruction_set = _MACHINES.get(machine)
    if instruction_set is None:
        _reject(f"unsupported instruction set {machine:04X}", sink, logger)
        return None

    header = ElfHeader(
        data=bytes(data),
        word_size=WordSize.BIT64,
        endianness=endianness,
        abi=abi,
        instruction_set=instruction_set,
        section_header_offset=read_field(ident, E_SHOFF, 8, endianness),
        section_header_entry_size=read_field(ident, E_SHENTSIZE, 2, endianness),
        section_header_entry_count=read_field(ident, E_SHNUM, 2, endianness),
        section_header_names_index=read_field(ident, E_SHSTRNDX, 2, endianness),
    )
    if logger is not None:
        logger.debug(
            "ELF64 %s-endian %s header: %d sections at 0x%X",
            endianness.value,
            abi.value,
            header.section_header_entry_count,
            header.section_header_offset,
        )
    return header


open_elf = parse_header
