"""
ELF64 Section Header Table
===========================

Walks the section header table of a validated ELF64 header, resolves
section names through the section-name string table (``.shstrtab``) and
locates the code section.

Entries are computed views: each one is read from its fixed-stride record
when asked for and nothing is cached.  Every offset derived from header
fields is checked against the file length before it is read, and a
violation raises :class:`~elflens.core.errors.SectionTableError`.

Section header record layout (Elf64_Shdr, offsets within one record)::

    0x00  sh_name       4  offset of the name in .shstrtab
    0x04  sh_type       4
    0x08  sh_flags      8
    0x10  sh_addr       8
    0x18  sh_offset     8  file offset of the section contents
    0x20  sh_size       8  size of the section contents
    0x28  ...              link, info, addralign, entsize

References:
    - TIS Committee. (1995). Tool Interface Standard (TIS) Executable and
      Linkable Format (ELF) Specification, Version 1.2.
    - Linux man page: elf(5).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, NamedTuple, Optional

from elflens.core.errors import SectionTableError
from elflens.core.fields import read_field

if TYPE_CHECKING:
    from elflens.parsers.elf_header import ElfHeader


# ---------------------------------------------------------------------------
# Section header record offsets
# ---------------------------------------------------------------------------

SH_NAME: int = 0x00
SH_FLAGS: int = 0x08
SH_OFFSET: int = 0x18
SH_SIZE: int = 0x20

# Smallest record that still holds every field read above
SH_MIN_RECORD_SIZE: int = 0x28

# e_shstrndx value for a file without a section-name table
SHN_UNDEF: int = 0

# Section header flags
SHF_WRITE: int = 0x1
SHF_ALLOC: int = 0x2
SHF_EXECINSTR: int = 0x4

CODE_SECTION_NAME: str = ".text"


class CodeSection(NamedTuple):
    """File location of a section's contents."""
    offset: int
    size: int


@dataclass(frozen=True, slots=True)
class SectionHeaderEntry:
    """One section header, as read from its record."""
    index: int
    name_offset: int
    flags: int
    offset: int
    size: int
    name: str

    @property
    def is_executable(self) -> bool:
        return bool(self.flags & SHF_EXECINSTR)

    @property
    def flags_str(self) -> str:
        """Flags as ``readelf``-style letters, e.g. ``"AX"``."""
        parts: list[str] = []
        if self.flags & SHF_WRITE:
            parts.append("W")
        if self.flags & SHF_ALLOC:
            parts.append("A")
        if self.flags & SHF_EXECINSTR:
            parts.append("X")
        return "".join(parts) if parts else "-"


class SectionTable:
    """Bounds-checked access to the section header table of an ELF64 file.

    Usage::

        table = SectionTable(header)
        section = table.find_code_section()
        if section is not None:
            code = table.code_bytes(section)
    """

    def __init__(self, header: ElfHeader) -> None:
        self._data: bytes = header.data
        self._endianness = header.endianness
        self._base: int = header.section_header_offset
        self._entry_size: int = header.section_header_entry_size
        self._entry_count: int = header.section_header_entry_count
        self._names_index: int = header.section_header_names_index

    def __len__(self) -> int:
        return self._entry_count

    # ------------------------------------------------------------------ #
    #  Record geometry
    # ------------------------------------------------------------------ #

    def section_header_offset(self, index: int) -> int:
        """File offset of the record for section *index*."""
        return self._base + index * self._entry_size

    def _read(self, offset: int, width: int, what: str) -> int:
        """Read a field after checking it lies inside the file."""
        if offset < 0 or offset + width > len(self._data):
            raise SectionTableError(
                f"{what} at 0x{offset:X} lies beyond end of file "
                f"(0x{len(self._data):X} bytes)"
            )
        return read_field(self._data, offset, width, self._endianness)

    def _record_field(self, index: int, field_offset: int, width: int) -> int:
        if self._entry_size < SH_MIN_RECORD_SIZE:
            raise SectionTableError(
                f"section header entry size {self._entry_size} is smaller "
                f"than a section record ({SH_MIN_RECORD_SIZE})"
            )
        offset = self.section_header_offset(index) + field_offset
        return self._read(offset, width, f"section header {index}")

    # ------------------------------------------------------------------ #
    #  Name resolution
    # ------------------------------------------------------------------ #

    def string_table(self, names_index: Optional[int] = None) -> tuple[int, int]:
        """File offset and size of the string table section at *names_index*.

        Defaults to the header's section-name table index.
        """
        if names_index is None:
            names_index = self._names_index
        if names_index >= self._entry_count:
            raise SectionTableError(
                f"name table index {names_index} out of range "
                f"({self._entry_count} sections)"
            )
        return (
            self._record_field(names_index, SH_OFFSET, 8),
            self._record_field(names_index, SH_SIZE, 8),
        )

    def resolve_name(
        self, string_offset: int, names_index: Optional[int] = None
    ) -> str:
        """Read the zero-terminated name at *string_offset* in the name table.

        Each byte is decoded as one character (latin-1).  A file without a
        name table (index ``SHN_UNDEF``) has only empty names.

        Raises:
            SectionTableError: If the offset falls outside the string table,
                the table lies outside the file, or the name is unterminated.
        """
        if names_index is None:
            names_index = self._names_index
        if names_index == SHN_UNDEF:
            return ""
        table_offset, table_size = self.string_table(names_index)
        if string_offset >= table_size:
            raise SectionTableError(
                f"name offset 0x{string_offset:X} outside string table "
                f"of 0x{table_size:X} bytes"
            )
        start = table_offset + string_offset
        limit = min(table_offset + table_size, len(self._data))
        if start >= limit:
            raise SectionTableError(
                f"string table at 0x{table_offset:X} lies beyond end of file"
            )
        end = self._data.find(b"\x00", start, limit)
        if end == -1:
            raise SectionTableError(
                f"unterminated section name at 0x{start:X}"
            )
        return self._data[start:end].decode("latin-1")

    # ------------------------------------------------------------------ #
    #  Entries
    # ------------------------------------------------------------------ #

    def entry(self, index: int) -> SectionHeaderEntry:
        """Read section header *index* and resolve its name."""
        if not 0 <= index < self._entry_count:
            raise IndexError(
                f"section index {index} out of range ({self._entry_count} sections)"
            )
        name_offset = self._record_field(index, SH_NAME, 4)
        return SectionHeaderEntry(
            index=index,
            name_offset=name_offset,
            flags=self._record_field(index, SH_FLAGS, 8),
            offset=self._record_field(index, SH_OFFSET, 8),
            size=self._record_field(index, SH_SIZE, 8),
            name=self.resolve_name(name_offset),
        )

    def entries(self) -> Iterator[SectionHeaderEntry]:
        """Yield every section header in table order."""
        for index in range(self._entry_count):
            yield self.entry(index)

    def find_code_section(
        self, name: str = CODE_SECTION_NAME
    ) -> Optional[CodeSection]:
        """Locate the first section called *name*.

        Returns:
            ``(offset, size)`` of the section contents, or ``None`` if the
            file has no such section.
        """
        if self._names_index == SHN_UNDEF:
            return None
        for index in range(self._entry_count):
            name_offset = self._record_field(index, SH_NAME, 4)
            if self.resolve_name(name_offset) != name:
                continue
            return CodeSection(
                offset=self._record_field(index, SH_OFFSET, 8),
                size=self._record_field(index, SH_SIZE, 8),
            )
        return None

    def code_bytes(self, section: CodeSection) -> bytes:
        """Contents of *section*.

        Raises:
            SectionTableError: If the section extends past the end of file.
        """
        end = section.offset + section.size
        if end > len(self._data):
            raise SectionTableError(
                f"section data 0x{section.offset:X}..0x{end:X} lies beyond "
                f"end of file (0x{len(self._data):X} bytes)"
            )
        return self._data[section.offset:end]
