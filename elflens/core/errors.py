"""Exception types raised by ElfLens."""

from __future__ import annotations


class ElfLensError(Exception):
    """Base class for recoverable ElfLens errors."""


class SectionTableError(ElfLensError):
    """A section header, the name table, or a section's data lies outside
    the file.

    Raised while walking the section table of a truncated or corrupt file.
    It aborts the disassembly of that file only.
    """

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"truncated or corrupt section table: {detail}")
