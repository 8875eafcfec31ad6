"""
ElfLens -- ELF64 / AArch64 Inspection Toolkit
===============================================

ElfLens validates ELF64 headers, walks the section header table and
disassembles the code section of AArch64 binaries.  A hex view with byte
search covers the rest of the file.

Capabilities:
    - ELF64 header validation (System V / Linux, AArch64, either byte order)
    - Bounds-checked section header table walking and name resolution
    - Table-driven A64 instruction decoding with a tagged result model
    - Fixed-width disassembly listings, as text or JSON
    - Hex dump and byte / string search

References:
    - TIS Committee. (1995). ELF Specification, Version 1.2.
    - Arm Architecture Reference Manual for A-profile architecture (DDI 0487).
"""

__version__ = "1.0.0"

from elflens.core.session import Session
from elflens.core.sink import OutputSink
from elflens.disasm.aarch64 import Aarch64Decoder
from elflens.parsers.elf_header import ElfHeader, open_elf, parse_header

__all__ = [
    "Aarch64Decoder",
    "ElfHeader",
    "OutputSink",
    "Session",
    "open_elf",
    "parse_header",
]
