"""Shared fixtures: a builder for small synthetic ELF64 files."""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Callable

import pytest

ELF_HEADER_SIZE = 64
SECTION_HEADER_SIZE = 64
SHT_PROGBITS = 1
SHT_STRTAB = 3
SHF_ALLOC = 0x2
SHF_EXECINSTR = 0x4


def _words(*values: int) -> bytes:
    """Little-endian instruction words, as they sit in a code section."""
    return b"".join(v.to_bytes(4, "little") for v in values)


def _build_elf(
    code: bytes = b"",
    *,
    text_name: bytes = b".text",
    endian: str = "little",
    osabi: int = 0x00,
    machine: int = 0xB7,
    elf_class: int = 2,
    entry_size: int = SECTION_HEADER_SIZE,
    names_index: int = 2,
) -> bytes:
    """Build an ELF64 relocatable with sections ``[null, text, .shstrtab]``.

    Layout: header, code at 0x40, the name table, then the 8-aligned
    section header table.
    """
    prefix = "<" if endian == "little" else ">"
    shstrtab = b"\x00" + text_name + b"\x00.shstrtab\x00"
    text_name_offset = 1
    shstrtab_name_offset = len(text_name) + 2

    code_offset = ELF_HEADER_SIZE
    strtab_offset = code_offset + len(code)
    shoff = strtab_offset + len(shstrtab)
    shoff += -shoff % 8

    ident = bytes([
        0x7F, ord("E"), ord("L"), ord("F"),
        elf_class,
        1 if endian == "little" else 2,
        1,
        osabi,
    ]) + bytes(8)
    header = ident + struct.pack(
        prefix + "HHIQQQIHHHHHH",
        1,                      # e_type: ET_REL
        machine,
        1,                      # e_version
        0,                      # e_entry
        0,                      # e_phoff
        shoff,
        0,                      # e_flags
        ELF_HEADER_SIZE,
        0,                      # e_phentsize
        0,                      # e_phnum
        entry_size,
        3,                      # e_shnum
        names_index,
    )
    assert len(header) == ELF_HEADER_SIZE

    def section(name: int, sh_type: int, flags: int, offset: int, size: int) -> bytes:
        record = struct.pack(
            prefix + "IIQQQQIIQQ",
            name, sh_type, flags, 0, offset, size, 0, 0, 4, 0,
        )
        return record[:entry_size] + bytes(max(0, entry_size - len(record)))

    body = bytearray(header)
    body += code
    body += shstrtab
    body += bytes(shoff - len(body))
    body += bytes(entry_size)
    body += section(
        text_name_offset, SHT_PROGBITS, SHF_ALLOC | SHF_EXECINSTR,
        code_offset, len(code),
    )
    body += section(
        shstrtab_name_offset, SHT_STRTAB, 0, strtab_offset, len(shstrtab)
    )
    return bytes(body)


@pytest.fixture
def build_elf() -> Callable[..., bytes]:
    return _build_elf


@pytest.fixture
def elf_file(tmp_path: Path) -> Callable[..., Path]:
    """Write a synthetic ELF to a temporary file and return its path."""
    def write(code: bytes = b"", name: str = "sample.o", **kwargs) -> Path:
        path = tmp_path / name
        path.write_bytes(_build_elf(code, **kwargs))
        return path
    return write


@pytest.fixture
def words() -> Callable[..., bytes]:
    return _words


@pytest.fixture
def quiet_config(tmp_path: Path) -> Path:
    """Configuration file that keeps log output off the console."""
    path = tmp_path / "elflens.toml"
    path.write_text(
        '[global]\nlog_level = "ERROR"\n\n[hexview]\nuse_color = false\n',
        encoding="utf-8",
    )
    return path
