"""
Fixed-Width Field Decoding
===========================

Extracts unsigned integers from byte slices under a chosen byte order.
All ELF and instruction-word reads in ElfLens go through these helpers.

Widths are validated strictly: call sites slice buffers at offsets fixed by
the ELF format, so a slice of the wrong length is a programming error and
raises :class:`ValueError` instead of being padded or truncated.
"""

from __future__ import annotations

import struct

from elflens.core.models import Endianness

_FORMATS: dict[int, str] = {1: "B", 2: "H", 4: "I", 8: "Q"}


def _format_for(width: int, endianness: Endianness) -> str:
    try:
        return endianness.struct_prefix + _FORMATS[width]
    except KeyError:
        raise ValueError(f"unsupported field width {width}") from None


def decode_field(data: bytes, width: int, endianness: Endianness) -> int:
    """Decode exactly *width* bytes as an unsigned integer.

    Args:
        data: Slice holding the field.
        width: Field width in bytes (1, 2, 4 or 8).
        endianness: Byte order of the field.

    Returns:
        The unsigned integer value.

    Raises:
        ValueError: If the width is unsupported or ``len(data) != width``.
    """
    fmt = _format_for(width, endianness)
    if len(data) != width:
        raise ValueError(
            f"expected {width} bytes for field, got {len(data)}"
        )
    return struct.unpack(fmt, data)[0]


def read_field(
    buffer: bytes, offset: int, width: int, endianness: Endianness
) -> int:
    """Decode the *width*-byte field at *offset* within *buffer*."""
    return decode_field(buffer[offset:offset + width], width, endianness)


def encode_field(value: int, width: int, endianness: Endianness) -> bytes:
    """Encode *value* as a *width*-byte unsigned field.

    Raises:
        ValueError: If the width is unsupported or the value does not fit.
    """
    fmt = _format_for(width, endianness)
    try:
        return struct.pack(fmt, value)
    except struct.error as exc:
        raise ValueError(f"{value} does not fit in {width} bytes") from exc
