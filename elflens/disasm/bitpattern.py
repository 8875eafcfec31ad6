"""
Bit Pattern Matching
=====================

Instruction encodings in the Arm ARM are described by strings over
``{0, 1, x}``: fixed bits and don't-care positions, most significant bit
first.  This module compiles such strings into ``(mask, bits)`` pairs and
tests values against them, plus the two bitfield helpers the decoder needs.

Example::

    >>> matches("1x0x", 0b1001)
    True
    >>> matches("1x0x", 0b1101)
    False

References:
    - Arm Architecture Reference Manual for A-profile architecture,
      section C4.1 "A64 instruction set encoding".
"""

from __future__ import annotations

from functools import lru_cache


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> tuple[int, int]:
    """Compile *pattern* into a ``(mask, bits)`` pair.

    The rightmost character is bit 0.  ``mask`` has a 1 for every fixed
    position and ``bits`` holds the required value at those positions.

    Raises:
        ValueError: If the pattern contains a character other than
            ``0``, ``1`` or ``x``.
    """
    mask = 0
    bits = 0
    for position, char in enumerate(reversed(pattern)):
        if char == "x":
            continue
        if char not in "01":
            raise ValueError(
                f"invalid character {char!r} in bit pattern {pattern!r}"
            )
        mask |= 1 << position
        if char == "1":
            bits |= 1 << position
    return mask, bits


def matches(pattern: str, value: int) -> bool:
    """Return ``True`` if *value* agrees with every fixed bit of *pattern*."""
    mask, bits = compile_pattern(pattern)
    return value & mask == bits


def extract(value: int, high: int, low: int) -> int:
    """Return bits ``high..low`` (inclusive) of *value*, shifted down."""
    return (value >> low) & ((1 << (high - low + 1)) - 1)


def sign_extend(value: int, bits: int) -> int:
    """Interpret the low *bits* bits of *value* as two's complement."""
    sign = 1 << (bits - 1)
    value &= (1 << bits) - 1
    return (value ^ sign) - sign
