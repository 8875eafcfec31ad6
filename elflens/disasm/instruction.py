"""
Decoded Instruction Model
==========================

Tagged result of classifying one A64 instruction word.  The decoder only
produces these values; turning them into text is the job of
:mod:`elflens.disasm.formatter`.

Operands form a pydantic discriminated union keyed on ``kind``, so a
decoded instruction serialises to JSON and validates back unchanged.

References:
    - Arm Architecture Reference Manual for A-profile architecture,
      chapter C4 "A64 Instruction Set Encoding".
    - Pydantic documentation, "Discriminated Unions".
"""

from __future__ import annotations

import enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class DecodeStatus(str, enum.Enum):
    """Outcome of decoding one word."""
    DECODED = "decoded"
    NOT_IMPLEMENTED = "not_implemented"
    RESERVED = "reserved"
    UNALLOCATED = "unallocated"
    UNKNOWN = "unknown"


class EncodingGroup(str, enum.Enum):
    """Top-level A64 encoding group selected by bits 31 and 28-25."""
    RESERVED = "reserved"
    SME = "sme"
    SVE = "sve"
    UNALLOCATED = "unallocated"
    DATA_PROCESSING_IMMEDIATE = "data_processing_immediate"
    DATA_PROCESSING_REGISTER = "data_processing_register"
    LOADS_AND_STORES = "loads_and_stores"
    OTHER = "other"


class RegisterWidth(str, enum.Enum):
    """General-purpose register view: ``w`` (32-bit) or ``x`` (64-bit)."""
    W = "w"
    X = "x"

    @classmethod
    def from_sf(cls, sf: int) -> RegisterWidth:
        return cls.X if sf else cls.W


class ShiftType(str, enum.Enum):
    LSL = "lsl"
    LSR = "lsr"
    ASR = "asr"
    ROR = "ror"


# ---------------------------------------------------------------------------
# Operands
# ---------------------------------------------------------------------------

class RegisterOperand(BaseModel):
    """General-purpose register ``0..31``."""
    kind: Literal["register"] = "register"
    index: int = Field(ge=0, le=31)
    width: RegisterWidth = RegisterWidth.X


class ImmediateOperand(BaseModel):
    kind: Literal["immediate"] = "immediate"
    value: int


class MemoryOperand(BaseModel):
    """Base register plus unsigned byte offset, ``[xN, #off]``."""
    kind: Literal["memory"] = "memory"
    base: RegisterOperand
    offset: int = 0


class ShiftOperand(BaseModel):
    kind: Literal["shift"] = "shift"
    op: ShiftType = ShiftType.LSL
    amount: int = Field(default=0, ge=0)


Operand = Annotated[
    Union[RegisterOperand, ImmediateOperand, MemoryOperand, ShiftOperand],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Instruction
# ---------------------------------------------------------------------------

class DecodedInstruction(BaseModel):
    """Classification of a single 32-bit instruction word.

    Attributes:
        word: The raw instruction word.
        group: Top-level encoding group.
        status: Whether the word was fully decoded, and if not, why.
        form: Human-readable name of the recognised encoding form, used in
            ``"<form> not implemented"`` placeholders.
        mnemonic: Instruction mnemonic when ``status`` is ``DECODED``.
        operands: Operands in assembly order.
    """
    word: int = Field(ge=0, le=0xFFFFFFFF)
    group: EncodingGroup = EncodingGroup.OTHER
    status: DecodeStatus = DecodeStatus.UNKNOWN
    form: Optional[str] = None
    mnemonic: Optional[str] = None
    operands: list[Operand] = Field(default_factory=list)

    @property
    def is_decoded(self) -> bool:
        return self.status is DecodeStatus.DECODED


def register(index: int, sf: int = 1) -> RegisterOperand:
    """Shorthand for a register operand with width taken from ``sf``."""
    return RegisterOperand(index=index, width=RegisterWidth.from_sf(sf))
