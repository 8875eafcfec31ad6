"""
AArch64 (A64) Instruction Decoder
==================================

Classifies 32-bit A64 instruction words by walking the encoding tree of
the Arm Architecture Reference Manual.  Each level of the tree is a table
of ``(bit pattern, handler)`` rows tested in order against a key assembled
from the word's selector bits; the first matching row wins.

Coverage::

    Level 0           reserved, SME, SVE, unallocated,
                      data-processing (immediate / register), loads and stores
    DP immediate      PC-relative addressing, add/sub immediate, move wide,
                      AUTIASPPC / AUTIBSPPC
    DP register       logical (shifted register), add/sub (shifted register)
    Loads and stores  load/store register (unsigned immediate)

Every other recognised group decodes to ``NOT_IMPLEMENTED`` with the name of
its encoding form; words matching no row decode to ``UNKNOWN`` or to the
catch-all ``"unimplemented"`` at level 0.  :meth:`Aarch64Decoder.decode`
never raises for a 32-bit word.

References:
    - Arm Architecture Reference Manual for A-profile architecture
      (DDI 0487), chapter C4 "A64 Instruction Set Encoding".
"""

from __future__ import annotations

from typing import Callable, Sequence

from elflens.core.fields import decode_field
from elflens.core.models import Endianness
from elflens.disasm.bitpattern import extract, matches, sign_extend
from elflens.disasm.formatter import render
from elflens.disasm.instruction import (
    DecodedInstruction,
    DecodeStatus,
    EncodingGroup,
    ImmediateOperand,
    MemoryOperand,
    ShiftOperand,
    ShiftType,
    register,
)

INSTRUCTION_SIZE: int = 4
INSTRUCTION_ENDIANNESS: Endianness = Endianness.LITTLE

_Handler = Callable[[int], DecodedInstruction]

_SHIFTS: tuple[ShiftType, ...] = (
    ShiftType.LSL, ShiftType.LSR, ShiftType.ASR, ShiftType.ROR,
)

# (opc << 1 | N) -> mnemonic
_LOGICAL_MNEMONICS: tuple[str, ...] = (
    "and", "bic", "orr", "orn", "eor", "eon", "ands", "bics",
)

_MOVE_WIDE_MNEMONICS: dict[int, str] = {0b00: "movn", 0b10: "movz", 0b11: "movk"}

# (size, opc) -> (mnemonic, sf of the transfer register)
_UNSIGNED_IMMEDIATE_FORMS: dict[tuple[int, int], tuple[str, int]] = {
    (0, 0b00): ("strb", 0),
    (0, 0b01): ("ldrb", 0),
    (0, 0b10): ("ldrsb", 1),
    (0, 0b11): ("ldrsb", 0),
    (1, 0b00): ("strh", 0),
    (1, 0b01): ("ldrh", 0),
    (1, 0b10): ("ldrsh", 1),
    (1, 0b11): ("ldrsh", 0),
    (2, 0b00): ("str", 0),
    (2, 0b01): ("ldr", 0),
    (2, 0b10): ("ldrsw", 1),
    (3, 0b00): ("str", 1),
    (3, 0b01): ("ldr", 1),
}


# ---------------------------------------------------------------------------
# Result helpers
# ---------------------------------------------------------------------------

def _decoded(
    word: int, group: EncodingGroup, form: str, mnemonic: str, *operands
) -> DecodedInstruction:
    return DecodedInstruction(
        word=word,
        group=group,
        status=DecodeStatus.DECODED,
        form=form,
        mnemonic=mnemonic,
        operands=list(operands),
    )


def _status(
    word: int,
    group: EncodingGroup,
    status: DecodeStatus,
    form: str | None = None,
) -> DecodedInstruction:
    return DecodedInstruction(word=word, group=group, status=status, form=form)


def _not_implemented(group: EncodingGroup, form: str) -> _Handler:
    """Handler for an encoding form that is recognised but not decoded."""
    def handler(word: int) -> DecodedInstruction:
        return _status(word, group, DecodeStatus.NOT_IMPLEMENTED, form)
    return handler


def _dispatch(
    table: Sequence[tuple[str, _Handler]],
    key: int,
    word: int,
    group: EncodingGroup,
) -> DecodedInstruction:
    for pattern, handler in table:
        if matches(pattern, key):
            return handler(word)
    return _status(word, group, DecodeStatus.UNKNOWN)


# ---------------------------------------------------------------------------
# Data-processing -- immediate
# ---------------------------------------------------------------------------

_DPI = EncodingGroup.DATA_PROCESSING_IMMEDIATE


def _dp_one_source(word: int) -> DecodedInstruction:
    form = "data-processing (1 source immediate)"
    sf = extract(word, 31, 31)
    opc = extract(word, 22, 21)
    rd = extract(word, 4, 0)
    if sf != 1 or rd != 31 or opc > 0b01:
        return _status(word, _DPI, DecodeStatus.UNALLOCATED, form)
    imm16 = extract(word, 20, 5)
    mnemonic = "autiasppc" if opc == 0b00 else "autibsppc"
    return _decoded(word, _DPI, form, mnemonic, ImmediateOperand(value=-(imm16 << 2)))


def _pc_relative(word: int) -> DecodedInstruction:
    op = extract(word, 31, 31)
    immlo = extract(word, 30, 29)
    immhi = extract(word, 23, 5)
    imm = sign_extend((immhi << 2) | immlo, 21)
    if op:
        mnemonic, imm = "adrp", imm * 4096
    else:
        mnemonic = "adr"
    return _decoded(
        word, _DPI, "pc-rel. addressing", mnemonic,
        register(extract(word, 4, 0)),
        ImmediateOperand(value=imm),
    )


def _add_sub_immediate(word: int) -> DecodedInstruction:
    sf = extract(word, 31, 31)
    op = extract(word, 30, 30)
    s = extract(word, 29, 29)
    imm = extract(word, 21, 10) << (12 * extract(word, 22, 22))
    mnemonic = ("sub" if op else "add") + ("s" if s else "")
    return _decoded(
        word, _DPI, "add/sub (immediate)", mnemonic,
        register(extract(word, 4, 0), sf),
        register(extract(word, 9, 5), sf),
        ImmediateOperand(value=imm),
    )


def _move_wide(word: int) -> DecodedInstruction:
    form = "move wide (immediate)"
    sf = extract(word, 31, 31)
    opc = extract(word, 30, 29)
    hw = extract(word, 22, 21)
    mnemonic = _MOVE_WIDE_MNEMONICS.get(opc)
    if mnemonic is None or (sf == 0 and hw >= 2):
        return _status(word, _DPI, DecodeStatus.UNALLOCATED, form)
    operands: list = [
        register(extract(word, 4, 0), sf),
        ImmediateOperand(value=extract(word, 20, 5)),
    ]
    if hw:
        operands.append(ShiftOperand(op=ShiftType.LSL, amount=16 * hw))
    return _decoded(word, _DPI, form, mnemonic, *operands)


# key: bits 30-29 (op0) : bits 25-22 (op1)
_DATA_PROCESSING_IMMEDIATE: tuple[tuple[str, _Handler], ...] = (
    ("11111x", _dp_one_source),
    ("xx00xx", _pc_relative),
    ("xx010x", _add_sub_immediate),
    ("xx011x", _not_implemented(_DPI, "add/sub (immediate, with tags)")),
    ("xx100x", _not_implemented(_DPI, "logical (immediate)")),
    ("xx101x", _move_wide),
    ("xx110x", _not_implemented(_DPI, "bitfield")),
    ("xx111x", _not_implemented(_DPI, "extract")),
)


def _data_processing_immediate(word: int) -> DecodedInstruction:
    key = (extract(word, 30, 29) << 4) | extract(word, 25, 22)
    return _dispatch(_DATA_PROCESSING_IMMEDIATE, key, word, _DPI)


# ---------------------------------------------------------------------------
# Data-processing -- register
# ---------------------------------------------------------------------------

_DPR = EncodingGroup.DATA_PROCESSING_REGISTER


def _shifted_operands(word: int, sf: int) -> list:
    operands: list = [
        register(extract(word, 4, 0), sf),
        register(extract(word, 9, 5), sf),
        register(extract(word, 20, 16), sf),
    ]
    amount = extract(word, 15, 10)
    if amount:
        operands.append(
            ShiftOperand(op=_SHIFTS[extract(word, 23, 22)], amount=amount)
        )
    return operands


def _logical_shifted(word: int) -> DecodedInstruction:
    form = "logical (shifted register)"
    sf = extract(word, 31, 31)
    if sf == 0 and extract(word, 15, 15):
        return _status(word, _DPR, DecodeStatus.UNALLOCATED, form)
    opc = extract(word, 30, 29)
    n = extract(word, 21, 21)
    mnemonic = _LOGICAL_MNEMONICS[(opc << 1) | n]
    return _decoded(word, _DPR, form, mnemonic, *_shifted_operands(word, sf))


def _add_sub_shifted(word: int) -> DecodedInstruction:
    form = "add/sub (shifted register)"
    sf = extract(word, 31, 31)
    if extract(word, 23, 22) == 0b11 or (sf == 0 and extract(word, 15, 15)):
        return _status(word, _DPR, DecodeStatus.UNALLOCATED, form)
    mnemonic = ("sub" if extract(word, 30, 30) else "add") + (
        "s" if extract(word, 29, 29) else ""
    )
    return _decoded(word, _DPR, form, mnemonic, *_shifted_operands(word, sf))


# key: bit 28 (op1) : bits 24-21 (op2)
_DATA_PROCESSING_REGISTER: tuple[tuple[str, _Handler], ...] = (
    ("00xxx", _logical_shifted),
    ("01xx0", _add_sub_shifted),
    ("01xx1", _not_implemented(_DPR, "add/sub (extended register)")),
    ("11xxx", _not_implemented(_DPR, "data-processing (3 source)")),
    ("10000", _not_implemented(_DPR, "add/sub (with carry)")),
    ("10010", _not_implemented(_DPR, "conditional compare")),
    ("10100", _not_implemented(_DPR, "conditional select")),
    ("10110", _not_implemented(_DPR, "data-processing (1 or 2 source)")),
)


def _data_processing_register(word: int) -> DecodedInstruction:
    key = (extract(word, 28, 28) << 4) | extract(word, 24, 21)
    return _dispatch(_DATA_PROCESSING_REGISTER, key, word, _DPR)


# ---------------------------------------------------------------------------
# Loads and stores
# ---------------------------------------------------------------------------

_LDST = EncodingGroup.LOADS_AND_STORES


def _unsigned_immediate(word: int) -> DecodedInstruction:
    if extract(word, 26, 26):
        return _status(
            word, _LDST, DecodeStatus.NOT_IMPLEMENTED,
            "load/store simd&fp register (unsigned immediate)",
        )
    form = "load/store register (unsigned immediate)"
    size = extract(word, 31, 30)
    opc = extract(word, 23, 22)
    rt = extract(word, 4, 0)
    address = MemoryOperand(
        base=register(extract(word, 9, 5)),
        offset=extract(word, 21, 10) << size,
    )
    if (size, opc) == (3, 0b10):
        return _decoded(word, _LDST, form, "prfm", ImmediateOperand(value=rt), address)
    entry = _UNSIGNED_IMMEDIATE_FORMS.get((size, opc))
    if entry is None:
        return _status(word, _LDST, DecodeStatus.UNALLOCATED, form)
    mnemonic, sf = entry
    return _decoded(word, _LDST, form, mnemonic, register(rt, sf), address)


# key: bits 29-28 : bits 24-23
_LOADS_AND_STORES: tuple[tuple[str, _Handler], ...] = (
    ("010x", _not_implemented(_LDST, "load register (literal)")),
    ("111x", _unsigned_immediate),
    ("10xx", _not_implemented(_LDST, "load/store register pair")),
    ("110x", _not_implemented(_LDST, "load/store register (other addressing)")),
    ("00xx", _not_implemented(_LDST, "load/store exclusive and ordered")),
)


def _loads_and_stores(word: int) -> DecodedInstruction:
    key = (extract(word, 29, 28) << 2) | extract(word, 24, 23)
    return _dispatch(_LOADS_AND_STORES, key, word, _LDST)


# ---------------------------------------------------------------------------
# Level 0
# ---------------------------------------------------------------------------

def _fixed(group: EncodingGroup, status: DecodeStatus, form: str | None = None) -> _Handler:
    def handler(word: int) -> DecodedInstruction:
        return _status(word, group, status, form)
    return handler


# key: bit 31 (op0) : bits 28-25 (op1)
_TOP_LEVEL: tuple[tuple[str, _Handler], ...] = (
    ("00000", _fixed(EncodingGroup.RESERVED, DecodeStatus.RESERVED)),
    ("10000", _fixed(EncodingGroup.SME, DecodeStatus.NOT_IMPLEMENTED, "sme")),
    ("x0010", _fixed(EncodingGroup.SVE, DecodeStatus.NOT_IMPLEMENTED, "sve")),
    ("x00x1", _fixed(EncodingGroup.UNALLOCATED, DecodeStatus.UNALLOCATED)),
    ("x100x", _data_processing_immediate),
    ("xx101", _data_processing_register),
    ("xx1x0", _loads_and_stores),
)


class Aarch64Decoder:
    """Decode A64 instruction words.

    Usage::

        decoder = Aarch64Decoder()
        decoder.disassemble(0x910043FF)     # "add sp, sp, #16"
        decoder.decode(0x00000000).status   # DecodeStatus.RESERVED
    """

    instruction_size: int = INSTRUCTION_SIZE

    def decode(self, word: int) -> DecodedInstruction:
        """Classify *word*; never raises for a value in ``0..0xFFFFFFFF``."""
        key = (extract(word, 31, 31) << 4) | extract(word, 28, 25)
        for pattern, handler in _TOP_LEVEL:
            if matches(pattern, key):
                return handler(word)
        return _status(word, EncodingGroup.OTHER, DecodeStatus.UNKNOWN)

    def disassemble(self, word: int) -> str:
        """Decode *word* and render it as assembly text."""
        return render(self.decode(word))

    def decode_bytes(self, chunk: bytes) -> DecodedInstruction:
        """Decode one 4-byte little-endian instruction.

        Raises:
            ValueError: If *chunk* is not exactly four bytes long.
        """
        return self.decode(
            decode_field(chunk, INSTRUCTION_SIZE, INSTRUCTION_ENDIANNESS)
        )
