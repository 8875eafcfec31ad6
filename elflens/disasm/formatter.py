"""Render :class:`DecodedInstruction` values as assembly text."""

from __future__ import annotations

from elflens.disasm.instruction import (
    DecodedInstruction,
    DecodeStatus,
    ImmediateOperand,
    MemoryOperand,
    RegisterOperand,
    ShiftOperand,
)

STACK_POINTER_INDEX: int = 31


def format_register(operand: RegisterOperand) -> str:
    """``x<n>`` / ``w<n>``; index 31 is always ``sp``."""
    if operand.index == STACK_POINTER_INDEX:
        return "sp"
    return f"{operand.width.value}{operand.index}"


def format_operand(operand) -> str:
    if isinstance(operand, RegisterOperand):
        return format_register(operand)
    if isinstance(operand, ImmediateOperand):
        return f"#{operand.value}"
    if isinstance(operand, MemoryOperand):
        return f"[{format_register(operand.base)}, #{operand.offset}]"
    if isinstance(operand, ShiftOperand):
        return f"{operand.op.value} #{operand.amount}"
    raise TypeError(f"unsupported operand {operand!r}")


def render(instruction: DecodedInstruction) -> str:
    """Assembly text for *instruction*, or its placeholder.

    Placeholders are ``"reserved"``, ``"unallocated"``,
    ``"<form> not implemented"`` and ``"unimplemented"``.
    """
    status = instruction.status
    if status is DecodeStatus.RESERVED:
        return "reserved"
    if status is DecodeStatus.UNALLOCATED:
        return "unallocated"
    if status is DecodeStatus.NOT_IMPLEMENTED:
        return f"{instruction.form} not implemented"
    if status is not DecodeStatus.DECODED:
        return "unimplemented"

    if not instruction.operands:
        return instruction.mnemonic or ""
    first, *rest = (format_operand(op) for op in instruction.operands)
    return ", ".join([f"{instruction.mnemonic} {first:>2}", *rest])
