import pytest

from elflens.disasm.aarch64 import Aarch64Decoder
from elflens.disasm.formatter import render
from elflens.disasm.instruction import (
    DecodedInstruction,
    DecodeStatus,
    EncodingGroup,
    ImmediateOperand,
    MemoryOperand,
    RegisterOperand,
    RegisterWidth,
)


@pytest.fixture
def decoder():
    return Aarch64Decoder()


@pytest.mark.parametrize(
    "word, text",
    [
        # add/sub (immediate)
        (0x91048C20, "add x0, x1, #291"),
        (0x910043FF, "add sp, sp, #16"),
        (0xD10083FF, "sub sp, sp, #32"),
        (0x71000420, "subs w0, w1, #1"),
        (0xB1401062, "adds x2, x3, #16384"),
        (0x91400C20, "add x0, x1, #12288"),
        # PC-relative addressing
        (0x10000040, "adr x0, #8"),
        (0xB0000001, "adrp x1, #4096"),
        (0x10FFFFE3, "adr x3, #-4"),
        # move wide
        (0xD2A00020, "movz x0, #1, lsl #16"),
        (0x7297DDE1, "movk w1, #48879"),
        (0x92800000, "movn x0, #0"),
        # AUTIASPPC / AUTIBSPPC
        (0xF380003F, "autiasppc #-4"),
        (0xF3A0003F, "autibsppc #-4"),
        # logical / add/sub (shifted register)
        (0x8A450883, "and x3, x4, x5, lsr #2"),
        (0x4A220020, "eon w0, w1, w2"),
        (0xAA020020, "orr x0, x1, x2"),
        (0x8B020C20, "add x0, x1, x2, lsl #3"),
        (0x6B821020, "subs w0, w1, w2, asr #4"),
    ],
)
def test_decoded_instructions(decoder, word, text):
    assert decoder.disassemble(word) == text
    assert decoder.decode(word).status is DecodeStatus.DECODED


@pytest.mark.parametrize(
    "word, text",
    [
        (0xF94007E0, "ldr x0, [sp, #8]"),
        (0xB9000C41, "str w1, [x2, #12]"),
        (0x39001483, "strb w3, [x4, #5]"),
        (0x79400CC5, "ldrh w5, [x6, #6]"),
        (0xB9800420, "ldrsw x0, [x1, #4]"),
        (0x39800020, "ldrsb x0, [x1, #0]"),
        (0x39C00020, "ldrsb w0, [x1, #0]"),
        (0xF9800020, "prfm #0, [x1, #0]"),
    ],
)
def test_load_store_unsigned_immediate(decoder, word, text):
    assert decoder.disassemble(word) == text


def test_unsigned_immediate_scale_and_width(decoder):
    # imm12 = 1 at every size: offset scales 1, 2, 4, 8
    expected = {
        0x39400420: ("ldrb", RegisterWidth.W, 1),
        0x79400420: ("ldrh", RegisterWidth.W, 2),
        0xB9400420: ("ldr", RegisterWidth.W, 4),
        0xF9400420: ("ldr", RegisterWidth.X, 8),
    }
    for word, (mnemonic, width, offset) in expected.items():
        result = decoder.decode(word)
        assert result.mnemonic == mnemonic
        rt, address = result.operands
        assert rt.width is width
        assert address.base.width is RegisterWidth.X
        assert address.offset == offset


@pytest.mark.parametrize(
    "word, text",
    [
        (0x00000000, "reserved"),
        (0x80000000, "sme not implemented"),
        (0x04000000, "sve not implemented"),
        (0x02000000, "unallocated"),
        (0x06000000, "unallocated"),
        (0xD65F03C0, "unimplemented"),
        (0x14000000, "unimplemented"),
        (0x1E270000, "unimplemented"),
        (0x3DC00000, "load/store simd&fp register (unsigned immediate) not implemented"),
        (0x58000040, "load register (literal) not implemented"),
        (0xA9007BFD, "load/store register pair not implemented"),
        (0x8B224020, "add/sub (extended register) not implemented"),
        (0x9B020C20, "data-processing (3 source) not implemented"),
        (0x9A820020, "conditional select not implemented"),
        (0x93C20C20, "extract not implemented"),
        (0x93400000, "bitfield not implemented"),
        (0x92400000, "logical (immediate) not implemented"),
        (0x91800000, "add/sub (immediate, with tags) not implemented"),
    ],
)
def test_placeholders(decoder, word, text):
    assert decoder.disassemble(word) == text


@pytest.mark.parametrize(
    "word",
    [
        0x7380003F,  # sf = 0
        0xB2800000,  # move wide opc 01
        0x52C00000,  # 32-bit move wide with hw = 2
        0x8BC20C20,  # shift type 11
        0x0A028020,  # 32-bit logical with imm6 = 32
        0xB9C00000,  # size 2, opc 11
    ],
)
def test_unallocated_forms(decoder, word):
    result = decoder.decode(word)
    assert result.status is DecodeStatus.UNALLOCATED
    assert render(result) == "unallocated"


def test_reserved_is_idempotent(decoder):
    first = decoder.decode(0)
    assert first.status is DecodeStatus.RESERVED
    assert first.group is EncodingGroup.RESERVED
    assert decoder.decode(0) == first
    assert decoder.disassemble(0) == decoder.disassemble(0) == "reserved"


def test_unknown_is_distinct_from_unallocated(decoder):
    result = decoder.decode(0x19000000)
    assert result.status is DecodeStatus.UNKNOWN
    assert result.group is EncodingGroup.LOADS_AND_STORES
    assert render(result) == "unimplemented"

    result = decoder.decode(0x1A200000)
    assert result.status is DecodeStatus.UNKNOWN
    assert result.group is EncodingGroup.DATA_PROCESSING_REGISTER


def test_operands(decoder):
    result = decoder.decode(0x91048C20)
    assert result.group is EncodingGroup.DATA_PROCESSING_IMMEDIATE
    assert result.form == "add/sub (immediate)"
    assert result.operands == [
        RegisterOperand(index=0, width=RegisterWidth.X),
        RegisterOperand(index=1, width=RegisterWidth.X),
        ImmediateOperand(value=291),
    ]


def test_register_31_renders_as_sp_in_32_bit_form(decoder):
    # add wsp, wsp, #16
    assert decoder.disassemble(0x110043FF) == "add sp, sp, #16"


def test_json_round_trip(decoder):
    result = decoder.decode(0xF94007E0)
    restored = DecodedInstruction.model_validate_json(result.model_dump_json())
    assert restored == result
    assert isinstance(restored.operands[1], MemoryOperand)


def test_decode_bytes_is_little_endian(decoder):
    assert decoder.decode_bytes(bytes.fromhex("ff430091")) == decoder.decode(0x910043FF)


def test_decode_bytes_rejects_partial_word(decoder):
    with pytest.raises(ValueError):
        decoder.decode_bytes(b"\x00\x00\x00")


@pytest.mark.parametrize("word", [0xFFFFFFFF, 0x7FFFFFFF, 0x12345678, 0xDEADBEEF])
def test_decode_never_raises(decoder, word):
    assert isinstance(decoder.disassemble(word), str)
