import pytest

from elflens.core.models import Endianness, InstructionSet, OSAbi, WordSize
from elflens.core.sink import OutputSink
from elflens.parsers.elf_header import ElfHeader, open_elf, parse_header


def test_valid_little_endian_header(build_elf):
    sink = OutputSink()
    header = parse_header(build_elf(b"\x00" * 4), sink)
    assert header is not None
    assert sink.getvalue() == ""
    assert header.word_size is WordSize.BIT64
    assert header.endianness is Endianness.LITTLE
    assert header.abi is OSAbi.SYSTEM_V
    assert header.instruction_set is InstructionSet.AARCH64
    assert header.section_header_entry_size == 64
    assert header.section_header_entry_count == 3
    assert header.section_header_names_index == 2
    assert header.section_header_offset % 8 == 0


def test_big_endian_and_linux(build_elf):
    header = parse_header(build_elf(endian="big", osabi=0x03))
    assert header is not None
    assert header.endianness is Endianness.BIG
    assert header.abi is OSAbi.LINUX
    assert header.section_header_entry_count == 3


def test_any_data_byte_other_than_one_is_big_endian(build_elf):
    data = bytearray(build_elf(endian="big"))
    data[5] = 0x00
    header = parse_header(bytes(data))
    assert header is not None
    assert header.endianness is Endianness.BIG


@pytest.mark.parametrize(
    "mutate, message",
    [
        (lambda d: d[:63], "invalid header"),
        (lambda d: b"\x7eELF" + d[4:], "invalid header"),
        (lambda d: b"\x7fELG" + d[4:], "invalid header"),
        (lambda d: d[:4] + b"\x01" + d[5:], "currently unsupported on 32 bit systems"),
        (lambda d: d[:4] + b"\x07" + d[5:], "invalid elf class 07"),
        (lambda d: d[:7] + b"\x09" + d[8:], "unsupported abi 09"),
    ],
)
def test_rejected_headers(build_elf, mutate, message):
    sink = OutputSink()
    assert parse_header(mutate(build_elf()), sink) is None
    assert sink.lines() == [message]


def test_unsupported_machine(build_elf):
    sink = OutputSink()
    assert parse_header(build_elf(machine=0x3E), sink) is None
    assert sink.lines() == ["unsupported instruction set 003E"]


def test_empty_input():
    sink = OutputSink()
    assert open_elf(b"", sink) is None
    assert sink.lines() == ["invalid header"]


def test_rejection_without_sink(build_elf):
    assert parse_header(build_elf(machine=0x28)) is None


def test_classmethod_alias(build_elf):
    assert ElfHeader.parse(build_elf()) == parse_header(build_elf())


def test_summary(build_elf):
    summary = parse_header(build_elf()).summary()
    dumped = summary.model_dump(mode="json")
    assert dumped["word_size"] == 64
    assert dumped["endianness"] == "little"
    assert dumped["abi"] == "system_v"
    assert dumped["instruction_set"] == "aarch64"
    assert dumped["section_header_entry_count"] == 3


def test_disassembly_of_minimal_file(build_elf, words):
    header = parse_header(build_elf(words(0x910043FF)))
    sink = OutputSink()
    assert header.dump_disassembly(sink) == 1
    assert sink.lines() == [
        "0              0x910043FF          add sp, sp, #16"
    ]


def test_no_text_section_writes_nothing(build_elf, words):
    header = parse_header(build_elf(words(0x910043FF), text_name=b".data"))
    sink = OutputSink()
    assert header.find_code_section() is None
    assert header.dump_disassembly(sink) == 0
    assert sink.getvalue() == ""


def test_named_section(build_elf, words):
    header = parse_header(build_elf(words(0x91048C20), text_name=b".init"))
    sink = OutputSink()
    assert header.dump_disassembly(sink, ".init") == 1
    assert sink.lines()[0].endswith("add x0, x1, #291")
