import json

import pytest
from click.testing import CliRunner

from elflens.cli import cli


@pytest.fixture
def run(quiet_config):
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(cli, ["--config", str(quiet_config), *map(str, args)], obj={})
    return invoke


def test_disasm(run, elf_file, words):
    result = run("disasm", elf_file(words(0x910043FF, 0xD2A00020)))
    assert result.exit_code == 0, result.output
    assert "0x910043FF          add sp, sp, #16" in result.output
    assert "movz x0, #1, lsl #16" in result.output


def test_disasm_invalid_header(run, tmp_path):
    path = tmp_path / "bad.bin"
    path.write_bytes(b"\x00" * 80)
    result = run("disasm", path)
    assert result.exit_code == 1
    assert "invalid header" in result.output


def test_disasm_missing_file(run, tmp_path):
    result = run("disasm", tmp_path / "missing.o")
    assert result.exit_code == 1
    assert "failed to open file" in result.output


def test_disasm_corrupt_table(run, tmp_path, build_elf, words):
    path = tmp_path / "corrupt.o"
    path.write_bytes(build_elf(words(0x910043FF))[:-40])
    result = run("disasm", path)
    assert result.exit_code == 1
    assert "truncated or corrupt section table" in result.output


def test_disasm_to_text_file(run, elf_file, words, tmp_path):
    out = tmp_path / "out" / "listing.txt"
    result = run("-o", out, "disasm", elf_file(words(0x91048C20)))
    assert result.exit_code == 0, result.output
    assert out.read_text(encoding="utf-8") == (
        "0              0x91048C20          add x0, x1, #291\n"
    )


def test_disasm_json_report(run, elf_file, words, tmp_path):
    out = tmp_path / "listing.json"
    path = elf_file(words(0x910043FF, 0x00000000))
    result = run("-o", out, "disasm", path, "--json")
    assert result.exit_code == 0, result.output

    report = json.loads(out.read_text(encoding="utf-8"))
    assert report["report_type"] == "elflens_disassembly"
    assert report["source"] == str(path)
    assert report["header"]["instruction_set"] == "aarch64"
    assert report["instructions"] == [
        {"index": 0, "word": "0x910043FF", "text": "add sp, sp, #16"},
        {"index": 1, "word": "0x00000000", "text": "reserved"},
    ]


def test_header(run, elf_file):
    result = run("header", elf_file(osabi=0x03))
    assert result.exit_code == 0, result.output
    assert "AARCH64" in result.output
    assert "Linux" in result.output
    assert ".shstrtab" in result.output


def test_header_names_are_not_markup(run, elf_file, words):
    path = elf_file(words(0x910043FF), name="[bold]sample.o", text_name=b"[/x]")
    result = run("header", path)
    assert result.exit_code == 0, result.output
    assert "[/x]" in result.output


def test_disasm_section_name_is_not_markup(run, elf_file, words):
    path = elf_file(words(0x910043FF), text_name=b"[/x]")
    result = run("disasm", path, "--section", "[/x]")
    assert result.exit_code == 0, result.output
    assert "Disassembly of [/x]" in result.output
    assert "add sp, sp, #16" in result.output


def test_header_rejected(run, elf_file):
    result = run("header", elf_file(elf_class=1))
    assert result.exit_code == 1
    assert "currently unsupported on 32 bit systems" in result.output


def test_hexdump(run, elf_file):
    result = run("--no-color", "hexdump", elf_file(), "--columns", 8, "--group", 4)
    assert result.exit_code == 0, result.output
    assert "00000000 7F454C46 02010100  .ELF...." in result.output


def test_search_string(run, elf_file):
    result = run("search", elf_file(), ".shstrtab")
    assert result.exit_code == 0, result.output
    assert "1 occurrence(s) found" in result.output


def test_search_hex(run, elf_file):
    result = run("search", elf_file(), "7f454c46", "--hex")
    assert result.exit_code == 0, result.output
    assert "00000000 7F45 4C46" in result.output


def test_search_bad_hex(run, elf_file):
    result = run("search", elf_file(), "zz", "--hex")
    assert result.exit_code == 1
    assert "invalid hex byte string" in result.output


def test_edit_requires_output(run, elf_file):
    result = run("--edit", "disasm", elf_file())
    assert result.exit_code == 1
    assert "--edit requires --output" in result.output
