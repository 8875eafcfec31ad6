from elflens.core.session import Session
from elflens.core.sink import OutputSink
from shared.config import LensConfig


def test_open_and_disassemble(elf_file, words):
    path = elf_file(words(0x910043FF, 0xF94007E0))
    sink = OutputSink()
    session = Session.open(path, sink=sink)
    assert session is not None
    assert session.name == str(path)
    assert session.disassemble() == 2
    assert [line.split()[-1] for line in sink.lines()] == ["#16", "#8]"]


def test_missing_file(tmp_path):
    sink = OutputSink()
    missing = tmp_path / "nope.o"
    assert Session.open(missing, sink=sink) is None
    assert sink.lines() == [f"failed to open file {missing}"]


def test_directory_cannot_be_read(tmp_path):
    sink = OutputSink()
    assert Session.open(tmp_path, sink=sink) is None
    assert len(sink.lines()) == 1
    assert sink.lines()[0].startswith("failed to")


def test_file_too_large(elf_file):
    config = LensConfig()
    config.disasm.max_file_size = 16
    sink = OutputSink()
    assert Session.open(elf_file(), config=config, sink=sink) is None
    assert sink.lines()[0].startswith("file too large:")


def test_invalid_header():
    session = Session.from_bytes(b"not an elf")
    assert session.elf_header() is None
    assert session.disassemble() == -1
    assert session.sink.lines() == ["invalid header"]


def test_default_logger_is_quiet(capsys):
    Session.from_bytes(b"short").disassemble()
    assert capsys.readouterr().err == ""


def test_header_checked_once(build_elf):
    session = Session.from_bytes(build_elf(machine=0x3E))
    session.elf_header()
    session.elf_header()
    assert session.sink.lines() == ["unsupported instruction set 003E"]


def test_corrupt_table_is_reported(build_elf, words):
    data = build_elf(words(0x910043FF))
    session = Session.from_bytes(data[:-40])
    assert session.disassemble() == -1
    assert session.sink.lines()[0].startswith("truncated or corrupt section table:")


def test_custom_code_section(build_elf, words):
    config = LensConfig()
    config.disasm.code_section = ".init"
    session = Session.from_bytes(
        build_elf(words(0x00000000), text_name=b".init"), config=config
    )
    assert session.disassemble() == 1
    assert session.sink.lines()[0].endswith("reserved")


def test_no_code_section(build_elf, words):
    session = Session.from_bytes(build_elf(words(1), text_name=b".data"))
    assert session.disassemble() == 0
    assert session.sink.getvalue() == ""


def test_listing(build_elf, words):
    session = Session.from_bytes(build_elf(words(0x91048C20, 0x80000000)))
    lines = session.listing()
    assert [line.text for line in lines] == ["add x0, x1, #291", "sme not implemented"]


def test_dump_hex_and_search(build_elf):
    session = Session.from_bytes(build_elf(), config=LensConfig())
    rows = session.dump_hex()
    assert rows == len(session.data) // 16 + (1 if len(session.data) % 16 else 0)
    assert session.sink.lines()[0].startswith("00000000 7F45 4C46")

    session.sink.clear()
    assert session.list_occurrences_string(".shstrtab") == 1
    assert set(session.sink.lines()[0]) == {"-"}
    assert session.list_occurrences(b"\x7fELF") == 1


def test_hex_view_uses_config():
    config = LensConfig()
    config.hexview.column_count = 8
    config.hexview.group_count = 4
    config.hexview.use_color = False
    view = Session.from_bytes(b"\x00" * 9, config=config).hex_view()
    assert view.column_count == 8
    assert view.group_count == 4
    assert not view.use_color
    assert view.row_count == 2
