"""
ElfLens Session
================

A :class:`Session` owns one file loaded into memory together with the
configuration, logger and output sink every operation on it shares.  It is
the single entry point used by the CLI:

    1. Read the file (size-checked against ``disasm.max_file_size``)
    2. Validate the ELF64 header
    3. Disassemble the code section
    4. Hex dump / byte search over the whole file

File and header problems are reported as diagnostic lines on the sink; a
corrupt section table is reported the same way and logged at ERROR.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from shared.config import LensConfig
from shared.logger import LensLogger

from elflens.core.errors import SectionTableError
from elflens.core.models import DecodedLine
from elflens.core.sink import OutputSink
from elflens.disasm.pipeline import DisassemblyPipeline
from elflens.output.hexview import HexView
from elflens.parsers.elf_header import ElfHeader, parse_header


class Session:
    """One loaded file and the services operating on it.

    Usage::

        sink = OutputSink()
        session = Session.open("a.out", sink=sink)
        if session is not None:
            session.disassemble()
        print(sink.getvalue())
    """

    def __init__(
        self,
        data: bytes,
        *,
        name: str = "<memory>",
        config: LensConfig | None = None,
        logger: LensLogger | None = None,
        sink: OutputSink | None = None,
    ) -> None:
        self._data = data
        self._name = name
        self._config: LensConfig = config or LensConfig()
        self._logger: LensLogger = logger or LensLogger(
            "session", console_output=False
        )
        self._sink: OutputSink = sink if sink is not None else OutputSink()
        self._header: Optional[ElfHeader] = None
        self._header_checked = False

    # ------------------------------------------------------------------ #
    #  Construction
    # ------------------------------------------------------------------ #

    @classmethod
    def open(
        cls,
        path: str | Path,
        *,
        config: LensConfig | None = None,
        logger: LensLogger | None = None,
        sink: OutputSink | None = None,
    ) -> Optional[Session]:
        """Read *path* into a new session.

        Writes ``failed to open file <name>``, ``failed to read file <name>``
        or ``file too large: ...`` to the sink and returns ``None`` when the
        file cannot be used.
        """
        config = config or LensConfig()
        logger = logger or LensLogger("session", console_output=False)
        sink = sink if sink is not None else OutputSink()
        name = str(path)

        try:
            handle = open(path, "rb")
        except OSError as exc:
            message = f"failed to open file {name}"
            sink.write_line(message)
            logger.error("%s: %s", message, exc)
            return None

        with handle:
            try:
                size = Path(path).stat().st_size
                max_size = config.disasm.max_file_size
                if size > max_size:
                    message = (
                        f"file too large: {name} is {size:,} bytes "
                        f"(max: {max_size:,} bytes)"
                    )
                    sink.write_line(message)
                    logger.error(message)
                    return None
                data = handle.read()
            except OSError as exc:
                message = f"failed to read file {name}"
                sink.write_line(message)
                logger.error("%s: %s", message, exc)
                return None

        logger.info("Loaded %s (%d bytes)", name, len(data))
        return cls(data, name=name, config=config, logger=logger, sink=sink)

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        *,
        name: str = "<memory>",
        config: LensConfig | None = None,
        sink: OutputSink | None = None,
    ) -> Session:
        return cls(bytes(data), name=name, config=config, sink=sink)

    # ------------------------------------------------------------------ #
    #  Properties
    # ------------------------------------------------------------------ #

    @property
    def name(self) -> str:
        return self._name

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def sink(self) -> OutputSink:
        return self._sink

    @property
    def config(self) -> LensConfig:
        return self._config

    # ------------------------------------------------------------------ #
    #  ELF operations
    # ------------------------------------------------------------------ #

    def elf_header(self) -> Optional[ElfHeader]:
        """Validate the header once; later calls reuse the result.

        Diagnostics are written to the sink on the first call only.
        """
        if not self._header_checked:
            with self._logger.operation("parse_header"):
                self._header = parse_header(self._data, self._sink, self._logger)
            self._header_checked = True
        return self._header

    def disassemble(self, section_name: str | None = None) -> int:
        """Write the listing of the code section to the sink.

        Returns:
            Number of instruction lines written, or ``-1`` if the header is
            invalid or the section table is corrupt (the diagnostic is on the
            sink).
        """
        header = self.elf_header()
        if header is None:
            return -1
        section_name = section_name or self._config.disasm.code_section
        pipeline = DisassemblyPipeline(logger=self._logger)
        with self._logger.operation("disassemble"), self._logger.timed(
            f"disassemble {section_name}"
        ):
            try:
                count = header.dump_disassembly(self._sink, section_name, pipeline)
            except SectionTableError as exc:
                self._sink.write_line(str(exc))
                self._logger.error("%s: %s", self._name, exc)
                return -1
        if count == 0 and header.find_code_section(section_name) is None:
            self._logger.warning("%s has no %s section", self._name, section_name)
        return count

    def listing(self, section_name: str | None = None) -> list[DecodedLine]:
        """Decoded lines of the code section, for reports.

        Raises:
            SectionTableError: If the section table is corrupt.
        """
        header = self.elf_header()
        if header is None:
            return []
        section_name = section_name or self._config.disasm.code_section
        table = header.section_table()
        section = table.find_code_section(section_name)
        if section is None:
            return []
        pipeline = DisassemblyPipeline(logger=self._logger)
        return list(pipeline.lines(table.code_bytes(section)))

    # ------------------------------------------------------------------ #
    #  Hex view
    # ------------------------------------------------------------------ #

    def hex_view(
        self,
        column_count: int | None = None,
        group_count: int | None = None,
        use_color: bool | None = None,
    ) -> HexView:
        """A :class:`HexView` over the file, defaults from ``[hexview]``."""
        settings = self._config.hexview
        return HexView(
            self._data,
            column_count=column_count or settings.column_count,
            group_count=group_count or settings.group_count,
            use_color=settings.use_color if use_color is None else use_color,
        )

    def dump_hex(self) -> int:
        """Write the hex dump of the whole file to the sink."""
        return self.hex_view().dump(self._sink)

    def list_occurrences(self, needle: bytes) -> int:
        """Write the rows around each occurrence of *needle* to the sink."""
        count = self.hex_view().list_occurrences(needle, self._sink)
        self._logger.info("%d occurrence(s) of %r in %s", count, needle, self._name)
        return count

    def list_occurrences_string(self, text: str) -> int:
        return self.list_occurrences(text.encode("utf-8"))
