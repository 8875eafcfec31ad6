"""
ElfLens Console Output
=======================

Rich terminal display for validated headers, section tables, disassembly
listings and hex views, built on the :class:`~shared.console.LensConsole`
abstraction.
"""

from __future__ import annotations

from typing import Iterable

from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from shared.console import LensConsole

from elflens.core.models import HeaderSummary
from elflens.parsers.section_table import SectionHeaderEntry

_ABI_LABELS: dict[str, str] = {
    "system_v": "UNIX - System V",
    "linux": "UNIX - Linux",
}


class LensConsoleOutput:
    """Terminal presentation of ElfLens results.

    Usage::

        output = LensConsoleOutput()
        output.display_header(header.summary(), source="a.out")
        output.display_listing(".text", sink.lines())
    """

    def __init__(self, console: LensConsole | None = None) -> None:
        self._console: LensConsole = console or LensConsole()

    @property
    def console(self) -> LensConsole:
        return self._console

    def display_header(self, summary: HeaderSummary, source: str = "") -> None:
        """Display the header fields in a panel."""
        lines: list[str] = []
        if source:
            lines.append(f"[bold]File:[/bold]                   {escape(source)}")
        lines.extend([
            f"[bold]Class:[/bold]                  ELF{summary.word_size.value}",
            f"[bold]Data:[/bold]                   {summary.endianness.value} endian",
            f"[bold]OS/ABI:[/bold]                 {_ABI_LABELS[summary.abi.value]}",
            f"[bold]Machine:[/bold]                {summary.instruction_set.value.upper()}",
            f"[bold]Section headers at:[/bold]     0x{summary.section_header_offset:X}",
            f"[bold]Section header size:[/bold]    {summary.section_header_entry_size} bytes",
            f"[bold]Number of sections:[/bold]     {summary.section_header_entry_count}",
            f"[bold]Section names index:[/bold]    {summary.section_header_names_index}",
        ])

        panel = Panel(
            "\n".join(lines),
            title="[bold bright_cyan]ELF Header[/bold bright_cyan]",
            border_style="bright_cyan",
            padding=(1, 2),
        )
        self._console.rich.print(panel)
        self._console.blank()

    def display_sections(self, entries: Iterable[SectionHeaderEntry]) -> None:
        rows = [
            (
                entry.index,
                Text(entry.name) if entry.name else "<unnamed>",
                f"0x{entry.offset:x}",
                f"{entry.size:,}",
                entry.flags_str,
            )
            for entry in entries
        ]
        self._console.table(
            "Sections",
            ["#", "Name", "Offset", "Size", "Flags"],
            rows,
            styles=["dim", "bold", "", "", "bright_yellow"],
        )
        self._console.blank()

    def display_listing(self, section_name: str, lines: Iterable[str]) -> None:
        """Print a section rule followed by the listing lines verbatim."""
        self._console.section(f"Disassembly of {section_name}")
        for line in lines:
            self._console.plain(line)

    def display_rows(self, rows: Iterable[Text]) -> None:
        """Print pre-styled hex view rows."""
        for row in rows:
            self._console.print(row, soft_wrap=True)
