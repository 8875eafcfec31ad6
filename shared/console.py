"""
ElfLens Console Interface
==========================

Rich-powered console abstraction giving every ElfLens command the same
presentation: section rules, severity-coloured one-line messages, tables,
and plain text output that is never interpreted as Rich markup.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from typing import Any, Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

_LENS_THEME = Theme(
    {
        "lens.section": "bold bright_magenta",
        "lens.success": "bold green",
        "lens.warning": "bold yellow",
        "lens.error": "bold red",
        "lens.info": "bold bright_blue",
        "lens.dim": "dim white",
    }
)


class LensConsole:
    """Unified console interface for ElfLens commands.

    Usage::

        con = LensConsole()
        con.section("Disassembly of .text")
        con.plain(listing_text)
        con.success("Report written")
    """

    def __init__(
        self,
        *,
        quiet: bool = False,
        record: bool = False,
        no_color: bool = False,
        stderr: bool = False,
    ) -> None:
        """Initialise the console.

        Args:
            quiet:    Suppress all output (useful in library / test mode).
            record:   Enable Rich recording for later text export.
            no_color: Disable colour output entirely.
            stderr:   Write to stderr instead of stdout.
        """
        self._console = Console(
            theme=_LENS_THEME,
            quiet=quiet,
            record=record,
            highlight=False,
            no_color=no_color,
            stderr=stderr,
        )

    @property
    def rich(self) -> Console:
        """Direct access to the underlying Rich Console instance."""
        return self._console

    # ------------------------------------------------------------------ #
    #  Section header
    # ------------------------------------------------------------------ #

    def section(self, title: str) -> None:
        """Print a prominent section rule."""
        self._console.rule(
            Text(f"  {title}  "), style="lens.section", characters="─"
        )

    # ------------------------------------------------------------------ #
    #  Message helpers (severity-coloured)
    # ------------------------------------------------------------------ #

    def success(self, message: str) -> None:
        self._message("lens.success", "✔", "SUCCESS", message)

    def warning(self, message: str) -> None:
        self._message("lens.warning", "⚠", "WARNING", message)

    def error(self, message: str) -> None:
        self._message("lens.error", "✘", "ERROR", message)

    def info(self, message: str) -> None:
        self._message("lens.info", "ℹ", "INFO", message)

    def _message(self, style: str, glyph: str, label: str, message: str) -> None:
        line = Text()
        line.append(f"[{glyph}] {label}: ", style=style)
        line.append(message)
        self._console.print(line)

    # ------------------------------------------------------------------ #
    #  Table display
    # ------------------------------------------------------------------ #

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        *,
        caption: str | None = None,
        styles: Sequence[str] | None = None,
    ) -> None:
        """Render a styled Rich table.

        Args:
            title:    Table title.
            columns:  Column header labels.
            rows:     Iterable of row tuples.  :class:`~rich.text.Text` cells
                      are kept as-is; other cells are stringified and
                      parsed as markup.
            caption:  Optional footer caption.
            styles:   Optional per-column Rich style strings.
        """
        tbl = Table(
            title=title,
            caption=caption,
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            padding=(0, 1),
        )
        for idx, col_name in enumerate(columns):
            style = styles[idx] if styles and idx < len(styles) else ""
            tbl.add_column(col_name, style=style)

        for row in rows:
            tbl.add_row(
                *(cell if isinstance(cell, Text) else str(cell) for cell in row)
            )

        self._console.print(tbl)

    # ------------------------------------------------------------------ #
    #  Utility
    # ------------------------------------------------------------------ #

    def plain(self, text: str) -> None:
        """Print *text* verbatim: no markup, no highlighting, no wrapping."""
        self._console.print(
            Text(text), markup=False, highlight=False, soft_wrap=True
        )

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Proxy to :meth:`rich.console.Console.print`."""
        self._console.print(*args, **kwargs)

    def blank(self, count: int = 1) -> None:
        for _ in range(count):
            self._console.print()

    def export_text(self) -> str:
        """Export recorded console output as text (requires ``record=True``)."""
        return self._console.export_text()
