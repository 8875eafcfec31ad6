"""
Hex View
=========

Classic offset / hex / ASCII dump of a byte buffer, plus a search that
shows the rows around every occurrence of a byte string.

Row layout (16 columns, groups of 2)::

    00000000 7F45 4C46 0201 0100 0000 0000 0000 0000  .ELF............

Bytes whose 1-based position in the row is a multiple of ``group_count``
are followed by a space.  With colour enabled, printable ASCII bytes are
green and other non-zero bytes red; zero bytes stay unstyled.

Rows are produced as :class:`rich.text.Text` so the console can print them
in colour, while the sink receives their plain text.
"""

from __future__ import annotations

from typing import Iterator

from rich.text import Text

from elflens.core.sink import OutputSink

OFFSET_WIDTH: int = 8

_PRINTABLE_STYLE = "green"
_NONZERO_STYLE = "red"
_SEPARATOR_STYLE = "magenta"


def _is_printable(byte: int) -> bool:
    """ASCII graphic characters, ``!`` through ``~``."""
    return 0x21 <= byte <= 0x7E


class HexView:
    """Hex dump and search over an in-memory file.

    Args:
        data: Bytes to display.
        column_count: Bytes per row.
        group_count: Bytes per space-separated group.
        use_color: Style bytes by class when ``True``.

    Raises:
        ValueError: If ``column_count`` or ``group_count`` is not positive.
    """

    def __init__(
        self,
        data: bytes,
        column_count: int = 16,
        group_count: int = 2,
        use_color: bool = True,
    ) -> None:
        if column_count <= 0 or group_count <= 0:
            raise ValueError(
                f"column_count and group_count must be positive "
                f"(got {column_count}, {group_count})"
            )
        self._data = data
        self.column_count = column_count
        self.group_count = group_count
        self.use_color = use_color

    @property
    def row_count(self) -> int:
        return -(-len(self._data) // self.column_count)

    # ------------------------------------------------------------------ #
    #  Row formatting
    # ------------------------------------------------------------------ #

    def _style(self, byte: int) -> str:
        if not self.use_color:
            return ""
        if _is_printable(byte):
            return _PRINTABLE_STYLE
        if byte:
            return _NONZERO_STYLE
        return ""

    def format_hex_line(self, chunk: bytes, row_index: int) -> Text:
        """Format one row: offset, grouped hex bytes, ASCII column."""
        line = Text(f"{row_index * self.column_count:0{OFFSET_WIDTH}X} ")
        for position, byte in enumerate(chunk, start=1):
            cell = f"{byte:02X}"
            if position % self.group_count == 0:
                cell += " "
            line.append(cell, style=self._style(byte))
        line.append(" ")
        for byte in chunk:
            char = chr(byte) if _is_printable(byte) else "."
            line.append(char, style=self._style(byte))
        return line

    def row(self, row_index: int) -> Text:
        start = row_index * self.column_count
        return self.format_hex_line(
            self._data[start:start + self.column_count], row_index
        )

    def rows(self) -> Iterator[Text]:
        """Yield every row of the buffer."""
        for row_index in range(self.row_count):
            yield self.row(row_index)

    def separator(self) -> Text:
        """Dashed rule as wide as a full row."""
        groups = self.column_count // self.group_count
        width = OFFSET_WIDTH + 1 + 2 * self.column_count + groups + 1 + self.column_count
        return Text(
            "-" * width, style=_SEPARATOR_STYLE if self.use_color else ""
        )

    def dump(self, sink: OutputSink) -> int:
        """Write every row to *sink*; returns the row count."""
        count = 0
        for line in self.rows():
            sink.write_line(line.plain)
            count += 1
        return count

    # ------------------------------------------------------------------ #
    #  Search
    # ------------------------------------------------------------------ #

    def find(self, needle: bytes) -> list[int]:
        """Offsets of every occurrence of *needle*, overlaps included.

        Raises:
            ValueError: If *needle* is empty.
        """
        if not needle:
            raise ValueError("search needle must not be empty")
        hits: list[int] = []
        start = self._data.find(needle)
        while start != -1:
            hits.append(start)
            start = self._data.find(needle, start + 1)
        return hits

    def occurrence_lines(self, needle: bytes) -> Iterator[Text]:
        """Yield a separator then the rows spanning each occurrence."""
        for offset in self.find(needle):
            yield self.separator()
            first = offset // self.column_count
            last = (offset + len(needle) - 1) // self.column_count
            for row_index in range(first, last + 1):
                yield self.row(row_index)

    def list_occurrences(self, needle: bytes, sink: OutputSink) -> int:
        """Write the rows around every occurrence of *needle* to *sink*.

        Returns:
            Number of occurrences found.
        """
        hits = len(self.find(needle))
        for line in self.occurrence_lines(needle):
            sink.write_line(line.plain)
        return hits

    def list_occurrences_string(self, text: str, sink: OutputSink) -> int:
        """:meth:`list_occurrences` for the UTF-8 encoding of *text*."""
        return self.list_occurrences(text.encode("utf-8"), sink)
