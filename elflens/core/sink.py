"""
Text Output Sink
=================

The single text destination shared by header parsing, disassembly and the
hex view.  Callers pass a sink explicitly; each append holds the sink's lock
for the duration of the write only.
"""

from __future__ import annotations

import threading


class OutputSink:
    """Thread-safe, append-only text buffer.

    Usage::

        sink = OutputSink()
        header = open_elf(data, sink)
        if header is None:
            print(sink.getvalue())
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._chunks: list[str] = []

    def write(self, text: str) -> None:
        """Append *text* as-is."""
        with self._lock:
            self._chunks.append(text)

    def write_line(self, line: str = "") -> None:
        """Append *line* followed by a newline."""
        self.write(line + "\n")

    def getvalue(self) -> str:
        with self._lock:
            return "".join(self._chunks)

    def lines(self) -> list[str]:
        """Return the buffered text split into lines (without newlines)."""
        return self.getvalue().splitlines()

    def clear(self) -> None:
        with self._lock:
            self._chunks.clear()
