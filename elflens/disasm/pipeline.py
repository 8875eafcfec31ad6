"""
Disassembly Pipeline
=====================

Splits a code section into 4-byte words, decodes each one and writes the
fixed-width listing to an :class:`~elflens.core.sink.OutputSink`.

Listing line layout::

    0            0x910043FF          add sp, sp, #16
    ^index       ^word               ^text

A trailing partial word (fewer than four bytes) is dropped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator, Optional

from elflens.core.models import DecodedLine
from elflens.core.sink import OutputSink
from elflens.disasm.aarch64 import INSTRUCTION_SIZE, Aarch64Decoder
from elflens.disasm.formatter import render

if TYPE_CHECKING:
    from shared.logger import LensLogger


class DisassemblyPipeline:
    """Decode a byte buffer into listing lines.

    Args:
        decoder: Instruction decoder; a fresh :class:`Aarch64Decoder` by
            default.
        logger: Optional logger for progress messages.
    """

    def __init__(
        self,
        decoder: Optional[Aarch64Decoder] = None,
        logger: Optional[LensLogger] = None,
    ) -> None:
        self._decoder = decoder or Aarch64Decoder()
        self._logger = logger

    @property
    def decoder(self) -> Aarch64Decoder:
        return self._decoder

    def lines(self, code: bytes) -> Iterator[DecodedLine]:
        """Yield one :class:`DecodedLine` per complete word of *code*."""
        whole = len(code) - len(code) % INSTRUCTION_SIZE
        for index, start in enumerate(range(0, whole, INSTRUCTION_SIZE)):
            instruction = self._decoder.decode_bytes(
                code[start:start + INSTRUCTION_SIZE]
            )
            yield DecodedLine(
                index=index,
                word=instruction.word,
                text=render(instruction),
            )

    @staticmethod
    def format_line(line: DecodedLine) -> str:
        return line.render()

    def write(self, code: bytes, sink: OutputSink) -> int:
        """Write the listing of *code* to *sink*, one line per word.

        Returns:
            Number of lines written.
        """
        count = 0
        for line in self.lines(code):
            sink.write_line(self.format_line(line))
            count += 1
        if self._logger is not None:
            dropped = len(code) % INSTRUCTION_SIZE
            self._logger.debug(
                "Disassembled %d instructions (%d trailing bytes dropped)",
                count,
                dropped,
            )
        return count
