"""
ElfLens Report Generator
=========================

Writes listing output to files: the plain text exactly as printed, or a
structured JSON document holding the validated header and every decoded
instruction.

JSON layout::

    {
      "report_type": "elflens_disassembly",
      "version": "1.0.0",
      "generated_at": "2026-01-01T00:00:00+00:00",
      "source": "a.out",
      "header": { "word_size": 64, "endianness": "little", ... },
      "instructions": [
        { "index": 0, "word": "0x910043FF", "text": "add sp, sp, #16" }
      ]
    }
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from elflens import __version__
from elflens.core.models import DecodedLine, HeaderSummary

REPORT_TYPE: str = "elflens_disassembly"


class ListingReportGenerator:
    """Generate text and JSON reports from a disassembly listing.

    Usage::

        generator = ListingReportGenerator()
        generator.generate_text(sink.getvalue(), "listing.txt")
        generator.generate_json(header.summary(), lines, "listing.json")
    """

    def generate_text(self, text: str, output_path: str | Path) -> str:
        """Write *text* verbatim; returns the absolute path written."""
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return str(path.resolve())

    def build_json(
        self,
        header: HeaderSummary,
        lines: Sequence[DecodedLine],
        source: str = "",
    ) -> dict[str, Any]:
        """Assemble the JSON report document without writing it."""
        return {
            "report_type": REPORT_TYPE,
            "version": __version__,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "source": source,
            "header": header.model_dump(mode="json"),
            "instructions": [
                {
                    "index": line.index,
                    "word": f"0x{line.word:08X}",
                    "text": line.text,
                }
                for line in lines
            ],
        }

    def generate_json(
        self,
        header: HeaderSummary,
        lines: Sequence[DecodedLine],
        output_path: str | Path,
        source: str = "",
    ) -> str:
        """Write the JSON report for *lines*.

        Args:
            header: Summary of the validated ELF header.
            lines: Decoded listing lines.
            output_path: Destination file; parent directories are created.
            source: Name of the analysed file.

        Returns:
            The absolute path of the generated report.
        """
        report_data = self.build_json(header, lines, source)

        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(report_data, f, indent=2, ensure_ascii=False, default=str)

        return str(path.resolve())
