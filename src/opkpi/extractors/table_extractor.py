# src/opkpi/extractors/table_extractor.py
from __future__ import annotations

import logging
from typing import List

from opkpi.core.types import Table

logger = logging.getLogger(__name__)


# ============================================================
# Helpers
# ============================================================

def _is_delimited(line: str) -> bool:
    return "\t" in line or "|" in line


def _parse_table(lines: List[str], context: str) -> Table:
    """
    First line is the header row. Tab wins over pipe when the header has one.
    """
    separator = "\t" if "\t" in lines[0] else "|"
    headers = [h.strip() for h in lines[0].split(separator)]
    rows = [[cell.strip() for cell in ln.split(separator)] for ln in lines[1:]]
    return Table(headers=headers, rows=rows, context=context)


# ============================================================
# Public API
# ============================================================

def extract_tables(text: str) -> List[Table]:
    """
    Collect runs of tab/pipe-delimited lines into tables.

    A run needs at least two lines (header + one row); shorter runs are
    dropped. `context` is the last non-blank plain line before the run.
    """
    tables: List[Table] = []
    buffer: List[str] = []
    context = ""
    buffer_context = ""

    def flush() -> None:
        if len(buffer) >= 2:
            tables.append(_parse_table(buffer, buffer_context))

    for line in text.split("\n"):
        if _is_delimited(line):
            if not buffer:
                buffer_context = context
            buffer.append(line)
            continue

        if buffer:
            flush()
            buffer = []

        if line.strip():
            context = line.strip()

    # trailing run at EOF
    flush()

    logger.debug("tables: %d found", len(tables))
    return tables
