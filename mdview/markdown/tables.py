"""Pipe table assembly.

Rows are stored alignment-agnostic; alignment comes from the separator row and
lives on the TableBlock. Only START and END are distinguished: a trailing colon
means END, so a centered marker (":-:") collapses to END.
"""

import re
from collections.abc import Sequence

from mdview.markdown.models import Alignment, Row, TableBlock

_SEPARATOR_CELL = re.compile(r":?-+:?")


def split_table_row(line: str) -> Row:
    """Split a pipe-delimited line into trimmed cells, keeping empty ones."""
    stripped = line.strip()
    if stripped.startswith("|"):
        stripped = stripped[1:]
    if stripped.endswith("|"):
        stripped = stripped[:-1]
    return tuple(cell.strip() for cell in stripped.split("|"))


def is_separator_row(cells: Sequence[str]) -> bool:
    """True if every cell is an alignment marker like `---`, `:--`, `--:` or `:-:`."""
    return bool(cells) and all(_SEPARATOR_CELL.fullmatch(cell.strip()) for cell in cells)


def is_separator_line(line: str) -> bool:
    return "|" in line and is_separator_row(split_table_row(line))


def _alignment(marker: str) -> Alignment:
    return Alignment.END if marker.strip().endswith(":") else Alignment.START


def _fit(row: Row, width: int) -> Row:
    """Pad missing cells with "" and drop extra ones."""
    return row[:width] + ("",) * (width - len(row))


def assemble_table(lines: Sequence[str]) -> TableBlock:
    """Build a TableBlock from buffered pipe lines, header first.

    The second line, if it is a separator row, supplies alignment and is never
    emitted as data.
    """
    if not lines:
        raise ValueError("assemble_table needs at least one row")

    rows = [split_table_row(line) for line in lines]
    header = rows[0]
    width = len(header)

    alignments = [Alignment.START] * width
    body = rows[1:]
    if body and is_separator_row(body[0]):
        for i, marker in enumerate(body[0][:width]):
            alignments[i] = _alignment(marker)
        body = body[1:]

    return TableBlock(
        header=header,
        alignments=tuple(alignments),
        rows=tuple(_fit(row, width) for row in body),
    )
