"""Line-oriented Markdown block parser.

The parser is a small state machine over the document lines. Code fences and
tables are the only multi-line constructs; everything else is classified one
line at a time. Parsing is total: malformed input degrades to ErrorBlock or
literal paragraph text, it never raises.
"""

import re
from typing import Literal, cast

from loguru import logger

from mdview.markdown.inline import format_inline
from mdview.markdown.models import (
    Block,
    CodeBlock,
    Document,
    ErrorBlock,
    HeadingBlock,
    ImageBlock,
    ListItemBlock,
    ParagraphBlock,
)
from mdview.markdown.tables import assemble_table, is_separator_line

_FENCE = "```"
_HEADING = re.compile(r"^(#{1,6}) (.*)$")
_UNORDERED_ITEM = re.compile(r"^\s*[-*+]\s+(.*)$")
_ORDERED_ITEM = re.compile(r"^\s*(\d+\.)\s+(.*)$")
_IMAGE = re.compile(r"!\[(.*?)\]\((.*?)\)")


class BlockParser:
    """Groups document lines into blocks. One instance per parse call."""

    def __init__(self) -> None:
        self._blocks: list[Block] = []
        self._in_code_block = False
        self._code_language: str | None = None
        self._code_lines: list[str] = []
        self._in_table = False
        self._table_lines: list[str] = []

    def parse(self, text: str) -> Document:
        lines = text.split("\n")
        for idx, line in enumerate(lines):
            next_line = lines[idx + 1] if idx + 1 < len(lines) else None
            self._consume(line, next_line)
        self._finish()
        return Document(blocks=tuple(self._blocks))

    def _consume(self, line: str, next_line: str | None) -> None:
        stripped = line.strip()

        if stripped.startswith(_FENCE):
            self._toggle_code_block(stripped)
            return

        if self._in_code_block:
            self._code_lines.append(line)
            return

        if not stripped:
            self._flush_table()
            return

        if "|" in line:
            if self._in_table:
                self._table_lines.append(line)
                return
            # A pipe line only opens a table when the next line confirms it
            if next_line is not None and is_separator_line(next_line):
                self._in_table = True
                self._table_lines.append(line)
                return
        elif self._in_table:
            self._flush_table()

        self._blocks.append(self._classify(line))

    def _classify(self, line: str) -> Block:
        if match := _HEADING.match(line):
            level = cast(Literal[1, 2, 3, 4, 5, 6], len(match.group(1)))
            return HeadingBlock(level=level, text=format_inline(match.group(2).strip()))

        if match := _UNORDERED_ITEM.match(line):
            return ListItemBlock(ordered=False, text=format_inline(match.group(1)))

        if match := _ORDERED_ITEM.match(line):
            return ListItemBlock(ordered=True, marker=match.group(1), text=format_inline(match.group(2)))

        if line.startswith("!["):
            return self._image(line)

        return ParagraphBlock(text=format_inline(line))

    def _image(self, line: str) -> Block:
        match = _IMAGE.search(line)
        if not match:
            logger.debug(f"Invalid image syntax: {line!r}")
            return ErrorBlock(message="Invalid image syntax")
        return ImageBlock(alt_text=match.group(1), url=match.group(2).strip())

    def _toggle_code_block(self, fence_line: str) -> None:
        if self._in_code_block:
            self._flush_code_block()
            return
        self._flush_table()
        self._in_code_block = True
        self._code_language = fence_line[len(_FENCE) :].strip() or None

    def _flush_code_block(self) -> None:
        raw_text = "".join(f"{line}\n" for line in self._code_lines)
        self._blocks.append(CodeBlock(raw_text=raw_text, language=self._code_language))
        self._code_lines = []
        self._code_language = None
        self._in_code_block = False

    def _flush_table(self) -> None:
        if self._in_table and self._table_lines:
            self._blocks.append(assemble_table(self._table_lines))
        self._table_lines = []
        self._in_table = False

    def _finish(self) -> None:
        """Flush constructs left open at end of input."""
        self._flush_table()
        if self._in_code_block:
            if self._code_lines:
                logger.debug("Unterminated code fence at end of document, flushing content")
                self._flush_code_block()
            else:
                self._in_code_block = False


def parse_markdown(text: str) -> Document:
    """Parse Markdown text into a Document.

    Args:
        text: Document text, lines separated by "\\n"

    Returns:
        Document with zero or more blocks
    """
    return BlockParser().parse(text)
