"""Inline span rewriting: bold, italic, strikethrough and links.

Each rule runs over the visible text left by the previous one, in a fixed order.
Delimiters are paired first-occurrence-with-next, removed from the visible text,
and the enclosed characters gain the rule's style. There is no recursive descent:
a pair is only accepted when its enclosed text does not partially overlap a span
captured by an earlier rule. Anything that cannot be paired stays literal.
"""

import re
from collections import Counter
from itertools import groupby

from mdview.markdown.models import InlineStyle, Span, StyledText

_DELIMITER_RULES: tuple[tuple[str, InlineStyle], ...] = (
    ("**", InlineStyle.BOLD),
    ("*", InlineStyle.ITALIC),
    ("~~", InlineStyle.STRIKETHROUGH),
)

_LINK_PATTERN = re.compile(r"\[(.*?)\]\((.*?)\)")


class _StyleBuffer:
    """Per-character working state while rules are applied to one line."""

    def __init__(self, text: str):
        self.chars = list(text)
        self.styles: list[set[InlineStyle]] = [set() for _ in text]
        self.hrefs: list[str | None] = [None] * len(text)
        # Ids of the captured spans each character belongs to
        self.regions: list[set[int]] = [set() for _ in text]
        self._region_counter = 0

    @property
    def text(self) -> str:
        return "".join(self.chars)

    def delete(self, start: int, end: int) -> None:
        del self.chars[start:end]
        del self.styles[start:end]
        del self.hrefs[start:end]
        del self.regions[start:end]

    def apply(self, start: int, end: int, style: InlineStyle, href: str | None = None) -> None:
        region = self._region_counter
        self._region_counter += 1
        for i in range(start, end):
            self.styles[i].add(style)
            self.regions[i].add(region)
            if href is not None:
                self.hrefs[i] = href

    def crosses_region(self, start: int, end: int) -> bool:
        """True if [start, end) partially overlaps an already captured span."""
        inside = Counter(region for regions in self.regions[start:end] for region in regions)
        for region, count in inside.items():
            if count == end - start:
                continue  # range lies entirely within this span
            total = sum(1 for regions in self.regions if region in regions)
            if count != total:
                return True
        return False

    def to_styled_text(self) -> StyledText:
        keyed = zip(self.chars, self.styles, self.hrefs, strict=True)
        spans = []
        for (styles, href), group in groupby(keyed, key=lambda item: (frozenset(item[1]), item[2])):
            spans.append(Span(content="".join(char for char, _, _ in group), styles=styles, href=href))
        return StyledText(spans=tuple(spans))


def _find_delimiter(text: str, delimiter: str, pos: int) -> int:
    """Index of the next `delimiter` at or after `pos`, or -1.

    A single-character delimiter never matches inside a longer run of itself, so
    the halves of an unmatched "**" are not taken for italics.
    """
    while (idx := text.find(delimiter, pos)) != -1:
        if len(delimiter) > 1:
            return idx
        run_end = idx
        while run_end < len(text) and text[run_end] == delimiter:
            run_end += 1
        if run_end - idx == 1 and (idx == 0 or text[idx - 1] != delimiter):
            return idx
        pos = run_end
    return -1


def _apply_delimiter(buffer: _StyleBuffer, delimiter: str, style: InlineStyle) -> None:
    size = len(delimiter)
    pos = 0
    while True:
        text = buffer.text
        start = _find_delimiter(text, delimiter, pos)
        if start == -1:
            return
        end = _find_delimiter(text, delimiter, start + size)
        if end == -1:
            return  # unmatched, left literal

        inner_start = start + size
        if end == inner_start or buffer.crosses_region(inner_start, end):
            pos = start + 1
            continue

        # Remove the closing delimiter first so the opening offsets stay valid
        buffer.delete(end, end + size)
        buffer.delete(start, start + size)
        buffer.apply(start, end - size, style)
        pos = end - size


def _apply_links(buffer: _StyleBuffer) -> None:
    pos = 0
    while match := _LINK_PATTERN.search(buffer.text, pos):
        label_start, label_end = match.span(1)
        if label_start == label_end or buffer.crosses_region(label_start, label_end):
            pos = match.start() + 1
            continue

        buffer.delete(label_end, match.end())  # "](url)"
        buffer.delete(match.start(), label_start)  # "["
        new_end = match.start() + (label_end - label_start)
        buffer.apply(match.start(), new_end, InlineStyle.LINK, href=match.group(2))
        pos = new_end


def format_inline(line: str) -> StyledText:
    """Rewrite a line into styled spans. Total: never raises."""
    if not line:
        return StyledText()

    buffer = _StyleBuffer(line)
    for delimiter, style in _DELIMITER_RULES:
        _apply_delimiter(buffer, delimiter, style)
    _apply_links(buffer)
    return buffer.to_styled_text()
