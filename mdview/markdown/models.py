"""Data models for the parsed document representation.

A Document is an ordered, immutable tuple of blocks. Prose blocks carry
StyledText: a flat run of spans, each holding its visible text and the set of
inline styles applied to it. Nothing here knows how it is displayed; renderers
map each block type to a concrete widget.
"""

from enum import StrEnum, auto
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

# === INLINE CONTENT ===


class InlineStyle(StrEnum):
    BOLD = auto()
    ITALIC = auto()
    STRIKETHROUGH = auto()
    LINK = auto()


class Span(BaseModel):
    """A contiguous run of text sharing one style set."""

    model_config = ConfigDict(frozen=True)

    content: str
    styles: frozenset[InlineStyle] = frozenset()
    href: str | None = None  # set iff LINK in styles


class StyledText(BaseModel):
    model_config = ConfigDict(frozen=True)

    spans: tuple[Span, ...] = ()

    @property
    def plain(self) -> str:
        """Visible text with all styling dropped."""
        return "".join(span.content for span in self.spans)

    def __str__(self) -> str:
        return self.plain


# === BLOCK TYPES ===


class Alignment(StrEnum):
    START = auto()
    END = auto()


Row = tuple[str, ...]


class HeadingBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["heading"] = "heading"
    level: Literal[1, 2, 3, 4, 5, 6]
    text: StyledText


class ParagraphBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["paragraph"] = "paragraph"
    text: StyledText


class ListItemBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["list_item"] = "list_item"
    ordered: bool
    marker: str | None = None  # "3." for ordered items, None for bullets
    text: StyledText


class CodeBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["code"] = "code"
    raw_text: str  # verbatim, never inline-formatted
    language: str | None = None


class TableBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["table"] = "table"
    header: Row
    alignments: tuple[Alignment, ...]
    rows: tuple[Row, ...] = ()


class ImageBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["image"] = "image"
    alt_text: str
    url: str  # as written in the document, normalized by the resolver


class ErrorBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["error"] = "error"
    message: str


Block = Annotated[
    HeadingBlock | ParagraphBlock | ListItemBlock | CodeBlock | TableBlock | ImageBlock | ErrorBlock,
    Field(discriminator="type"),
]


# === DOCUMENT ===


class Document(BaseModel):
    """The parsed representation of a Markdown document."""

    model_config = ConfigDict(frozen=True)

    blocks: tuple[Block, ...] = ()

    def __len__(self) -> int:
        return len(self.blocks)

    @property
    def images(self) -> list[ImageBlock]:
        return [block for block in self.blocks if isinstance(block, ImageBlock)]

    def to_markdown(self) -> str:
        """Reconstruct plain Markdown from headings, paragraphs and list items.

        Inline styling is dropped. Other block types are skipped.
        """
        lines: list[str] = []
        for block in self.blocks:
            if isinstance(block, HeadingBlock):
                lines.append(f"{'#' * block.level} {block.text.plain}")
            elif isinstance(block, ParagraphBlock):
                lines.append(block.text.plain)
            elif isinstance(block, ListItemBlock):
                lines.append(f"{block.marker if block.ordered else '-'} {block.text.plain}")
        return "\n".join(lines)
