"""Markdown parsing into a flat, typed block document."""

from mdview.markdown.inline import format_inline
from mdview.markdown.models import (
    Alignment,
    Block,
    CodeBlock,
    Document,
    ErrorBlock,
    HeadingBlock,
    ImageBlock,
    InlineStyle,
    ListItemBlock,
    ParagraphBlock,
    Span,
    StyledText,
    TableBlock,
)
from mdview.markdown.parser import BlockParser, parse_markdown
from mdview.markdown.renderer import HtmlRenderer, Renderer
from mdview.markdown.tables import assemble_table

__all__ = [
    # Parser
    "parse_markdown",
    "BlockParser",
    "format_inline",
    "assemble_table",
    # Renderers
    "Renderer",
    "HtmlRenderer",
    # Models
    "Document",
    "Block",
    "HeadingBlock",
    "ParagraphBlock",
    "ListItemBlock",
    "CodeBlock",
    "TableBlock",
    "ImageBlock",
    "ErrorBlock",
    "StyledText",
    "Span",
    "InlineStyle",
    "Alignment",
]
