"""Terminal renderer built on rich."""

from rich import box
from rich.console import RenderableType
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text

from mdview.markdown.models import (
    Alignment,
    CodeBlock,
    ErrorBlock,
    HeadingBlock,
    ImageBlock,
    InlineStyle,
    ListItemBlock,
    ParagraphBlock,
    StyledText,
    TableBlock,
)
from mdview.markdown.renderer import Renderer

_HEADING_COLORS = {1: "bright_cyan", 2: "cyan", 3: "blue"}


def styled_text_to_rich(text: StyledText, base: Style | None = None) -> Text:
    result = Text(style=base or "")
    for span in text.spans:
        style = Style(
            bold=InlineStyle.BOLD in span.styles or None,
            italic=InlineStyle.ITALIC in span.styles or None,
            strike=InlineStyle.STRIKETHROUGH in span.styles or None,
            underline=InlineStyle.LINK in span.styles or None,
            link=span.href,
        )
        result.append(span.content, style=style)
    return result


class ConsoleRenderer(Renderer[RenderableType]):
    def render_heading(self, block: HeadingBlock) -> RenderableType:
        color = _HEADING_COLORS.get(block.level, "white")
        return styled_text_to_rich(block.text, Style(bold=True, color=color))

    def render_paragraph(self, block: ParagraphBlock) -> RenderableType:
        return styled_text_to_rich(block.text)

    def render_list_item(self, block: ListItemBlock) -> RenderableType:
        marker = block.marker if block.ordered and block.marker else "•"
        return Text.assemble("  ", (marker, "bold"), " ", styled_text_to_rich(block.text))

    def render_code(self, block: CodeBlock) -> RenderableType:
        return Panel(
            Text(block.raw_text.rstrip("\n"), style="white"),
            title=Text(block.language) if block.language else None,
            title_align="left",
            box=box.SQUARE,
            style="on grey11",
        )

    def render_table(self, block: TableBlock) -> RenderableType:
        table = Table(box=box.ROUNDED, header_style="bold")
        for header, alignment in zip(block.header, block.alignments, strict=True):
            table.add_column(Text(header), justify="right" if alignment == Alignment.END else "left")
        for row in block.rows:
            # Cells are document text, never rich markup
            table.add_row(*(Text(cell) for cell in row))
        return table

    def render_image(self, block: ImageBlock) -> RenderableType:
        label = block.alt_text or block.url
        return Text(f"[image: {label}]", style=Style(color="magenta", link=block.url))

    def render_error(self, block: ErrorBlock) -> RenderableType:
        return Text(f"[Error: {block.message}]", style="bold red")
