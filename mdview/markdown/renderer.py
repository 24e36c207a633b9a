"""Pluggable rendering of a Document into target widgets.

A Renderer maps every block type to one widget of type T. The parser never
depends on a renderer; hosts pick one (HTML here, rich console in mdview.console).
"""

import abc
from typing import Generic, TypeVar

from markdown_it.common.utils import escapeHtml

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

T = TypeVar("T")


class Renderer(abc.ABC, Generic[T]):
    """Maps each block of a Document to a target widget."""

    def render(self, document: Document) -> list[T]:
        return [self.render_block(block) for block in document.blocks]

    def render_block(self, block: Block) -> T:
        handlers = {
            "heading": self.render_heading,
            "paragraph": self.render_paragraph,
            "list_item": self.render_list_item,
            "code": self.render_code,
            "table": self.render_table,
            "image": self.render_image,
            "error": self.render_error,
        }
        return handlers[block.type](block)  # ty: ignore[invalid-argument-type]

    @abc.abstractmethod
    def render_heading(self, block: HeadingBlock) -> T: ...

    @abc.abstractmethod
    def render_paragraph(self, block: ParagraphBlock) -> T: ...

    @abc.abstractmethod
    def render_list_item(self, block: ListItemBlock) -> T: ...

    @abc.abstractmethod
    def render_code(self, block: CodeBlock) -> T: ...

    @abc.abstractmethod
    def render_table(self, block: TableBlock) -> T: ...

    @abc.abstractmethod
    def render_image(self, block: ImageBlock) -> T: ...

    @abc.abstractmethod
    def render_error(self, block: ErrorBlock) -> T: ...


class HtmlRenderer(Renderer[str]):
    """Renders blocks as HTML fragments. All document text is escaped."""

    def render_document(self, document: Document) -> str:
        return "\n".join(self.render(document))

    def render_styled_text(self, text: StyledText) -> str:
        return "".join(self._render_span(span) for span in text.spans)

    def _render_span(self, span: Span) -> str:
        html = escapeHtml(span.content)
        if InlineStyle.STRIKETHROUGH in span.styles:
            html = f"<s>{html}</s>"
        if InlineStyle.ITALIC in span.styles:
            html = f"<em>{html}</em>"
        if InlineStyle.BOLD in span.styles:
            html = f"<strong>{html}</strong>"
        if InlineStyle.LINK in span.styles and span.href is not None:
            html = f'<a href="{escapeHtml(span.href)}">{html}</a>'
        return html

    def render_heading(self, block: HeadingBlock) -> str:
        return f"<h{block.level}>{self.render_styled_text(block.text)}</h{block.level}>"

    def render_paragraph(self, block: ParagraphBlock) -> str:
        return f"<p>{self.render_styled_text(block.text)}</p>"

    def render_list_item(self, block: ListItemBlock) -> str:
        marker = escapeHtml(block.marker) if block.ordered and block.marker else "&bull;"
        return f'<p class="list-item">{marker} {self.render_styled_text(block.text)}</p>'

    def render_code(self, block: CodeBlock) -> str:
        lang_attr = f' class="language-{escapeHtml(block.language)}"' if block.language else ""
        return f"<pre><code{lang_attr}>{escapeHtml(block.raw_text)}</code></pre>"

    def render_table(self, block: TableBlock) -> str:
        def cells(row: tuple[str, ...], tag: str) -> str:
            parts = []
            for text, alignment in zip(row, block.alignments, strict=False):
                align = "right" if alignment == Alignment.END else "left"
                parts.append(f'<{tag} style="text-align: {align}">{escapeHtml(text)}</{tag}>')
            return "<tr>" + "".join(parts) + "</tr>"

        body = "".join(cells(row, "td") for row in block.rows)
        return f"<table><thead>{cells(block.header, 'th')}</thead><tbody>{body}</tbody></table>"

    def render_image(self, block: ImageBlock) -> str:
        return f'<img src="{escapeHtml(block.url)}" alt="{escapeHtml(block.alt_text)}" />'

    def render_error(self, block: ErrorBlock) -> str:
        return f'<p class="error" style="color: red">[Error: {escapeHtml(block.message)}]</p>'
