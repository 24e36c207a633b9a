"""Render a Markdown document in the terminal or as HTML.

Usage:
    python -m mdview README.md
    python -m mdview https://example.com/notes.md --images
    python -m mdview notes.md --html /tmp/notes.html
"""

import asyncio
from pathlib import Path

import tyro
from loguru import logger
from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from mdview.config import Settings
from mdview.console import ConsoleRenderer
from mdview.exceptions import DocumentLoadError, ImageError
from mdview.http import create_http_client, is_remote_source, load_document
from mdview.images.cache import ImageCache
from mdview.images.decode import DecodedImage
from mdview.images.resolver import ImageResolver
from mdview.logging_config import configure_logging
from mdview.markdown.models import Document, ImageBlock
from mdview.markdown.renderer import HtmlRenderer
from mdview.session import DocumentSession

ImageResult = tuple[ImageBlock, DecodedImage | None, ImageError | None]

_HTML_PAGE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{title}</title></head>
<body>
{body}
</body>
</html>
"""


def write_html(document: Document, path: Path, title: str) -> None:
    renderer = HtmlRenderer()
    path.write_text(_HTML_PAGE.format(title=title, body=renderer.render_document(document)), encoding="utf-8")


def print_image_results(results: list[ImageResult], console: Console) -> None:
    table = Table(title="Images", box=box.ROUNDED)
    table.add_column("URL", style="cyan", overflow="fold")
    table.add_column("Outcome")
    table.add_column("Decoded", justify="right")

    for block, image, error in results:
        if image is not None:
            size = f"{image.width}x{image.height} (1/{image.sample_size})"
            table.add_row(Text(block.url), Text("ok", style="green"), size)
        else:
            table.add_row(Text(block.url), Text(type(error).__name__, style="red"), "-")
    console.print(table)


async def run(
    source: str,
    settings: Settings,
    html: Path | None,
    images: bool,
    console: Console,
) -> int:
    cache = ImageCache.from_settings(settings)
    async with create_http_client(settings) as client:
        try:
            text = await load_document(source, settings, client)
        except DocumentLoadError as e:
            console.print(Text(f"Error loading {source}: {e}", style="red"))
            return 1

        base_url = source if is_remote_source(source) else None
        resolver = ImageResolver(cache, client, settings, base_url=base_url)
        session = DocumentSession(resolver, cache)
        document = session.open(text)

        if html is not None:
            write_html(document, html, title=Path(source).name or source)
            console.print(Text.assemble(f"Wrote {len(document)} blocks to ", (str(html), "cyan")))
        else:
            for renderable in ConsoleRenderer().render(document):
                console.print(renderable)

        if images and document.images:
            results: list[ImageResult] = []
            session.load_images(lambda block, image, error: results.append((block, image, error)))
            await session.wait()
            print_image_results(results, console)
            logger.info(f"Image cache holds {len(cache)} images, {cache.size} of {cache.capacity} bytes")

        session.close()
    return 0


def main(
    source: tyro.conf.Positional[str],
    html: Path | None = None,
    images: bool = False,
    log_level: str | None = None,
    log_file: Path | None = None,
) -> None:
    """Parse a Markdown document from a path or URL and display it.

    Args:
        source: Local path or http(s) URL of the Markdown document.
        html: Write an HTML page here instead of printing to the terminal.
        images: Resolve every image in the document and print a summary.
        log_level: Override the configured log level.
        log_file: Also write JSON logs to this file.
    """
    settings = Settings()
    configure_logging(log_level or settings.log_level, log_file)
    raise SystemExit(asyncio.run(run(source, settings, html, images, Console())))


def cli() -> None:
    tyro.cli(main)


if __name__ == "__main__":
    cli()
