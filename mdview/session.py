"""A viewing session: one displayed document and its pending image loads.

The session replaces the weak reference an image view would keep to its
target: every image callback checks that the document it was issued for is
still the one on screen before delivering a result. Replacing the document or
closing the session silently drops late results.
"""

import asyncio
from collections.abc import Callable

from loguru import logger

from mdview.exceptions import ImageError
from mdview.images.cache import ImageCache
from mdview.images.decode import DecodedImage
from mdview.images.resolver import ImageResolver
from mdview.markdown.inline import format_inline
from mdview.markdown.models import Document, ErrorBlock, HeadingBlock, ImageBlock
from mdview.markdown.parser import parse_markdown

ImageCallback = Callable[[ImageBlock, DecodedImage | None, ImageError | None], None]

EMPTY_DOCUMENT_MESSAGE = "Document is empty or failed to load"


def empty_document() -> Document:
    return Document(
        blocks=(
            HeadingBlock(level=1, text=format_inline("Error")),
            ErrorBlock(message=EMPTY_DOCUMENT_MESSAGE),
        )
    )


class DocumentSession:
    def __init__(self, resolver: ImageResolver, cache: ImageCache) -> None:
        self._resolver = resolver
        self._cache = cache
        self._generation = 0
        self._tasks: set[asyncio.Task[DecodedImage]] = set()
        self.document: Document | None = None
        self.closed = False

    def open(self, text: str | None) -> Document:
        """Parse `text` as the displayed document, replacing any previous one."""
        if self.closed:
            raise RuntimeError("Session is closed")
        self.cancel_pending()
        if text is None or not text.strip():
            logger.warning("Document is empty, showing error document")
            self.document = empty_document()
        else:
            self.document = parse_markdown(text)
        return self.document

    def update(self, text: str) -> Document:
        """Replace the displayed document with edited text."""
        return self.open(text)

    def load_images(self, on_result: ImageCallback) -> list[asyncio.Task[DecodedImage]]:
        """Start resolving every image of the current document.

        `on_result(block, image, error)` is called once per image with exactly one of
        image / error set, unless the document was replaced or the session closed
        before the image resolved.
        """
        if self.document is None:
            return []

        generation = self._generation
        tasks = []
        for block in self.document.images:
            task = self._resolver.submit(block.url)
            task.add_done_callback(lambda t, b=block: self._deliver(t, b, generation, on_result))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            tasks.append(task)
        return tasks

    def _deliver(
        self,
        task: asyncio.Task[DecodedImage],
        block: ImageBlock,
        generation: int,
        on_result: ImageCallback,
    ) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if generation != self._generation:
            logger.debug(f"Dropping late image result for {block.url}, document was replaced")
            return
        if error is None:
            on_result(block, task.result(), None)
        elif isinstance(error, ImageError):
            on_result(block, None, error)
        else:
            logger.opt(exception=error).error(f"Unexpected error resolving {block.url}")
            on_result(block, None, ImageError(block.url, message=str(error)))

    async def wait(self) -> None:
        """Wait for all pending image loads to settle."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def cancel_pending(self) -> None:
        """Invalidate the current document's image callbacks and cancel in-flight fetches."""
        self._generation += 1
        self._resolver.cancel_all()

    def close(self) -> None:
        """Cancel everything pending and drop all cached images."""
        if self.closed:
            return
        self.cancel_pending()
        self._cache.evict_all()
        self.document = None
        self.closed = True
