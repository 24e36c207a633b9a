"""Asynchronous image resolution with caching, de-duplication and cancellation.

Each distinct normalized URL has at most one fetch in flight. Later requesters
attach to it and receive the same outcome. Waiters await the fetch through
asyncio.shield, so a caller abandoning its own request never cancels a fetch
others still wait on; the fetch is only cancelled when its last waiter leaves or
cancel_all() is called.
"""

import asyncio
import io
import time
from dataclasses import dataclass, field

import httpx
from loguru import logger

from mdview.config import Settings
from mdview.exceptions import FetchFailedError, ImageCancelledError, UnsupportedFormatError
from mdview.images.cache import ImageCache
from mdview.images.decode import DecodedImage, ImageDecodeError, decode_image
from mdview.images.urls import is_supported_image_url, normalize_image_url


@dataclass
class _InFlightFetch:
    key: str
    task: asyncio.Task[DecodedImage] | None = None
    waiters: int = 0
    cancelled: bool = False
    started: float = field(default_factory=time.monotonic)


class ImageResolver:
    """Resolves image URLs into decoded, display-scaled images."""

    def __init__(
        self,
        cache: ImageCache,
        client: httpx.AsyncClient,
        settings: Settings,
        *,
        base_url: str | None = None,
    ) -> None:
        self._cache = cache
        self._client = client
        self._target_width = settings.target_width
        self._target_height = settings.target_height
        self._max_download_size = settings.image_max_download_size
        self.base_url = base_url
        self._inflight: dict[str, _InFlightFetch] = {}
        # Bumped by cancel_all so submitted requests that have not started yet are dropped too
        self._generation = 0

    @property
    def pending(self) -> int:
        """Number of fetches currently in flight."""
        return len(self._inflight)

    def submit(self, url: str) -> asyncio.Task[DecodedImage]:
        """Start resolving `url` and return the pending handle immediately."""
        return asyncio.create_task(self._resolve_submitted(url, self._generation))

    async def _resolve_submitted(self, url: str, generation: int) -> DecodedImage:
        if generation != self._generation:
            raise ImageCancelledError(normalize_image_url(url, self.base_url))
        return await self.resolve(url)

    async def resolve(self, url: str) -> DecodedImage:
        """Resolve `url` to a decoded image.

        Raises:
            UnsupportedFormatError: extension not in the allow-list, no network activity
            FetchFailedError: network error, bad status or content type, decode failure
            ImageCancelledError: the fetch was cancelled before completion
        """
        key = normalize_image_url(url, self.base_url)
        if not is_supported_image_url(key):
            raise UnsupportedFormatError(key)

        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"Image cache hit for {key}")
            return cached

        fetch = self._inflight.get(key)
        if fetch is None:
            fetch = _InFlightFetch(key=key)
            fetch.task = asyncio.create_task(self._fetch(fetch))
            fetch.task.add_done_callback(lambda _, f=fetch: self._finish(f))
            self._inflight[key] = fetch
        else:
            logger.debug(f"Attaching to in-flight fetch for {key}")

        assert fetch.task is not None
        fetch.waiters += 1
        try:
            return await asyncio.shield(fetch.task)
        except asyncio.CancelledError:
            if fetch.cancelled:
                raise ImageCancelledError(key) from None
            raise  # the caller itself was cancelled
        finally:
            fetch.waiters -= 1
            if fetch.waiters == 0 and not fetch.task.done():
                logger.debug(f"No waiters left for {key}, cancelling fetch")
                self._cancel(fetch)

    def cancel_all(self) -> int:
        """Cancel every in-flight fetch. Results of cancelled fetches are discarded.

        Idempotent. Returns the number of fetches cancelled.
        """
        self._generation += 1
        fetches = list(self._inflight.values())
        self._inflight.clear()
        for fetch in fetches:
            self._cancel(fetch)
        if fetches:
            logger.info(f"Cancelled {len(fetches)} pending image fetches")
        return len(fetches)

    def _cancel(self, fetch: _InFlightFetch) -> None:
        fetch.cancelled = True
        if fetch.task is not None:
            fetch.task.cancel()
        if self._inflight.get(fetch.key) is fetch:
            del self._inflight[fetch.key]

    def _finish(self, fetch: _InFlightFetch) -> None:
        if self._inflight.get(fetch.key) is fetch:
            del self._inflight[fetch.key]
        assert fetch.task is not None
        duration_ms = int((time.monotonic() - fetch.started) * 1000)
        if fetch.task.cancelled():
            logger.debug(f"Image fetch cancelled: {fetch.key} after {duration_ms}ms")
        elif (exc := fetch.task.exception()) is not None:
            logger.warning(f"{exc} ({duration_ms}ms)")
        else:
            logger.debug(f"Image fetched: {fetch.key} in {duration_ms}ms")

    async def _fetch(self, fetch: _InFlightFetch) -> DecodedImage:
        key = fetch.key
        data = await self._download(key)
        try:
            image = await asyncio.to_thread(decode_image, data, self._target_width, self._target_height)
        except ImageDecodeError as e:
            raise FetchFailedError(key, str(e)) from e

        if fetch.cancelled:
            raise asyncio.CancelledError
        self._cache.put(key, image)
        return image

    async def _download(self, key: str) -> bytes:
        try:
            async with self._client.stream("GET", key) as response:
                if response.status_code != 200:
                    raise FetchFailedError(key, f"HTTP {response.status_code}")

                content_type = response.headers.get("content-type", "")
                if not content_type.startswith("image/"):
                    raise FetchFailedError(key, f"invalid content type {content_type or 'missing'!r}")

                content = io.BytesIO()
                downloaded = 0
                async for chunk in response.aiter_bytes(chunk_size=8192):
                    downloaded += len(chunk)
                    if downloaded > self._max_download_size:
                        raise FetchFailedError(
                            key, f"downloaded {downloaded} bytes exceeds maximum of {self._max_download_size} bytes"
                        )
                    content.write(chunk)
                return content.getvalue()
        except httpx.HTTPError as e:
            raise FetchFailedError(key, f"{type(e).__name__}: {e}") from e
