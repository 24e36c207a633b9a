import asyncio
import io
from collections.abc import Callable

import httpx
import pytest
import pytest_asyncio
from PIL import Image

from mdview.config import Settings
from mdview.images.cache import ImageCache
from mdview.images.decode import DecodedImage
from mdview.images.resolver import ImageResolver


def make_image_bytes(width: int, height: int, fmt: str = "PNG", mode: str = "RGB") -> bytes:
    color = (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)
    buf = io.BytesIO()
    Image.new(mode, (width, height), color).save(buf, format=fmt)
    return buf.getvalue()


def make_decoded(size: int) -> DecodedImage:
    """A DecodedImage whose pixel buffer is exactly `size` bytes."""
    return DecodedImage(width=size, height=1, mode="L", pixels=b"\x00" * size, source_width=size, source_height=1)


async def wait_until(predicate: Callable[[], bool], max_iterations: int = 200) -> None:
    for _ in range(max_iterations):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


class FakeImageServer:
    """httpx MockTransport handler serving canned responses by URL path.

    While `gate` is set to an unset Event, every request blocks on it, which keeps
    fetches in flight for de-duplication and cancellation tests.
    """

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, str, bytes]] = {}
        self.requests: list[str] = []
        self.gate: asyncio.Event | None = None
        self.error: Exception | None = None

    def add(self, path: str, body: bytes, *, status: int = 200, content_type: str = "image/png") -> None:
        self.routes[path] = (status, content_type, body)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(str(request.url))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        status, content_type, body = self.routes.get(request.url.path, (404, "text/plain", b"not found"))
        return httpx.Response(status, headers={"content-type": content_type}, content=body)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        target_width=32,
        target_height=32,
        memory_budget_bytes=8 * 1024 * 1024,
        image_cache_fraction=0.125,
    )


@pytest.fixture
def image_server() -> FakeImageServer:
    server = FakeImageServer()
    server.add("/small.png", make_image_bytes(16, 16))
    server.add("/large.png", make_image_bytes(256, 256))
    server.add("/photo.jpg", make_image_bytes(512, 384, fmt="JPEG"), content_type="image/jpeg")
    return server


@pytest_asyncio.fixture
async def http_client(image_server):
    async with httpx.AsyncClient(transport=httpx.MockTransport(image_server)) as client:
        yield client


@pytest.fixture
def image_cache(settings) -> ImageCache:
    return ImageCache.from_settings(settings)


@pytest.fixture
def resolver(image_cache, http_client, settings) -> ImageResolver:
    return ImageResolver(image_cache, http_client, settings)
