"""HTTP utilities: shared client construction and Markdown document fetching."""

import io
from pathlib import Path

import httpx
from loguru import logger

from mdview.config import Settings
from mdview.exceptions import DocumentLoadError

_DRIVE_FILE_PREFIX = "https://drive.google.com/file/d/"
_DRIVE_DOWNLOAD_PREFIX = "https://drive.google.com/uc?export=download&id="


def create_http_client(settings: Settings, *, timeout: httpx.Timeout | None = None) -> httpx.AsyncClient:
    """Create the AsyncClient used for image and document fetches.

    Defaults to the image connect/read timeouts from settings.
    """
    if timeout is None:
        timeout = httpx.Timeout(
            settings.image_read_timeout_seconds,
            connect=settings.image_connect_timeout_seconds,
        )
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=timeout,
        headers={"User-Agent": settings.user_agent},
    )


def convert_google_drive_url(url: str) -> str:
    """Rewrite a Google Drive share link into its direct download URL."""
    if not url.startswith(_DRIVE_FILE_PREFIX):
        return url
    return url.replace(_DRIVE_FILE_PREFIX, _DRIVE_DOWNLOAD_PREFIX).split("/view")[0]


def is_remote_source(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def get_http_error_message(status_code: int) -> str:
    """Return a user-friendly error message for HTTP status codes."""
    messages = {
        401: "This document requires authentication",
        403: "Access to this document is forbidden",
        404: "Document not found - check the URL",
        408: "Request timed out - the website took too long to respond",
        410: "This document no longer exists",
        429: "Site is rate limiting requests - try again later",
        500: "The website is having internal issues - try again later",
        502: "The website's server is not responding - try again later",
        503: "The website is temporarily unavailable - try again later",
        504: "The website took too long to respond - try again later",
    }
    if status_code in messages:
        return messages[status_code]
    if 400 <= status_code < 500:
        return f"Website returned client error (HTTP {status_code})"
    if 500 <= status_code < 600:
        return f"Website returned server error (HTTP {status_code})"
    return f"URL returned unexpected status: HTTP {status_code}"


async def download_document(url: str, settings: Settings, client: httpx.AsyncClient | None = None) -> str:
    """Download a Markdown document from URL within size limits.

    Args:
        url: URL to download from, Google Drive share links are rewritten
        settings: timeouts, user agent and max download size
        client: optional client to reuse, one is created otherwise

    Returns:
        Document text

    Raises:
        DocumentLoadError: If download fails, the content is not text or the file is too large
    """
    url = convert_google_drive_url(url)
    max_size = settings.document_max_download_size
    owns_client = client is None
    if client is None:
        client = create_http_client(settings, timeout=httpx.Timeout(settings.document_timeout_seconds))

    try:
        async with client.stream("GET", url, timeout=settings.document_timeout_seconds) as response:
            if response.status_code != 200:
                raise DocumentLoadError(url, get_http_error_message(response.status_code))

            content_type = response.headers.get("content-type", "")
            if not content_type.startswith("text/"):
                raise DocumentLoadError(url, f"Not a text document (Content-Type: {content_type or 'missing'})")

            content = io.BytesIO()
            downloaded = 0
            async for chunk in response.aiter_bytes(chunk_size=8192):
                downloaded += len(chunk)
                if downloaded > max_size:
                    raise DocumentLoadError(
                        url, f"File too large: downloaded {downloaded} bytes exceeds maximum of {max_size} bytes"
                    )
                content.write(chunk)
            encoding = response.charset_encoding or "utf-8"
    except httpx.RequestError as e:
        raise DocumentLoadError(url, "Unable to reach URL - check it's correct and accessible") from e
    finally:
        if owns_client:
            await client.aclose()

    logger.info(f"Downloaded document {url} ({downloaded} bytes)")
    return content.getvalue().decode(encoding, errors="replace")


async def load_document(source: str, settings: Settings, client: httpx.AsyncClient | None = None) -> str:
    """Load Markdown text from a URL or a local path, with line endings normalized to "\\n"."""
    if is_remote_source(source):
        text = await download_document(source, settings, client)
    else:
        path = Path(source)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentLoadError(source, f"Error reading file: {e}") from e
    return text.replace("\r\n", "\n").replace("\r", "\n")
