import httpx
import pytest

from mdview.config import Settings
from mdview.exceptions import DocumentLoadError
from mdview.http import (
    convert_google_drive_url,
    create_http_client,
    download_document,
    get_http_error_message,
    is_remote_source,
    load_document,
)


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def text_response(body: str, *, status: int = 200, content_type: str = "text/markdown; charset=utf-8"):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, headers={"content-type": content_type}, content=body.encode())

    return handler


class TestGoogleDriveUrl:
    def test_share_link_converted(self):
        url = "https://drive.google.com/file/d/abc123/view?usp=sharing"
        assert convert_google_drive_url(url) == "https://drive.google.com/uc?export=download&id=abc123"

    def test_other_urls_unchanged(self):
        url = "https://example.com/file/d/abc123/view"
        assert convert_google_drive_url(url) == url


class TestHelpers:
    @pytest.mark.parametrize("source", ["http://x.test/a.md", "https://x.test/a.md"])
    def test_remote_sources(self, source):
        assert is_remote_source(source)

    @pytest.mark.parametrize("source", ["README.md", "/tmp/a.md", "ftp://x.test/a.md"])
    def test_local_sources(self, source):
        assert not is_remote_source(source)

    def test_known_status_message(self):
        assert get_http_error_message(404) == "Document not found - check the URL"

    def test_generic_status_messages(self):
        assert "client error" in get_http_error_message(418)
        assert "server error" in get_http_error_message(599)
        assert "unexpected status" in get_http_error_message(302)

    @pytest.mark.asyncio
    async def test_client_sends_user_agent(self):
        settings = Settings(user_agent="Mozilla/5.0")
        async with create_http_client(settings) as client:
            assert client.headers["User-Agent"] == "Mozilla/5.0"
            assert client.follow_redirects


class TestDownloadDocument:
    @pytest.mark.asyncio
    async def test_success(self):
        async with mock_client(text_response("# Hi\n")) as client:
            text = await download_document("http://docs.test/a.md", Settings(), client)
        assert text == "# Hi\n"

    @pytest.mark.asyncio
    async def test_not_text_content_rejected(self):
        handler = text_response("{}", content_type="application/json")
        async with mock_client(handler) as client:
            with pytest.raises(DocumentLoadError, match="Not a text document"):
                await download_document("http://docs.test/a.json", Settings(), client)

    @pytest.mark.asyncio
    async def test_http_error_message(self):
        async with mock_client(text_response("gone", status=404)) as client:
            with pytest.raises(DocumentLoadError) as exc_info:
                await download_document("http://docs.test/missing.md", Settings(), client)
        assert str(exc_info.value) == "Document not found - check the URL"
        assert exc_info.value.source == "http://docs.test/missing.md"

    @pytest.mark.asyncio
    async def test_too_large(self):
        settings = Settings(document_max_download_size=4)
        async with mock_client(text_response("way more than four bytes")) as client:
            with pytest.raises(DocumentLoadError, match="File too large"):
                await download_document("http://docs.test/big.md", settings, client)

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("no route to host")

        async with mock_client(handler) as client:
            with pytest.raises(DocumentLoadError, match="Unable to reach URL"):
                await download_document("http://docs.test/a.md", Settings(), client)

    @pytest.mark.asyncio
    async def test_drive_link_rewritten_before_request(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, headers={"content-type": "text/plain"}, content=b"ok")

        async with mock_client(handler) as client:
            await download_document("https://drive.google.com/file/d/xyz/view", Settings(), client)
        assert seen == ["https://drive.google.com/uc?export=download&id=xyz"]


class TestLoadDocument:
    @pytest.mark.asyncio
    async def test_local_file_line_endings_normalized(self, tmp_path):
        path = tmp_path / "doc.md"
        path.write_bytes(b"# Title\r\nline\rlast\n")

        text = await load_document(str(path), Settings())

        assert text == "# Title\nline\nlast\n"

    @pytest.mark.asyncio
    async def test_missing_local_file(self, tmp_path):
        with pytest.raises(DocumentLoadError, match="Error reading file"):
            await load_document(str(tmp_path / "nope.md"), Settings())

    @pytest.mark.asyncio
    async def test_remote_source_downloaded(self):
        async with mock_client(text_response("a\r\nb")) as client:
            text = await load_document("https://docs.test/a.md", Settings(), client)
        assert text == "a\nb"
