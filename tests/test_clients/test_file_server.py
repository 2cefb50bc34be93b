"""Tests for the remote file server client."""

import httpx
import pytest

from filerelay.clients.base import RemoteServiceError
from filerelay.clients.file_server import FileServerClient
from filerelay.contracts import FileFetcher, FileLocator, FilePayload
from filerelay.errors import FetchError, LocateError

BASE = "http://files.test"

LISTING = {
    "files": [
        "/remote/path/file1.txt",
        "/remote/path/file2.txt",
        "/remote/path/file3.txt",
        "/remote/other/notes.md",
    ]
}


class TestContracts:
    """The client satisfies both collaborator contracts."""

    def test_is_locator_and_fetcher(self):
        client = FileServerClient(base_url=BASE)
        assert isinstance(client, FileLocator)
        assert isinstance(client, FileFetcher)

    def test_bearer_header(self):
        client = FileServerClient(base_url=BASE, api_key="secret")
        assert client.headers == {"Authorization": "Bearer secret"}

    def test_anonymous_by_default(self):
        assert FileServerClient(base_url=BASE).headers == {}


class TestLocate:
    """Tests for regex search over the listing."""

    @pytest.mark.asyncio
    async def test_filters_by_regex(self, respx_mock):
        respx_mock.get(f"{BASE}/files").mock(
            return_value=httpx.Response(200, json=LISTING)
        )

        async with FileServerClient(base_url=BASE) as client:
            result = await client.locate(r"file\d\.txt$")

        assert result == [
            "/remote/path/file1.txt",
            "/remote/path/file2.txt",
            "/remote/path/file3.txt",
        ]

    @pytest.mark.asyncio
    async def test_sorted_and_deduplicated(self, respx_mock):
        respx_mock.get(f"{BASE}/files").mock(
            return_value=httpx.Response(200, json={"files": ["/b", "/a", "/b"]})
        )

        async with FileServerClient(base_url=BASE) as client:
            assert await client.locate(".") == ["/a", "/b"]

    @pytest.mark.asyncio
    async def test_no_matches(self, respx_mock):
        respx_mock.get(f"{BASE}/files").mock(
            return_value=httpx.Response(200, json=LISTING)
        )

        async with FileServerClient(base_url=BASE) as client:
            assert await client.locate(r"\.zip$") == []

    @pytest.mark.asyncio
    async def test_root_sent_as_query_param(self, respx_mock):
        route = respx_mock.get(f"{BASE}/files").mock(
            return_value=httpx.Response(200, json={"files": []})
        )

        async with FileServerClient(base_url=BASE, root="/remote/path") as client:
            await client.locate("file")

        assert route.calls.last.request.url.params["root"] == "/remote/path"

    @pytest.mark.asyncio
    async def test_invalid_pattern(self):
        async with FileServerClient(base_url=BASE) as client:
            with pytest.raises(LocateError, match="Invalid pattern"):
                await client.locate("file[")

    @pytest.mark.asyncio
    async def test_malformed_listing(self, respx_mock):
        respx_mock.get(f"{BASE}/files").mock(
            return_value=httpx.Response(200, json={"items": []})
        )

        async with FileServerClient(base_url=BASE) as client:
            with pytest.raises(LocateError) as exc_info:
                await client.locate("file")

        assert isinstance(exc_info.value.__cause__, RemoteServiceError)

    @pytest.mark.asyncio
    async def test_server_error(self, respx_mock):
        respx_mock.get(f"{BASE}/files").mock(
            return_value=httpx.Response(403, text="Forbidden")
        )

        async with FileServerClient(base_url=BASE) as client:
            with pytest.raises(LocateError) as exc_info:
                await client.locate("file")

        assert exc_info.value.__cause__.status_code == 403


class TestFetch:
    """Tests for single-file download."""

    @pytest.mark.asyncio
    async def test_downloads_content(self, respx_mock):
        respx_mock.get(f"{BASE}/files/remote/path/file1.txt").mock(
            return_value=httpx.Response(200, content=b"Data of /remote/path/file1.txt")
        )

        async with FileServerClient(base_url=BASE) as client:
            payload = await client.fetch("/remote/path/file1.txt")

        assert payload == FilePayload(
            handle="/remote/path/file1.txt",
            content=b"Data of /remote/path/file1.txt",
        )

    @pytest.mark.asyncio
    async def test_quotes_path(self, respx_mock):
        route = respx_mock.get(f"{BASE}/files/dir/my%20file.txt").mock(
            return_value=httpx.Response(200, content=b"x")
        )

        async with FileServerClient(base_url=BASE) as client:
            await client.fetch("/dir/my file.txt")

        assert route.called

    @pytest.mark.asyncio
    async def test_missing_file(self, respx_mock):
        respx_mock.get(f"{BASE}/files/r/b.txt").mock(
            return_value=httpx.Response(404, text="Not Found")
        )

        async with FileServerClient(base_url=BASE) as client:
            with pytest.raises(FetchError) as exc_info:
                await client.fetch("/r/b.txt")

        assert exc_info.value.handle == "/r/b.txt"
        assert isinstance(exc_info.value.__cause__, RemoteServiceError)
