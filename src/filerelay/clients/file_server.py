"""Remote file server client.

Searches and downloads files exposed by an HTTP file server:
- GET /files            → {"files": ["/path/a.txt", ...]}
- GET /files/{path}     → raw file content

Implements both the FileLocator and FileFetcher contracts.

Usage:
    from filerelay.clients.file_server import FileServerClient

    async with FileServerClient(base_url="http://files.local:8080") as client:
        handles = await client.locate(r"report_\\d+\\.csv$")
        payload = await client.fetch(handles[0])
"""

import logging
import re
from typing import Any
from urllib.parse import quote

from filerelay.clients.base import BaseAsyncClient, RemoteServiceError
from filerelay.config import settings
from filerelay.contracts import FilePayload
from filerelay.errors import FetchError, LocateError

logger = logging.getLogger(__name__)


class FileServerClient(BaseAsyncClient):
    """Async client for the remote file server.

    Args:
        base_url: File server base URL
        api_key: Optional bearer token
        root: Optional directory the search is restricted to
        rate_limit: Max requests per second (default: 10)
        timeout: Request timeout in seconds (default: 30)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        root: str | None = None,
        rate_limit: int = 10,
        timeout: float = 30.0,
    ) -> None:
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        super().__init__(
            base_url=base_url,
            headers=headers,
            rate_limit=rate_limit,
            timeout=timeout,
        )
        self.root = root

    @classmethod
    def from_settings(cls) -> "FileServerClient":
        """Build a client from the global settings."""
        return cls(
            base_url=settings.remote_base_url,
            api_key=settings.remote_api_key,
            root=settings.remote_root,
            rate_limit=settings.remote_rate_limit,
            timeout=settings.remote_timeout,
        )

    async def list_files(self) -> list[str]:
        """List every file path the server exposes (under ``root``).

        Returns:
            File paths as reported by the server

        Raises:
            RemoteServiceError: On transport failure or a malformed listing
        """
        params: dict[str, Any] = {}
        if self.root:
            params["root"] = self.root
        result = await self.get_json("/files", params=params or None)

        files = result.get("files") if isinstance(result, dict) else None
        if not isinstance(files, list):
            raise RemoteServiceError("Malformed listing: missing 'files' array")
        return [str(f) for f in files]

    async def locate(self, pattern: str) -> list[str]:
        """Return all file paths matching the regex ``pattern``.

        Paths are de-duplicated and sorted so repeated searches are stable.

        Raises:
            LocateError: If the pattern is invalid or the listing fails
        """
        try:
            regex = re.compile(pattern)
        except re.error as e:
            raise LocateError(f"Invalid pattern {pattern!r}: {e}") from e

        try:
            files = await self.list_files()
        except RemoteServiceError as e:
            raise LocateError(f"Listing files failed: {e}") from e

        matches = sorted({f for f in files if regex.search(f)})
        logger.info("Pattern %r matched %d of %d files", pattern, len(matches), len(files))
        return matches

    async def fetch(self, handle: str) -> FilePayload:
        """Download one file.

        Raises:
            FetchError: If the transfer fails
        """
        endpoint = "/files/" + quote(handle.lstrip("/"))
        try:
            content = await self.get_bytes(endpoint)
        except RemoteServiceError as e:
            raise FetchError(f"Download of {handle} failed: {e}", handle=handle) from e

        logger.debug("Downloaded %s (%d bytes)", handle, len(content))
        return FilePayload(handle=handle, content=content)
