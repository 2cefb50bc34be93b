"""In-memory collaborators.

Drop-in replacements for the file server and the object store, used by the
CLI's ``--demo`` mode and by tests.
"""

import asyncio
import logging
import re

from filerelay.contracts import FilePayload
from filerelay.errors import FetchError, LocateError, UploadError

logger = logging.getLogger(__name__)

DEMO_FILES = {
    f"/remote/path/file{i}.txt": f"Data of /remote/path/file{i}.txt".encode()
    for i in (1, 2, 3)
}


class InMemoryFileSource:
    """FileLocator + FileFetcher backed by a dict of path → content.

    Args:
        files: Mapping of path to content
        failing: Paths whose fetch raises FetchError
    """

    def __init__(
        self,
        files: dict[str, bytes] | None = None,
        failing: set[str] | None = None,
    ) -> None:
        self.files = dict(files or {})
        self.failing = set(failing or ())
        self.fetched: list[str] = []

    @classmethod
    def demo(cls) -> "InMemoryFileSource":
        return cls(DEMO_FILES)

    async def locate(self, pattern: str) -> list[str]:
        try:
            regex = re.compile(pattern)
        except re.error as e:
            raise LocateError(f"Invalid pattern {pattern!r}: {e}") from e
        await asyncio.sleep(0)
        return sorted(path for path in self.files if regex.search(path))

    async def fetch(self, handle: str) -> FilePayload:
        await asyncio.sleep(0)
        if handle in self.failing:
            raise FetchError(f"Transfer of {handle} failed", handle=handle)
        if handle not in self.files:
            raise FetchError(f"No such file: {handle}", handle=handle)
        self.fetched.append(handle)
        return FilePayload(handle=handle, content=self.files[handle])


class InMemoryObjectStore:
    """ObjectStoreUploader that keeps objects in a dict."""

    def __init__(self, prefix: str = "obj", fail: bool = False) -> None:
        self.prefix = prefix
        self.fail = fail
        self.objects: dict[str, bytes] = {}
        self.uploads = 0

    async def upload(self, destination: str, payload: bytes) -> str:
        await asyncio.sleep(0)
        if self.fail:
            raise UploadError(f"Object store refused {destination}")
        self.objects[destination] = payload
        self.uploads += 1
        object_id = f"{self.prefix}-{self.uploads}"
        logger.info("Stored %s (%d bytes) as %s", destination, len(payload), object_id)
        return object_id
