"""Collaborator contracts consumed by the orchestrator.

The orchestrator only knows these four interfaces. Concrete implementations
live in ``filerelay.clients`` (file server, MinIO, in-memory) and
``filerelay.archive`` (ZIP).
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class FilePayload:
    """Raw content of one remote file."""

    handle: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@runtime_checkable
class FileLocator(Protocol):
    """Finds remote files matching a pattern."""

    async def locate(self, pattern: str) -> Sequence[str]:
        """Return the handles of all matching files.

        Raises:
            LocateError: If the search cannot be performed
        """
        ...


@runtime_checkable
class FileFetcher(Protocol):
    """Downloads a single remote file."""

    async def fetch(self, handle: str) -> FilePayload:
        """Return the content of ``handle``.

        Raises:
            FetchError: If the transfer fails
        """
        ...


@runtime_checkable
class Archiver(Protocol):
    """Combines payloads into one archive blob."""

    async def archive(self, payloads: Sequence[FilePayload]) -> bytes:
        """Return the archive bytes. Must depend only on payload content.

        Raises:
            ArchiveError: If the archive cannot be produced
        """
        ...


@runtime_checkable
class ObjectStoreUploader(Protocol):
    """Stores a blob and returns its identifier."""

    async def upload(self, destination: str, payload: bytes) -> str:
        """Store ``payload`` under ``destination`` (at most once).

        Raises:
            UploadError: If the object could not be stored
        """
        ...
