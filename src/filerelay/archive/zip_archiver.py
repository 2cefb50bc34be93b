"""In-memory ZIP archiver.

Produces byte-identical archives for identical content regardless of the
order payloads arrive in:
- entries are sorted by handle
- every entry carries the same timestamp and permissions

Entry names are the handles without their leading slash:
    /remote/path/file1.txt → remote/path/file1.txt

Compression runs in asyncio.to_thread so large archives do not block the
event loop.
"""

import asyncio
import logging
import zipfile
from collections.abc import Sequence
from io import BytesIO

from filerelay.contracts import FilePayload
from filerelay.errors import ArchiveError

logger = logging.getLogger(__name__)

# Earliest timestamp the ZIP format can represent
_FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)
_FILE_MODE = 0o644 << 16


class ZipArchiver:
    """Packs payloads into a deflated ZIP archive.

    Args:
        max_bytes: Reject archives larger than this (None = unlimited)
        compresslevel: Deflate level 0-9 (default: 6)
    """

    def __init__(self, max_bytes: int | None = None, compresslevel: int = 6) -> None:
        if max_bytes is not None and max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive, got {max_bytes}")
        self.max_bytes = max_bytes
        self.compresslevel = compresslevel

    @staticmethod
    def entry_name(handle: str) -> str:
        name = handle.lstrip("/")
        if not name:
            raise ArchiveError(f"Cannot derive an entry name from handle {handle!r}")
        return name

    def _build(self, payloads: Sequence[FilePayload]) -> bytes:
        entries: dict[str, bytes] = {}
        for payload in payloads:
            name = self.entry_name(payload.handle)
            if name in entries:
                raise ArchiveError(f"Duplicate archive entry {name!r}")
            entries[name] = payload.content

        buffer = BytesIO()
        with zipfile.ZipFile(
            buffer, "w", zipfile.ZIP_DEFLATED, compresslevel=self.compresslevel
        ) as zf:
            for name in sorted(entries):
                info = zipfile.ZipInfo(name, date_time=_FIXED_DATE_TIME)
                info.compress_type = zipfile.ZIP_DEFLATED
                info.external_attr = _FILE_MODE
                zf.writestr(info, entries[name], compresslevel=self.compresslevel)
        return buffer.getvalue()

    async def archive(self, payloads: Sequence[FilePayload]) -> bytes:
        """Combine ``payloads`` into one ZIP archive.

        Raises:
            ArchiveError: On duplicate entries or when the size limit is hit
        """
        try:
            data = await asyncio.to_thread(self._build, list(payloads))
        except ArchiveError:
            raise
        except (zipfile.LargeZipFile, ValueError, OSError) as e:
            raise ArchiveError(f"Failed to build archive: {e}") from e

        if self.max_bytes is not None and len(data) > self.max_bytes:
            raise ArchiveError(
                f"Archive is {len(data)} bytes, limit is {self.max_bytes}"
            )

        logger.info("Zipped %d files into %d bytes", len(payloads), len(data))
        return data
