"""Archive encoders for FileRelay.

Combines fetched payloads into a single deterministic blob.
"""

from filerelay.archive.zip_archiver import ZipArchiver

__all__ = ["ZipArchiver"]
