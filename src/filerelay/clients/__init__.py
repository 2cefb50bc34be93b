"""Collaborator implementations for FileRelay.

- FileServerClient: async HTTP client for searching and downloading files
- MinioUploader: uploads archives to a MinIO / S3-compatible bucket
- InMemoryFileSource / InMemoryObjectStore: in-process doubles
"""

from filerelay.clients.base import BaseAsyncClient, RateLimiter, RemoteServiceError
from filerelay.clients.file_server import FileServerClient
from filerelay.clients.memory import InMemoryFileSource, InMemoryObjectStore
from filerelay.clients.object_store import MinioUploader

__all__ = [
    "BaseAsyncClient",
    "RateLimiter",
    "RemoteServiceError",
    "FileServerClient",
    "MinioUploader",
    "InMemoryFileSource",
    "InMemoryObjectStore",
]
