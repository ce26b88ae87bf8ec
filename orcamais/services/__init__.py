"""Services package."""

from orcamais.services.storage import (
    BlobStorageInterface,
    FileBlobStorage,
    InMemoryBlobStorage,
    QuotaExceededError,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    "BlobStorageInterface",
    "FileBlobStorage",
    "InMemoryBlobStorage",
    "QuotaExceededError",
    "StorageConnectionError",
    "StorageError",
]
