"""
Storage Services Package

Provides the abstract blob interface and the concrete stores the
ledger can be persisted into. The storage backend is swappable.
"""

from orcamais.services.storage.interface import (
    BlobStorageInterface,
    QuotaExceededError,
    StorageConnectionError,
    StorageError,
)
from orcamais.services.storage.json_file import FileBlobStorage
from orcamais.services.storage.memory import InMemoryBlobStorage

__all__ = [
    # Interface
    "BlobStorageInterface",
    # Exceptions
    "QuotaExceededError",
    "StorageConnectionError",
    "StorageError",
    # Implementations
    "FileBlobStorage",
    "InMemoryBlobStorage",
]
