"""
Abstract Blob Storage Interface

DESIGN DECISION: The ledger only needs a synchronous key-value blob store.
This allows us to:
1. Run on whatever the host offers (a file, browser-like local storage, a KV service)
2. Use in-memory storage for testing
3. Keep the ledger logic decoupled from the storage implementation

The whole ledger is serialized into one blob under a single key and
rewritten in full on every mutation. There are no partial writes.
"""

from abc import ABC, abstractmethod
from typing import Optional


class BlobStorageInterface(ABC):
    """
    Abstract interface for blob storage.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the blob stored under a key.

        Args:
            key: Storage key

        Returns:
            The blob, or None if nothing is stored under the key

        Raises:
            StorageError: If the backend could not be read
        """
        pass

    @abstractmethod
    def set(self, key: str, blob: str) -> bool:
        """
        Replace the blob stored under a key.

        Args:
            key: Storage key
            blob: Full serialized content

        Returns:
            True if the write is durable, False if the backend rejected it
            (for example a capacity quota)

        Raises:
            StorageError: If the backend failed unexpectedly
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class QuotaExceededError(StorageError):
    """The blob does not fit in the backend's capacity quota."""
    pass


class StorageConnectionError(StorageError):
    """Could not reach the storage backend."""
    pass
