"""
In-memory blob storage.

Used by tests and by hosts that manage durability themselves. The
optional quota mimics the capacity limit of browser-style local storage:
an oversized write is rejected with False, the previous blob stays.
"""

from typing import Optional

import structlog

from orcamais.services.storage.interface import BlobStorageInterface


logger = structlog.get_logger(__name__)


class InMemoryBlobStorage(BlobStorageInterface):
    """Dictionary-backed blob store with an optional size quota."""

    def __init__(
        self,
        initial: Optional[dict[str, str]] = None,
        max_blob_bytes: Optional[int] = None,
    ):
        self._blobs: dict[str, str] = dict(initial or {})
        self._max_blob_bytes = max_blob_bytes
        self.write_count = 0

    def get(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    def set(self, key: str, blob: str) -> bool:
        size = len(blob.encode("utf-8"))
        if self._max_blob_bytes is not None and size > self._max_blob_bytes:
            logger.warning(
                "blob_quota_exceeded",
                key=key,
                size_bytes=size,
                quota_bytes=self._max_blob_bytes,
            )
            return False
        self._blobs[key] = blob
        self.write_count += 1
        return True

    def keys(self) -> list[str]:
        return list(self._blobs)
