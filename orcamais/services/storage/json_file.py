"""
File-backed Blob Storage

DESIGN DECISION: One JSON file per key inside a data directory.
Writes go to a temporary file that is then renamed over the target,
so a crash mid-write leaves the previous blob intact.

TRADEOFFS:
- No locking: two processes writing the same key race, last writer wins
- Transient OS errors are retried with exponential backoff (tenacity);
  after the last attempt the write is reported as failed, not raised
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from orcamais.services.storage.interface import (
    BlobStorageInterface,
    QuotaExceededError,
    StorageConnectionError,
)


logger = structlog.get_logger(__name__)


class FileBlobStorage(BlobStorageInterface):
    """
    Stores each key as ``<data_dir>/<sanitized key>.json``.
    """

    def __init__(
        self,
        data_dir: Path,
        max_blob_bytes: Optional[int] = None,
        retry_attempts: int = 3,
        retry_wait_seconds: float = 0.1,
    ):
        """
        Initialize file storage.

        Args:
            data_dir: Directory for blob files (created on first write)
            max_blob_bytes: Optional capacity quota per blob
            retry_attempts: Attempts per read/write before giving up
            retry_wait_seconds: Base delay of the exponential backoff
        """
        self._data_dir = Path(data_dir)
        self._max_blob_bytes = max_blob_bytes
        self._retry_attempts = retry_attempts
        self._retry_wait_seconds = retry_wait_seconds

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self._data_dir / f"{safe}.json"

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(multiplier=self._retry_wait_seconds, max=2),
            retry=retry_if_exception_type(OSError),
            reraise=False,
        )

    def get(self, key: str) -> Optional[str]:
        """Read a blob; None when the file does not exist."""
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            for attempt in self._retrying():
                with attempt:
                    return path.read_text(encoding="utf-8")
        except RetryError as e:
            raise StorageConnectionError(
                f"Failed to read {path}: {e.last_attempt.exception()}"
            ) from e
        return None

    def set(self, key: str, blob: str) -> bool:
        """Atomically replace a blob. Returns False if it could not be written."""
        try:
            self._check_quota(key, blob)
        except QuotaExceededError as e:
            logger.warning("blob_quota_exceeded", key=key, error=str(e))
            return False

        path = self.path_for(key)
        try:
            for attempt in self._retrying():
                with attempt:
                    self._write_atomic(path, blob)
        except RetryError as e:
            logger.error(
                "blob_write_failed",
                key=key,
                path=str(path),
                attempts=self._retry_attempts,
                error=str(e.last_attempt.exception()),
            )
            return False
        return True

    def _check_quota(self, key: str, blob: str) -> None:
        if self._max_blob_bytes is None:
            return
        size = len(blob.encode("utf-8"))
        if size > self._max_blob_bytes:
            raise QuotaExceededError(
                f"Blob for {key!r} is {size} bytes, quota is {self._max_blob_bytes}"
            )

    def _write_atomic(self, path: Path, blob: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(blob)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

