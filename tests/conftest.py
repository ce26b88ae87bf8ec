"""
Shared fixtures.

Everything runs against in-memory storage and a frozen clock;
no test touches the real filesystem except through tmp_path.
"""

from datetime import datetime, timezone
from typing import Optional

import pytest

from orcamais.audit import AuditLogger
from orcamais.config import LedgerSettings
from orcamais.models.results import Session
from orcamais.services.storage import InMemoryBlobStorage, StorageConnectionError
from orcamais.store import LedgerStore


FIXED_NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


class FlakyBlobStorage(InMemoryBlobStorage):
    """In-memory storage whose writes can be switched to fail or raise."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        super().__init__(initial=initial)
        self.fail_writes = False
        self.raise_on_write = False
        self.raise_on_read = False

    def get(self, key: str) -> Optional[str]:
        if self.raise_on_read:
            raise StorageConnectionError("storage offline")
        return super().get(key)

    def set(self, key: str, blob: str) -> bool:
        if self.raise_on_write:
            raise StorageConnectionError("storage offline")
        if self.fail_writes:
            return False
        return super().set(key, blob)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def storage():
    return FlakyBlobStorage()


@pytest.fixture
def audit_logger():
    return AuditLogger(history_size=100)


@pytest.fixture
def make_store(storage, clock, audit_logger):
    """Build a store over the shared storage; pass settings to change policy."""
    def _make(settings: Optional[LedgerSettings] = None, backend=None) -> LedgerStore:
        return LedgerStore(
            backend if backend is not None else storage,
            settings=settings or LedgerSettings(),
            audit_logger=audit_logger,
            clock=clock,
        )
    return _make


@pytest.fixture
def store(make_store):
    return make_store()


@pytest.fixture
def session(store) -> Session:
    result = store.register({"name": "Ana", "email": "a@b.com"})
    assert result.success
    return result.session
