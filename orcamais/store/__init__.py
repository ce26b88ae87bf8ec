"""Ledger store package."""

from orcamais.store.ledger import BACKUP_KEY_SUFFIX, DEFAULT_STORAGE_KEY, LedgerStore

__all__ = ["BACKUP_KEY_SUFFIX", "DEFAULT_STORAGE_KEY", "LedgerStore"]
