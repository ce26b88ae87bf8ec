"""
Period Index

Selects the transactions of one period from the ledger. Matching is the
strict period-prefix comparison of orcamais.models.period.in_period.
Order is the store's own (most recent insertion first); nothing is sorted here.
"""

from orcamais.models.ledger import Transaction
from orcamais.models.period import in_period
from orcamais.models.results import Session
from orcamais.store import LedgerStore


class PeriodIndex:
    """Filters a session's transactions by period key."""

    def __init__(self, store: LedgerStore):
        self._store = store

    def transactions_for_period(self, session: Session, period: str) -> list[Transaction]:
        if not isinstance(period, str):
            return []
        key = period.strip()
        return [
            transaction for transaction in self._store.get_transactions(session)
            if in_period(transaction.transaction_date, key)
        ]
