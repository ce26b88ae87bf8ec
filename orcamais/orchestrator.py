"""
Main Orchestrator for OrçaMais

This module ties together all the components and exposes the single
interface a host (web view, CLI, notebook) talks to:
1. Session flow (register → login → ... → logout)
2. Ledger flow (monthly income, transactions, categories)
3. Query flow (period summary, period comparison)

DESIGN DECISION: There is no global instance.
create_tracker() builds one explicit set of components, and every
call carries the caller's Session. Two trackers never share state
unless they share a storage backend.
"""

from datetime import datetime
from typing import Any, Callable, Mapping, Optional

import structlog

from orcamais.audit import AuditLogger, configure_logging
from orcamais.config import LedgerSettings, LoggingSettings, StorageSettings
from orcamais.models.audit import AuditEvent
from orcamais.models.ledger import Account
from orcamais.models.results import (
    AccountResult,
    OperationResult,
    Session,
    TransactionResult,
)
from orcamais.models.summary import FinancialSummary, PeriodComparison
from orcamais.queries import PeriodComparator, PeriodIndex, SummaryEngine
from orcamais.services.storage import (
    BlobStorageInterface,
    FileBlobStorage,
    InMemoryBlobStorage,
)
from orcamais.store import LedgerStore


logger = structlog.get_logger(__name__)


class FinanceTracker:
    """
    Facade over the ledger store and the query engines.

    Mutations go to the LedgerStore; reads that aggregate go to the
    SummaryEngine and PeriodComparator. All calls are synchronous.
    """

    def __init__(
        self,
        store: LedgerStore,
        summary_engine: Optional[SummaryEngine] = None,
        comparator: Optional[PeriodComparator] = None,
    ):
        self._store = store
        self._summary_engine = summary_engine or SummaryEngine(store, PeriodIndex(store))
        self._comparator = comparator or PeriodComparator(self._summary_engine)

    # =========================================================================
    # SESSION
    # =========================================================================

    def register(self, profile: Mapping[str, Any]) -> AccountResult:
        return self._store.register(profile)

    def login(self, email: str) -> AccountResult:
        return self._store.login(email)

    def logout(self, session: Session) -> None:
        self._store.logout(session)

    def resume_session(self) -> Session:
        """
        Session for the account that was active when the ledger was last saved.

        Lets a host pick up where a previous process left off.
        Anonymous when no account was active.
        """
        return self._store.active_session()

    def is_logged_in(self, session: Session) -> bool:
        return self._store.is_logged_in(session)

    def get_current_user(self, session: Session) -> Optional[Account]:
        return self._store.get_current_user(session)

    # =========================================================================
    # LEDGER
    # =========================================================================

    def set_monthly_income(self, session: Session, period: str, amount: Any) -> OperationResult:
        return self._store.set_monthly_income(session, period, amount)

    def add_transaction(self, session: Session, data: Mapping[str, Any]) -> TransactionResult:
        return self._store.add_transaction(session, data)

    def remove_transaction(self, session: Session, transaction_id: str) -> OperationResult:
        return self._store.remove_transaction(session, transaction_id)

    def get_categories(self, session: Session) -> list[str]:
        return self._store.get_categories(session)

    def add_category(self, session: Session, name: str) -> OperationResult:
        return self._store.add_category(session, name)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def summarize(self, session: Session, period: str) -> Optional[FinancialSummary]:
        return self._summary_engine.summarize(session, period)

    def compare(
        self,
        session: Session,
        period_a: str,
        period_b: str,
    ) -> Optional[PeriodComparison]:
        """Compare two periods; deltas are period_b minus period_a."""
        return self._comparator.compare(session, period_a, period_b)

    def compare_with_previous(self, session: Session, period: str) -> Optional[PeriodComparison]:
        return self._comparator.compare_with_previous(session, period)

    def recent_activity(self, session: Session, limit: int = 20) -> list[AuditEvent]:
        """Newest audit events of the session's account; empty without one."""
        if not self._store.is_logged_in(session):
            return []
        return self._store.audit_logger.recent_events(
            limit=limit, account_id=session.account_id,
        )

    @property
    def store(self) -> LedgerStore:
        return self._store


def create_storage(settings: Optional[StorageSettings] = None) -> BlobStorageInterface:
    """
    Build the blob storage backend named by the storage settings.

    Args:
        settings: Storage settings. Loaded from the environment if None.
    """
    settings = settings or StorageSettings()

    if settings.backend == "memory":
        return InMemoryBlobStorage(max_blob_bytes=settings.max_blob_bytes)

    return FileBlobStorage(
        data_dir=settings.data_dir,
        max_blob_bytes=settings.max_blob_bytes,
        retry_attempts=settings.write_retry_attempts,
    )


def create_tracker(
    ledger_settings: Optional[LedgerSettings] = None,
    storage_settings: Optional[StorageSettings] = None,
    logging_settings: Optional[LoggingSettings] = None,
    storage: Optional[BlobStorageInterface] = None,
    clock: Optional[Callable[[], datetime]] = None,
    audit_sink: Optional[Callable[[AuditEvent], None]] = None,
    setup_logging: bool = True,
) -> FinanceTracker:
    """
    Factory function to create all application components.

    Args:
        ledger_settings: Ledger behaviour; loaded from the environment if None
        storage_settings: Backend selection; ignored when storage is given
        logging_settings: Log level and renderer
        storage: A ready storage backend (tests pass InMemoryBlobStorage)
        clock: Returns the current UTC time; injectable for tests
        audit_sink: Receives every audit event (e.g. to persist an audit log)
        setup_logging: Whether to configure structlog. Hosts that own
                       their logging setup pass False.

    Returns:
        A FinanceTracker with its store loaded from storage
    """
    if setup_logging:
        configure_logging(logging_settings)

    ledger_settings = ledger_settings or LedgerSettings()
    storage_settings = storage_settings or StorageSettings()
    storage = storage or create_storage(storage_settings)

    store = LedgerStore(
        storage,
        settings=ledger_settings,
        storage_key=storage_settings.blob_key,
        audit_logger=AuditLogger(ledger_settings.audit_history_size, sink=audit_sink),
        clock=clock,
    )
    summary_engine = SummaryEngine(store, PeriodIndex(store), settings=ledger_settings)

    logger.info(
        "tracker_created",
        backend=type(storage).__name__,
        write_policy=ledger_settings.write_policy,
        accounts=store.account_count,
        version=store.schema_version,
    )

    return FinanceTracker(
        store,
        summary_engine=summary_engine,
        comparator=PeriodComparator(summary_engine),
    )
