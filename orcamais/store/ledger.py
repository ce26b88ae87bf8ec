"""
Ledger Store

Owns the account table (accounts, their transactions, fixed monthly
incomes and categories) and keeps it in sync with a blob store.

DESIGN DECISION: The whole table is one blob, read once at construction
and rewritten in full after every mutation.

WRITE POLICIES (LedgerSettings.write_policy):
Every mutation is applied to a copy of the table and serialized first.
A table that cannot be serialized is dropped under both policies.
- optimistic: the copy is swapped in whether or not the write succeeds.
  A failed write leaves memory ahead of storage; the result says
  success=False, applied=True and a reload may lose that mutation.
- confirmed: the copy is swapped in only after the write succeeds.
  A failed write changes nothing (applied=False).

SESSIONS: There is no implicit "current user". Every call takes a
Session. An anonymous or unknown session reads as empty data and
cannot mutate anything.
"""

import json
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Optional, TypeVar
from uuid import uuid4

import structlog
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from orcamais.audit import AuditLogger
from orcamais.config import LedgerSettings
from orcamais.models.audit import AuditEventBuilder
from orcamais.models.ledger import (
    Account,
    AccountSettings,
    FinancialData,
    LedgerSnapshot,
    Transaction,
    UserProfile,
    account_id_for,
    utc_now,
)
from orcamais.models.results import (
    AccountResult,
    FailureReason,
    OperationResult,
    Session,
    TransactionResult,
    ValidationIssue,
)
from orcamais.services.storage import BlobStorageInterface, StorageError
from orcamais.validation import LedgerValidator, is_encodable, normalize_amount


DEFAULT_STORAGE_KEY = "orcamais:data"

PERSISTENCE_FAILED_MESSAGE = "Failed to save data"

# An unreadable blob is copied here before anything overwrites it
BACKUP_KEY_SUFFIX = ":backup"

T = TypeVar("T")

logger = structlog.get_logger(__name__)


def _stored_version(blob: str) -> Optional[str]:
    """Version tag of a blob that failed validation, if it can still be found."""
    try:
        data = json.loads(blob)
    except ValueError:
        return None
    version = data.get("version") if isinstance(data, dict) else None
    return version if isinstance(version, str) else None


def _issues_as_dicts(issues: list[ValidationIssue]) -> list[dict]:
    return [
        {"field": i.field, "type": i.issue_type, "message": i.message}
        for i in issues
    ]


class LedgerStore:
    """
    Account table with persisted, session-scoped ledger operations.
    """

    def __init__(
        self,
        storage: BlobStorageInterface,
        settings: Optional[LedgerSettings] = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[LedgerValidator] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the store and load the persisted ledger.

        Args:
            storage: Blob store the ledger is read from and written to
            settings: Ledger settings; defaults are used if None
            storage_key: Key of the ledger blob
            audit_logger: Receives one event per mutation or failure
            validator: Input validator; built from settings if None
            clock: Returns the current time (UTC); injectable for tests
        """
        self._storage = storage
        self._settings = settings or LedgerSettings()
        self._storage_key = storage_key
        self._audit = audit_logger or AuditLogger(self._settings.audit_history_size)
        self._validator = validator or LedgerValidator(self._settings)
        self._clock = clock or utc_now
        self._read_only = False
        self._snapshot = self._load()

    # =========================================================================
    # LOAD / PERSIST
    # =========================================================================

    def _empty_snapshot(self, version: Optional[str] = None) -> LedgerSnapshot:
        return LedgerSnapshot(version=version or self._settings.schema_version)

    def _load(self) -> LedgerSnapshot:
        """
        Read the blob once. A missing blob yields an empty ledger.

        An unreadable blob is never silently overwritten: it is copied to
        the backup key first, and if that copy (or the read itself) fails
        the store refuses every write.
        """
        try:
            blob = self._storage.get(self._storage_key)
        except StorageError as e:
            self._audit.log(AuditEventBuilder.ledger_load_failed(str(e)))
            self._read_only = True
            logger.error("ledger_read_only", key=self._storage_key, reason="read_failed")
            return self._empty_snapshot()

        if blob is None:
            return self._empty_snapshot()

        try:
            snapshot = LedgerSnapshot.from_blob(blob)
        except ValidationError as e:
            self._audit.log(AuditEventBuilder.ledger_load_failed(str(e)))
            self._back_up_unreadable(blob)
            return self._empty_snapshot(_stored_version(blob))

        if snapshot.current_user_id not in snapshot.users:
            snapshot.current_user_id = None

        self._audit.log(AuditEventBuilder.ledger_loaded(
            account_count=len(snapshot.users),
            version=snapshot.version,
        ))
        return snapshot

    def _back_up_unreadable(self, blob: str) -> None:
        backup_key = self.backup_key
        try:
            saved = self._storage.set(backup_key, blob)
        except StorageError:
            saved = False

        if saved:
            logger.warning("ledger_blob_backed_up", key=self._storage_key, backup_key=backup_key)
        else:
            self._read_only = True
            logger.error("ledger_read_only", key=self._storage_key, reason="backup_failed")

    def _write(self, blob: str) -> tuple[bool, Optional[str]]:
        try:
            return self._storage.set(self._storage_key, blob), None
        except StorageError as e:
            return False, str(e)

    def _commit(
        self,
        operation: str,
        account_id: Optional[str],
        mutate: Callable[[LedgerSnapshot], T],
    ) -> tuple[Optional[T], bool, bool]:
        """
        Apply a mutation and persist the whole ledger.

        Returns:
            (value returned by mutate, durable, applied)
        """
        if self._read_only:
            self._audit.log_persistence_failed(
                operation=operation,
                applied=False,
                account_id=account_id,
                error_message="Stored ledger could not be read; writes are disabled",
            )
            return None, False, False

        target = self._snapshot.model_copy(deep=True)
        value = mutate(target)

        # A ledger that cannot be serialized is never adopted, whatever the policy.
        try:
            blob = target.to_blob()
        except PydanticSerializationError as e:
            self._audit.log_persistence_failed(
                operation=operation,
                applied=False,
                account_id=account_id,
                error_message=str(e),
            )
            return None, False, False

        durable, error = self._write(blob)
        applied = durable or not self._settings.confirmed_writes
        if applied:
            self._snapshot = target

        if not durable:
            self._audit.log_persistence_failed(
                operation=operation,
                applied=applied,
                account_id=account_id,
                error_message=error,
            )
        return value, durable, applied

    def _resolve(self, session: Session) -> Optional[Account]:
        if session is None or not session.is_active:
            return None
        return self._snapshot.users.get(session.account_id)

    def _reject(
        self,
        operation: str,
        reason: FailureReason,
        message: str,
        issues: Optional[list[ValidationIssue]] = None,
        account_id: Optional[str] = None,
        result_cls: type = OperationResult,
    ):
        self._audit.log_validation_failed(
            operation=operation,
            issues=_issues_as_dicts(issues or []) or [{"type": reason.value, "message": message}],
            account_id=account_id,
        )
        return result_cls.fail(reason, message, issues=issues)

    # =========================================================================
    # SESSION
    # =========================================================================

    def register(self, profile: Mapping[str, Any]) -> AccountResult:
        """
        Create an account and make it the active one.

        Args:
            profile: Mapping with name and email

        Returns:
            AccountResult with the new account and its session
        """
        draft, issues = self._validator.validate_profile(profile or {})
        if draft is None:
            return self._reject(
                "register", FailureReason.VALIDATION, "Invalid profile",
                issues=issues, result_cls=AccountResult,
            )

        account_id = account_id_for(draft.email)
        if account_id in self._snapshot.users:
            return self._reject(
                "register", FailureReason.DUPLICATE, "Account already exists",
                account_id=account_id, result_cls=AccountResult,
            )

        now = self._clock()

        def mutate(snapshot: LedgerSnapshot) -> Account:
            account = Account(
                id=account_id,
                profile=UserProfile(
                    name=draft.name,
                    email=draft.email,
                    created_at=now,
                    last_login=now,
                ),
                financial=FinancialData(
                    categories=list(self._settings.default_categories),
                ),
                settings=AccountSettings(
                    currency=self._settings.default_currency,
                    theme=self._settings.default_theme,
                    notifications=self._settings.default_notifications,
                ),
            )
            snapshot.users[account_id] = account
            snapshot.current_user_id = account_id
            return account

        account, durable, applied = self._commit("register", account_id, mutate)
        session = Session(account_id=account_id) if applied else Session.anonymous()

        if not durable:
            return AccountResult.fail(
                FailureReason.PERSISTENCE,
                PERSISTENCE_FAILED_MESSAGE,
                applied=applied,
                account=account.model_copy(deep=True) if applied else None,
                session=session,
            )

        self._audit.log(AuditEventBuilder.account_registered(account_id, draft.email))
        return AccountResult.ok(account=account.model_copy(deep=True), session=session)

    def login(self, email: str) -> AccountResult:
        """
        Open a session for an existing account (no credential check).

        Stamps last_login and marks the account active in the stored ledger.
        """
        if not isinstance(email, str) or not email.strip():
            return self._reject(
                "login", FailureReason.VALIDATION, "Email is required",
                issues=[ValidationIssue(
                    field="email", issue_type="missing", message="Email is required",
                )],
                result_cls=AccountResult,
            )

        if not is_encodable(email):
            return self._reject(
                "login", FailureReason.VALIDATION, "Email contains characters that cannot be saved",
                issues=[ValidationIssue(
                    field="email", issue_type="invalid_text",
                    message="Email contains characters that cannot be saved",
                )],
                result_cls=AccountResult,
            )

        account_id = account_id_for(email)
        if account_id not in self._snapshot.users:
            return self._reject(
                "login", FailureReason.NOT_FOUND, "Account not found",
                result_cls=AccountResult,
            )

        now = self._clock()

        def mutate(snapshot: LedgerSnapshot) -> Account:
            account = snapshot.users[account_id]
            account.profile.last_login = now
            snapshot.current_user_id = account_id
            return account

        account, durable, applied = self._commit("login", account_id, mutate)
        session = Session(account_id=account_id) if applied else Session.anonymous()

        if not durable:
            return AccountResult.fail(
                FailureReason.PERSISTENCE,
                PERSISTENCE_FAILED_MESSAGE,
                applied=applied,
                account=account.model_copy(deep=True) if applied else None,
                session=session,
            )

        self._audit.log(AuditEventBuilder.user_logged_in(account_id))
        return AccountResult.ok(account=account.model_copy(deep=True), session=session)

    def logout(self, session: Session) -> None:
        """
        End a session.

        Clears the stored active account if it is this session's account.
        A failed write is logged, never raised.
        """
        if session is None or not session.is_active:
            return

        account_id = session.account_id
        if self._snapshot.current_user_id == account_id:
            def mutate(snapshot: LedgerSnapshot) -> None:
                snapshot.current_user_id = None

            _, durable, _ = self._commit("logout", account_id, mutate)
            if not durable:
                logger.warning("logout_not_persisted", account_id=account_id)

        self._audit.log(AuditEventBuilder.user_logged_out(account_id))

    def active_session(self) -> Session:
        """Session for the account the stored ledger marks as active, if any."""
        account_id = self._snapshot.current_user_id
        if account_id and account_id in self._snapshot.users:
            return Session(account_id=account_id)
        return Session.anonymous()

    # =========================================================================
    # MUTATORS
    # =========================================================================

    def set_monthly_income(
        self,
        session: Session,
        period: str,
        amount: Any,
    ) -> OperationResult:
        """
        Set the fixed income of a period.

        The amount is normalized to a finite, non-negative Decimal;
        anything invalid (including negatives) is stored as 0.
        """
        account = self._resolve(session)
        if account is None:
            return OperationResult.fail(FailureReason.NO_SESSION, "No active account")

        issues = self._validator.validate_period(period)
        if issues:
            return self._reject(
                "set_monthly_income", FailureReason.VALIDATION, "Invalid period",
                issues=issues, account_id=account.id,
            )

        period = period.strip()
        value = normalize_amount(amount)
        account_id = account.id

        def mutate(snapshot: LedgerSnapshot) -> None:
            snapshot.users[account_id].financial.monthly_incomes[period] = value

        _, durable, applied = self._commit("set_monthly_income", account_id, mutate)
        if not durable:
            return OperationResult.fail(
                FailureReason.PERSISTENCE, PERSISTENCE_FAILED_MESSAGE, applied=applied,
            )

        self._audit.log(AuditEventBuilder.monthly_income_set(account_id, period, str(value)))
        return OperationResult.ok()

    def add_transaction(
        self,
        session: Session,
        data: Mapping[str, Any],
    ) -> TransactionResult:
        """
        Record a transaction at the front of the ledger (most recent first).

        Args:
            session: Acting session
            data: Mapping with description, amount, type and optional
                  category (defaults to the fallback category) and
                  date (defaults to today)
        """
        account = self._resolve(session)
        if account is None:
            return TransactionResult.fail(FailureReason.NO_SESSION, "No active account")

        draft, issues = self._validator.validate_transaction(
            data or {}, today=self._clock().date()
        )
        if draft is None:
            return self._reject(
                "add_transaction", FailureReason.VALIDATION, "Invalid transaction",
                issues=issues, account_id=account.id, result_cls=TransactionResult,
            )

        account_id = account.id
        now = self._clock()

        def mutate(snapshot: LedgerSnapshot) -> Transaction:
            financial = snapshot.users[account_id].financial
            transaction = Transaction(
                id=self._new_transaction_id(financial),
                description=draft.description,
                amount=draft.amount,
                type=draft.type,
                category=draft.category,
                transaction_date=draft.transaction_date,
                created_at=now,
            )
            financial.transactions.insert(0, transaction)
            return transaction

        transaction, durable, applied = self._commit("add_transaction", account_id, mutate)
        if not durable:
            return TransactionResult.fail(
                FailureReason.PERSISTENCE,
                PERSISTENCE_FAILED_MESSAGE,
                applied=applied,
                transaction=transaction.model_copy() if applied else None,
            )

        self._audit.log(AuditEventBuilder.transaction_added(
            account_id=account_id,
            transaction_id=transaction.id,
            transaction_type=transaction.type.value,
            amount=str(transaction.amount),
            category=transaction.category,
        ))
        return TransactionResult.ok(transaction=transaction.model_copy())

    def remove_transaction(self, session: Session, transaction_id: str) -> OperationResult:
        """Remove a transaction by id; an unknown id is a not_found failure."""
        account = self._resolve(session)
        if account is None:
            return OperationResult.fail(FailureReason.NO_SESSION, "No active account")

        if account.financial.find_transaction(transaction_id) is None:
            return self._reject(
                "remove_transaction", FailureReason.NOT_FOUND,
                f"Transaction not found: {transaction_id}",
                account_id=account.id,
            )

        account_id = account.id

        def mutate(snapshot: LedgerSnapshot) -> None:
            financial = snapshot.users[account_id].financial
            financial.transactions.pop(financial.find_transaction(transaction_id))

        _, durable, applied = self._commit("remove_transaction", account_id, mutate)
        if not durable:
            return OperationResult.fail(
                FailureReason.PERSISTENCE, PERSISTENCE_FAILED_MESSAGE, applied=applied,
            )

        self._audit.log(AuditEventBuilder.transaction_removed(account_id, transaction_id))
        return OperationResult.ok()

    def add_category(self, session: Session, name: str) -> OperationResult:
        """Append a category. Blank names and exact duplicates are rejected."""
        account = self._resolve(session)
        if account is None:
            return OperationResult.fail(FailureReason.NO_SESSION, "No active account")

        issues = self._validator.validate_category_name(name)
        if issues:
            return self._reject(
                "add_category", FailureReason.VALIDATION, "Invalid category name",
                issues=issues, account_id=account.id,
            )

        name = name.strip()
        if name in account.financial.categories:
            return self._reject(
                "add_category", FailureReason.DUPLICATE,
                f"Category already exists: {name}",
                account_id=account.id,
            )

        account_id = account.id

        def mutate(snapshot: LedgerSnapshot) -> None:
            snapshot.users[account_id].financial.categories.append(name)

        _, durable, applied = self._commit("add_category", account_id, mutate)
        if not durable:
            return OperationResult.fail(
                FailureReason.PERSISTENCE, PERSISTENCE_FAILED_MESSAGE, applied=applied,
            )

        self._audit.log(AuditEventBuilder.category_added(account_id, name))
        return OperationResult.ok()

    # =========================================================================
    # READ ACCESSORS (pure; return copies)
    # =========================================================================

    def get_current_user(self, session: Session) -> Optional[Account]:
        account = self._resolve(session)
        return account.model_copy(deep=True) if account else None

    def is_logged_in(self, session: Session) -> bool:
        return self._resolve(session) is not None

    def get_monthly_income(self, session: Session, period: str) -> Decimal:
        """Fixed income of a period; 0 when unset or without an active account."""
        account = self._resolve(session)
        if account is None or not isinstance(period, str):
            return Decimal("0")
        return account.financial.monthly_incomes.get(period.strip(), Decimal("0"))

    def get_monthly_incomes(self, session: Session) -> dict[str, Decimal]:
        account = self._resolve(session)
        return dict(account.financial.monthly_incomes) if account else {}

    def get_transactions(self, session: Session) -> list[Transaction]:
        """All transactions of the account, most recent first."""
        account = self._resolve(session)
        if account is None:
            return []
        return [t.model_copy() for t in account.financial.transactions]

    def get_categories(self, session: Session) -> list[str]:
        account = self._resolve(session)
        return list(account.financial.categories) if account else []

    @property
    def schema_version(self) -> str:
        return self._snapshot.version

    @property
    def backup_key(self) -> str:
        return f"{self._storage_key}{BACKUP_KEY_SUFFIX}"

    @property
    def read_only(self) -> bool:
        """True when the stored ledger could not be read and was not backed up."""
        return self._read_only

    @property
    def account_count(self) -> int:
        return len(self._snapshot.users)

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit

    def debug_dump(self, session: Session) -> int:
        """
        Log every transaction and monthly income of the account at debug level.

        Returns:
            Number of transactions logged
        """
        account = self._resolve(session)
        if account is None:
            logger.debug("ledger_dump", account_id=None, message="no active account")
            return 0

        transactions = account.financial.transactions
        logger.debug("ledger_dump", account_id=account.id, transactions=len(transactions))
        for position, t in enumerate(transactions, start=1):
            logger.debug(
                "ledger_dump_transaction",
                position=position,
                description=t.description,
                date=t.transaction_date.isoformat(),
                amount=str(t.amount),
                type=t.type.value,
            )
        for period, income in sorted(account.financial.monthly_incomes.items()):
            logger.debug("ledger_dump_income", period=period, amount=str(income))
        return len(transactions)

    @staticmethod
    def _new_transaction_id(financial: FinancialData) -> str:
        existing = {t.id for t in financial.transactions}
        transaction_id = uuid4().hex
        while transaction_id in existing:
            transaction_id = uuid4().hex
        return transaction_id


__all__ = ["BACKUP_KEY_SUFFIX", "DEFAULT_STORAGE_KEY", "LedgerStore"]
