"""
Audit Models for the ledger engine

Every mutation of a ledger, and every rejected or non-durable one,
produces an AuditEvent. This provides:
1. Traceability of what changed in an account and when
2. Debugging information when a write does not reach storage
3. A history the host app can show to the user

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session
    ACCOUNT_REGISTERED = "account_registered"
    USER_LOGGED_IN = "user_logged_in"
    USER_LOGGED_OUT = "user_logged_out"

    # Ledger mutations
    MONTHLY_INCOME_SET = "monthly_income_set"
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_REMOVED = "transaction_removed"
    CATEGORY_ADDED = "category_added"

    # Failures
    VALIDATION_FAILED = "validation_failed"
    PERSISTENCE_FAILED = "persistence_failed"

    # Storage lifecycle
    LEDGER_LOADED = "ledger_loaded"
    LEDGER_LOAD_FAILED = "ledger_load_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'transaction', 'ledger')"
    )
    entity_id: Optional[str] = None
    account_id: Optional[str] = Field(
        default=None,
        description="Account the event happened in"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "account_id": self.account_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(account_id, transaction_id, ...)
        event = AuditEventBuilder.persistence_failed(account_id, "add_transaction", error)
    """

    @staticmethod
    def account_registered(account_id: str, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_REGISTERED,
            entity_type="account",
            entity_id=account_id,
            account_id=account_id,
            description=f"Account registered: {email}",
            details={"email": email},
            is_user_action=True,
        )

    @staticmethod
    def user_logged_in(account_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_IN,
            entity_type="account",
            entity_id=account_id,
            account_id=account_id,
            description="User logged in",
            is_user_action=True,
        )

    @staticmethod
    def user_logged_out(account_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_OUT,
            entity_type="account",
            entity_id=account_id,
            account_id=account_id,
            description="User logged out",
            is_user_action=True,
        )

    @staticmethod
    def monthly_income_set(account_id: str, period: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONTHLY_INCOME_SET,
            entity_type="monthly_income",
            entity_id=period,
            account_id=account_id,
            description=f"Monthly income for {period} set to {amount}",
            details={"period": period, "amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def transaction_added(
        account_id: str,
        transaction_id: str,
        transaction_type: str,
        amount: str,
        category: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            account_id=account_id,
            description=f"{transaction_type.capitalize()} of {amount} added ({category})",
            details={
                "type": transaction_type,
                "amount": amount,
                "category": category,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_removed(account_id: str, transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REMOVED,
            entity_type="transaction",
            entity_id=transaction_id,
            account_id=account_id,
            description="Transaction removed",
            is_user_action=True,
        )

    @staticmethod
    def category_added(account_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_ADDED,
            entity_type="category",
            entity_id=name,
            account_id=account_id,
            description=f"Category added: {name}",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        operation: str,
        issues: list[dict],
        account_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            account_id=account_id,
            description=f"{operation} rejected with {len(issues)} issues",
            details={
                "operation": operation,
                "issues": issues,
            },
        )

    @staticmethod
    def persistence_failed(
        operation: str,
        applied: bool,
        account_id: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="ledger",
            account_id=account_id,
            description=f"Ledger write failed during {operation}",
            details={
                "operation": operation,
                "applied_in_memory": applied,
            },
            error_message=error_message,
        )

    @staticmethod
    def ledger_loaded(account_count: int, version: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            severity=AuditSeverity.DEBUG,
            entity_type="ledger",
            description=f"Ledger loaded with {account_count} accounts",
            details={"accounts": account_count, "version": version},
        )

    @staticmethod
    def ledger_load_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="ledger",
            description="Stored ledger could not be read; starting empty",
            error_message=error_message,
        )
