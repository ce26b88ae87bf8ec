"""
Data Models Package

This package contains all Pydantic models used by the ledger engine.
All data flowing through the engine must conform to these schemas.
"""

from orcamais.models.ledger import (
    DEFAULT_CATEGORY,
    DEFAULT_SCHEMA_VERSION,
    Account,
    AccountSettings,
    FinancialData,
    LedgerSnapshot,
    Transaction,
    TransactionType,
    UserProfile,
    account_id_for,
    normalize_email,
)
from orcamais.models.period import (
    InvalidPeriodError,
    current_period,
    format_period,
    in_period,
    is_valid_period,
    make_period,
    next_period,
    parse_period,
    period_of,
    previous_period,
    shift_period,
)
from orcamais.models.results import (
    AccountResult,
    FailureReason,
    OperationResult,
    Session,
    TransactionResult,
    ValidationIssue,
)
from orcamais.models.summary import (
    ComparisonDeltas,
    FinancialSummary,
    PeriodComparison,
)
from orcamais.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "DEFAULT_CATEGORY",
    "DEFAULT_SCHEMA_VERSION",
    "Account",
    "AccountSettings",
    "FinancialData",
    "LedgerSnapshot",
    "Transaction",
    "TransactionType",
    "UserProfile",
    "account_id_for",
    "normalize_email",
    # Periods
    "InvalidPeriodError",
    "current_period",
    "format_period",
    "in_period",
    "is_valid_period",
    "make_period",
    "next_period",
    "parse_period",
    "period_of",
    "previous_period",
    "shift_period",
    # Results
    "AccountResult",
    "FailureReason",
    "OperationResult",
    "Session",
    "TransactionResult",
    "ValidationIssue",
    # Summaries
    "ComparisonDeltas",
    "FinancialSummary",
    "PeriodComparison",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
