"""
Session and Result Models

DESIGN DECISION: No engine operation raises for an expected failure.
Validation problems, duplicates, unknown ids, a missing session and
rejected writes all come back as an OperationResult the caller inspects.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from orcamais.models.ledger import Account, Transaction


class Session(BaseModel):
    """
    Explicit session context passed into every engine call.

    Holds the id of the account the caller is acting as, or None
    when nobody is logged in.
    """
    model_config = ConfigDict(frozen=True)

    account_id: Optional[str] = None

    @classmethod
    def anonymous(cls) -> "Session":
        return cls()

    @property
    def is_active(self) -> bool:
        return self.account_id is not None


class FailureReason(str, Enum):
    """Why an operation did not succeed."""
    NO_SESSION = "no_session"
    VALIDATION = "validation"
    DUPLICATE = "duplicate"
    NOT_FOUND = "not_found"
    PERSISTENCE = "persistence"


class ValidationIssue(BaseModel):
    """A single validation issue found in caller input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'invalid_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class OperationResult(BaseModel):
    """
    Outcome of a mutating ledger operation.

    `applied` tells whether in-memory state changed. With optimistic
    writes a persistence failure still has applied=True: the change is
    live but not guaranteed durable.
    """

    success: bool
    reason: Optional[FailureReason] = None
    message: Optional[str] = None
    issues: list[ValidationIssue] = Field(default_factory=list)
    applied: bool = False

    def __bool__(self) -> bool:
        return self.success

    @property
    def persisted(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, **kwargs) -> "OperationResult":
        return cls(success=True, applied=True, **kwargs)

    @classmethod
    def fail(
        cls,
        reason: FailureReason,
        message: str,
        issues: Optional[list[ValidationIssue]] = None,
        applied: bool = False,
        **kwargs,
    ) -> "OperationResult":
        return cls(
            success=False,
            reason=reason,
            message=message,
            issues=issues or [],
            applied=applied,
            **kwargs,
        )


class AccountResult(OperationResult):
    """Result of register/login."""

    account: Optional[Account] = None
    session: Session = Field(default_factory=Session.anonymous)


class TransactionResult(OperationResult):
    """Result of adding a transaction."""

    transaction: Optional[Transaction] = None
