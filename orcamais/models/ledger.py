"""
Core Ledger Models

These models define the records one account owns and the shape of the
persisted blob. They are designed to:
1. Enforce the money invariants at runtime (finite, non-negative Decimals)
2. Be serializable for storage and logging
3. Stay layout-compatible with blobs already written by the app
   (camelCase keys: users, currentUserId, monthlyIncomes, createdAt, ...)

DESIGN DECISION: Money is always Decimal. Floats never enter the ledger,
so totals and balances add up exactly.
"""

import base64
import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


DEFAULT_SCHEMA_VERSION = "2.0.0"
DEFAULT_CATEGORY = "Outros"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def account_id_for(email: str) -> str:
    """
    Derive the stable account id from an email.

    Base64 of the normalized email with every non-alphanumeric
    character removed, so the same address always maps to the same id.
    """
    encoded = base64.b64encode(normalize_email(email).encode("utf-8")).decode("ascii")
    return re.sub(r"[^a-zA-Z0-9]", "", encoded)


def coerce_stored_amount(value: Any) -> Decimal:
    """
    Read a stored amount leniently.

    None, booleans, non-numeric text, NaN/Infinity and negatives all
    become 0, so one bad value never makes a whole blob unreadable.
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        return Decimal("0")
    if not amount.is_finite() or amount < 0:
        return Decimal("0")
    return amount


class _BlobModel(BaseModel):
    """Base for everything that lives inside the persisted blob."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction. The amount itself is never negative."""
    INCOME = "income"
    EXPENSE = "expense"


class Transaction(_BlobModel):
    """A single income or expense entry."""

    id: str = Field(
        ...,
        min_length=1,
        description="Unique within the owning account"
    )
    # No length caps here: stored records are taken as written.
    # Caller input is capped by LedgerValidator.
    description: str
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Finite, non-negative amount; sign lives in `type`"
    )
    type: TransactionType
    category: str = Field(default=DEFAULT_CATEGORY)
    transaction_date: date = Field(
        ...,
        alias="date",
        description="Calendar day the transaction belongs to"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="Audit timestamp, not used by queries"
    )

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v: Any) -> Any:
        return str(v) if isinstance(v, (int, float)) and not isinstance(v, bool) else v

    @field_validator("amount", mode="before")
    @classmethod
    def legacy_amount(cls, v: Any) -> Decimal:
        """Older blobs stored unparsable amounts as null; read those as 0."""
        return coerce_stored_amount(v)

    @field_validator("category", mode="before")
    @classmethod
    def blank_category_is_fallback(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_CATEGORY
        return v

    @field_validator("transaction_date", mode="before")
    @classmethod
    def date_from_timestamp(cls, v: Any) -> Any:
        """Accept full ISO timestamps; only the calendar day is kept."""
        if isinstance(v, str) and len(v.strip()) > 10 and v.strip()[10] in "T ":
            return v.strip()[:10]
        return v

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE


# =============================================================================
# ACCOUNT
# =============================================================================

class UserProfile(_BlobModel):
    name: str
    email: str
    created_at: datetime = Field(default_factory=utc_now)
    last_login: datetime = Field(default_factory=utc_now)


class AccountSettings(_BlobModel):
    """
    Per-account preferences.

    The engine never reads these. Unknown keys written by newer
    app versions are kept and written back unchanged.
    """
    model_config = ConfigDict(extra="allow")

    currency: str = "BRL"
    theme: str = "light"
    notifications: bool = True


class FinancialData(_BlobModel):
    """The ledger proper: incomes, transactions, categories."""

    monthly_incomes: dict[str, Annotated[Decimal, Field(ge=0)]] = Field(
        default_factory=dict,
        description="Period key (YYYY-MM) -> fixed income for that month"
    )
    transactions: list[Transaction] = Field(
        default_factory=list,
        description="Most recent first"
    )
    categories: list[str] = Field(default_factory=list)
    # Opaque passthrough; no engine operation reads or writes goals
    goals: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("monthly_incomes", mode="before")
    @classmethod
    def legacy_incomes(cls, v: Any) -> Any:
        """Incomes written before normalization may be negative or null; read those as 0."""
        if not isinstance(v, dict):
            return v
        return {str(period): coerce_stored_amount(amount) for period, amount in v.items()}

    def find_transaction(self, transaction_id: str) -> Optional[int]:
        for index, transaction in enumerate(self.transactions):
            if transaction.id == transaction_id:
                return index
        return None


class Account(_BlobModel):
    """One registered user and everything they own."""

    id: str = Field(..., min_length=1)
    profile: UserProfile
    financial: FinancialData = Field(default_factory=FinancialData)
    settings: AccountSettings = Field(default_factory=AccountSettings)


# =============================================================================
# PERSISTED BLOB
# =============================================================================

class LedgerSnapshot(_BlobModel):
    """
    Root of the persisted blob: the whole account table.

    Written in full on every mutation under a single storage key.
    """

    users: dict[str, Account] = Field(default_factory=dict)
    current_user_id: Optional[str] = None
    version: str = Field(
        default=DEFAULT_SCHEMA_VERSION,
        description="Schema tag, preserved verbatim across reads and writes"
    )

    def to_blob(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_blob(cls, blob: str) -> "LedgerSnapshot":
        return cls.model_validate_json(blob)
