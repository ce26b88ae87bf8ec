"""
Input Validation for ledger mutations

DESIGN DECISION: Raw caller input (form values, mostly strings) is
normalized and validated here, before the ledger is touched.

- Amounts become Decimals quantized to cents; NaN/Infinity never pass
- Dates must be ISO (YYYY-MM-DD, optionally with a time part) so the
  period prefix match is always well defined for stored data
- Period keys must be YYYY-MM

IMPORTANT: Validation never raises for bad input.
It reports ValidationIssues and the store turns them into a failed result.
"""

import re
from collections.abc import Mapping
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import BaseModel, Field

from orcamais.config import LedgerSettings
from orcamais.models.ledger import DEFAULT_CATEGORY, TransactionType, normalize_email
from orcamais.models.period import is_valid_period
from orcamais.models.results import ValidationIssue


CENT = Decimal("0.01")
MAX_DESCRIPTION_LENGTH = 200
MAX_CATEGORY_LENGTH = 100

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class TransactionDraft(BaseModel):
    """Validated transaction fields, before an id and timestamp are assigned."""

    description: str
    amount: Decimal = Field(ge=0)
    type: TransactionType
    category: str
    transaction_date: date


class ProfileDraft(BaseModel):
    """Validated registration profile."""

    name: str
    email: str


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Parse a money amount.

    Accepts Decimal, int, float and numeric strings. A string with a
    comma and no dot uses the comma as decimal separator ("12,50").

    Returns:
        The amount quantized to cents, or None if it is not a finite number
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if "," in text and "." not in text:
            text = text.replace(",", ".")
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not amount.is_finite():
        return None
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # too many digits for the decimal context
        return None


def is_encodable(text: str) -> bool:
    """False for text that cannot be stored as UTF-8 (e.g. lone surrogates)."""
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _unencodable(field: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type="invalid_text",
        message=f"{field.capitalize()} contains characters that cannot be saved",
    )


def normalize_amount(value: Any) -> Decimal:
    """Coerce anything to a finite, non-negative amount; invalid input becomes 0."""
    amount = parse_amount(value)
    if amount is None or amount < 0:
        return Decimal("0.00")
    return amount


def parse_date(value: Any) -> Optional[date]:
    """Parse a calendar day from a date, datetime or ISO string; None if malformed."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


class LedgerValidator:
    """
    Validates caller input for every ledger mutation.
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        """
        Initialize validator.

        Args:
            settings: Ledger settings (fallback category). Defaults are used if None.
        """
        self._fallback_category = (
            settings.fallback_category if settings else DEFAULT_CATEGORY
        )

    def validate_transaction(
        self,
        data: Mapping[str, Any],
        today: date,
    ) -> tuple[Optional[TransactionDraft], list[ValidationIssue]]:
        """
        Validate raw transaction input.

        Args:
            data: Mapping with description, amount, type and optional
                  category and date
            today: Date used when no date is given

        Returns:
            (draft, issues) - draft is None when any error-level issue was found
        """
        issues = []

        description = data.get("description")
        description = description.strip() if isinstance(description, str) else ""
        if not description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
            ))
        elif len(description) > MAX_DESCRIPTION_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters",
            ))
        elif not is_encodable(description):
            issues.append(_unencodable("description"))

        raw_amount = data.get("amount")
        amount = None
        if raw_amount is None or (isinstance(raw_amount, str) and not raw_amount.strip()):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
            ))
        else:
            amount = parse_amount(raw_amount)
            if amount is None:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_format",
                    message=f"Amount is not a valid number: {raw_amount!r}",
                ))
            elif amount < 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Amount cannot be negative; use the transaction type for direction",
                ))

        transaction_type = self._parse_type(data.get("type"))
        if transaction_type is None:
            issues.append(ValidationIssue(
                field="type",
                issue_type="invalid_value",
                message=f"Type must be 'income' or 'expense', got {data.get('type')!r}",
            ))

        category = data.get("category")
        category = category.strip() if isinstance(category, str) else ""
        if not category:
            category = self._fallback_category
        elif len(category) > MAX_CATEGORY_LENGTH:
            issues.append(ValidationIssue(
                field="category",
                issue_type="too_long",
                message=f"Category must be at most {MAX_CATEGORY_LENGTH} characters",
            ))
        elif not is_encodable(category):
            issues.append(_unencodable("category"))

        raw_date = data.get("date")
        if raw_date is None or (isinstance(raw_date, str) and not raw_date.strip()):
            transaction_date = today
        else:
            transaction_date = parse_date(raw_date)
            if transaction_date is None:
                issues.append(ValidationIssue(
                    field="date",
                    issue_type="invalid_format",
                    message=f"Date must be an ISO date (YYYY-MM-DD), got {raw_date!r}",
                ))

        if any(issue.severity == "error" for issue in issues):
            return None, issues

        return TransactionDraft(
            description=description,
            amount=amount,
            type=transaction_type,
            category=category,
            transaction_date=transaction_date,
        ), issues

    def validate_period(self, period: Any) -> list[ValidationIssue]:
        if isinstance(period, str) and is_valid_period(period):
            return []
        return [ValidationIssue(
            field="period",
            issue_type="invalid_format",
            message=f"Period must be YYYY-MM, got {period!r}",
        )]

    def validate_profile(
        self,
        profile: Mapping[str, Any],
    ) -> tuple[Optional[ProfileDraft], list[ValidationIssue]]:
        """Validate registration input (name and email; passwords are not handled)."""
        issues = []

        name = profile.get("name")
        name = name.strip() if isinstance(name, str) else ""
        if not name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Name is required",
            ))
        elif not is_encodable(name):
            issues.append(_unencodable("name"))

        email = profile.get("email")
        email = normalize_email(email) if isinstance(email, str) else ""
        if not email:
            issues.append(ValidationIssue(
                field="email",
                issue_type="missing",
                message="Email is required",
            ))
        elif not is_encodable(email):
            issues.append(_unencodable("email"))
        elif not _EMAIL_RE.match(email):
            issues.append(ValidationIssue(
                field="email",
                issue_type="invalid_format",
                message=f"Email is not valid: {email}",
            ))

        if issues:
            return None, issues
        return ProfileDraft(name=name, email=email), issues

    def validate_category_name(self, name: Any) -> list[ValidationIssue]:
        """Blank check only; duplicates are checked against the account's list by the store."""
        text = name.strip() if isinstance(name, str) else ""
        if not text:
            return [ValidationIssue(
                field="name",
                issue_type="missing",
                message="Category name cannot be blank",
            )]
        if len(text) > MAX_CATEGORY_LENGTH:
            return [ValidationIssue(
                field="name",
                issue_type="too_long",
                message=f"Category name must be at most {MAX_CATEGORY_LENGTH} characters",
            )]
        if not is_encodable(text):
            return [_unencodable("name")]
        return []

    def get_user_friendly_summary(self, issues: list[ValidationIssue]) -> str:
        """One line per problem, suitable for a form error banner."""
        if not issues:
            return "All checks passed."
        lines = ["Please fix the following:"]
        for issue in issues:
            lines.append(f"   • {issue.message}")
        return "\n".join(lines)

    @staticmethod
    def _parse_type(value: Any) -> Optional[TransactionType]:
        if isinstance(value, TransactionType):
            return value
        if isinstance(value, str):
            try:
                return TransactionType(value.strip().lower())
            except ValueError:
                return None
        return None
