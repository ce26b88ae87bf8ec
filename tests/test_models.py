"""
Tests for OrçaMais models

Test strategy:
1. Unit tests for individual components (models, validators, queries)
2. Store and tracker tests against in-memory storage
3. No real filesystem access except through tmp_path
"""

import json

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from orcamais.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from orcamais.models.ledger import (
    Account,
    AccountSettings,
    FinancialData,
    LedgerSnapshot,
    Transaction,
    TransactionType,
    UserProfile,
    account_id_for,
)
from orcamais.models.results import (
    FailureReason,
    OperationResult,
    Session,
    ValidationIssue,
)


def _transaction(**overrides) -> Transaction:
    fields = {
        "id": "t1",
        "description": "Salary",
        "amount": Decimal("100.00"),
        "type": TransactionType.INCOME,
        "transaction_date": date(2024, 1, 5),
    }
    fields.update(overrides)
    return Transaction(**fields)


class TestLedgerModels:
    """Tests for ledger-related Pydantic models."""

    def test_transaction_creation(self):
        """Test Transaction model creation."""
        t = _transaction()
        assert t.amount == Decimal("100.00")
        assert t.category == "Outros"
        assert t.is_income is True
        assert t.is_expense is False

    def test_transaction_negative_amount_reads_as_zero(self):
        """Test that a negative stored amount becomes 0 instead of failing the record."""
        assert _transaction(amount=Decimal("-1")).amount == Decimal("0")
        assert _transaction(amount="NaN").amount == Decimal("0")
        assert _transaction(amount="abc").amount == Decimal("0")

    def test_transaction_null_amount_reads_as_zero(self):
        """Test that a null amount from an older blob becomes 0."""
        t = Transaction.model_validate({
            "id": "t1",
            "description": "Broken",
            "amount": None,
            "type": "expense",
            "date": "2024-01-05",
        })
        assert t.amount == Decimal("0")

    def test_transaction_strips_whitespace(self):
        """Test that whitespace is stripped from descriptions."""
        t = _transaction(description="  Rent  ")
        assert t.description == "Rent"

    def test_transaction_date_uses_blob_alias(self):
        """Test the date field is written as 'date'."""
        data = _transaction().model_dump(by_alias=True, mode="json")
        assert data["date"] == "2024-01-05"
        assert "createdAt" in data

    def test_account_id_is_stable_per_email(self):
        """Test the same email always maps to the same id."""
        assert account_id_for("A@B.com") == account_id_for(" a@b.com ")
        assert account_id_for("a@b.com") != account_id_for("c@d.com")
        assert account_id_for("a@b.com").isalnum()

    def test_find_transaction(self):
        """Test lookup by id returns the position."""
        financial = FinancialData(transactions=[_transaction(id="x"), _transaction(id="y")])
        assert financial.find_transaction("y") == 1
        assert financial.find_transaction("z") is None

    def test_account_settings_keep_unknown_keys(self):
        """Test that unknown settings keys survive a round trip."""
        settings = AccountSettings.model_validate({"currency": "BRL", "language": "pt-BR"})
        dumped = settings.model_dump(by_alias=True)
        assert dumped["language"] == "pt-BR"

    def test_transaction_keeps_long_description(self):
        """Test stored descriptions are taken as written, whatever their length."""
        assert len(_transaction(description="x" * 300).description) == 300

    def test_transaction_numeric_id_becomes_text(self):
        """Test an id stored as a number reads as a string."""
        assert _transaction(id=1700000000).id == "1700000000"

    def test_transaction_date_from_timestamp(self):
        """Test a full ISO timestamp keeps only its calendar day."""
        assert _transaction(transaction_date="2023-03-04T15:20:00.000Z").transaction_date == date(2023, 3, 4)

    def test_transaction_blank_category_is_fallback(self):
        """Test a blank or null stored category reads as the fallback."""
        assert _transaction(category="").category == "Outros"
        assert _transaction(category=None).category == "Outros"

    def test_financial_legacy_incomes_read_as_zero(self):
        """Test negative or null stored incomes become 0."""
        financial = FinancialData.model_validate({
            "monthlyIncomes": {"2023-01": -5, "2023-02": None, "2023-03": "1200.50"},
        })
        assert financial.monthly_incomes == {
            "2023-01": Decimal("0"),
            "2023-02": Decimal("0"),
            "2023-03": Decimal("1200.50"),
        }


class TestLedgerSnapshot:
    """Tests for the persisted blob layout."""

    def _snapshot(self) -> LedgerSnapshot:
        account = Account(
            id="abc",
            profile=UserProfile(
                name="Ana",
                email="a@b.com",
                created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
                last_login=datetime(2024, 1, 1, tzinfo=timezone.utc),
            ),
            financial=FinancialData(
                monthly_incomes={"2024-01": Decimal("5000.00")},
                transactions=[_transaction()],
                categories=["Food"],
                goals=[{"name": "Trip", "target": 1000}],
            ),
        )
        return LedgerSnapshot(users={"abc": account}, current_user_id="abc", version="1.9.0")

    def test_blob_uses_camel_case_keys(self):
        """Test the blob keys match the stored layout."""
        blob = json.loads(self._snapshot().to_blob())
        assert set(blob) == {"users", "currentUserId", "version"}
        financial = blob["users"]["abc"]["financial"]
        assert "monthlyIncomes" in financial
        assert blob["users"]["abc"]["profile"]["lastLogin"]

    def test_blob_round_trip(self):
        """Test that a snapshot reads back equal, version included."""
        snapshot = self._snapshot()
        restored = LedgerSnapshot.from_blob(snapshot.to_blob())
        assert restored == snapshot
        assert restored.version == "1.9.0"
        assert restored.users["abc"].financial.goals == [{"name": "Trip", "target": 1000}]

    def test_money_survives_as_exact_decimal(self):
        """Test amounts are not turned into floats on the way through."""
        restored = LedgerSnapshot.from_blob(self._snapshot().to_blob())
        assert restored.users["abc"].financial.monthly_incomes["2024-01"] == Decimal("5000.00")


class TestResultModels:
    """Tests for session and result models."""

    def test_anonymous_session(self):
        """Test an anonymous session is inactive."""
        assert Session.anonymous().is_active is False
        assert Session(account_id="abc").is_active is True

    def test_session_is_frozen(self):
        """Test sessions cannot be rebound to another account."""
        session = Session(account_id="abc")
        with pytest.raises(ValueError):
            session.account_id = "other"

    def test_ok_result(self):
        """Test a successful result is truthy and applied."""
        result = OperationResult.ok()
        assert bool(result) is True
        assert result.applied is True
        assert result.persisted is True

    def test_fail_result(self):
        """Test a failed result carries reason and issues."""
        issue = ValidationIssue(field="amount", issue_type="missing", message="Amount is required")
        result = OperationResult.fail(FailureReason.VALIDATION, "Invalid", issues=[issue])
        assert bool(result) is False
        assert result.reason == FailureReason.VALIDATION
        assert result.issues[0].severity == "error"
        assert result.applied is False

    def test_issue_severity_is_restricted(self):
        """Test only known severities are accepted."""
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.CATEGORY_ADDED,
            description="Category added",
        )
        assert event.event_type == AuditEventType.CATEGORY_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEventBuilder.transaction_added(
            account_id="abc",
            transaction_id="t1",
            transaction_type="expense",
            amount="200.00",
            category="Food",
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "transaction_added"
        assert log_dict["entity_id"] == "t1"
        assert log_dict["account_id"] == "abc"

    def test_audit_event_builder_account_registered(self):
        """Test AuditEventBuilder.account_registered."""
        event = AuditEventBuilder.account_registered("abc", "a@b.com")
        assert event.entity_id == "abc"
        assert event.is_user_action is True

    def test_audit_event_builder_persistence_failed(self):
        """Test persistence failures are errors."""
        event = AuditEventBuilder.persistence_failed(
            operation="add_transaction",
            applied=True,
            account_id="abc",
            error_message="disk full",
        )
        assert event.event_type == AuditEventType.PERSISTENCE_FAILED
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "disk full"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
