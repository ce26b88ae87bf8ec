"""
Tests for the period index, summaries and comparisons.
"""

import pytest
from decimal import Decimal

from orcamais.config import LedgerSettings
from orcamais.models.results import Session
from orcamais.queries import (
    PeriodComparator,
    PeriodIndex,
    SummaryEngine,
    percent_change,
    percentage_of,
)


def _add(store, session, description, amount, type_, date, category=None):
    data = {"description": description, "amount": amount, "type": type_, "date": date}
    if category is not None:
        data["category"] = category
    result = store.add_transaction(session, data)
    assert result.success
    return result.transaction


@pytest.fixture
def engine(store):
    return SummaryEngine(store, PeriodIndex(store))


@pytest.fixture
def comparator(engine):
    return PeriodComparator(engine)


class TestPeriodIndex:
    """Tests for selecting transactions by period."""

    def test_filters_by_period_keeping_order(self, store, session):
        """Test only matching transactions are returned, newest insertion first."""
        _add(store, session, "jan-1", 10, "expense", "2024-01-03")
        _add(store, session, "feb", 10, "expense", "2024-02-01")
        _add(store, session, "jan-2", 10, "expense", "2024-01-20")

        index = PeriodIndex(store)
        found = index.transactions_for_period(session, "2024-01")
        assert [t.description for t in found] == ["jan-2", "jan-1"]

    def test_boundaries(self, store, session):
        """Test month edges and year rollover do not leak."""
        _add(store, session, "dec", 10, "expense", "2023-12-31")
        _add(store, session, "jan", 10, "expense", "2024-01-01")

        index = PeriodIndex(store)
        assert [t.description for t in index.transactions_for_period(session, "2023-12")] == ["dec"]
        assert [t.description for t in index.transactions_for_period(session, "2024-01")] == ["jan"]

    def test_malformed_period_matches_nothing(self, store, session):
        """Test a bad key selects nothing instead of raising."""
        _add(store, session, "jan", 10, "expense", "2024-01-01")
        index = PeriodIndex(store)
        assert index.transactions_for_period(session, "2024-1") == []
        assert index.transactions_for_period(session, None) == []


class TestSummaryEngine:
    """Tests for period summaries."""

    def test_end_to_end_scenario(self, store, engine):
        """Test the register, income, transactions, summary flow."""
        session = store.register({"name": "Ana", "email": "a@b.com"}).session
        store.set_monthly_income(session, "2024-01", 5000)
        _add(store, session, "Freelance", 300, "income", "2024-01-10")
        _add(store, session, "Market", 200, "expense", "2024-01-12", category="Food")

        summary = engine.summarize(session, "2024-01")
        assert summary.monthly_income == Decimal("5000")
        assert summary.total_income == Decimal("5300")
        assert summary.total_expenses == Decimal("200")
        assert summary.balance == Decimal("5100")
        assert summary.transaction_count == 2
        assert summary.expenses_by_category == {"Food": Decimal("200")}

    def test_no_session_returns_none(self, engine):
        """Test summarize without an account gives None."""
        assert engine.summarize(Session.anonymous(), "2024-01") is None

    def test_empty_period_is_all_zero(self, engine, session):
        """Test a period without data is a zero summary."""
        summary = engine.summarize(session, "2030-05")
        assert summary.total_income == 0
        assert summary.total_expenses == 0
        assert summary.balance == 0
        assert summary.transaction_count == 0
        assert summary.expenses_by_category == {}
        assert summary.transactions == []
        assert summary.has_activity is False

    def test_malformed_period_is_zero_summary(self, store, engine, session):
        """Test a malformed key does not raise."""
        _add(store, session, "jan", 10, "expense", "2024-01-01")
        summary = engine.summarize(session, "January")
        assert summary.transaction_count == 0

    def test_balance_identity_is_exact(self, store, engine, session):
        """Test Decimal arithmetic keeps cents exact."""
        store.set_monthly_income(session, "2024-01", "0.10")
        _add(store, session, "a", "0.20", "income", "2024-01-02")
        _add(store, session, "b", "0.30", "expense", "2024-01-03")

        summary = engine.summarize(session, "2024-01")
        assert summary.total_income == Decimal("0.30")
        assert summary.balance == summary.total_income - summary.total_expenses
        assert summary.balance == Decimal("0.00")

    def test_category_fold_sums_to_total(self, store, engine, session):
        """Test per-category expenses add up to total expenses."""
        _add(store, session, "a", 50, "expense", "2024-01-02", category="Food")
        _add(store, session, "b", 25.5, "expense", "2024-01-03", category="Food")
        _add(store, session, "c", 100, "expense", "2024-01-04", category="Unlisted")
        _add(store, session, "d", 999, "income", "2024-01-04", category="Food")

        summary = engine.summarize(session, "2024-01")
        assert summary.expenses_by_category == {
            "Food": Decimal("75.50"),
            "Unlisted": Decimal("100.00"),
        }
        assert sum(summary.expenses_by_category.values()) == summary.total_expenses

    def test_transactions_sorted_by_date_descending(self, store, engine, session):
        """Test the summary lists newest dates first, ties in store order."""
        _add(store, session, "early", 1, "expense", "2024-01-02")
        _add(store, session, "late", 1, "expense", "2024-01-20")
        _add(store, session, "tie-old", 1, "expense", "2024-01-10")
        _add(store, session, "tie-new", 1, "expense", "2024-01-10")

        summary = engine.summarize(session, "2024-01")
        assert [t.description for t in summary.transactions] == [
            "late", "tie-new", "tie-old", "early",
        ]

    def test_spending_alert(self, store, engine, session):
        """Test the alert fires at the threshold of fixed income."""
        store.set_monthly_income(session, "2024-01", 1000)
        _add(store, session, "rent", 899, "expense", "2024-01-05")
        summary = engine.summarize(session, "2024-01")
        assert summary.spending_percentage == Decimal("89.90")
        assert summary.spending_alert is False

        _add(store, session, "coffee", 1, "expense", "2024-01-06")
        summary = engine.summarize(session, "2024-01")
        assert summary.spending_percentage == Decimal("90.00")
        assert summary.spending_alert is True

    def test_no_alert_without_fixed_income(self, store, engine, session):
        """Test spending without fixed income never alerts."""
        _add(store, session, "rent", 899, "expense", "2024-01-05")
        summary = engine.summarize(session, "2024-01")
        assert summary.spending_percentage == 0
        assert summary.spending_alert is False

    def test_threshold_from_settings(self, store, session):
        """Test the alert threshold is configurable."""
        engine = SummaryEngine(store, settings=LedgerSettings(spending_alert_threshold=50))
        store.set_monthly_income(session, "2024-01", 100)
        _add(store, session, "half", 50, "expense", "2024-01-05")
        assert engine.summarize(session, "2024-01").spending_alert is True


class TestPercentHelpers:
    """Tests for percentage helpers."""

    def test_percent_change(self):
        """Test relative change and rounding."""
        assert percent_change(Decimal("200"), Decimal("300")) == Decimal("50.00")
        assert percent_change(Decimal("300"), Decimal("200")) == Decimal("-33.33")

    def test_percent_change_zero_baseline(self):
        """Test a zero baseline gives 0, not an error."""
        assert percent_change(Decimal("0"), Decimal("300")) == 0

    def test_percent_change_negative_baseline(self):
        """Test a negative baseline is measured by magnitude."""
        assert percent_change(Decimal("-100"), Decimal("50")) == Decimal("150.00")

    def test_percentage_of(self):
        """Test share of a whole."""
        assert percentage_of(Decimal("1"), Decimal("3")) == Decimal("33.33")
        assert percentage_of(Decimal("5"), Decimal("0")) == 0


class TestPeriodComparator:
    """Tests for period comparisons."""

    def test_compare(self, store, session, comparator):
        """Test deltas are B minus A."""
        store.set_monthly_income(session, "2023-12", 4000)
        _add(store, session, "dec", 1000, "expense", "2023-12-10")
        store.set_monthly_income(session, "2024-01", 5000)
        _add(store, session, "jan", 500, "expense", "2024-01-10")

        comparison = comparator.compare(session, "2023-12", "2024-01")
        deltas = comparison.deltas
        assert comparison.period_a.period == "2023-12"
        assert comparison.period_b.period == "2024-01"
        assert deltas.income_change == Decimal("1000")
        assert deltas.expense_change == Decimal("-500")
        assert deltas.balance_change == Decimal("1500")
        assert deltas.income_change_percent == Decimal("25.00")
        assert deltas.expense_change_percent == Decimal("-50.00")
        assert deltas.balance_change_percent == Decimal("50.00")

    def test_compare_against_empty_baseline(self, store, session, comparator):
        """Test an empty baseline gives zero percentages."""
        store.set_monthly_income(session, "2024-01", 5000)
        deltas = comparator.compare(session, "2023-12", "2024-01").deltas
        assert deltas.income_change == Decimal("5000")
        assert deltas.income_change_percent == 0
        assert deltas.balance_change_percent == 0

    def test_compare_without_session(self, comparator):
        """Test comparing without an account gives None."""
        assert comparator.compare(Session.anonymous(), "2023-12", "2024-01") is None

    def test_compare_with_previous(self, store, session, comparator):
        """Test the previous month is used as the baseline."""
        comparison = comparator.compare_with_previous(session, "2024-01")
        assert comparison.period_a.period == "2023-12"
        assert comparator.compare_with_previous(session, "bad") is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
