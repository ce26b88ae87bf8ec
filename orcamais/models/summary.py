"""
Summary and Comparison Models

Read-side projections of a ledger. They are recomputed on every query,
never persisted and never mutated after construction (frozen).
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from orcamais.models.ledger import Transaction


class FinancialSummary(BaseModel):
    """Totals, balance and per-category expenses for one period."""
    model_config = ConfigDict(frozen=True)

    period: str = Field(..., description="Period key (YYYY-MM)")
    monthly_income: Decimal = Field(
        ...,
        description="Fixed income declared for the period"
    )
    total_income: Decimal = Field(
        ...,
        description="Fixed income plus income transactions"
    )
    total_expenses: Decimal
    balance: Decimal = Field(
        ...,
        description="total_income - total_expenses"
    )
    transaction_count: int = Field(ge=0)
    expenses_by_category: dict[str, Decimal] = Field(default_factory=dict)
    transactions: list[Transaction] = Field(
        default_factory=list,
        description="Period transactions, newest date first"
    )
    spending_percentage: Decimal = Field(
        default=Decimal("0"),
        description="Expenses as a percentage of the fixed income (0 without one)"
    )
    spending_alert: bool = Field(
        default=False,
        description="Spending reached the configured alert threshold"
    )

    @property
    def has_activity(self) -> bool:
        return self.transaction_count > 0 or self.monthly_income > 0


class ComparisonDeltas(BaseModel):
    """
    Change from period A to period B.

    Absolute deltas are always B - A. Percentages are relative to A
    and are 0 when A's value is 0.
    """
    model_config = ConfigDict(frozen=True)

    income_change: Decimal
    expense_change: Decimal
    balance_change: Decimal
    income_change_percent: Decimal
    expense_change_percent: Decimal
    balance_change_percent: Decimal


class PeriodComparison(BaseModel):
    """Two summaries plus the deltas between them."""
    model_config = ConfigDict(frozen=True)

    period_a: FinancialSummary
    period_b: FinancialSummary
    deltas: ComparisonDeltas
