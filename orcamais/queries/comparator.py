"""
Period Comparator

Compares two period summaries. Deltas are always B - A; the caller picks
the direction (e.g. "previous vs current" passes the previous period as A).
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from orcamais.models.period import InvalidPeriodError, previous_period
from orcamais.models.results import Session
from orcamais.models.summary import ComparisonDeltas, FinancialSummary, PeriodComparison
from orcamais.queries.summary import PERCENT_PLACES, ZERO, SummaryEngine


def percent_change(baseline: Decimal, value: Decimal) -> Decimal:
    """
    Relative change from baseline to value, in percent.

    0 when the baseline is 0 (no NaN/Infinity). A negative baseline
    (a negative balance) is measured against its magnitude.
    """
    if baseline == 0:
        return ZERO
    change = (value - baseline) / abs(baseline) * 100
    return change.quantize(PERCENT_PLACES, rounding=ROUND_HALF_UP)


def compute_deltas(a: FinancialSummary, b: FinancialSummary) -> ComparisonDeltas:
    return ComparisonDeltas(
        income_change=b.total_income - a.total_income,
        expense_change=b.total_expenses - a.total_expenses,
        balance_change=b.balance - a.balance,
        income_change_percent=percent_change(a.total_income, b.total_income),
        expense_change_percent=percent_change(a.total_expenses, b.total_expenses),
        balance_change_percent=percent_change(a.balance, b.balance),
    )


class PeriodComparator:
    """Builds PeriodComparison values from two summaries."""

    def __init__(self, engine: SummaryEngine):
        self._engine = engine

    def compare(
        self,
        session: Session,
        period_a: str,
        period_b: str,
    ) -> Optional[PeriodComparison]:
        """
        Compare period A (baseline) with period B.

        Returns:
            PeriodComparison, or None if either summary is unavailable
        """
        summary_a = self._engine.summarize(session, period_a)
        summary_b = self._engine.summarize(session, period_b)
        if summary_a is None or summary_b is None:
            return None

        return PeriodComparison(
            period_a=summary_a,
            period_b=summary_b,
            deltas=compute_deltas(summary_a, summary_b),
        )

    def compare_with_previous(
        self,
        session: Session,
        period: str,
    ) -> Optional[PeriodComparison]:
        """Compare a period against the month before it; None for a malformed key."""
        try:
            baseline = previous_period(period)
        except InvalidPeriodError:
            return None
        return self.compare(session, baseline, period)
