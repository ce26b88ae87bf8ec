"""
Summary Engine

DESIGN DECISION: Summaries are computed DETERMINISTICALLY from the
stored ledger on every call. Nothing is cached and nothing is written.

For a period:
- total_income = fixed monthly income + income transactions
- total_expenses = expense transactions
- balance = total_income - total_expenses (exact, Decimal arithmetic)
- expenses_by_category folds expense transactions by category label,
  whether or not the label is in the account's category list
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from orcamais.config import LedgerSettings
from orcamais.models.ledger import Transaction
from orcamais.models.results import Session
from orcamais.models.summary import FinancialSummary
from orcamais.queries.period_index import PeriodIndex
from orcamais.store import LedgerStore


ZERO = Decimal("0")
PERCENT_PLACES = Decimal("0.01")


def percentage_of(part: Decimal, whole: Decimal) -> Decimal:
    """``part / whole * 100`` to two places; 0 when ``whole`` is 0."""
    if whole == 0:
        return ZERO
    return (part / whole * 100).quantize(PERCENT_PLACES, rounding=ROUND_HALF_UP)


def expenses_by_category(transactions: list[Transaction]) -> dict[str, Decimal]:
    """Sum expense amounts per category label, in first-seen order."""
    groups: dict[str, Decimal] = {}
    for transaction in transactions:
        if not transaction.is_expense:
            continue
        key = transaction.category
        if key not in groups:
            groups[key] = ZERO
        groups[key] += transaction.amount
    return groups


class SummaryEngine:
    """
    Computes period summaries for a session.

    GUARANTEES:
    - Returns None (never raises) when the session has no active account
    - Only reports what is stored; an empty period is all zeros
    """

    def __init__(
        self,
        store: LedgerStore,
        period_index: Optional[PeriodIndex] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        self._store = store
        self._index = period_index or PeriodIndex(store)
        settings = settings or LedgerSettings()
        self._alert_threshold = Decimal(str(settings.spending_alert_threshold))

    def summarize(self, session: Session, period: str) -> Optional[FinancialSummary]:
        """
        Summarize one period.

        Args:
            session: Acting session
            period: Period key (YYYY-MM). A malformed key matches nothing
                    and yields an all-zero summary.

        Returns:
            FinancialSummary, or None without an active account
        """
        if not self._store.is_logged_in(session):
            return None

        key = period.strip() if isinstance(period, str) else ""

        transactions = self._index.transactions_for_period(session, key)
        monthly_income = self._store.get_monthly_income(session, key)

        period_income = sum((t.amount for t in transactions if t.is_income), ZERO)
        total_income = monthly_income + period_income
        total_expenses = sum((t.amount for t in transactions if t.is_expense), ZERO)
        balance = total_income - total_expenses

        spending = percentage_of(total_expenses, monthly_income)

        return FinancialSummary(
            period=key,
            monthly_income=monthly_income,
            total_income=total_income,
            total_expenses=total_expenses,
            balance=balance,
            transaction_count=len(transactions),
            expenses_by_category=expenses_by_category(transactions),
            # stable sort: equal dates keep insertion order
            transactions=sorted(
                transactions, key=lambda t: t.transaction_date, reverse=True
            ),
            spending_percentage=spending,
            spending_alert=monthly_income > 0 and spending >= self._alert_threshold,
        )
