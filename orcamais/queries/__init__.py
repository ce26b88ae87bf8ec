"""Read-side queries: period index, summaries and comparisons."""

from orcamais.queries.comparator import PeriodComparator, compute_deltas, percent_change
from orcamais.queries.period_index import PeriodIndex
from orcamais.queries.summary import SummaryEngine, expenses_by_category, percentage_of

__all__ = [
    "PeriodComparator",
    "PeriodIndex",
    "SummaryEngine",
    "compute_deltas",
    "expenses_by_category",
    "percent_change",
    "percentage_of",
]
