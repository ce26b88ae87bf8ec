"""
OrçaMais Ledger Engine

The ledger and aggregation core of a personal finance tracker: it owns
transactions and fixed monthly incomes per account, indexes them by
calendar period and derives summaries and period-over-period comparisons.

DESIGN PRINCIPLES:
1. No hidden global state - the host builds the tracker and passes sessions
2. Every failure is a result value, never a crash
3. Every mutation is audited
4. Storage is a swappable blob store
"""

__version__ = "2.0.0"
__author__ = "OrçaMais Team"
