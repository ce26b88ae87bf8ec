"""Input validation package."""

from orcamais.validation.validator import (
    LedgerValidator,
    ProfileDraft,
    TransactionDraft,
    is_encodable,
    normalize_amount,
    parse_amount,
    parse_date,
)

__all__ = [
    "LedgerValidator",
    "ProfileDraft",
    "TransactionDraft",
    "is_encodable",
    "normalize_amount",
    "parse_amount",
    "parse_date",
]
