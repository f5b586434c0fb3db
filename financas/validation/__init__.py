"""Entry validation package."""

from financas.errors import LedgerError, LedgerValidationError, ReferentialGapError
from financas.validation.validator import (
    EntryValidator,
    parse_installments,
    parse_interest,
)

__all__ = [
    "EntryValidator",
    "LedgerError",
    "LedgerValidationError",
    "ReferentialGapError",
    "parse_installments",
    "parse_interest",
]
