"""
Data Models Package

This package contains all Pydantic models used by the ledger engine.
Every snapshot handed to the engine must conform to these schemas.
"""

from financas.models.ledger import (
    CreditCard,
    FixedBill,
    LedgerSnapshot,
    Transaction,
    TransactionEntry,
    TransactionRole,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    generate_id,
    normalize_id,
    same_id,
)
from financas.models.views import (
    CardStats,
    FixedBillState,
    FixedBillStatus,
    Forecast,
    GoalProgress,
    GoalStatus,
    InvoiceGroup,
    LedgerView,
)
from financas.models.events import (
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventSeverity,
    LedgerEventType,
)

__all__ = [
    # Ledger records
    "CreditCard",
    "FixedBill",
    "LedgerSnapshot",
    "Transaction",
    "TransactionEntry",
    "TransactionRole",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    "generate_id",
    "normalize_id",
    "same_id",
    # Derived views
    "CardStats",
    "FixedBillState",
    "FixedBillStatus",
    "Forecast",
    "GoalProgress",
    "GoalStatus",
    "InvoiceGroup",
    "LedgerView",
    # Events
    "LedgerEvent",
    "LedgerEventBuilder",
    "LedgerEventSeverity",
    "LedgerEventType",
]
