"""
Ledger Event Models

Every operation that proposes a new snapshot, and every rejection,
produces one LedgerEvent. Events go to the structured log only.

DESIGN DECISION: Events are not stored anywhere by the engine. They exist
so that the log lines for one kind of change always carry the same keys.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class LedgerEventType(str, Enum):
    """Types of events we log."""
    # Entries
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    INSTALLMENTS_ALLOCATED = "installments_allocated"

    # Cards and bills
    CARD_SAVED = "card_saved"
    CARD_DELETED = "card_deleted"
    FIXED_BILL_SAVED = "fixed_bill_saved"
    FIXED_BILL_DELETED = "fixed_bill_deleted"

    # Settlement
    INVOICE_PAID = "invoice_paid"
    FIXED_BILL_PAID = "fixed_bill_paid"
    GOAL_SET = "goal_set"

    # Categories
    CATEGORY_ADDED = "category_added"
    CATEGORY_REMOVED = "category_removed"

    # Rejections
    VALIDATION_FAILED = "validation_failed"
    REFERENTIAL_GAP = "referential_gap"


class LedgerEventSeverity(str, Enum):
    """Severity level for ledger events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LedgerEvent(BaseModel):
    """A single ledger event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )

    event_type: LedgerEventType
    severity: LedgerEventSeverity = LedgerEventSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'card', 'fixed_bill')"
    )
    entity_id: Optional[str] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
        }


class LedgerEventBuilder:
    """
    Helper class to build ledger events with common patterns.

    Usage:
        event = LedgerEventBuilder.invoice_paid(card_id, month_key, amount, count)
        event = LedgerEventBuilder.referential_gap("card", card_id, "pay_invoice")
    """

    @staticmethod
    def transaction_added(tx_id: str, description: str, value: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=tx_id,
            description=f"Transaction added: {description}",
            details={"value": value},
        )

    @staticmethod
    def transaction_updated(tx_id: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=tx_id,
            description="Transaction updated",
        )

    @staticmethod
    def transaction_deleted(tx_id: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=tx_id,
            description="Transaction deleted",
        )

    @staticmethod
    def installments_allocated(
        card_id: str,
        count: int,
        total: str,
        first_due: str,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.INSTALLMENTS_ALLOCATED,
            entity_type="card",
            entity_id=card_id,
            description=f"Card purchase split into {count} installment(s)",
            details={
                "installments": count,
                "total_with_interest": total,
                "first_due": first_due,
            },
        )

    @staticmethod
    def card_saved(card_id: str, name: str, created: bool) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.CARD_SAVED,
            entity_type="card",
            entity_id=card_id,
            description=f"Card {'created' if created else 'updated'}: {name}",
            details={"created": created},
        )

    @staticmethod
    def card_deleted(card_id: str, orphaned: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.CARD_DELETED,
            severity=LedgerEventSeverity.WARNING if orphaned else LedgerEventSeverity.INFO,
            entity_type="card",
            entity_id=card_id,
            description=f"Card deleted, {orphaned} transaction(s) keep its reference",
            details={"orphaned_transactions": orphaned},
        )

    @staticmethod
    def fixed_bill_saved(bill_id: str, name: str, created: bool) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.FIXED_BILL_SAVED,
            entity_type="fixed_bill",
            entity_id=bill_id,
            description=f"Fixed bill {'created' if created else 'updated'}: {name}",
            details={"created": created},
        )

    @staticmethod
    def fixed_bill_deleted(bill_id: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.FIXED_BILL_DELETED,
            entity_type="fixed_bill",
            entity_id=bill_id,
            description="Fixed bill deleted",
        )

    @staticmethod
    def invoice_paid(
        card_id: str,
        month_key: str,
        amount: str,
        settled_lines: int,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.INVOICE_PAID,
            entity_type="card",
            entity_id=card_id,
            description=f"Invoice {month_key} paid: {amount}",
            details={
                "month_key": month_key,
                "amount": amount,
                "settled_lines": settled_lines,
            },
        )

    @staticmethod
    def fixed_bill_paid(
        bill_id: str,
        month_key: str,
        amount: str,
        duplicate: bool,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.FIXED_BILL_PAID,
            severity=LedgerEventSeverity.WARNING if duplicate else LedgerEventSeverity.INFO,
            entity_type="fixed_bill",
            entity_id=bill_id,
            description=f"Fixed bill paid for {month_key}: {amount}",
            details={
                "month_key": month_key,
                "amount": amount,
                "duplicate": duplicate,
            },
        )

    @staticmethod
    def goal_set(category: str, value: str, coerced: bool) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.GOAL_SET,
            entity_type="goal",
            entity_id=category,
            description=f"Goal for {category} set to {value}",
            details={"value": value, "coerced": coerced},
        )

    @staticmethod
    def category_changed(category: str, added: bool) -> LedgerEvent:
        return LedgerEvent(
            event_type=(
                LedgerEventType.CATEGORY_ADDED
                if added
                else LedgerEventType.CATEGORY_REMOVED
            ),
            entity_type="category",
            entity_id=category,
            description=f"Category {'added' if added else 'removed'}: {category}",
        )

    @staticmethod
    def validation_failed(subject: str, issues: list[dict]) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.VALIDATION_FAILED,
            severity=LedgerEventSeverity.WARNING,
            entity_type=subject,
            description=f"Validation failed with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def referential_gap(
        entity_type: str,
        entity_id: str,
        operation: str,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.REFERENTIAL_GAP,
            severity=LedgerEventSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{operation} references a missing {entity_type}",
            details={"operation": operation},
        )
