"""
Core Data Models for the Ledger Engine

These models define the schemas for every record in a ledger snapshot.
They are designed to:
1. Load a snapshot blob as-is (camelCase keys, numeric or string ids)
2. Enforce type safety at runtime
3. Stay immutable so operations can only propose new snapshots

DESIGN DECISION: Ids are normalized to strings on the way in and every
lookup goes through same_id(). Stored data mixes numeric and string ids,
and native equality between the two silently fails.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from financas.config import get_settings


MONTH_KEY_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


def generate_id() -> str:
    """Create a new unique entity id."""
    return uuid4().hex


def normalize_id(value: Any) -> Optional[str]:
    """
    Canonical string form of an id.

    Integral floats collapse to their integer form so 17.0 and "17" match.
    """
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def same_id(left: Any, right: Any) -> bool:
    """Compare two ids by their canonical string form."""
    left_id = normalize_id(left)
    return left_id is not None and left_id == normalize_id(right)


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class TransactionRole(str, Enum):
    """
    How a transaction is counted in every aggregate.

    The roles are mutually exclusive.
    """
    ORDINARY = "ordinary"                # Cash in or out right away
    CARD_PURCHASE = "card_purchase"      # Sits on a card invoice until paid
    INVOICE_PAYMENT = "invoice_payment"  # The cash leaving to settle an invoice


class _LedgerModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class Transaction(_LedgerModel):
    """
    A single financial event.

    Immutable once created, except for the two flags that settlement flips
    (is_paid, is_invoice_payment), which are changed through model_copy.
    """

    id: str = Field(default_factory=generate_id)
    description: str = Field(
        ...,
        min_length=1,
        max_length=300,
    )
    value: Decimal = Field(
        ...,
        ge=0,
        description="Amount in currency units"
    )
    type: TransactionType
    category: str = ""
    date: dt.date = Field(
        ...,
        description="Calendar day of the transaction (YYYY-MM-DD)"
    )
    method: str = ""
    card_id: Optional[str] = Field(
        default=None,
        description="Card reference, only for credit card lines"
    )
    installment_number: Optional[str] = Field(
        default=None,
        description='Human readable "k de N" label'
    )
    is_paid: bool = False
    is_invoice_payment: bool = False

    @field_validator('id', 'card_id', mode='before')
    @classmethod
    def normalize_ids(cls, v: Any) -> Optional[str]:
        return normalize_id(v)

    @field_validator('installment_number', mode='before')
    @classmethod
    def blank_installment_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def month_key(self) -> str:
        """The YYYY-MM month this transaction falls in."""
        return self.date.strftime("%Y-%m")

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE

    def role(self, credit_card_method: Optional[str] = None) -> TransactionRole:
        """Classify this transaction for aggregation."""
        if self.is_invoice_payment:
            return TransactionRole.INVOICE_PAYMENT
        method = credit_card_method or get_settings().credit_card_method
        if self.method == method:
            return TransactionRole.CARD_PURCHASE
        return TransactionRole.ORDINARY

    def belongs_to_card(self, card_id: Any) -> bool:
        return same_id(self.card_id, card_id)


class CreditCard(_LedgerModel):
    """
    A credit card and its billing cycle.

    No ordering between closing_day and due_day is assumed.
    """

    id: str = Field(default_factory=generate_id)
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    limit: Decimal = Field(
        ...,
        ge=0,
        description="Credit ceiling"
    )
    closing_day: int = Field(
        ...,
        ge=1,
        le=31,
        description="Purchases after this day go to the next invoice"
    )
    due_day: int = Field(
        ...,
        ge=1,
        le=31,
        description="Invoice payment due day"
    )
    gradient: Optional[str] = None

    @field_validator('id', mode='before')
    @classmethod
    def normalize_card_id(cls, v: Any) -> Optional[str]:
        return normalize_id(v)


class FixedBill(_LedgerModel):
    """
    A recurring, non-card obligation.

    The only recurrence state is last_paid_month: the bill is paid for a
    month iff last_paid_month equals that month key.
    """

    id: str = Field(default_factory=generate_id)
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    value: Decimal = Field(..., ge=0)
    due_day: int = Field(..., ge=1, le=31)
    category: str = Field(
        default_factory=lambda: get_settings().fixed_bills_category
    )
    last_paid_month: Optional[str] = Field(
        default=None,
        pattern=MONTH_KEY_PATTERN,
    )

    @field_validator('id', mode='before')
    @classmethod
    def normalize_bill_id(cls, v: Any) -> Optional[str]:
        return normalize_id(v)

    @field_validator('last_paid_month', mode='before')
    @classmethod
    def blank_month_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def is_paid_for(self, month_key: str) -> bool:
        return self.last_paid_month == month_key


class LedgerSnapshot(_LedgerModel):
    """
    The aggregate root.

    The engine only reads snapshots and proposes replacements built with
    model_copy; a snapshot handed to the engine is never changed.
    """

    initial_balance: Decimal = Decimal("0")
    transactions: list[Transaction] = Field(default_factory=list)
    cards: list[CreditCard] = Field(default_factory=list)
    fixed_bills: list[FixedBill] = Field(default_factory=list)
    goals: dict[str, Decimal] = Field(default_factory=dict)
    categories: list[str] = Field(
        default_factory=lambda: get_settings().default_categories_list
    )

    @classmethod
    def empty(cls) -> "LedgerSnapshot":
        """A fresh ledger with the default category list."""
        return cls()

    def find_card(self, card_id: Any) -> Optional[CreditCard]:
        return next((c for c in self.cards if same_id(c.id, card_id)), None)

    def find_fixed_bill(self, bill_id: Any) -> Optional[FixedBill]:
        return next((b for b in self.fixed_bills if same_id(b.id, bill_id)), None)

    def find_transaction(self, tx_id: Any) -> Optional[Transaction]:
        return next((t for t in self.transactions if same_id(t.id, tx_id)), None)


# =============================================================================
# ENTRY MODELS
# =============================================================================

class TransactionEntry(BaseModel):
    """
    Raw input from the entry form.

    Deliberately loose: values arrive as typed text and are checked by
    EntryValidator, which reports every problem instead of failing on the
    first one.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    description: Optional[str] = None
    value: Any = None
    type: TransactionType = TransactionType.EXPENSE
    category: str = ""
    date: Optional[dt.date] = None
    method: str = ""
    card_id: Optional[str] = None
    installments: Any = 1
    interest_rate: Any = 0

    @field_validator('card_id', mode='before')
    @classmethod
    def normalize_entry_card(cls, v: Any) -> Optional[str]:
        return normalize_id(v)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unknown_reference')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of validating one input against the current ledger."""

    subject: str = Field(
        ...,
        description="What was validated (e.g., 'transaction_entry')"
    )
    validated_at: dt.datetime = Field(
        default_factory=dt.datetime.now
    )
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
