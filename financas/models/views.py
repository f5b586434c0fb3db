"""
Derived View Models

Read-only results produced by the aggregator and the forecast engine.
Nothing here is ever written back into a snapshot.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from financas.models.ledger import Transaction


class _ViewModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class CardStats(_ViewModel):
    """Current usage of a credit card."""

    card_id: str
    limit: Decimal = Decimal("0")
    spent: Decimal = Field(
        default=Decimal("0"),
        description="Unpaid purchases still sitting on invoices"
    )
    available: Decimal = Decimal("0")
    usage_percent: Decimal = Decimal("0")


class InvoiceGroup(_ViewModel):
    """One pending invoice: every unpaid line of a card in one month."""

    month: str = Field(..., description="YYYY-MM of the invoice")
    total: Decimal
    items: list[Transaction] = Field(default_factory=list)


class LedgerView(_ViewModel):
    """Everything the dashboard shows for one viewing month."""

    month_key: str
    account_balance: Decimal
    month_income: Decimal
    month_expense: Decimal
    total_invested: Decimal
    month_transactions: list[Transaction] = Field(default_factory=list)


class Forecast(_ViewModel):
    """
    Month-end spending projection.

    total_forecast is the headline figure: expected total outflow for the
    viewing month.
    """

    month_key: str
    is_current_month: bool
    unpaid_fixed_total: Decimal
    variable_spent: Decimal
    daily_avg: Decimal
    days_remaining: int
    projected_variable: Decimal
    total_forecast: Decimal


class GoalStatus(str, Enum):
    """How far spending has gone against a category goal."""
    NO_GOAL = "no_goal"
    OK = "ok"
    WARNING = "warning"
    EXCEEDED = "exceeded"


class GoalProgress(_ViewModel):
    category: str
    goal: Decimal
    spent: Decimal
    percent: Decimal
    status: GoalStatus


class FixedBillState(str, Enum):
    PAID = "paid"
    PENDING = "pending"
    OVERDUE = "overdue"


class FixedBillStatus(_ViewModel):
    """A fixed bill as seen from one viewing month."""

    bill_id: str
    name: str
    value: Decimal
    due_day: int
    state: FixedBillState
    last_paid_month: Optional[str] = None
