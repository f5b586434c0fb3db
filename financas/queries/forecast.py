"""
Month-End Forecast

Projects the viewing month's total outflow from three parts:
1. what was already spent in the month
2. fixed bills not yet paid for the month
3. discretionary spend extrapolated over the remaining days

Only the real current month is extrapolated. A past or future month has
no remaining days to project.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from financas.billing.cycles import days_in_month, is_current_month, parse_month_key
from financas.config import LedgerSettings, get_settings
from financas.models.ledger import FixedBill, Transaction
from financas.models.views import Forecast
from financas.queries.aggregator import LedgerAggregator


ZERO = Decimal("0")


class ForecastEngine:
    """Computes the month-end spending forecast."""

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or get_settings()

    def unpaid_fixed_total(
        self,
        fixed_bills: Iterable[FixedBill],
        month_key: str,
    ) -> Decimal:
        return sum(
            (b.value for b in fixed_bills if not b.is_paid_for(month_key)),
            ZERO,
        )

    def variable_spent(self, month_transactions: Iterable[Transaction]) -> Decimal:
        """Discretionary spend: expenses outside fixed bills, invoices and investments."""
        excluded = self._settings.non_variable_categories
        return sum(
            (
                t.value for t in month_transactions
                if t.is_expense
                and not t.is_invoice_payment
                and t.category not in excluded
            ),
            ZERO,
        )

    def forecast(
        self,
        month_transactions: Iterable[Transaction],
        fixed_bills: Iterable[FixedBill],
        month_key: str,
        today: Optional[date] = None,
    ) -> Forecast:
        """
        Forecast the viewing month.

        Args:
            month_transactions: Transactions already filtered to month_key
            fixed_bills: Every fixed bill of the ledger
            month_key: Viewing month (YYYY-MM)
            today: Real calendar day, defaults to date.today()
        """
        today = today or date.today()
        month_txs = list(month_transactions)

        year, month = parse_month_key(month_key)
        current = is_current_month(month_key, today)
        month_length = days_in_month(year, month)
        current_day = today.day if current else month_length
        days_remaining = max(month_length - current_day, 0)

        unpaid_fixed = self.unpaid_fixed_total(fixed_bills, month_key)
        variable = self.variable_spent(month_txs)
        daily_avg = variable / current_day if current_day > 0 else ZERO
        projected = daily_avg * days_remaining if current else ZERO

        month_expense = LedgerAggregator.month_expense(month_txs)

        return Forecast(
            month_key=month_key,
            is_current_month=current,
            unpaid_fixed_total=unpaid_fixed,
            variable_spent=variable,
            daily_avg=daily_avg,
            days_remaining=days_remaining,
            projected_variable=projected,
            total_forecast=month_expense + unpaid_fixed + projected,
        )
