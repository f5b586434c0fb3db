"""
Ledger Aggregation Engine

DESIGN DECISION: Aggregation is a pure function of the snapshot.
Every figure the dashboard shows (balance, monthly totals, invested
capital, card usage, pending invoices) is recomputed from the raw
transactions. Nothing derived is ever stored.

Counting rules follow the transaction role:
- ordinary lines move cash immediately
- card purchases sit on an invoice and leave the account only when the
  invoice payment line is recorded
- invoice payment lines are cash outflow, but not spend, so monthly
  expense leaves them out to avoid counting the purchases twice
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from financas.billing.cycles import is_current_month, parse_month_key
from financas.config import LedgerSettings, get_settings
from financas.models.ledger import (
    LedgerSnapshot,
    Transaction,
    TransactionRole,
    same_id,
)
from financas.models.views import (
    CardStats,
    FixedBillState,
    FixedBillStatus,
    GoalProgress,
    GoalStatus,
    InvoiceGroup,
    LedgerView,
)


ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _sum(transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.value for t in transactions), ZERO)


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    """part as a percentage of whole; 0 when whole is not positive."""
    if whole <= 0:
        return ZERO
    return part / whole * HUNDRED


class LedgerAggregator:
    """
    Computes derived views over one ledger snapshot.

    GUARANTEES:
    - Never mutates the snapshot
    - An unpaid card purchase never changes the account balance
    - Monthly expense never includes invoice payment lines
    """

    def __init__(
        self,
        snapshot: LedgerSnapshot,
        settings: Optional[LedgerSettings] = None,
    ):
        self._snapshot = snapshot
        self._settings = settings or get_settings()

    @property
    def snapshot(self) -> LedgerSnapshot:
        return self._snapshot

    def _role(self, tx: Transaction) -> TransactionRole:
        return tx.role(self._settings.credit_card_method)

    # -------------------------------------------------------------------------
    # Balances and monthly totals
    # -------------------------------------------------------------------------

    def account_balance(self) -> Decimal:
        """Initial balance plus income minus the expenses that left the account."""
        transactions = self._snapshot.transactions
        income = _sum(t for t in transactions if t.is_income)
        cash_out = _sum(
            t for t in transactions
            if t.is_expense and self._role(t) != TransactionRole.CARD_PURCHASE
        )
        return self._snapshot.initial_balance + income - cash_out

    def month_transactions(self, month_key: str) -> list[Transaction]:
        """Transactions dated within month_key, in ledger order."""
        parse_month_key(month_key)
        return [t for t in self._snapshot.transactions if t.month_key == month_key]

    @staticmethod
    def month_income(month_transactions: Iterable[Transaction]) -> Decimal:
        return _sum(t for t in month_transactions if t.is_income)

    @staticmethod
    def month_expense(month_transactions: Iterable[Transaction]) -> Decimal:
        """Expense of the month, leaving invoice payment lines out."""
        return _sum(
            t for t in month_transactions
            if t.is_expense and not t.is_invoice_payment
        )

    def total_invested(self) -> Decimal:
        """
        Lifetime invested capital.

        Investment expenses are deposits, investment income is withdrawals.
        """
        category = self._settings.investment_category
        invested = ZERO
        for tx in self._snapshot.transactions:
            if tx.category != category:
                continue
            invested += tx.value if tx.is_expense else -tx.value
        return invested

    def view(self, month_key: str) -> LedgerView:
        """Everything the dashboard needs for one viewing month."""
        month_txs = self.month_transactions(month_key)
        return LedgerView(
            month_key=month_key,
            account_balance=self.account_balance(),
            month_income=self.month_income(month_txs),
            month_expense=self.month_expense(month_txs),
            total_invested=self.total_invested(),
            month_transactions=month_txs,
        )

    # -------------------------------------------------------------------------
    # Cards
    # -------------------------------------------------------------------------

    def _open_card_lines(self, card_id: Any) -> list[Transaction]:
        """A card's expense lines that still sit on an unpaid invoice."""
        return [
            t for t in self._snapshot.transactions
            if t.belongs_to_card(card_id)
            and t.is_expense
            and not t.is_invoice_payment
            and not t.is_paid
        ]

    def card_stats(self, card_id: Any) -> CardStats:
        """Spent and available credit for a card (zeros for an unknown card)."""
        spent = _sum(self._open_card_lines(card_id))
        card = self._snapshot.find_card(card_id)
        if card is None:
            return CardStats(card_id=str(card_id), spent=spent)

        return CardStats(
            card_id=card.id,
            limit=card.limit,
            spent=spent,
            available=card.limit - spent,
            usage_percent=_percent(spent, card.limit),
        )

    def card_invoices(self, card_id: Any) -> list[InvoiceGroup]:
        """
        Pending invoices of a card, oldest first.

        Unpaid lines are grouped by the month of their (invoice) date.
        """
        groups: dict[str, list[Transaction]] = defaultdict(list)
        for tx in self._open_card_lines(card_id):
            groups[tx.month_key].append(tx)

        return [
            InvoiceGroup(month=month, total=_sum(items), items=items)
            for month, items in sorted(groups.items())
        ]

    def orphaned_transactions(self) -> list[Transaction]:
        """Transactions whose card_id no longer matches any card."""
        return [
            t for t in self._snapshot.transactions
            if t.card_id is not None and self._snapshot.find_card(t.card_id) is None
        ]

    # -------------------------------------------------------------------------
    # Categories and goals
    # -------------------------------------------------------------------------

    def expenses_by_category(self, month_key: str) -> dict[str, Decimal]:
        """Expense totals of the month per category."""
        totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for tx in self.month_transactions(month_key):
            if tx.is_expense:
                totals[tx.category] += tx.value
        return dict(totals)

    def goal_progress(self, month_key: str) -> list[GoalProgress]:
        """Spending against the monthly goal of every category."""
        spent_by_category = self.expenses_by_category(month_key)
        warning_at = Decimal(str(self._settings.goal_warning_percent))

        progress = []
        for category in self._snapshot.categories:
            goal = self._snapshot.goals.get(category, ZERO)
            spent = spent_by_category.get(category, ZERO)
            percent = _percent(spent, goal)

            if goal <= 0:
                status = GoalStatus.NO_GOAL
            elif percent > HUNDRED:
                status = GoalStatus.EXCEEDED
            elif percent > warning_at:
                status = GoalStatus.WARNING
            else:
                status = GoalStatus.OK

            progress.append(GoalProgress(
                category=category,
                goal=goal,
                spent=spent,
                percent=percent,
                status=status,
            ))
        return progress

    # -------------------------------------------------------------------------
    # Fixed bills
    # -------------------------------------------------------------------------

    def fixed_bill_statuses(
        self,
        month_key: str,
        today: Optional[date] = None,
    ) -> list[FixedBillStatus]:
        """
        Paid / pending / overdue state of every fixed bill for a month.

        Only the real current month can be overdue: a bill is overdue when
        it is unpaid and its due day has already passed today.
        """
        today = today or date.today()
        current = is_current_month(month_key, today)

        statuses = []
        for bill in self._snapshot.fixed_bills:
            if bill.is_paid_for(month_key):
                state = FixedBillState.PAID
            elif current and bill.due_day < today.day:
                state = FixedBillState.OVERDUE
            else:
                state = FixedBillState.PENDING

            statuses.append(FixedBillStatus(
                bill_id=bill.id,
                name=bill.name,
                value=bill.value,
                due_day=bill.due_day,
                state=state,
                last_paid_month=bill.last_paid_month,
            ))
        return statuses

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def search(
        self,
        text: str,
        month_key: Optional[str] = None,
    ) -> list[Transaction]:
        """Case-insensitive description search, optionally within a month."""
        pool = (
            self.month_transactions(month_key)
            if month_key
            else self._snapshot.transactions
        )
        needle = text.strip().lower()
        return [t for t in pool if needle in t.description.lower()]

    def transactions_for_card(self, card_id: Any) -> list[Transaction]:
        return [t for t in self._snapshot.transactions if same_id(t.card_id, card_id)]
