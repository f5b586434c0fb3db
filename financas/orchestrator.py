"""
Main Orchestrator for the Ledger Engine

This module ties the components together and defines the flows for:
1. Reading (snapshot → aggregator → forecast)
2. Entry (form input → validation → new transactions / records)
3. Settlement (pay invoice, pay fixed bill, set goal)

DESIGN DECISION: Every mutating flow takes a snapshot and returns a new
one. Validation and reference checks happen before anything is built, so
a rejected operation leaves nothing half-applied; the caller still holds
the untouched snapshot.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional, Union

from financas.billing.cycles import month_label, parse_month_key
from financas.billing.installments import allocate_installments, to_decimal
from financas.config import LedgerSettings, get_settings
from financas.errors import LedgerValidationError, ReferentialGapError
from financas.events import LedgerEventLogger
from financas.models.events import LedgerEventBuilder
from financas.models.ledger import (
    CreditCard,
    FixedBill,
    LedgerSnapshot,
    Transaction,
    TransactionEntry,
    TransactionType,
    ValidationResult,
    same_id,
)
from financas.models.views import Forecast, LedgerView
from financas.queries import ForecastEngine, LedgerAggregator
from financas.validation import EntryValidator, parse_installments, parse_interest


class _Flow:
    def __init__(
        self,
        settings: Optional[LedgerSettings] = None,
        event_logger: Optional[LedgerEventLogger] = None,
    ):
        self._settings = settings or get_settings()
        self._event_logger = event_logger or LedgerEventLogger()

    def _reject(self, result: ValidationResult) -> LedgerValidationError:
        self._event_logger.log_validation_failed(
            result.subject,
            [issue.model_dump() for issue in result.issues],
        )
        return LedgerValidationError(result)

    def _gap(self, entity_type: str, entity_id: Any, operation: str) -> ReferentialGapError:
        self._event_logger.log_referential_gap(entity_type, str(entity_id), operation)
        return ReferentialGapError(entity_type, entity_id, operation)

    def _check_month_key(self, month_key: str) -> None:
        try:
            parse_month_key(month_key)
        except LedgerValidationError as e:
            raise self._reject(e.result)


class DashboardFlow(_Flow):
    """
    Read side: one viewing month through the aggregator and the forecast.

    Flow:
    1. Aggregate the snapshot for the viewing month
    2. Feed the month's transactions and the fixed bills to the forecast
    """

    def __init__(
        self,
        settings: Optional[LedgerSettings] = None,
        event_logger: Optional[LedgerEventLogger] = None,
        forecast_engine: Optional[ForecastEngine] = None,
    ):
        super().__init__(settings, event_logger)
        self._forecast_engine = forecast_engine or ForecastEngine(self._settings)

    def aggregator(self, snapshot: LedgerSnapshot) -> LedgerAggregator:
        return LedgerAggregator(snapshot, self._settings)

    def view(
        self,
        snapshot: LedgerSnapshot,
        month_key: str,
        today: Optional[date] = None,
    ) -> tuple[LedgerView, Forecast]:
        """
        Derive the month view and its forecast.

        Returns:
            (ledger_view, forecast)
        """
        self._check_month_key(month_key)
        ledger_view = self.aggregator(snapshot).view(month_key)
        forecast = self._forecast_engine.forecast(
            ledger_view.month_transactions,
            snapshot.fixed_bills,
            month_key,
            today,
        )
        return ledger_view, forecast


class EntryFlow(_Flow):
    """
    Orchestrates manual entries and record maintenance.

    Credit card entries are split into installments; every other entry
    becomes a single transaction. New transactions go to the front of the
    list, newest first.
    """

    def __init__(
        self,
        settings: Optional[LedgerSettings] = None,
        event_logger: Optional[LedgerEventLogger] = None,
        validator: Optional[EntryValidator] = None,
    ):
        super().__init__(settings, event_logger)
        self._validator = validator or EntryValidator(self._settings)

    def build_transactions(
        self,
        snapshot: LedgerSnapshot,
        entry: TransactionEntry,
        tx_id: Optional[str] = None,
    ) -> list[Transaction]:
        """
        Validate an entry and build its transaction(s).

        Raises:
            LedgerValidationError: The entry is invalid for this snapshot
        """
        result = self._validator.validate(entry, snapshot)
        if result.has_errors:
            raise self._reject(result)

        if self._validator.is_credit_entry(entry):
            card = snapshot.find_card(entry.card_id)
            lines = allocate_installments(
                description=entry.description,
                amount=entry.value,
                card=card,
                purchase_date=entry.date,
                installments=parse_installments(entry.installments),
                interest_percent=parse_interest(entry.interest_rate),
                category=entry.category,
                settings=self._settings,
            )
            if tx_id is not None:
                lines = [lines[0].model_copy(update={"id": tx_id})]

            self._event_logger.log(LedgerEventBuilder.installments_allocated(
                card_id=card.id,
                count=len(lines),
                total=str(sum((t.value for t in lines), Decimal("0"))),
                first_due=lines[0].date.isoformat(),
            ))
            return lines

        fields = dict(
            description=entry.description,
            value=to_decimal(entry.value),
            type=entry.type,
            category=entry.category,
            date=entry.date,
            method=entry.method,
            is_paid=entry.type == TransactionType.EXPENSE,
        )
        if tx_id is not None:
            fields["id"] = tx_id
        return [Transaction(**fields)]

    def add_transaction(
        self,
        snapshot: LedgerSnapshot,
        entry: TransactionEntry,
    ) -> LedgerSnapshot:
        new_lines = self.build_transactions(snapshot, entry)
        for tx in new_lines:
            self._event_logger.log(LedgerEventBuilder.transaction_added(
                tx.id, tx.description, str(tx.value)
            ))
        return snapshot.model_copy(
            update={"transactions": [*new_lines, *snapshot.transactions]}
        )

    def edit_transaction(
        self,
        snapshot: LedgerSnapshot,
        tx_id: Any,
        entry: TransactionEntry,
    ) -> LedgerSnapshot:
        """
        Replace one transaction, keeping its id and position.

        An edit never re-splits a purchase: credit entries are rebuilt as a
        single installment.
        """
        existing = snapshot.find_transaction(tx_id)
        if existing is None:
            raise self._gap("transaction", tx_id, "edit_transaction")

        if self._validator.is_credit_entry(entry):
            entry = entry.model_copy(update={"installments": 1})
        replacement = self.build_transactions(snapshot, entry, tx_id=existing.id)[0]

        self._event_logger.log(LedgerEventBuilder.transaction_updated(existing.id))
        return snapshot.model_copy(update={"transactions": [
            replacement if same_id(t.id, existing.id) else t
            for t in snapshot.transactions
        ]})

    def delete_transaction(self, snapshot: LedgerSnapshot, tx_id: Any) -> LedgerSnapshot:
        if snapshot.find_transaction(tx_id) is None:
            raise self._gap("transaction", tx_id, "delete_transaction")

        self._event_logger.log(LedgerEventBuilder.transaction_deleted(str(tx_id)))
        return snapshot.model_copy(update={"transactions": [
            t for t in snapshot.transactions if not same_id(t.id, tx_id)
        ]})

    def record_investment(
        self,
        snapshot: LedgerSnapshot,
        value: Any,
        today: Optional[date] = None,
        withdraw: bool = False,
        description: Optional[str] = None,
    ) -> LedgerSnapshot:
        """Record a deposit into (or a withdrawal from) invested capital."""
        entry = TransactionEntry(
            description=description or (
                "Resgate de Investimento" if withdraw else "Aporte Mensal"
            ),
            value=value,
            type=TransactionType.INCOME if withdraw else TransactionType.EXPENSE,
            category=self._settings.investment_category,
            date=today or date.today(),
            method=self._settings.investment_method,
        )
        return self.add_transaction(snapshot, entry)

    def save_card(self, snapshot: LedgerSnapshot, card: CreditCard) -> LedgerSnapshot:
        """Create a card, or update the card with the same id."""
        created = snapshot.find_card(card.id) is None
        cards = (
            [*snapshot.cards, card]
            if created
            else [card if same_id(c.id, card.id) else c for c in snapshot.cards]
        )
        self._event_logger.log(LedgerEventBuilder.card_saved(card.id, card.name, created))
        return snapshot.model_copy(update={"cards": cards})

    def delete_card(self, snapshot: LedgerSnapshot, card_id: Any) -> LedgerSnapshot:
        """
        Delete a card.

        Does not cascade: its transactions keep the now dangling card_id and
        show up in LedgerAggregator.orphaned_transactions().
        """
        if snapshot.find_card(card_id) is None:
            raise self._gap("card", card_id, "delete_card")

        orphaned = len(LedgerAggregator(snapshot, self._settings).transactions_for_card(card_id))
        self._event_logger.log(LedgerEventBuilder.card_deleted(str(card_id), orphaned))
        return snapshot.model_copy(update={"cards": [
            c for c in snapshot.cards if not same_id(c.id, card_id)
        ]})

    def save_fixed_bill(self, snapshot: LedgerSnapshot, bill: FixedBill) -> LedgerSnapshot:
        """Create a fixed bill, or update one keeping its payment cursor."""
        existing = snapshot.find_fixed_bill(bill.id)
        if existing is None:
            bills = [*snapshot.fixed_bills, bill]
        else:
            bill = bill.model_copy(update={"last_paid_month": existing.last_paid_month})
            bills = [bill if same_id(b.id, bill.id) else b for b in snapshot.fixed_bills]

        self._event_logger.log(
            LedgerEventBuilder.fixed_bill_saved(bill.id, bill.name, existing is None)
        )
        return snapshot.model_copy(update={"fixed_bills": bills})

    def delete_fixed_bill(self, snapshot: LedgerSnapshot, bill_id: Any) -> LedgerSnapshot:
        if snapshot.find_fixed_bill(bill_id) is None:
            raise self._gap("fixed_bill", bill_id, "delete_fixed_bill")

        self._event_logger.log(LedgerEventBuilder.fixed_bill_deleted(str(bill_id)))
        return snapshot.model_copy(update={"fixed_bills": [
            b for b in snapshot.fixed_bills if not same_id(b.id, bill_id)
        ]})

    def add_category(self, snapshot: LedgerSnapshot, name: str) -> LedgerSnapshot:
        category = (name or "").strip()
        if not category:
            raise self._reject(LedgerValidationError.single(
                subject="category",
                field="name",
                issue_type="missing",
                message="Category name is required",
            ).result)
        if category in snapshot.categories:
            return snapshot

        self._event_logger.log(LedgerEventBuilder.category_changed(category, added=True))
        return snapshot.model_copy(
            update={"categories": [*snapshot.categories, category]}
        )

    def remove_category(self, snapshot: LedgerSnapshot, name: str) -> LedgerSnapshot:
        """Remove a category from the list; existing transactions keep it."""
        if name not in snapshot.categories:
            return snapshot

        self._event_logger.log(LedgerEventBuilder.category_changed(name, added=False))
        return snapshot.model_copy(
            update={"categories": [c for c in snapshot.categories if c != name]}
        )


class SettlementFlow(_Flow):
    """
    Orchestrates the actions that close a financial cycle.

    Each action is validated against the current snapshot first and then
    returns a new snapshot:
    - pay_invoice: records the cash leaving and settles the invoice lines
    - pay_fixed_bill: records the payment and moves the bill's cursor
    - set_goal: replaces a category's monthly ceiling
    """

    def __init__(
        self,
        settings: Optional[LedgerSettings] = None,
        event_logger: Optional[LedgerEventLogger] = None,
        validator: Optional[EntryValidator] = None,
    ):
        super().__init__(settings, event_logger)
        self._validator = validator or EntryValidator(self._settings)

    def pay_invoice(
        self,
        snapshot: LedgerSnapshot,
        card_id: Any,
        amount: Any,
        month_key: str,
        today: Optional[date] = None,
    ) -> LedgerSnapshot:
        """
        Pay a card's invoice for month_key.

        Creates one invoice payment transaction dated today and marks every
        unpaid credit card line of that card dated in month_key as paid.
        Marking lines paid is what removes the invoice from
        LedgerAggregator.card_invoices().

        Raises:
            ReferentialGapError: The card is not in the snapshot
            LedgerValidationError: Bad amount or month key
        """
        self._check_month_key(month_key)

        card = snapshot.find_card(card_id)
        if card is None:
            raise self._gap("card", card_id, "pay_invoice")

        result = self._validator.validate_payment_amount(amount)
        if result.has_errors:
            raise self._reject(result)

        payment = Transaction(
            description=f"Fatura {card.name} - {month_label(month_key)}",
            value=to_decimal(amount),
            type=TransactionType.EXPENSE,
            category=self._settings.invoice_category,
            date=today or date.today(),
            method=self._settings.invoice_payment_method,
            card_id=card.id,
            is_invoice_payment=True,
        )

        credit_method = self._settings.credit_card_method
        settled = 0
        transactions = []
        for tx in snapshot.transactions:
            if (
                tx.belongs_to_card(card.id)
                and tx.method == credit_method
                and not tx.is_paid
                and tx.month_key == month_key
            ):
                tx = tx.model_copy(update={"is_paid": True})
                settled += 1
            transactions.append(tx)

        self._event_logger.log(LedgerEventBuilder.invoice_paid(
            card.id, month_key, str(payment.value), settled
        ))
        return snapshot.model_copy(update={"transactions": [payment, *transactions]})

    def pay_fixed_bill(
        self,
        snapshot: LedgerSnapshot,
        bill: Union[FixedBill, str],
        month_key: str,
        today: Optional[date] = None,
    ) -> LedgerSnapshot:
        """
        Pay a fixed bill for the viewing month.

        Creates a paid expense for the bill's value and moves the bill's
        last_paid_month to month_key. Paying twice in one month adds a second
        expense unless reject_duplicate_bill_payment is set.

        Raises:
            ReferentialGapError: The bill is not in the snapshot
            LedgerValidationError: Bad month key, or a duplicate payment
                when duplicates are rejected
        """
        self._check_month_key(month_key)

        bill_id = bill.id if isinstance(bill, FixedBill) else bill
        current = snapshot.find_fixed_bill(bill_id)
        if current is None:
            raise self._gap("fixed_bill", bill_id, "pay_fixed_bill")

        duplicate = current.is_paid_for(month_key)
        if duplicate and self._settings.reject_duplicate_bill_payment:
            raise self._reject(LedgerValidationError.single(
                subject="fixed_bill_payment",
                field="month_key",
                issue_type="already_paid",
                message=f"{current.name} is already paid for {month_key}",
            ).result)

        payment = Transaction(
            description=f"Pgto. {current.name}",
            value=current.value,
            type=TransactionType.EXPENSE,
            category=current.category,
            date=today or date.today(),
            method=self._settings.fixed_bill_method,
            is_paid=True,
        )

        self._event_logger.log(LedgerEventBuilder.fixed_bill_paid(
            current.id, month_key, str(current.value), duplicate
        ))
        return snapshot.model_copy(update={
            "transactions": [payment, *snapshot.transactions],
            "fixed_bills": [
                b.model_copy(update={"last_paid_month": month_key})
                if same_id(b.id, current.id)
                else b
                for b in snapshot.fixed_bills
            ],
        })

    def set_goal(
        self,
        snapshot: LedgerSnapshot,
        category: str,
        value: Any,
    ) -> LedgerSnapshot:
        """
        Replace the monthly ceiling of a category.

        Malformed, non-finite or negative input becomes 0.
        """
        ceiling = to_decimal(value)
        coerced = ceiling is None or ceiling < 0
        if coerced:
            ceiling = Decimal("0")

        self._event_logger.log(LedgerEventBuilder.goal_set(category, str(ceiling), coerced))
        return snapshot.model_copy(
            update={"goals": {**snapshot.goals, category: ceiling}}
        )


def create_engine_components(
    settings: Optional[LedgerSettings] = None,
) -> tuple[DashboardFlow, EntryFlow, SettlementFlow]:
    """
    Factory function to create all engine flows sharing one configuration.

    Returns:
        (dashboard_flow, entry_flow, settlement_flow)
    """
    settings = settings or get_settings()
    event_logger = LedgerEventLogger()
    validator = EntryValidator(settings)

    dashboard_flow = DashboardFlow(
        settings=settings,
        event_logger=event_logger,
    )
    entry_flow = EntryFlow(
        settings=settings,
        event_logger=event_logger,
        validator=validator,
    )
    settlement_flow = SettlementFlow(
        settings=settings,
        event_logger=event_logger,
        validator=validator,
    )

    return dashboard_flow, entry_flow, settlement_flow
