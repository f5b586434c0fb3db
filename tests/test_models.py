"""
Tests for the Ledger Engine

Test strategy:
1. Unit tests for individual components (models, date math, validators)
2. Flow tests on in-memory snapshots
3. No I/O anywhere: every test builds its own snapshot
"""

import pytest
from datetime import date
from decimal import Decimal

from financas.models.ledger import (
    CreditCard,
    FixedBill,
    LedgerSnapshot,
    Transaction,
    TransactionRole,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    normalize_id,
    same_id,
)
from financas.models.events import (
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventSeverity,
    LedgerEventType,
)


SNAPSHOT_BLOB = {
    "initialBalance": 1000,
    "transactions": [
        {
            "id": 1700000000000,
            "description": "Geladeira (1/2)",
            "value": 10.5,
            "type": "expense",
            "category": "Moradia",
            "date": "2024-03-10",
            "method": "Cartão Crédito",
            "cardId": 12,
            "installmentNumber": "1 de 2",
            "isPaid": False,
            "isInvoicePayment": False,
        },
        {
            "id": "abc",
            "description": "Salário",
            "value": 5000,
            "type": "income",
            "category": "Salário",
            "date": "2024-03-01",
            "method": "Pix",
        },
    ],
    "cards": [
        {
            "id": 12,
            "name": "Nubank",
            "limit": 2000,
            "closingDay": 5,
            "dueDay": 15,
            "gradient": "card-gradient-1",
        },
    ],
    "fixedBills": [
        {"id": "b1", "name": "Rent", "value": 1000, "dueDay": 5, "category": "Moradia"},
    ],
    "goals": {"Moradia": 300},
    "categories": ["Moradia", "Salário"],
}


class TestIdNormalization:
    """Ids may arrive as numbers or strings."""

    def test_normalize_id_numbers_and_strings(self):
        """Test numeric ids become their string form."""
        assert normalize_id(17) == "17"
        assert normalize_id(17.0) == "17"
        assert normalize_id(" 17 ") == "17"
        assert normalize_id(None) is None
        assert normalize_id("") is None

    def test_same_id_across_representations(self):
        """Test numeric and string ids compare equal."""
        assert same_id(12, "12")
        assert same_id("abc", "abc")
        assert not same_id("12", "13")

    def test_same_id_never_matches_missing(self):
        """Test a missing id never matches, not even another missing id."""
        assert not same_id(None, None)
        assert not same_id(None, "1")


class TestTransactionModel:
    """Tests for the Transaction model."""

    def test_transaction_creation(self):
        """Test Transaction creation with snake_case names."""
        tx = Transaction(
            description="Mercado",
            value=Decimal("200.00"),
            type=TransactionType.EXPENSE,
            category="Alimentação",
            date=date(2024, 3, 5),
            method="Pix",
        )
        assert tx.id
        assert tx.month_key == "2024-03"
        assert tx.is_expense
        assert not tx.is_paid
        assert not tx.is_invoice_payment
        assert tx.card_id is None

    def test_transaction_strips_whitespace(self):
        """Test that whitespace is stripped from text fields."""
        tx = Transaction(
            description="  Mercado  ",
            value=Decimal("1"),
            type="expense",
            date="2024-03-05",
        )
        assert tx.description == "Mercado"

    def test_transaction_rejects_negative_value(self):
        """Test that negative values are rejected."""
        with pytest.raises(ValueError):
            Transaction(
                description="Test",
                value=Decimal("-1"),
                type="expense",
                date="2024-03-05",
            )

    def test_transaction_rejects_empty_description(self):
        """Test that a blank description is rejected."""
        with pytest.raises(ValueError):
            Transaction(
                description="   ",
                value=Decimal("1"),
                type="expense",
                date="2024-03-05",
            )

    def test_transaction_is_frozen(self):
        """Test that transactions cannot be changed in place."""
        tx = Transaction(
            description="Test",
            value=Decimal("1"),
            type="expense",
            date="2024-03-05",
        )
        with pytest.raises(ValueError):
            tx.is_paid = True

        paid = tx.model_copy(update={"is_paid": True})
        assert paid.is_paid
        assert not tx.is_paid

    def test_roles_are_exclusive(self):
        """Test role classification of the three kinds of line."""
        ordinary = Transaction(
            description="Pix", value=1, type="expense", date="2024-03-05", method="Pix"
        )
        purchase = Transaction(
            description="Card", value=1, type="expense", date="2024-03-05",
            method="Cartão Crédito", card_id="c1",
        )
        payment = Transaction(
            description="Fatura", value=1, type="expense", date="2024-03-05",
            method="Pix", card_id="c1", is_invoice_payment=True,
        )
        assert ordinary.role() == TransactionRole.ORDINARY
        assert purchase.role() == TransactionRole.CARD_PURCHASE
        assert payment.role() == TransactionRole.INVOICE_PAYMENT

    def test_role_uses_given_credit_method(self):
        """Test the credit channel name can be overridden."""
        tx = Transaction(
            description="Card", value=1, type="expense", date="2024-03-05", method="credit"
        )
        assert tx.role("credit") == TransactionRole.CARD_PURCHASE
        assert tx.role() == TransactionRole.ORDINARY


class TestCardAndBillModels:
    """Tests for CreditCard and FixedBill."""

    def test_card_day_bounds(self):
        """Test closing and due days must be within 1..31."""
        with pytest.raises(ValueError):
            CreditCard(name="X", limit=Decimal("1"), closing_day=0, due_day=10)
        with pytest.raises(ValueError):
            CreditCard(name="X", limit=Decimal("1"), closing_day=10, due_day=32)

    def test_card_due_before_closing_is_allowed(self):
        """Test no ordering is assumed between closing and due day."""
        card = CreditCard(name="X", limit=Decimal("1"), closing_day=25, due_day=5)
        assert card.due_day < card.closing_day

    def test_fixed_bill_defaults(self):
        """Test the default category and an unpaid cursor."""
        bill = FixedBill(name="Internet", value=Decimal("100"), due_day=10)
        assert bill.category == "Contas Fixas"
        assert bill.last_paid_month is None
        assert not bill.is_paid_for("2024-03")

    def test_fixed_bill_blank_cursor_is_none(self):
        """Test a blank last paid month is treated as never paid."""
        bill = FixedBill(name="Internet", value=1, due_day=10, last_paid_month="")
        assert bill.last_paid_month is None

    def test_fixed_bill_rejects_bad_month_key(self):
        """Test last paid month must be YYYY-MM."""
        with pytest.raises(ValueError):
            FixedBill(name="Internet", value=1, due_day=10, last_paid_month="2024-3")

    def test_fixed_bill_paid_for_month(self):
        """Test the paid flag follows the cursor exactly."""
        bill = FixedBill(name="Internet", value=1, due_day=10, last_paid_month="2024-03")
        assert bill.is_paid_for("2024-03")
        assert not bill.is_paid_for("2024-04")


class TestLedgerSnapshot:
    """Tests for loading and querying a snapshot."""

    def test_empty_snapshot_has_default_categories(self):
        """Test a fresh ledger."""
        snapshot = LedgerSnapshot.empty()
        assert snapshot.initial_balance == Decimal("0")
        assert snapshot.transactions == []
        assert "Fatura Cartão" in snapshot.categories
        assert "Investimento" in snapshot.categories
        assert len(snapshot.categories) == 11

    def test_loads_camel_case_blob(self):
        """Test a stored blob loads as-is, ids normalized."""
        snapshot = LedgerSnapshot.model_validate(SNAPSHOT_BLOB)

        assert snapshot.initial_balance == Decimal("1000")
        first = snapshot.transactions[0]
        assert first.id == "1700000000000"
        assert first.card_id == "12"
        assert first.installment_number == "1 de 2"
        assert first.value == Decimal("10.5")
        assert first.date == date(2024, 3, 10)
        assert snapshot.cards[0].id == "12"
        assert snapshot.cards[0].closing_day == 5
        assert snapshot.fixed_bills[0].last_paid_month is None
        assert snapshot.goals == {"Moradia": Decimal("300")}

    def test_missing_optional_fields_default(self):
        """Test absent card id and flags are 'not applicable'."""
        snapshot = LedgerSnapshot.model_validate(SNAPSHOT_BLOB)
        salary = snapshot.transactions[1]
        assert salary.card_id is None
        assert salary.installment_number is None
        assert salary.is_paid is False
        assert salary.is_invoice_payment is False

    def test_find_by_mixed_ids(self):
        """Test lookups work whatever the id representation."""
        snapshot = LedgerSnapshot.model_validate(SNAPSHOT_BLOB)
        assert snapshot.find_card(12).name == "Nubank"
        assert snapshot.find_card("12").name == "Nubank"
        assert snapshot.find_transaction(1700000000000) is not None
        assert snapshot.find_fixed_bill("b1").name == "Rent"
        assert snapshot.find_card("99") is None

    def test_dump_round_trips_aliases(self):
        """Test dumping by alias gives the stored blob's key names."""
        snapshot = LedgerSnapshot.model_validate(SNAPSHOT_BLOB)
        dumped = snapshot.model_dump(by_alias=True)
        assert "initialBalance" in dumped
        assert "fixedBills" in dumped
        assert "cardId" in dumped["transactions"][0]


class TestEventModels:
    """Tests for ledger event models."""

    def test_event_creation(self):
        """Test LedgerEvent defaults."""
        event = LedgerEvent(
            event_type=LedgerEventType.GOAL_SET,
            description="Goal set",
        )
        assert event.severity == LedgerEventSeverity.INFO

    def test_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = LedgerEventBuilder.invoice_paid("c1", "2024-04", "100", 3)
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "invoice_paid"
        assert log_dict["entity_id"] == "c1"
        assert log_dict["details"]["settled_lines"] == 3

    def test_card_deleted_with_orphans_is_warning(self):
        """Test deleting a referenced card is flagged."""
        assert LedgerEventBuilder.card_deleted("c1", 2).severity == LedgerEventSeverity.WARNING
        assert LedgerEventBuilder.card_deleted("c1", 0).severity == LedgerEventSeverity.INFO


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            subject="transaction_entry",
            issues=[
                ValidationIssue(
                    field="value",
                    issue_type="missing",
                    message="Value required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1
        assert not result.is_valid

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            subject="transaction_entry",
            issues=[
                ValidationIssue(
                    field="category",
                    issue_type="unknown_category",
                    message="Unknown category",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0
        assert result.warnings == ["Unknown category"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
