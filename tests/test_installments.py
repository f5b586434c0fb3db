"""Tests for installment allocation."""

import pytest
from datetime import date
from decimal import Decimal

from financas.billing.installments import (
    allocate_installments,
    split_amount,
    to_decimal,
    to_money,
    total_with_interest,
)
from financas.config import LedgerSettings
from financas.errors import LedgerValidationError


class TestAllocateInstallments:
    """Tests for allocate_installments."""

    def test_three_installments_without_interest(self, card):
        """Test 300 in 3 on the 10th with closing 5 / due 15."""
        lines = allocate_installments("TV", Decimal("300"), card, "2024-03-10", 3)

        assert [t.value for t in lines] == [Decimal("100.00")] * 3
        assert [t.date for t in lines] == [
            date(2024, 4, 15),
            date(2024, 5, 15),
            date(2024, 6, 15),
        ]
        assert [t.installment_number for t in lines] == ["1 de 3", "2 de 3", "3 de 3"]
        assert [t.description for t in lines] == ["TV (1/3)", "TV (2/3)", "TV (3/3)"]

    def test_lines_are_unpaid_card_purchases(self, card):
        """Test every line is an unpaid credit card expense on the card."""
        lines = allocate_installments("TV", Decimal("300"), card, "2024-03-10", 3, category="Lazer")

        for line in lines:
            assert line.method == "Cartão Crédito"
            assert line.card_id == "c1"
            assert line.category == "Lazer"
            assert line.is_expense
            assert line.is_paid is False
            assert line.is_invoice_payment is False
        assert len({line.id for line in lines}) == 3

    def test_single_installment_has_no_label(self, card):
        """Test N=1 keeps the plain description and no installment number."""
        [line] = allocate_installments("Jantar", Decimal("80"), card, "2024-03-03")

        assert line.description == "Jantar"
        assert line.installment_number is None
        assert line.value == Decimal("80.00")
        assert line.date == date(2024, 3, 15)

    def test_interest_applied_once_to_total(self, card):
        """Test 10% interest on 1000 in 3 installments."""
        lines = allocate_installments("Notebook", Decimal("1000"), card, "2024-03-10", 3, 10)

        assert [t.value for t in lines] == [
            Decimal("366.66"),
            Decimal("366.66"),
            Decimal("366.68"),
        ]
        assert sum(t.value for t in lines) == Decimal("1100.00")

    def test_last_installment_absorbs_remainder(self, card):
        """Test 100 in 3 reconciles exactly."""
        lines = allocate_installments("Livro", Decimal("100"), card, "2024-03-10", 3)
        assert [t.value for t in lines] == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]

    @pytest.mark.parametrize("amount,count,interest", [
        ("999.99", 7, "0"),
        ("1234.56", 12, "3.5"),
        ("0.60", 60, "0"),
        ("50", 60, "12.75"),
        ("10000", 24, "29.9"),
    ])
    def test_installments_add_up_to_total(self, card, amount, count, interest):
        """Test the lines always add up to amount with interest (within a cent)."""
        lines = allocate_installments("X", amount, card, "2024-03-10", count, interest)
        exact = Decimal(amount) * (1 + Decimal(interest) / 100)

        assert len(lines) == count
        assert all(t.value >= 0 for t in lines)
        assert abs(sum(t.value for t in lines) - exact) <= Decimal("0.01")

    def test_accepts_text_amounts(self, card):
        """Test amounts and interest typed as text."""
        lines = allocate_installments("X", "200,00", card, "2024-03-10", 2, "5")
        assert sum(t.value for t in lines) == Decimal("210.00")

    @pytest.mark.parametrize("count", [0, 61, -1])
    def test_installment_count_out_of_range(self, card, count):
        """Test installment counts outside 1..60 are rejected."""
        with pytest.raises(LedgerValidationError) as exc_info:
            allocate_installments("X", Decimal("100"), card, "2024-03-10", count)
        assert exc_info.value.issues[0].field == "installments"

    def test_missing_card_is_rejected(self):
        """Test an absent card is a validation failure, not a no-op."""
        with pytest.raises(LedgerValidationError) as exc_info:
            allocate_installments("X", Decimal("100"), None, "2024-03-10", 2)
        assert exc_info.value.issues[0].field == "card_id"
        assert exc_info.value.issues[0].issue_type == "unknown_reference"

    @pytest.mark.parametrize("amount", ["abc", "0", "-10", "NaN", "Infinity", None])
    def test_bad_amount_is_rejected(self, card, amount):
        """Test non-numeric, non-positive and non-finite amounts."""
        with pytest.raises(LedgerValidationError):
            allocate_installments("X", amount, card, "2024-03-10", 2)

    def test_amount_above_maximum_is_rejected(self, card):
        """Test an amount too large for cent arithmetic is a validation failure."""
        with pytest.raises(LedgerValidationError) as exc_info:
            allocate_installments("TV", "1e30", card, date(2024, 3, 10), 3)

        issue = exc_info.value.issues[0]
        assert issue.field == "value"
        assert issue.issue_type == "out_of_range"

    def test_maximum_follows_settings(self, card):
        """Test the amount ceiling comes from max_transaction_value."""
        settings = LedgerSettings(max_transaction_value=500)

        with pytest.raises(LedgerValidationError):
            allocate_installments("TV", "600", card, "2024-03-10", 2, settings=settings)
        assert len(allocate_installments("TV", "500", card, "2024-03-10", 2, settings=settings)) == 2

    def test_interest_too_large_is_rejected(self, card):
        """Test a total with interest beyond cent precision is a validation failure."""
        with pytest.raises(LedgerValidationError) as exc_info:
            allocate_installments("TV", "1000", card, "2024-03-10", 3, "1e30")
        assert exc_info.value.issues[0].field == "interest_rate"

    @pytest.mark.parametrize("amount,count", [
        ("0.004", 3),
        ("0.05", 60),
        ("0.02", 3),
    ])
    def test_less_than_a_cent_per_installment_is_rejected(self, card, amount, count):
        """Test no installment line can be worth zero."""
        with pytest.raises(LedgerValidationError) as exc_info:
            allocate_installments("X", amount, card, "2024-03-10", count)

        issue = exc_info.value.issues[0]
        assert issue.field == "value"
        assert issue.issue_type == "invalid_value"

    def test_one_cent_per_installment_is_accepted(self, card):
        """Test the smallest splittable total."""
        lines = allocate_installments("X", "0.03", card, "2024-03-10", 3)
        assert [t.value for t in lines] == [Decimal("0.01")] * 3

    def test_reports_every_problem(self):
        """Test all issues are reported together."""
        with pytest.raises(LedgerValidationError) as exc_info:
            allocate_installments("X", "abc", None, "2024-03-10", 0)
        fields = {issue.field for issue in exc_info.value.issues}
        assert fields == {"value", "card_id", "installments"}


class TestMoneyHelpers:
    """Tests for the money helpers."""

    def test_split_amount(self):
        """Test splitting keeps every cent."""
        assert split_amount(Decimal("10"), 3) == [
            Decimal("3.33"), Decimal("3.33"), Decimal("3.34"),
        ]
        assert split_amount(Decimal("10"), 1) == [Decimal("10.00")]

    def test_total_with_interest(self):
        """Test interest is a percentage of the amount."""
        assert total_with_interest(Decimal("200"), Decimal("5")) == Decimal("210")

    def test_to_money_rounds_half_up(self):
        """Test rounding to cents."""
        assert to_money(Decimal("1.005")) == Decimal("1.01")
        assert to_money(Decimal("1.004")) == Decimal("1.00")

    @pytest.mark.parametrize("raw,expected", [
        ("12.5", Decimal("12.5")),
        ("12,5", Decimal("12.5")),
        (7, Decimal("7")),
        (0.1, Decimal("0.1")),
        ("abc", None),
        ("", None),
        (None, None),
        (True, None),
        ("inf", None),
    ])
    def test_to_decimal(self, raw, expected):
        """Test lenient number parsing."""
        assert to_decimal(raw) == expected
