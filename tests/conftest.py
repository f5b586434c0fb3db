"""Shared fixtures for ledger engine tests."""

from datetime import date
from decimal import Decimal

import pytest

from financas.config import get_settings
from financas.models.ledger import (
    CreditCard,
    FixedBill,
    LedgerSnapshot,
    Transaction,
    TransactionType,
)


CREDIT = "Cartão Crédito"


@pytest.fixture(autouse=True)
def fresh_settings():
    """Make sure environment tweaks in one test never leak into another."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def card() -> CreditCard:
    return CreditCard(
        id="c1",
        name="Nubank",
        limit=Decimal("1000"),
        closing_day=5,
        due_day=15,
    )


@pytest.fixture
def rent() -> FixedBill:
    return FixedBill(
        id="b1",
        name="Rent",
        value=Decimal("1000"),
        due_day=5,
        category="Moradia",
    )


def _make_tx(
    value,
    tx_type=TransactionType.EXPENSE,
    day="2024-03-10",
    category="Alimentação",
    method="Pix",
    **extra,
) -> Transaction:
    return Transaction(
        description=extra.pop("description", "Lançamento"),
        value=Decimal(str(value)),
        type=tx_type,
        category=category,
        date=date.fromisoformat(day),
        method=method,
        **extra,
    )


@pytest.fixture
def march_ledger(card) -> LedgerSnapshot:
    """
    A month with one of each kind of line.

    initial 1000, salary 5000, market 200, card purchase 300 (unpaid),
    invoice payment 150, investment 500, and an older withdrawal of 100.
    """
    return LedgerSnapshot(
        initial_balance=Decimal("1000"),
        transactions=[
            _make_tx(5000, TransactionType.INCOME, "2024-03-01", "Salário", description="Salário"),
            _make_tx(200, day="2024-03-05", description="Mercado"),
            _make_tx(300, day="2024-03-20", category="Lazer", method=CREDIT,
                     card_id="c1", description="Show"),
            _make_tx(150, day="2024-03-25", category="Fatura Cartão",
                     card_id="c1", is_invoice_payment=True, description="Fatura Nubank"),
            _make_tx(500, day="2024-03-02", category="Investimento", description="Aporte"),
            _make_tx(100, TransactionType.INCOME, "2024-02-10", "Investimento", description="Resgate"),
        ],
        cards=[card],
        categories=["Alimentação", "Lazer", "Salário", "Investimento", "Fatura Cartão", "Moradia"],
    )


@pytest.fixture
def make_tx():
    """Factory for transactions with sensible defaults."""
    return _make_tx
