"""
Installment Allocation

Splits a credit card purchase into N dated installments, one per invoice
cycle, with a total interest percentage applied once to the whole purchase.

DESIGN DECISION: Installments are whole cents. Every installment but the
last is rounded down and the last one absorbs the remainder, so the lines
always add back up to the purchase total with interest.
"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from financas.billing.cycles import DateLike, resolve_invoice_date, to_date
from financas.config import LedgerSettings, get_settings
from financas.errors import LedgerValidationError
from financas.models.ledger import (
    CreditCard,
    Transaction,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    generate_id,
)


CENT = Decimal("0.01")


def to_decimal(value: Any) -> Optional[Decimal]:
    """Parse a number, returning None for anything not finite."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def to_money(value: Decimal) -> Decimal:
    """Round to whole cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def total_with_interest(amount: Decimal, interest_percent: Decimal) -> Decimal:
    return amount * (1 + interest_percent / Decimal("100"))


def split_amount(total: Decimal, count: int) -> list[Decimal]:
    """
    Split total into count cent values that add up to total (in cents).

    count must be at least 1.
    """
    total = to_money(total)
    share = (total / count).quantize(CENT, rounding=ROUND_DOWN)
    shares = [share] * (count - 1)
    shares.append(total - share * (count - 1))
    return shares


def check_purchase_total(
    amount: Decimal,
    installments: int,
    interest_percent: Decimal,
) -> Optional[ValidationIssue]:
    """
    Check the total with interest can be split into whole-cent installments.

    Returns the issue found, or None when every installment gets at least
    one cent.
    """
    try:
        total = to_money(total_with_interest(amount, interest_percent))
    except InvalidOperation:
        return ValidationIssue(
            field="interest_rate",
            issue_type="out_of_range",
            message="Purchase total with interest is too large",
            severity="error",
        )

    if total < CENT * installments:
        return ValidationIssue(
            field="value",
            issue_type="invalid_value",
            message=f"Purchase total must be at least {CENT} per installment",
            severity="error",
            suggested_fix="Use fewer installments",
        )
    return None


def _check_purchase(
    amount: Optional[Decimal],
    card: Optional[CreditCard],
    installments: Any,
    interest_percent: Optional[Decimal],
    settings: LedgerSettings,
) -> ValidationResult:
    issues = []
    max_installments = settings.max_installments

    if amount is None or amount <= 0:
        issues.append(ValidationIssue(
            field="value",
            issue_type="invalid_value",
            message="Purchase amount must be a number greater than zero",
            severity="error",
        ))
    elif amount > settings.max_value:
        issues.append(ValidationIssue(
            field="value",
            issue_type="out_of_range",
            message=f"Purchase amount must not exceed {settings.max_value}",
            severity="error",
        ))

    if card is None:
        issues.append(ValidationIssue(
            field="card_id",
            issue_type="unknown_reference",
            message="Credit card not found",
            severity="error",
            suggested_fix="Pick one of the registered cards",
        ))

    if (
        not isinstance(installments, int)
        or isinstance(installments, bool)
        or not 1 <= installments <= max_installments
    ):
        issues.append(ValidationIssue(
            field="installments",
            issue_type="out_of_range",
            message=f"Installments must be between 1 and {max_installments}",
            severity="error",
        ))

    if interest_percent is None or interest_percent <= -100:
        issues.append(ValidationIssue(
            field="interest_rate",
            issue_type="invalid_value",
            message="Interest must be a number above -100%",
            severity="error",
        ))

    if not issues:
        total_issue = check_purchase_total(amount, installments, interest_percent)
        if total_issue is not None:
            issues.append(total_issue)

    return ValidationResult(subject="card_purchase", issues=issues)


def allocate_installments(
    description: str,
    amount: Any,
    card: Optional[CreditCard],
    purchase_date: DateLike,
    installments: int = 1,
    interest_percent: Any = 0,
    category: str = "",
    settings: Optional[LedgerSettings] = None,
) -> list[Transaction]:
    """
    Build the installment lines of one card purchase.

    Installment i (0-based) is dated on the due day of the invoice cycle
    the purchase falls in, moved i months forward. With more than one
    installment each line is labelled "i de N" and its description gets an
    "(i/N)" suffix.

    Raises:
        LedgerValidationError: bad amount, missing card, installment count
            outside 1..max_installments, or bad interest. An amount above
            max_transaction_value, or a total too small to give every
            installment at least one cent, is a bad amount.
    """
    settings = settings or get_settings()
    amount_value = to_decimal(amount)
    interest_value = to_decimal(interest_percent)

    result = _check_purchase(
        amount_value,
        card,
        installments,
        interest_value,
        settings,
    )
    if result.has_errors:
        raise LedgerValidationError(result)

    purchase = to_date(purchase_date)
    total = total_with_interest(amount_value, interest_value)
    values = split_amount(total, installments)

    multiple = installments > 1
    lines = []
    for index, value in enumerate(values):
        lines.append(Transaction(
            id=generate_id(),
            description=(
                f"{description} ({index + 1}/{installments})"
                if multiple
                else description
            ),
            value=value,
            type=TransactionType.EXPENSE,
            category=category,
            date=resolve_invoice_date(
                purchase, card.closing_day, card.due_day, index
            ),
            method=settings.credit_card_method,
            card_id=card.id,
            installment_number=(
                f"{index + 1} de {installments}" if multiple else None
            ),
            is_paid=False,
            is_invoice_payment=False,
        ))

    return lines
