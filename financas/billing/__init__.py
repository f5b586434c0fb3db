"""Invoice cycle and installment package."""

from financas.billing.cycles import (
    add_months,
    days_in_month,
    is_current_month,
    month_key,
    month_label,
    parse_month_key,
    resolve_invoice_date,
    shift_month_key,
    to_date,
)
from financas.billing.installments import (
    allocate_installments,
    check_purchase_total,
    split_amount,
    to_decimal,
    to_money,
    total_with_interest,
)

__all__ = [
    "add_months",
    "allocate_installments",
    "check_purchase_total",
    "days_in_month",
    "is_current_month",
    "month_key",
    "month_label",
    "parse_month_key",
    "resolve_invoice_date",
    "shift_month_key",
    "split_amount",
    "to_date",
    "to_decimal",
    "to_money",
    "total_with_interest",
]
