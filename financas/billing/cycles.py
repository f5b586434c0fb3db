"""
Invoice Cycle Date Math

Maps a purchase date and a card's billing parameters to the invoice it
lands on, plus the small month-key helpers the rest of the engine shares.

Month keys are always the literal "YYYY-MM". Dates are plain calendar
days, so there is no time-of-day and no timezone drift.
"""

import calendar
import re
from datetime import date, timedelta
from typing import Union

from financas.errors import LedgerValidationError


DateLike = Union[date, str]

_MONTH_KEY_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")

MONTH_NAMES_PT = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)


def to_date(value: DateLike) -> date:
    """Accept a date or an ISO "YYYY-MM-DD" string."""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise LedgerValidationError.single(
            subject="date",
            field="date",
            issue_type="invalid_format",
            message=f"Invalid date: {value!r}",
            suggested_fix="Use the YYYY-MM-DD format",
        )


def month_key(value: DateLike) -> str:
    """The YYYY-MM key of a date."""
    return to_date(value).strftime("%Y-%m")


def parse_month_key(key: str) -> tuple[int, int]:
    """Split a YYYY-MM key into (year, month)."""
    match = _MONTH_KEY_RE.match(str(key).strip())
    if not match:
        raise LedgerValidationError.single(
            subject="month_key",
            field="month_key",
            issue_type="invalid_format",
            message=f"Invalid month key: {key!r}",
            suggested_fix="Use the YYYY-MM format",
        )
    return int(match.group(1)), int(match.group(2))


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(year: int, month: int, offset: int) -> tuple[int, int]:
    """Move (year, month) by offset months, carrying into the year."""
    years, month_index = divmod(month - 1 + offset, 12)
    return year + years, month_index + 1


def shift_month_key(key: str, offset: int) -> str:
    """The month key offset months away (month navigation)."""
    year, month = add_months(*parse_month_key(key), offset)
    return f"{year:04d}-{month:02d}"


def month_label(key: str) -> str:
    """Long pt-BR label, e.g. "março de 2024"."""
    year, month = parse_month_key(key)
    return f"{MONTH_NAMES_PT[month - 1]} de {year}"


def is_current_month(key: str, today: date) -> bool:
    return parse_month_key(key) == (today.year, today.month)


def resolve_invoice_date(
    purchase_date: DateLike,
    closing_day: int,
    due_day: int,
    month_offset: int = 0,
) -> date:
    """
    Due date of the invoice a purchase belongs to.

    A purchase made after closing_day goes to the next cycle; a purchase on
    closing_day itself stays in the current one. The cycle is then moved by
    month_offset (installment i uses offset i).

    The result is due_day of the resolved month. A due_day past the end of
    that month rolls forward into the next month instead of clamping, so
    day 31 of a 30-day month is the 1st of the following month.
    """
    purchase = to_date(purchase_date)

    offset = month_offset + (1 if purchase.day > closing_day else 0)
    year, month = add_months(purchase.year, purchase.month, offset)

    return date(year, month, 1) + timedelta(days=due_day - 1)
