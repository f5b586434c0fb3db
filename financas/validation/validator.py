"""
Two-Stage Entry Validation

STAGE 1 - SCHEMA VALIDATION:
- Required field presence (description, value, date)
- Numeric parsing (value, installments, interest)
- Range checks (value up to max_transaction_value, installments within
  1..max_installments, at least one cent per installment)

STAGE 2 - SEMANTIC VALIDATION:
- References against the current snapshot (the card must exist)
- Category membership (loosely enforced: a warning, never a block)

Stage 2 only runs when stage 1 passes, because it needs parsed values.

IMPORTANT: Validation NEVER silently fixes issues. It reports them and
the operation is rejected with the snapshot left unchanged.
"""

from decimal import Decimal
from typing import Any, Optional

from financas.billing.installments import check_purchase_total, to_decimal
from financas.config import LedgerSettings, get_settings
from financas.models.ledger import (
    LedgerSnapshot,
    TransactionEntry,
    ValidationIssue,
    ValidationResult,
)


def parse_installments(value: Any) -> Optional[int]:
    """
    Parse an installment count.

    Blank input means a single installment; anything that is not a whole
    number gives None.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return 1
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    number = to_decimal(value)
    if number is None or number != number.to_integral_value():
        return None
    return int(number)


def parse_interest(value: Any) -> Optional[Decimal]:
    """Parse an interest percentage; blank input means no interest."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return Decimal("0")
    return to_decimal(value)


class EntryValidator:
    """
    Validates transaction entries against a ledger snapshot.

    Stage 1: Schema validation (no snapshot needed)
    Stage 2: Semantic validation (needs the snapshot for references)
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or get_settings()

    def is_credit_entry(self, entry: TransactionEntry) -> bool:
        return entry.method == self._settings.credit_card_method

    def _validate_schema(
        self,
        entry: TransactionEntry,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not entry.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
                suggested_fix="Describe what this transaction was",
            ))

        value = to_decimal(entry.value)
        if value is None:
            issues.append(ValidationIssue(
                field="value",
                issue_type="invalid_format",
                message=f"Value is not a number: {entry.value!r}",
                severity="error",
                suggested_fix="Enter the amount using digits only",
            ))
        elif value <= 0:
            issues.append(ValidationIssue(
                field="value",
                issue_type="invalid_value",
                message="Value must be greater than zero",
                severity="error",
            ))
        elif value > self._settings.max_value:
            issues.append(ValidationIssue(
                field="value",
                issue_type="out_of_range",
                message=f"Value must not exceed {self._settings.max_value}",
                severity="error",
            ))

        if entry.date is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
                severity="error",
            ))

        if self.is_credit_entry(entry):
            max_installments = self._settings.max_installments
            installments = parse_installments(entry.installments)
            if installments is None or not 1 <= installments <= max_installments:
                issues.append(ValidationIssue(
                    field="installments",
                    issue_type="out_of_range",
                    message=f"Installments must be a whole number between 1 and {max_installments}",
                    severity="error",
                ))

            interest = parse_interest(entry.interest_rate)
            if interest is None:
                issues.append(ValidationIssue(
                    field="interest_rate",
                    issue_type="invalid_format",
                    message=f"Interest is not a number: {entry.interest_rate!r}",
                    severity="error",
                ))
            elif interest <= -100:
                issues.append(ValidationIssue(
                    field="interest_rate",
                    issue_type="invalid_value",
                    message="Interest must be above -100%",
                    severity="error",
                ))

            if not any(
                issue.field in ("value", "installments", "interest_rate")
                for issue in issues
            ):
                total_issue = check_purchase_total(value, installments, interest)
                if total_issue is not None:
                    issues.append(total_issue)

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        entry: TransactionEntry,
        snapshot: LedgerSnapshot,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if self.is_credit_entry(entry):
            if entry.card_id is None:
                issues.append(ValidationIssue(
                    field="card_id",
                    issue_type="missing",
                    message="A credit card purchase needs a card",
                    severity="error",
                    suggested_fix="Pick one of the registered cards",
                ))
            elif snapshot.find_card(entry.card_id) is None:
                issues.append(ValidationIssue(
                    field="card_id",
                    issue_type="unknown_reference",
                    message=f"Credit card not found: {entry.card_id}",
                    severity="error",
                    suggested_fix="Pick one of the registered cards",
                ))

        if entry.category and entry.category not in snapshot.categories:
            issues.append(ValidationIssue(
                field="category",
                issue_type="unknown_category",
                message=f"Category '{entry.category}' is not in the category list",
                severity="warning",
                suggested_fix="Add the category or pick an existing one",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(
        self,
        entry: TransactionEntry,
        snapshot: LedgerSnapshot,
    ) -> ValidationResult:
        """
        Run the full two-stage validation pipeline.

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(entry)
        all_issues.extend(schema_issues)

        if schema_valid:
            _, semantic_issues = self._validate_semantic(entry, snapshot)
            all_issues.extend(semantic_issues)

        return ValidationResult(subject="transaction_entry", issues=all_issues)

    def validate_payment_amount(self, amount: Any) -> ValidationResult:
        """An invoice payment must be a finite amount above zero."""
        issues = []
        value = to_decimal(amount)
        if value is None or value <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message=f"Payment amount must be a number greater than zero: {amount!r}",
                severity="error",
            ))
        elif value > self._settings.max_value:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="out_of_range",
                message=f"Payment amount must not exceed {self._settings.max_value}",
                severity="error",
            ))
        return ValidationResult(subject="invoice_payment", issues=issues)
