"""
Engine Exceptions

Every engine failure is local and recoverable: the snapshot the caller
holds is left untouched and the caller decides what to show the user.
"""

from typing import Optional

from financas.models.ledger import ValidationIssue, ValidationResult


class LedgerError(Exception):
    """Base exception for ledger engine operations."""
    pass


class LedgerValidationError(LedgerError):
    """Invalid or missing required input. Carries every issue found."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = [issue.message for issue in result.issues if issue.severity == "error"]
        super().__init__("; ".join(messages) or f"Invalid {result.subject}")

    @property
    def issues(self) -> list[ValidationIssue]:
        return self.result.issues

    @classmethod
    def single(
        cls,
        subject: str,
        field: str,
        issue_type: str,
        message: str,
        suggested_fix: Optional[str] = None,
    ) -> "LedgerValidationError":
        """Build an error from one issue."""
        return cls(ValidationResult(
            subject=subject,
            issues=[ValidationIssue(
                field=field,
                issue_type=issue_type,
                message=message,
                severity="error",
                suggested_fix=suggested_fix,
            )],
        ))


class ReferentialGapError(LedgerError):
    """An operation references an entity id that is not in the snapshot."""

    def __init__(self, entity_type: str, entity_id: object, operation: str):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.operation = operation
        super().__init__(
            f"{operation}: {entity_type} '{self.entity_id}' not found"
        )
