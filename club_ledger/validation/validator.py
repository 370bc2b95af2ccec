"""
Two-Stage Entry Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Amount parses as a non-negative number
- Origin-specific selections are present and in vocabulary

STAGE 2 - BUSINESS RULES:
- Client name on client consumption / product sales
- Detail note on household "Otros"
- Suspicious values (warnings only)

Stage 2 is skipped when stage 1 fails: rules about a client name mean
nothing if we do not even know which tab the entry came from.

IMPORTANT: Validation NEVER silently fixes issues and NEVER produces a
partial record. Either the entry is accepted as a whole or it is rejected
with every issue listed.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional

from club_ledger.classification import CLIENT_ACTIVITIES
from club_ledger.config import get_settings
from club_ledger.models.transaction import (
    BUSINESS_EXPENSE_CATEGORIES,
    CATEGORY_OTHER,
    CONSUMERS,
    HOME_CATEGORIES,
    BusinessActivity,
    EntrySelection,
    Origin,
    ValidationIssue,
    ValidationResult,
)


class EntryValidationError(Exception):
    """An entry was rejected; carries the full validation result."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(f"Entry rejected: {messages}")


def parse_amount(raw) -> Optional[Decimal]:
    """
    Parse an amount as typed by the user.

    Returns None when the value is missing or not a finite number.
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        amount = Decimal(str(raw))
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


class EntryValidator:
    """
    Validates entry selections before they are classified and stored.
    """

    def __init__(self, max_amount: Optional[Decimal] = None):
        """
        Args:
            max_amount: Amounts above this raise a warning.
                        Defaults to the configured threshold.
        """
        if max_amount is None:
            max_amount = get_settings().app.max_transaction_amount
        self._max_amount = max_amount

    def _validate_schema(
        self,
        entry: EntrySelection,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        amount = parse_amount(entry.amount)
        if amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Amount must be a number",
                severity="error",
            ))
        elif amount < 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount cannot be negative",
                severity="error",
            ))

        if entry.origin == Origin.BUSINESS:
            if entry.activity is None:
                issues.append(ValidationIssue(
                    field="activity",
                    issue_type="missing",
                    message="Business entries need an activity",
                    severity="error",
                ))
            elif (
                entry.activity == BusinessActivity.OPERATING_EXPENSE
                and entry.expense_category not in BUSINESS_EXPENSE_CATEGORIES
            ):
                issues.append(ValidationIssue(
                    field="expense_category",
                    issue_type="unknown_category",
                    message=f"Unknown expense category: {entry.expense_category!r}",
                    severity="error",
                ))
            elif (
                entry.activity == BusinessActivity.INTERNAL_CONSUMPTION
                and entry.consumer not in CONSUMERS
            ):
                issues.append(ValidationIssue(
                    field="consumer",
                    issue_type="unknown_consumer",
                    message=f"Unknown consumer: {entry.consumer!r}",
                    severity="error",
                ))
        elif entry.home_category not in HOME_CATEGORIES:
            issues.append(ValidationIssue(
                field="home_category",
                issue_type="unknown_category",
                message=f"Unknown household category: {entry.home_category!r}",
                severity="error",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_rules(
        self,
        entry: EntrySelection,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Business rules.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if (
            entry.origin == Origin.BUSINESS
            and entry.activity in CLIENT_ACTIVITIES
            and not (entry.client or "").strip()
        ):
            issues.append(ValidationIssue(
                field="client",
                issue_type="missing",
                message="Client name is required for sales and club consumption",
                severity="error",
            ))

        if (
            entry.origin == Origin.HOME
            and entry.home_category == CATEGORY_OTHER
            and not entry.note.strip()
        ):
            issues.append(ValidationIssue(
                field="note",
                issue_type="missing",
                message="Please describe the 'Otros' expense",
                severity="error",
            ))

        if entry.is_credit_sale and not (
            entry.origin == Origin.BUSINESS and entry.activity in CLIENT_ACTIVITIES
        ):
            issues.append(ValidationIssue(
                field="is_credit_sale",
                issue_type="suspicious_value",
                message="Credit sale flag set on an entry that is not a client sale",
                severity="warning",
            ))

        amount = parse_amount(entry.amount)
        if amount is not None and amount > self._max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({amount:,.2f}) seems unusually high",
                severity="warning",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, entry: EntrySelection) -> ValidationResult:
        """
        Run the full two-stage validation pipeline.

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(entry)
        all_issues.extend(schema_issues)

        rules_valid = False
        if schema_valid:
            rules_valid, rule_issues = self._validate_rules(entry)
            all_issues.extend(rule_issues)

        return ValidationResult(
            schema_valid=schema_valid,
            rules_valid=rules_valid,
            issues=all_issues,
            warnings=[i.message for i in all_issues if i.severity == "warning"],
        )

    def validate_or_raise(self, entry: EntrySelection) -> Decimal:
        """
        Validate an entry and return its parsed amount.

        Raises:
            EntryValidationError: If any error-level issue was found
        """
        result = self.validate(entry)
        if not result.is_valid:
            raise EntryValidationError(result)
        return parse_amount(entry.amount)
