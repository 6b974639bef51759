"""
Two-Stage Bill Validation

DESIGN DECISION: Validation happens in two distinct stages before a bill
is split or saved:

STAGE 1 - SCHEMA VALIDATION (errors, block the bill):
- Zero subtotal (tax ratio undefined)
- No participants
- Duplicate participants
- Payer not among the participants
- Item assigned to someone who is not on the bill (their share would be
  silently dropped)

STAGE 2 - SEMANTIC VALIDATION (warnings, the bill still splits):
- Total below subtotal (negative tax)
- Assigned items exceed the subtotal
- Unassigned items (only covered through the shared remainder)
- No payer (bill is left out of group balances)

IMPORTANT: Validation NEVER silently fixes issues.
It reports them; the caller decides.
"""

from decimal import Decimal
from typing import Optional

from splitwiser.config import EngineSettings, get_settings
from splitwiser.models.split import Bill
from splitwiser.models.validation import ValidationIssue, ValidationResult


class BillValidationError(ValueError):
    """A bill failed schema validation."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(messages or "bill failed validation")


class BillValidator:
    """
    Validates bills through a two-stage pipeline.

    Stage 2 only runs when stage 1 passes.
    """

    def __init__(self, settings: Optional[EngineSettings] = None):
        self._settings = settings or get_settings().engine

    def _validate_schema(
        self,
        bill: Bill,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if bill.subtotal == 0:
            issues.append(ValidationIssue(
                field="subtotal",
                issue_type="zero",
                message="subtotal cannot be zero",
                severity="error",
                suggested_fix="Enter the pre-tax amount from the receipt",
            ))

        if not bill.participants:
            issues.append(ValidationIssue(
                field="participants",
                issue_type="missing",
                message="must have at least one participant",
                severity="error",
            ))

        seen = set()
        duplicates = []
        for participant in bill.participants:
            if participant in seen and participant not in duplicates:
                duplicates.append(participant)
            seen.add(participant)
        if duplicates:
            issues.append(ValidationIssue(
                field="participants",
                issue_type="duplicate",
                message=f"Participants listed more than once: {', '.join(duplicates)}",
                severity="error",
            ))

        if bill.payer_id and bill.payer_id not in seen:
            issues.append(ValidationIssue(
                field="payer_id",
                issue_type="unknown_participant",
                message=f"payer_id '{bill.payer_id}' must be one of the participants",
                severity="error",
                suggested_fix="Add the payer to the participants",
            ))

        for index, item in enumerate(bill.items):
            unknown = [p for p in item.participants if p not in seen]
            if unknown:
                issues.append(ValidationIssue(
                    field=f"items[{index}].participants",
                    issue_type="unknown_participant",
                    message=(
                        f"Item '{item.description}' is assigned to "
                        f"{', '.join(unknown)}, who is not on the bill"
                    ),
                    severity="error",
                    suggested_fix="Add them to the participants or reassign the item",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        bill: Bill,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        tolerance = self._settings.split_tolerance

        if bill.total < bill.subtotal:
            issues.append(ValidationIssue(
                field="total",
                issue_type="negative_tax",
                message=(
                    f"Total ({bill.total}) is below subtotal ({bill.subtotal}); "
                    "the difference is treated as a proportional discount"
                ),
                severity="warning",
            ))

        assigned = [item for item in bill.items if item.participants]
        assigned_total = sum((item.amount for item in assigned), Decimal("0"))
        if assigned_total - bill.subtotal > tolerance:
            issues.append(ValidationIssue(
                field="items",
                issue_type="exceeds_subtotal",
                message=(
                    f"Assigned items ({assigned_total}) add up to more than "
                    f"the subtotal ({bill.subtotal})"
                ),
                severity="warning",
                suggested_fix="Check item prices against the receipt",
            ))

        unassigned = [item.description for item in bill.items if not item.participants]
        if unassigned:
            issues.append(ValidationIssue(
                field="items",
                issue_type="unassigned",
                message=(
                    f"Items not assigned to anyone: {', '.join(unassigned)}; "
                    "they are only covered by the shared remainder"
                ),
                severity="warning",
            ))

        if not bill.has_payer:
            issues.append(ValidationIssue(
                field="payer_id",
                issue_type="missing",
                message="No payer recorded; this bill won't count toward group balances",
                severity="warning",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, bill: Bill) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(bill)
        all_issues.extend(schema_issues)

        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(bill)
            all_issues.extend(semantic_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            bill_id=bill.id,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """Generate a short text summary of validation results."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if not result.schema_valid:
            lines.append("This bill can't be split yet:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"  - {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"    ({issue.suggested_fix})")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please double-check:")
            for warning in result.warnings:
                lines.append(f"  - {warning}")

        return "\n".join(lines)
