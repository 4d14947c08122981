"""
Configuration Checks

Reports problems in the organization's configuration for the operator to
correct. Nothing here blocks a save except a member with a blank name:

- Percent split not summing to 100% -> warning
- Duplicate member names -> warning
- Blank given or family name on a new member -> error (member refused)

IMPORTANT: Validation never fixes anything. It only reports.
"""

from typing import Optional

from daara_ledger.models import (
    AppConfig,
    Member,
    ValidationIssue,
    ValidationResult,
)


class ConfigValidator:
    """Checks AppConfig and member input."""

    def validate_config(self, config: AppConfig) -> ValidationResult:
        """
        Check a configuration before it is saved.

        Always valid (warnings only); the result carries the issues so the
        UI can show them next to the percent total.
        """
        issues = []

        total = config.percent_total
        if total != 100:
            issues.append(ValidationIssue(
                field="percents",
                issue_type="percent_total",
                message=f"Fund percentages add up to {total}%, not 100%",
                severity="warning",
                suggested_fix="Adjust the three percentages so they total 100%",
            ))

        seen: set[str] = set()
        for member in config.members:
            name = member.full_name.lower()
            if name in seen:
                issues.append(ValidationIssue(
                    field="members",
                    issue_type="duplicate",
                    message=f"Member listed more than once: {member.full_name}",
                    severity="warning",
                    suggested_fix="Remove the duplicate entry",
                ))
            seen.add(name)

        return ValidationResult(is_valid=True, issues=issues)

    def validate_member(
        self,
        member: Member,
        roster: Optional[list[Member]] = None,
    ) -> ValidationResult:
        """Check a member before adding it to the roster."""
        issues = []

        if not member.given_name:
            issues.append(ValidationIssue(
                field="given_name",
                issue_type="missing",
                message="Given name is required",
                severity="error",
            ))
        if not member.family_name:
            issues.append(ValidationIssue(
                field="family_name",
                issue_type="missing",
                message="Family name is required",
                severity="error",
            ))

        if roster and not issues:
            name = member.full_name.lower()
            if any(m.full_name.lower() == name for m in roster):
                issues.append(ValidationIssue(
                    field="members",
                    issue_type="duplicate",
                    message=f"{member.full_name} is already registered",
                    severity="warning",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return ValidationResult(is_valid=is_valid, issues=issues)
