"""Validation report types for product record checks."""


from dataclasses import dataclass, field


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    message: str
    check: str
    severity: str = "error"
    field: str | None = None


@dataclass
class ValidationReport:
    valid: bool
    issues: list[ValidationIssue] = field(default_factory=list)
    quality_score: float = 0.0
    quality_level: str = "very_poor"
    image_quality: float = 0.0
    ar_score: float = 0.0

    def failed_checks(self) -> list[str]:
        checks: list[str] = []
        for issue in self.issues:
            if issue.severity == "error" and issue.check not in checks:
                checks.append(issue.check)
        return checks

    def issues_for(self, check: str) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.check == check]


__all__ = ["ValidationIssue", "ValidationReport"]
