from .report import ValidationIssue, ValidationReport
from .rules import validate, validate_partial, validate_product, validation_summary

__all__ = [
    "ValidationIssue",
    "ValidationReport",
    "validate",
    "validate_partial",
    "validate_product",
    "validation_summary",
]
