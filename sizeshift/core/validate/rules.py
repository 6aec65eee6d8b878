"""Product record validation.

Five independent checks (dimensions, images, metadata, AR compatibility and
overall quality) feed one ``ValidationReport``. ``validate`` requires every
check to pass; ``validate_partial`` only requires a title and turns the
other failures into warnings on the record.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from itertools import combinations
from typing import Any
from urllib.parse import urlparse

from ..canonical.entities import Platform, ProductRecord, ProductType, ValidationStatus
from ..canonical.helpers import clean_text
from ..errors import ValidationFailedError
from .report import ValidationIssue, ValidationReport

logger = logging.getLogger(__name__)

MIN_AXIS_MM = 1.0
MAX_AXIS_MM = 10_000.0
MAX_AXIS_RATIO = 50.0

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".gif")
HIGH_RES_MARKERS = ("high", "large", "hd", "4k", "_lg", "_xl", "_xxl")
MIN_IMAGE_QUALITY = 0.5

AR_FAVORABLE_TYPES = frozenset({ProductType.FURNITURE, ProductType.HOME_GARDEN, ProductType.ELECTRONICS})
MIN_AR_SCORE = 0.7

QUALITY_LEVELS: tuple[tuple[float, str], ...] = (
    (0.9, "excellent"),
    (0.8, "very_good"),
    (0.7, "good"),
    (0.6, "fair"),
    (0.5, "poor"),
)
MIN_QUALITY_SCORE = 0.5

MAX_PARTIAL_WARNINGS_FOR_AR = 2


def _issue(check: str, code: str, message: str, *, field: str | None = None) -> ValidationIssue:
    return ValidationIssue(code=code, message=message, check=check, field=field)


def check_dimensions(record: ProductRecord) -> list[ValidationIssue]:
    dims = record.dimensions
    if dims is None:
        return [_issue("dimensions", "missing_dimensions", "Dimensions are missing.", field="dimensions")]

    axes = {"length": dims.length_mm, "width": dims.width_mm, "height": dims.height_mm}
    issues: list[ValidationIssue] = []
    for name, value in axes.items():
        if value is None or value <= 0:
            issues.append(_issue("dimensions", "non_positive_axis", f"{name} must be greater than 0.", field="dimensions"))
        elif value > MAX_AXIS_MM:
            issues.append(
                _issue("dimensions", "axis_too_large", f"{name} {value:g}mm exceeds {MAX_AXIS_MM:g}mm.", field="dimensions")
            )
        elif value < MIN_AXIS_MM:
            issues.append(
                _issue("dimensions", "axis_too_small", f"{name} {value:g}mm is below {MIN_AXIS_MM:g}mm.", field="dimensions")
            )
    if issues:
        return issues

    for (name_a, a), (name_b, b) in combinations(axes.items(), 2):
        ratio = max(a, b) / min(a, b)
        if ratio > MAX_AXIS_RATIO:
            issues.append(
                _issue(
                    "dimensions",
                    "implausible_ratio",
                    f"{name_a}:{name_b} ratio {ratio:.1f} exceeds {MAX_AXIS_RATIO:g}:1.",
                    field="dimensions",
                )
            )
    return issues


def is_valid_image_url(url: str) -> bool:
    try:
        parsed = urlparse(str(url or "").strip())
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False
    return parsed.path.lower().endswith(IMAGE_EXTENSIONS)


def image_quality_score(images: tuple[str, ...] | list[str]) -> float:
    valid = [url for url in images if is_valid_image_url(url)]
    if not valid:
        return 0.0
    high_res = sum(1 for url in valid if any(marker in url.lower() for marker in HIGH_RES_MARKERS))
    score = min(len(valid) / 3, 1.0) + 0.3 * (high_res / len(valid))
    return round(min(score, 1.0), 4)


def check_images(record: ProductRecord) -> list[ValidationIssue]:
    if not any(is_valid_image_url(url) for url in record.images):
        return [_issue("images", "missing_images", "At least one valid image URL is required.", field="images")]
    quality = image_quality_score(record.images)
    if quality < MIN_IMAGE_QUALITY:
        return [
            _issue(
                "images",
                "low_image_quality",
                f"Image quality {quality:.2f} is below {MIN_IMAGE_QUALITY}.",
                field="images",
            )
        ]
    return []


def missing_metadata(record: ProductRecord) -> list[str]:
    missing: list[str] = []
    if not record.title:
        missing.append("title")
    if record.platform is Platform.UNKNOWN:
        missing.append("platform")
    if not (record.source_url or "").strip():
        missing.append("source_url")
    return missing


def check_metadata(record: ProductRecord) -> list[ValidationIssue]:
    return [
        _issue("metadata", f"missing_{name}", f"{name} is required.", field=name)
        for name in missing_metadata(record)
    ]


def has_complete_metadata(record: ProductRecord) -> bool:
    return bool(record.title and record.brand and record.category)


def ar_score(record: ProductRecord) -> float:
    score = 0.0
    if record.dimensions is not None:
        score += 0.4
    if any(is_valid_image_url(url) for url in record.images):
        score += 0.3
    if record.product_type in AR_FAVORABLE_TYPES:
        score += 0.2
    if has_complete_metadata(record):
        score += 0.1
    return round(score, 4)


def check_ar_compatibility(record: ProductRecord) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if not record.ar_suitable:
        issues.append(_issue("ar", "not_ar_suitable", "Product is not suitable for AR.", field="ar_suitable"))
    score = ar_score(record)
    if score < MIN_AR_SCORE:
        issues.append(_issue("ar", "low_ar_score", f"AR compatibility score {score:.2f} is below {MIN_AR_SCORE}."))
    return issues


def quality_level(score: float) -> str:
    for threshold, level in QUALITY_LEVELS:
        if score >= threshold:
            return level
    return "very_poor"


def quality_score(record: ProductRecord) -> float:
    score = 0.0
    if record.title:
        score += 0.3
    if record.dimensions is not None and not check_dimensions(record):
        score += 0.4
    score += 0.3 * image_quality_score(record.images)
    return round(min(score, 1.0), 4)


def check_quality(record: ProductRecord) -> list[ValidationIssue]:
    score = quality_score(record)
    if score < MIN_QUALITY_SCORE:
        return [_issue("quality", "low_quality", f"Quality score {score:.2f} is below {MIN_QUALITY_SCORE}.")]
    return []


def validate_product(record: ProductRecord) -> ValidationReport:
    issues: list[ValidationIssue] = []
    for check in (check_dimensions, check_images, check_metadata, check_ar_compatibility, check_quality):
        issues.extend(check(record))
    score = quality_score(record)
    return ValidationReport(
        valid=not issues,
        issues=issues,
        quality_score=score,
        quality_level=quality_level(score),
        image_quality=image_quality_score(record.images),
        ar_score=ar_score(record),
    )


def _trimmed(record: ProductRecord) -> dict[str, Any]:
    return {
        "brand": clean_text(record.brand),
        "category": clean_text(record.category),
        "description": clean_text(record.description),
    }


def validate(record: ProductRecord) -> ProductRecord:
    """Strict validation: every check must pass."""
    report = validate_product(record)
    if not report.valid:
        logger.debug("Strict validation failed for %s: %s", record.source_url, report.failed_checks())
        raise ValidationFailedError(
            f"Validation failed: {', '.join(report.failed_checks())}",
            url=record.source_url,
            report=report,
        )
    return replace(
        record,
        **_trimmed(record),
        quality_score=report.quality_score,
        quality_level=report.quality_level,
        validation_status=ValidationStatus.PASSED,
        warnings=(),
        ar_ready=True,
    )


def partial_warnings(record: ProductRecord) -> list[str]:
    warnings: list[str] = []

    dimension_issues = check_dimensions(record)
    if record.dimensions is None:
        warnings.append("missing dimensions")
    elif dimension_issues:
        warnings.append("invalid dimensions: " + "; ".join(issue.message for issue in dimension_issues))

    image_issues = check_images(record)
    if image_issues:
        warnings.append("missing images" if image_issues[0].code == "missing_images" else "low image quality")

    missing = [name for name in missing_metadata(record) if name != "title"]
    if missing:
        warnings.append("incomplete metadata: " + ", ".join(missing))
    return warnings


def validate_partial(record: ProductRecord) -> ProductRecord:
    """Lenient validation: only a title is required."""
    if not record.title:
        report = ValidationReport(
            valid=False,
            issues=[_issue("metadata", "missing_title", "title is required.", field="title")],
        )
        raise ValidationFailedError("Product data too incomplete for processing", url=record.source_url, report=report)

    warnings = partial_warnings(record)
    score = quality_score(record)
    return replace(
        record,
        **_trimmed(record),
        quality_score=score,
        quality_level=quality_level(score),
        validation_status=ValidationStatus.PARTIAL,
        warnings=tuple(warnings),
        ar_ready=len(warnings) <= MAX_PARTIAL_WARNINGS_FOR_AR,
    )


def validation_summary(record: ProductRecord) -> dict[str, Any]:
    report = validate_product(record)
    return {
        "valid": report.valid,
        "failed_checks": report.failed_checks(),
        "issues": [issue.message for issue in report.issues],
        "quality_score": report.quality_score,
        "quality_level": report.quality_level,
        "image_quality": report.image_quality,
        "ar_score": report.ar_score,
        "status": record.validation_status.value if record.validation_status else None,
        "warnings": list(record.warnings),
        "ar_ready": record.ar_ready,
    }


__all__ = [
    "AR_FAVORABLE_TYPES",
    "HIGH_RES_MARKERS",
    "IMAGE_EXTENSIONS",
    "QUALITY_LEVELS",
    "ar_score",
    "check_ar_compatibility",
    "check_dimensions",
    "check_images",
    "check_metadata",
    "check_quality",
    "image_quality_score",
    "is_valid_image_url",
    "partial_warnings",
    "quality_level",
    "quality_score",
    "validate",
    "validate_partial",
    "validate_product",
    "validation_summary",
]
