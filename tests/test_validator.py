import pytest

from sizeshift.core.canonical.entities import Platform, ProductRecord, ProductType, ValidationStatus
from sizeshift.core.errors import ValidationFailedError
from sizeshift.core.validate import validate, validate_partial, validate_product, validation_summary
from sizeshift.core.validate.rules import (
    ar_score,
    check_dimensions,
    check_images,
    image_quality_score,
    is_valid_image_url,
    quality_level,
    quality_score,
)
from tests._crawl_helpers import build_dimensions, build_record


def test_complete_record_passes_strict_validation() -> None:
    record = build_record(brand="  IKEA  ", category=" Furniture >  Desks ")

    validated = validate(record)

    assert validated.validation_status is ValidationStatus.PASSED
    assert validated.ar_ready is True
    assert validated.warnings == ()
    assert validated.brand == "IKEA"
    assert validated.category == "Furniture > Desks"
    assert validated.quality_score == pytest.approx(1.0)
    assert validated.quality_level == "excellent"


def test_implausible_aspect_ratio_fails() -> None:
    record = build_record(dimensions=build_dimensions(1000, 10, 500))

    issues = check_dimensions(record)
    assert [issue.code for issue in issues] == ["implausible_ratio"]

    with pytest.raises(ValidationFailedError) as exc_info:
        validate(record)
    report = exc_info.value.report
    assert report is not None
    assert "dimensions" in report.failed_checks()
    assert report.issues_for("dimensions")[0].code == "implausible_ratio"


@pytest.mark.parametrize(
    ("dims", "code"),
    [
        ((12_000, 400, 750), "axis_too_large"),
        ((0.5, 400, 750), "axis_too_small"),
        ((0, 400, 750), "non_positive_axis"),
        ((-3, 400, 750), "non_positive_axis"),
    ],
)
def test_axis_bounds(dims: tuple[float, float, float], code: str) -> None:
    record = build_record(dimensions=build_dimensions(*dims))

    assert [issue.code for issue in check_dimensions(record)] == [code]


def test_image_checks() -> None:
    assert is_valid_image_url("https://cdn.example.com/a.JPG") is True
    assert is_valid_image_url("https://cdn.example.com/a.webp?w=800") is True
    assert is_valid_image_url("https://cdn.example.com/a.svg") is False
    assert is_valid_image_url("ftp://cdn.example.com/a.jpg") is False
    assert is_valid_image_url("/relative/a.jpg") is False

    assert image_quality_score(()) == 0.0
    assert image_quality_score(("https://cdn.example.com/a.jpg",)) == pytest.approx(0.3333)
    assert image_quality_score(("https://cdn.example.com/a_xl.jpg",)) == pytest.approx(0.6333)

    single = build_record(images=("https://cdn.example.com/a.jpg",))
    assert [issue.code for issue in check_images(single)] == ["low_image_quality"]

    none = build_record(images=("https://cdn.example.com/a.svg",))
    assert [issue.code for issue in check_images(none)] == ["missing_images"]


def test_ar_checks() -> None:
    record = build_record(ar_suitable=False)
    report = validate_product(record)

    assert report.valid is False
    assert [issue.code for issue in report.issues_for("ar")] == ["not_ar_suitable"]

    bare = build_record(dimensions=None, images=(), product_type=ProductType.CLOTHING, brand=None)
    assert ar_score(bare) == 0.0
    assert ar_score(build_record()) == pytest.approx(1.0)


def test_quality_levels() -> None:
    assert quality_level(0.95) == "excellent"
    assert quality_level(0.85) == "very_good"
    assert quality_level(0.75) == "good"
    assert quality_level(0.65) == "fair"
    assert quality_level(0.55) == "poor"
    assert quality_level(0.1) == "very_poor"

    assert quality_score(build_record(dimensions=None, images=())) == pytest.approx(0.3)


def test_partial_validation_with_title_only_is_ar_ready() -> None:
    record = ProductRecord(title="X", platform=Platform.AMAZON, source_url="https://www.amazon.com/dp/B08XYZ1234")

    partial = validate_partial(record)

    assert partial.validation_status is ValidationStatus.PARTIAL
    assert partial.warnings == ("missing dimensions", "missing images")
    assert partial.ar_ready is True
    assert partial.quality_level == "very_poor"


def test_partial_validation_with_three_warnings_is_not_ar_ready() -> None:
    record = ProductRecord(title="X", platform=Platform.UNKNOWN, source_url="")

    partial = validate_partial(record)

    assert partial.warnings == ("missing dimensions", "missing images", "incomplete metadata: platform, source_url")
    assert partial.ar_ready is False


def test_partial_validation_reports_invalid_dimensions() -> None:
    record = build_record(dimensions=build_dimensions(1000, 10, 500))

    partial = validate_partial(record)

    assert len(partial.warnings) == 1
    assert partial.warnings[0].startswith("invalid dimensions:")
    assert partial.ar_ready is True


def test_partial_validation_requires_title() -> None:
    with pytest.raises(ValidationFailedError, match="too incomplete"):
        validate_partial(ProductRecord(title="   ", platform=Platform.AMAZON, source_url="https://x.test"))


def test_validation_summary() -> None:
    summary = validation_summary(validate(build_record()))

    assert summary["valid"] is True
    assert summary["failed_checks"] == []
    assert summary["status"] == "passed"
    assert summary["ar_ready"] is True
