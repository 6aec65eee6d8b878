import time

import pytest

from sizeshift.core.canonical.entities import ExtractedDimensions, Platform
from sizeshift.core.errors import ExtractionNotFoundError
from sizeshift.core.extract import (
    DimensionExtractor,
    ProductPage,
    extract_dimensions,
    find_dimension_text,
    parse_dimensions_text,
)


def _page(**kwargs) -> ProductPage:
    return ProductPage(url="https://shop.example.com/item?id=1", platform=Platform.GENERIC, **kwargs)


def test_free_text_triple_in_centimetres_is_stored_in_millimetres() -> None:
    found = extract_dimensions("Size: 25.9 x 13 x 6.1 cm")

    assert found is not None
    assert found.as_tuple() == (259.0, 130.0, 61.0)
    assert found.unit == "mm"
    assert found.source_unit == "cm"
    assert found.confidence >= 0.9
    assert found.source_strategy == "free_text"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("W 60 x D 40 x H 75 cm", (600.0, 400.0, 750.0)),
        ("幅60×奥行40×高さ75cm", (600.0, 400.0, 750.0)),
        ("10 x 20 x 30 inches", (254.0, 508.0, 762.0)),
        ("1,200 x 600 x 750 mm", (1200.0, 600.0, 750.0)),
        ("12,5 x 10 x 3 cm", (125.0, 100.0, 30.0)),
        ("20cm x 30cm x 40cm", (200.0, 300.0, 400.0)),
        ("Length: 120 cm, Width: 60 cm, Height: 75 cm", (1200.0, 600.0, 750.0)),
    ],
)
def test_parse_dimension_formats(text: str, expected: tuple[float, float, float]) -> None:
    found = parse_dimensions_text(text)

    assert found is not None
    assert found.as_tuple() == expected


def test_labelled_dimensions_without_unit_assume_centimetres_with_lower_confidence() -> None:
    found = parse_dimensions_text("Length 120 Width 60 Height 75")

    assert found is not None
    assert found.as_tuple() == (1200.0, 600.0, 750.0)
    assert found.source_unit == "cm"
    assert found.confidence == pytest.approx(0.7)


@pytest.mark.parametrize("text", [None, "", "Solid oak top", "0 x 10 x 10 cm", "Fits 2 x 3 people"])
def test_text_without_usable_dimensions(text: str | None) -> None:
    assert parse_dimensions_text(text) is None


def test_product_dimensions_win_over_package_dimensions() -> None:
    page = _page(
        detail_rows=[
            ("Package Dimensions", "50 x 40 x 30 cm"),
            ("Item Dimensions", "45 x 35 x 25 cm"),
        ]
    )

    assert find_dimension_text(page) == "Item Dimensions: 45 x 35 x 25 cm"
    found = DimensionExtractor().extract(page)
    assert found.as_tuple() == (450.0, 350.0, 250.0)
    assert found.source_strategy == "details_table"


def test_separate_axis_rows_are_combined() -> None:
    page = _page(detail_rows=[("Width", "80 cm"), ("Depth", "28 cm"), ("Height", "202 cm")])

    found = DimensionExtractor().extract(page)

    assert found.as_tuple() == (280.0, 800.0, 2020.0)
    assert found.confidence == pytest.approx(0.8)


def test_details_table_runs_before_free_text() -> None:
    page = _page(
        description="Box is 10 x 10 x 10 cm",
        detail_rows=[("Dimensions", "20 x 20 x 20 cm")],
    )

    found = DimensionExtractor().extract(page)

    assert found.as_tuple() == (200.0, 200.0, 200.0)
    assert found.source_strategy == "details_table"


def test_free_text_strategy_reads_description() -> None:
    page = _page(description="A compact stool, 30 x 30 x 45 cm, in pine.")

    found = DimensionExtractor().extract(page)

    assert found.as_tuple() == (300.0, 300.0, 450.0)
    assert found.source_strategy == "free_text"


def test_failing_strategy_is_skipped() -> None:
    def broken(page: ProductPage) -> ExtractedDimensions | None:
        raise RuntimeError("selector exploded")

    def fixed(page: ProductPage) -> ExtractedDimensions | None:
        return ExtractedDimensions(1.0, 2.0, 3.0, confidence=0.9, source_strategy="whatever")

    extractor = DimensionExtractor([("broken", broken), ("fixed", fixed)])

    found = extractor.extract(_page())
    assert found.source_strategy == "fixed"


def test_low_confidence_results_are_ignored() -> None:
    page = _page(description="Length 120 Width 60 Height 75")

    assert DimensionExtractor(min_confidence=0.8).try_extract(page) is None
    assert DimensionExtractor(min_confidence=0.5).try_extract(page) is not None


def test_no_strategy_match_raises_not_found() -> None:
    with pytest.raises(ExtractionNotFoundError):
        DimensionExtractor().extract(_page(description="Lovely colour"))

    assert extract_dimensions(_page(description="Lovely colour")) is None


def test_with_strategy_appends_without_mutating() -> None:
    base = DimensionExtractor()
    extended = base.with_strategy("ai", lambda page: None)

    assert [name for name, _ in base.strategies] == ["structured_markup", "details_table", "free_text"]
    assert [name for name, _ in extended.strategies] == ["structured_markup", "details_table", "free_text", "ai"]


def test_structured_markup_reads_schema_org_quantitative_values() -> None:
    page = _page(
        description="Chair, 60 x 70 x 80 cm",
        json_ld=[
            {
                "@type": "Product",
                "depth": {"@type": "QuantitativeValue", "value": 45, "unitCode": "CMT"},
                "width": {"@type": "QuantitativeValue", "value": "50", "unitCode": "CMT"},
                "height": {"@type": "QuantitativeValue", "value": 90.5, "unitText": "cm"},
            }
        ],
    )

    found = DimensionExtractor().extract(page)

    assert found.source_strategy == "structured_markup"
    assert found.as_tuple() == (450.0, 500.0, 905.0)
    assert found.source_unit == "cm"
    assert found.confidence == 0.9


def test_structured_markup_accepts_distance_strings_in_inches() -> None:
    page = _page(json_ld=[{"@type": "Product", "depth": "10 in", "width": "20 in", "height": "30 inches"}])

    found = DimensionExtractor().extract(page)

    assert found.as_tuple() == (254.0, 508.0, 762.0)
    assert found.source_unit == "in"


@pytest.mark.parametrize(
    "node",
    [
        {"@type": "Product", "width": "50 cm", "height": "90 cm"},
        {"@type": "Product", "depth": "45 cm", "width": "20 in", "height": "90 cm"},
        {"@type": "Product", "depth": {"value": True}, "width": "50 cm", "height": "90 cm"},
    ],
)
def test_incomplete_structured_markup_falls_through_to_text(node: dict) -> None:
    page = _page(description="Chair, 60 x 70 x 80 cm", json_ld=[node])

    found = DimensionExtractor().extract(page)

    assert found.source_strategy == "free_text"
    assert found.as_tuple() == (600.0, 700.0, 800.0)


@pytest.mark.parametrize(
    "text",
    [
        "Length: 1 cm Width: 2 cm " * 2000,
        "9" * 50_000,
        "1 x 2 x " * 5000,
    ],
)
def test_hostile_page_text_is_parsed_in_bounded_time(text: str) -> None:
    started = time.perf_counter()

    assert parse_dimensions_text(text) is None

    assert time.perf_counter() - started < 1.0


def test_labelled_dimensions_tolerate_short_prose_between_labels() -> None:
    found = parse_dimensions_text("Length: 120 cm, then Width: 60 cm; overall Height: 75 cm")

    assert found is not None
    assert found.as_tuple() == (1200.0, 600.0, 750.0)
