import logging

import pytest

from sizeshift.core.extract.units import canonical_unit, convert_to_mm


@pytest.mark.parametrize(
    ("value", "unit", "expected"),
    [
        (10, "cm", 100.0),
        (5, "in", 127.0),
        (5, "inches", 127.0),
        (12, "mm", 12.0),
        (3, "センチ", 30.0),
        (40, "ミリ", 40.0),
        (2, '"', 50.8),
        (1.5, "Centimetres", 15.0),
    ],
)
def test_convert_to_mm(value: float, unit: str, expected: float) -> None:
    assert convert_to_mm(value, unit) == expected


def test_unknown_unit_is_read_as_centimetres_with_warning(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="sizeshift.core.extract.units"):
        assert convert_to_mm(7, "furlong") == 70.0
    assert "Unknown length unit" in caplog.text


def test_canonical_unit_spellings() -> None:
    assert canonical_unit("Inches") == "in"
    assert canonical_unit("cm.") == "cm"
    assert canonical_unit("millimeter") == "mm"
    assert canonical_unit("ft") is None
    assert canonical_unit(None) is None


@pytest.mark.parametrize("unit", ["cm", "in", "mm"])
@pytest.mark.parametrize("value", [0.5, 6.1, 25.9, 120, 1234.567])
def test_converting_millimetres_again_is_a_no_op(value: float, unit: str) -> None:
    once = convert_to_mm(value, unit)

    assert convert_to_mm(once, "mm") == once
