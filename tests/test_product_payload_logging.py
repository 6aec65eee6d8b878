from sizeshift.core.canonical.entities import Money
from sizeshift.logging import product_record_to_loggable
from tests._crawl_helpers import build_record


def _build_sample_record():
    return build_record(
        description="D" * 500,
        price=Money(amount="249.99", currency="usd"),
        raw={"source": "payload"},
    )


def test_loggable_is_none_when_debug_disabled() -> None:
    assert product_record_to_loggable(_build_sample_record()) is None
    assert product_record_to_loggable(_build_sample_record(), debug_enabled=False) is None


def test_extrahigh_is_full_and_includes_raw() -> None:
    loggable = product_record_to_loggable(_build_sample_record(), verbosity="extrahigh", debug_enabled=True)

    assert loggable["raw"] == {"source": "payload"}
    assert loggable["description"] == "D" * 500
    assert loggable["price"] == {"amount": 249.99, "currency": "USD"}
    assert loggable["dimensions"]["length_mm"] == 600.0


def test_high_truncates_description_and_excludes_raw() -> None:
    loggable = product_record_to_loggable(_build_sample_record(), verbosity="high", debug_enabled=True)

    assert "raw" not in loggable
    assert loggable["description"] == f"{'D' * 240}... [truncated]"
    assert isinstance(loggable["images"], list)


def test_medium_is_a_summary() -> None:
    loggable = product_record_to_loggable(_build_sample_record(), verbosity="medium", debug_enabled=True)

    assert loggable["price"] == "$249.99"
    assert loggable["dimensions"] == "600 x 400 x 750 mm (details_table, 0.90)"
    assert loggable["images"] == {"count": 3}
    assert loggable["description"] == f"{'D' * 160}... [truncated]"
    assert loggable["product_type"] == "furniture"


def test_low_is_minimal() -> None:
    loggable = product_record_to_loggable(_build_sample_record(), verbosity="low", debug_enabled=True)

    assert set(loggable) == {"platform", "title", "price", "dimensions", "validation_status", "warnings"}


def test_verbosity_defaults_to_settings(monkeypatch) -> None:
    monkeypatch.setenv("DEBUG", "1")
    monkeypatch.setenv("LOG_VERBOSITY", "LOW")

    loggable = product_record_to_loggable(_build_sample_record())

    assert loggable["platform"] == "ikea"
    assert "images" not in loggable


def test_unknown_verbosity_falls_back_to_medium() -> None:
    loggable = product_record_to_loggable(_build_sample_record(), verbosity="chatty", debug_enabled=True)

    assert loggable["images"] == {"count": 3}


def test_non_symbol_currency_is_suffixed() -> None:
    record = build_record(price=Money(amount=1200, currency="CHF"))

    loggable = product_record_to_loggable(record, verbosity="medium", debug_enabled=True)

    assert loggable["price"] == "1200 CHF"
