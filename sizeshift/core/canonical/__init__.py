from .entities import (
    ExtractedDimensions,
    Money,
    NormalizedUrl,
    Platform,
    ProductRecord,
    ProductType,
    ValidationStatus,
)
from .helpers import clean_text, guess_currency, normalize_currency, ordered_unique_strings, parse_decimal_money

__all__ = [
    "ExtractedDimensions",
    "Money",
    "NormalizedUrl",
    "Platform",
    "ProductRecord",
    "ProductType",
    "ValidationStatus",
    "clean_text",
    "guess_currency",
    "normalize_currency",
    "ordered_unique_strings",
    "parse_decimal_money",
]
