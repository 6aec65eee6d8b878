from decimal import Decimal, InvalidOperation
import html
import math
import re
from typing import Any, Iterable

_MONEY_SANITIZE_RE = re.compile(r"[^\d\.\-]")
_WHITESPACE_RE = re.compile(r"\s+")


def parse_decimal_money(value: Any) -> Decimal | None:
    if value is None:
        return None

    if isinstance(value, Decimal):
        return value if value.is_finite() else None

    if isinstance(value, int):
        return Decimal(str(value))

    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        try:
            parsed = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return None
        return parsed if parsed.is_finite() else None

    if isinstance(value, str):
        cleaned = _MONEY_SANITIZE_RE.sub("", value.strip().replace(",", ""))
        if cleaned in {"", "-", ".", "-."}:
            return None
        try:
            parsed = Decimal(cleaned)
        except InvalidOperation:
            return None
        return parsed if parsed.is_finite() else None

    return None


def normalize_currency(value: Any) -> str | None:
    if value is None:
        return None
    normalized = str(value).strip().upper()
    return normalized or None


def clean_text(value: Any) -> str | None:
    """Collapse whitespace and unescape entities; empty text becomes ``None``."""
    if value is None:
        return None
    text = _WHITESPACE_RE.sub(" ", html.unescape(str(value))).strip()
    return text or None


def ordered_unique_strings(items: Iterable[Any]) -> list[str]:
    values: list[str] = []
    seen: set[str] = set()
    for item in items:
        cleaned = clean_text(item)
        if not cleaned or cleaned in seen:
            continue
        seen.add(cleaned)
        values.append(cleaned)
    return values


_CURRENCY_SYMBOLS = {
    "$": "USD",
    "£": "GBP",
    "€": "EUR",
    "¥": "JPY",
    "￥": "JPY",
    "₹": "INR",
    "kr": "SEK",
}


def guess_currency(text: str | None, *, default: str | None = None) -> str | None:
    if not text:
        return default
    for symbol, code in _CURRENCY_SYMBOLS.items():
        if symbol in text:
            return code
    match = re.search(r"\b([A-Z]{3})\b", text)
    if match:
        return match.group(1)
    return default


__all__ = [
    "clean_text",
    "guess_currency",
    "normalize_currency",
    "ordered_unique_strings",
    "parse_decimal_money",
]
