from typing import Any

from babel.numbers import get_currency_symbol

from ..config import get_settings
from ..core.canonical.entities import ProductRecord

_DEFAULT_DESCRIPTION_LIMITS = {
    "low": 80,
    "medium": 160,
    "high": 240,
}
_SUPPORTED_VERBOSITIES = {"low", "medium", "high", "extrahigh"}


def _truncate_description(value: str | None, *, limit: int) -> str:
    text = str(value or "").strip()
    if len(text) <= limit:
        return text
    return f"{text[:limit].rstrip()}... [truncated]"


def _normalize_verbosity(verbosity: str) -> str:
    normalized = str(verbosity or "").strip().lower()
    if normalized in _SUPPORTED_VERBOSITIES:
        return normalized
    return "medium"


def _format_number(value: float | int | None) -> str:
    if value is None:
        return ""
    return f"{float(value):.2f}".rstrip("0").rstrip(".")


def _format_price(value: Any, currency: str | None) -> str:
    amount: float | None = None
    if isinstance(value, (int, float)):
        amount = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if stripped:
            try:
                amount = float(stripped)
            except ValueError:
                return stripped
    if amount is None:
        return ""
    number = _format_number(amount)

    symbol = ""
    currency_code = str(currency or "").upper()
    if currency_code:
        try:
            symbol = get_currency_symbol(currency_code, locale="en_US")
        except Exception:
            symbol = currency_code

    if symbol:
        if symbol.isalpha():
            return f"{number} {symbol}"
        return f"{symbol}{number}"
    return number


def _format_dimensions(dimensions: dict[str, Any] | None) -> str:
    if not dimensions:
        return ""
    axes = (dimensions.get("length_mm"), dimensions.get("width_mm"), dimensions.get("height_mm"))
    text = " x ".join(_format_number(axis) for axis in axes)
    return f"{text} mm ({dimensions.get('source_strategy')}, {float(dimensions.get('confidence') or 0):.2f})"


def product_record_to_loggable(
    record: ProductRecord,
    *,
    verbosity: str | None = None,
    debug_enabled: bool | None = None,
) -> dict[str, Any] | None:
    settings = get_settings()
    if debug_enabled is None:
        debug_enabled = settings.debug

    if not debug_enabled:
        return None

    resolved_verbosity = verbosity if verbosity is not None else settings.log_verbosity
    level = _normalize_verbosity(resolved_verbosity)
    if level == "extrahigh":
        return record.to_dict(include_raw=True)

    data = record.to_dict(include_raw=False)

    if level == "high":
        data["description"] = _truncate_description(data.get("description"), limit=_DEFAULT_DESCRIPTION_LIMITS["high"])
        return data

    price_payload = data.get("price") if isinstance(data.get("price"), dict) else {}
    summary = {
        "platform": data.get("platform"),
        "title": data.get("title"),
        "description": _truncate_description(data.get("description"), limit=_DEFAULT_DESCRIPTION_LIMITS["medium"]),
        "brand": data.get("brand"),
        "category": data.get("category"),
        "price": _format_price(price_payload.get("amount"), price_payload.get("currency")),
        "dimensions": _format_dimensions(data.get("dimensions")),
        "images": {"count": len(data.get("images") or [])},
        "product_type": data.get("product_type"),
        "size_relevance_score": data.get("size_relevance_score"),
        "validation_status": data.get("validation_status"),
        "quality_level": data.get("quality_level"),
        "warnings": data.get("warnings") or [],
        "ar_ready": data.get("ar_ready"),
    }

    if level == "low":
        return {
            "platform": summary.get("platform"),
            "title": summary.get("title"),
            "price": summary.get("price"),
            "dimensions": summary.get("dimensions"),
            "validation_status": summary.get("validation_status"),
            "warnings": summary.get("warnings"),
        }

    return summary


__all__ = ["product_record_to_loggable"]
