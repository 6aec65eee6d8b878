"""AR suitability, product type and size relevance scoring.

Deterministic and offline. Keywords are matched against whole tokens of the
URL path and category text (plural ``s``/``es`` allowed), so ``bookcase``
does not read as ``book`` and ``apple`` does not read as ``app``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote, urlparse

from .canonical.entities import Platform, ProductRecord, ProductType
from .extract.platforms import profile_for

_TOKEN_RE = re.compile(r"[a-z0-9]+")
_STOP_TOKENS = {"http", "https", "www", "com", "html", "product", "products"}

DIGITAL_KEYWORDS = (
    "ebook",
    "e-book",
    "digital",
    "download",
    "software",
    "app",
    "music",
    "video",
    "movie",
    "streaming",
    "subscription",
)
SERVICE_KEYWORDS = (
    "service",
    "repair",
    "installation",
    "consultation",
    "support",
    "maintenance",
    "cleaning",
    "delivery",
    "shipping",
)
GIFT_KEYWORDS = ("gift card", "giftcard", "voucher", "coupon", "e-gift")
MEDIA_KEYWORDS = ("book", "magazine", "newspaper", "cd", "dvd", "blu-ray", "vinyl", "cassette", "audiobook")

# Checked in order: the first type with a matching keyword wins.
PRODUCT_TYPE_KEYWORDS: tuple[tuple[ProductType, tuple[str, ...]], ...] = (
    (
        ProductType.FURNITURE,
        ("furniture", "chair", "table", "sofa", "bed", "desk", "cabinet", "shelf", "bookcase", "dresser", "wardrobe"),
    ),
    (ProductType.ELECTRONICS, ("electronics", "phone", "laptop", "computer", "tv", "television", "camera", "monitor")),
    (ProductType.CLOTHING, ("clothing", "apparel", "shirt", "pants", "dress", "shoes", "jacket")),
    (ProductType.HOME_GARDEN, ("home", "garden", "kitchen", "bathroom", "lamp", "rug", "decor")),
    (ProductType.SPORTS_OUTDOORS, ("sports", "outdoor", "outdoors", "fitness", "exercise", "camping")),
    (ProductType.TOYS_GAMES, ("toy", "game", "puzzle", "lego")),
    (ProductType.AUTOMOTIVE, ("automotive", "auto", "car", "vehicle", "tire")),
)

PRODUCT_TYPE_SCORES: dict[ProductType, float] = {
    ProductType.FURNITURE: 0.95,
    ProductType.HOME_GARDEN: 0.9,
    ProductType.ELECTRONICS: 0.7,
    ProductType.SPORTS_OUTDOORS: 0.8,
    ProductType.TOYS_GAMES: 0.6,
    ProductType.CLOTHING: 0.3,
    ProductType.AUTOMOTIVE: 0.8,
    ProductType.GENERAL: 0.5,
}

_HIGH_RELEVANCE_URL = ("furniture", "chair", "table", "sofa", "bed", "desk", "cabinet", "shelf", "bookcase", "dresser")
_MEDIUM_RELEVANCE_URL = ("electronics", "appliance", "tool", "equipment")
_AR_PRIORITY_BY_TYPE = {
    ProductType.FURNITURE: 0.4,
    ProductType.HOME_GARDEN: 0.3,
    ProductType.ELECTRONICS: 0.2,
}

WEIGHTS = {"platform": 0.3, "product_type": 0.4, "url": 0.2, "data": 0.1}


@dataclass(frozen=True)
class Categorization:
    ar_suitable: bool
    product_type: ProductType
    size_relevance_score: float
    metadata: dict[str, Any] = field(default_factory=dict)


def _tokens(text: str | None) -> list[str]:
    return _TOKEN_RE.findall(str(text or "").lower())


def _url_text(url: str) -> str:
    try:
        parsed = urlparse(url or "")
    except ValueError:
        return str(url or "")
    return unquote(f"{parsed.hostname or ''} {parsed.path or ''}")


def _matches(keyword: str, tokens: list[str]) -> bool:
    parts = _tokens(keyword)
    if not parts:
        return False
    if len(parts) == 1:
        word = parts[0]
        return any(token in (word, f"{word}s", f"{word}es") for token in tokens)
    width = len(parts)
    return any(tokens[i : i + width] == parts for i in range(len(tokens) - width + 1))


def _any_keyword(keywords: tuple[str, ...], *texts: str | None) -> bool:
    for text in texts:
        tokens = _tokens(text)
        if any(_matches(keyword, tokens) for keyword in keywords):
            return True
    return False


def _type_from_text(text: str | None) -> ProductType | None:
    tokens = _tokens(text)
    if not tokens:
        return None
    for product_type, keywords in PRODUCT_TYPE_KEYWORDS:
        if any(_matches(keyword, tokens) for keyword in keywords):
            return product_type
    return None


def is_ar_suitable(platform: Platform, url: str, record: ProductRecord | None = None) -> bool:
    category = record.category if record is not None else None
    url_text = _url_text(url)
    for keywords in (DIGITAL_KEYWORDS, SERVICE_KEYWORDS, GIFT_KEYWORDS, MEDIA_KEYWORDS):
        if _any_keyword(keywords, url_text, category):
            return False
    # Known dimensions or not, physical goods are assumed suitable.
    return True


def detect_product_type(platform: Platform, url: str, record: ProductRecord | None = None) -> ProductType:
    category = record.category if record is not None else None
    return _type_from_text(category) or _type_from_text(_url_text(url)) or ProductType.GENERAL


def _url_score(url: str) -> float:
    url_text = _url_text(url)
    if _any_keyword(_HIGH_RELEVANCE_URL, url_text):
        return 0.9
    if _any_keyword(_MEDIUM_RELEVANCE_URL, url_text):
        return 0.7
    return 0.5


def _data_score(record: ProductRecord | None) -> float:
    if record is None:
        return 0.3
    if record.dimensions is not None:
        return 1.0
    if record.dimension_text:
        return 0.8
    if record.materials:
        return 0.6
    if record.category:
        tokens = _tokens(record.category)
        if any(_matches(word, tokens) for word in ("furniture", "home", "electronics")):
            return 0.7
        if any(_matches(word, tokens) for word in ("clothing", "book", "media")):
            return 0.3
        return 0.5
    return 0.3


def calculate_size_relevance_score(platform: Platform, url: str, record: ProductRecord | None = None) -> float:
    product_type = detect_product_type(platform, url, record)
    score = (
        WEIGHTS["platform"] * profile_for(platform).size_relevance
        + WEIGHTS["product_type"] * PRODUCT_TYPE_SCORES[product_type]
        + WEIGHTS["url"] * _url_score(url)
        + WEIGHTS["data"] * _data_score(record)
    )
    return round(max(0.0, min(1.0, score)), 4)


def _keywords(url: str, record: ProductRecord | None) -> list[str]:
    url_words = [token for token in _tokens(_url_text(url)) if len(token) > 3 and token not in _STOP_TOKENS][:5]
    title_words = []
    if record is not None:
        title_words = [token for token in _tokens(record.title) if len(token) > 3][:3]
    out: list[str] = []
    for word in [*url_words, *title_words]:
        if word not in out:
            out.append(word)
    return out[:10]


def build_category_metadata(platform: Platform, url: str, record: ProductRecord | None = None) -> dict[str, Any]:
    has_data = record is not None and bool(record.title)
    confidence = 0.5 + (0.3 if has_data else 0.0)
    if platform in (Platform.AMAZON, Platform.IKEA):
        confidence += 0.2
    product_type = detect_product_type(platform, url, record)
    ar_priority = 0.5 + _AR_PRIORITY_BY_TYPE.get(product_type, 0.0)
    if record is not None and record.dimensions is not None:
        ar_priority += 0.3
    return {
        "platform": Platform(platform).value,
        "detected_from": "product_data" if has_data else "url_pattern",
        "confidence": round(min(1.0, confidence), 4),
        "keywords": _keywords(url, record),
        "ar_priority": round(min(1.0, ar_priority), 4),
    }


def categorize(url: str, record: ProductRecord | None = None, *, platform: Platform | None = None) -> Categorization:
    if platform is None:
        platform = record.platform if record is not None else Platform.UNKNOWN
    return Categorization(
        ar_suitable=is_ar_suitable(platform, url, record),
        product_type=detect_product_type(platform, url, record),
        size_relevance_score=calculate_size_relevance_score(platform, url, record),
        metadata=build_category_metadata(platform, url, record),
    )


__all__ = [
    "Categorization",
    "DIGITAL_KEYWORDS",
    "GIFT_KEYWORDS",
    "MEDIA_KEYWORDS",
    "PRODUCT_TYPE_KEYWORDS",
    "PRODUCT_TYPE_SCORES",
    "SERVICE_KEYWORDS",
    "build_category_metadata",
    "calculate_size_relevance_score",
    "categorize",
    "detect_product_type",
    "is_ar_suitable",
]
