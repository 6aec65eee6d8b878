from dataclasses import asdict, dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from .helpers import normalize_currency, ordered_unique_strings, parse_decimal_money


class Platform(str, Enum):
    AMAZON = "amazon"
    IKEA = "ikea"
    WALMART = "walmart"
    TARGET = "target"
    GENERIC = "generic"
    UNKNOWN = "unknown"


class ProductType(str, Enum):
    FURNITURE = "furniture"
    ELECTRONICS = "electronics"
    CLOTHING = "clothing"
    HOME_GARDEN = "home_garden"
    SPORTS_OUTDOORS = "sports_outdoors"
    TOYS_GAMES = "toys_games"
    AUTOMOTIVE = "automotive"
    GENERAL = "general"


class ValidationStatus(str, Enum):
    PASSED = "passed"
    PARTIAL = "partial"
    REJECTED = "rejected"


@dataclass(frozen=True)
class NormalizedUrl:
    raw: str
    canonical: str
    platform: Platform
    product_identifier: str | None = None

    @property
    def cache_key(self) -> str:
        return f"{self.platform.value}:{self.canonical}"


@dataclass
class Money:
    amount: Decimal | None = None
    currency: str | None = None

    def __post_init__(self) -> None:
        self.amount = parse_decimal_money(self.amount)
        self.currency = normalize_currency(self.currency)


@dataclass(frozen=True)
class ExtractedDimensions:
    """Dimensions in millimetres.

    ``unit`` is the storage unit and is always ``"mm"``; ``source_unit`` keeps
    the unit the value was written in on the page.
    """

    length_mm: float
    width_mm: float
    height_mm: float
    confidence: float
    source_strategy: str
    source_unit: str = "mm"
    unit: str = "mm"

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.length_mm, self.width_mm, self.height_mm)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ProductRecord:
    title: str
    platform: Platform
    source_url: str
    brand: str | None = None
    category: str | None = None
    price: Money | None = None
    description: str | None = None
    materials: tuple[str, ...] = ()
    colors: tuple[str, ...] = ()
    images: tuple[str, ...] = ()
    dimensions: ExtractedDimensions | None = None
    dimension_text: str | None = None
    ar_suitable: bool = False
    product_type: ProductType = ProductType.GENERAL
    size_relevance_score: float = 0.0
    category_metadata: dict[str, Any] = field(default_factory=dict)
    quality_score: float = 0.0
    quality_level: str | None = None
    validation_status: ValidationStatus | None = None
    warnings: tuple[str, ...] = ()
    ar_ready: bool = False
    raw: dict[str, Any] | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        # Frozen: normalize through object.__setattr__.
        object.__setattr__(self, "title", str(self.title or "").strip())
        object.__setattr__(self, "platform", Platform(self.platform))
        object.__setattr__(self, "product_type", ProductType(self.product_type))
        if self.validation_status is not None:
            object.__setattr__(self, "validation_status", ValidationStatus(self.validation_status))
        for name in ("materials", "colors", "images", "warnings"):
            object.__setattr__(self, name, tuple(ordered_unique_strings(getattr(self, name) or ())))
        if isinstance(self.price, dict):
            object.__setattr__(self, "price", Money(**self.price))

    @property
    def has_dimensions(self) -> bool:
        return self.dimensions is not None

    def to_dict(self, include_raw: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {
            "title": self.title,
            "brand": self.brand,
            "category": self.category,
            "price": None,
            "description": self.description,
            "materials": list(self.materials),
            "colors": list(self.colors),
            "images": list(self.images),
            "dimensions": self.dimensions.to_dict() if self.dimensions else None,
            "dimension_text": self.dimension_text,
            "platform": self.platform.value,
            "source_url": self.source_url,
            "ar_suitable": self.ar_suitable,
            "product_type": self.product_type.value,
            "size_relevance_score": self.size_relevance_score,
            "category_metadata": dict(self.category_metadata),
            "quality_score": self.quality_score,
            "quality_level": self.quality_level,
            "validation_status": self.validation_status.value if self.validation_status else None,
            "warnings": list(self.warnings),
            "ar_ready": self.ar_ready,
        }
        if self.price is not None and self.price.amount is not None:
            data["price"] = {"amount": float(self.price.amount), "currency": self.price.currency}
        if include_raw:
            data["raw"] = self.raw
        return data


__all__ = [
    "ExtractedDimensions",
    "Money",
    "NormalizedUrl",
    "Platform",
    "ProductRecord",
    "ProductType",
    "ValidationStatus",
]
