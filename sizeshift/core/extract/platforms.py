"""Per-platform page selectors and scoring weights.

One ``PlatformProfile`` per ``Platform`` member. The table is checked at
import time so a new platform cannot ship without selectors.
"""

from dataclasses import dataclass

from ..canonical.entities import Platform


@dataclass(frozen=True)
class PlatformProfile:
    title: tuple[str, ...]
    price: tuple[str, ...]
    brand: tuple[str, ...]
    description: tuple[str, ...]
    bullets: tuple[str, ...]
    detail_rows: tuple[str, ...]
    images: tuple[str, ...]
    breadcrumbs: tuple[str, ...]
    # Weight of the platform in the size relevance score.
    size_relevance: float
    default_currency: str | None = None


_GENERIC = PlatformProfile(
    title=(
        "h1[itemprop='name']",
        ".product-title",
        ".product-name",
        "[data-testid*='title']",
        ".product-header h1",
        ".product-info h1",
        "h1",
    ),
    price=("[itemprop='price']", ".price", "[data-testid*='price']", ".product-price"),
    brand=("[itemprop='brand']", ".brand", ".product-brand"),
    description=(
        "[itemprop='description']",
        ".product-description",
        "#description",
        ".description",
    ),
    bullets=(".features li", ".specifications li", ".product-features li", ".product-details li"),
    detail_rows=(".specifications tr", ".details tr", ".product-specs tr", ".product-details tr", "table tr"),
    images=("[itemprop='image']", ".product-image img", ".product-gallery img", ".gallery img"),
    breadcrumbs=(".breadcrumb a", ".breadcrumbs a", "nav[aria-label='breadcrumb'] a"),
    size_relevance=0.3,
)

PLATFORM_PROFILES: dict[Platform, PlatformProfile] = {
    Platform.AMAZON: PlatformProfile(
        title=("#productTitle", "#title"),
        price=(".a-price .a-offscreen", ".a-price-whole", "#priceblock_ourprice", "#priceblock_dealprice"),
        brand=("#bylineInfo", "#brand"),
        description=("#productDescription p", "#productDescription"),
        bullets=("#feature-bullets .a-list-item", "#feature-bullets li"),
        detail_rows=(
            "#productDetails_techSpec_section_1 tr",
            "#productDetails_detailBullets_sections1 tr",
            "#detailBullets_feature_div li",
            "table tr",
        ),
        images=("#landingImage", "#imgTagWrapperId img", "#main-image-container img", "#altImages img"),
        breadcrumbs=("#wayfinding-breadcrumbs_feature_div a",),
        size_relevance=0.7,
    ),
    Platform.IKEA: PlatformProfile(
        title=(
            "h1[data-testid='product-title']",
            ".pip-header-section h1",
            ".pip-header-section__title--big",
            "h1",
        ),
        price=("[data-testid='price']", ".pip-price__integer", ".pip-temp-price__integer"),
        brand=(),
        description=(".pip-product-summary__description", ".pip-product-details__paragraph"),
        bullets=(".pip-product-details__container li",),
        detail_rows=(".pip-product-details tr", ".pip-product-dimensions__dimensions-container p"),
        images=(".pip-media img", ".pip-product-gallery img", ".pip-image"),
        breadcrumbs=(".bc-breadcrumb__list-item a", ".bc-breadcrumb a"),
        size_relevance=0.9,
    ),
    Platform.WALMART: PlatformProfile(
        title=("[data-automation-id='product-title']", ".prod-ProductTitle", "h1[itemprop='name']", "h1"),
        price=("[itemprop='price']", "[data-automation-id='product-price']", ".price-characteristic"),
        brand=("[data-automation-id='product-brand']", ".prod-brandName"),
        description=(".prod-ProductDetails p", ".prod-Description", "[data-testid='product-description']"),
        bullets=(".prod-ProductDetails li", ".prod-Specifications li", ".prod-Details li"),
        detail_rows=(".prod-ProductDetails tr", ".prod-Specifications tr", ".prod-Details tr", "table tr"),
        images=(".prod-ProductImage img", ".prod-MainImage img", ".prod-Gallery img", "[data-testid='media-thumbnail'] img"),
        breadcrumbs=("[data-testid='breadcrumb'] a", ".breadcrumb a"),
        size_relevance=0.6,
        default_currency="USD",
    ),
    Platform.TARGET: PlatformProfile(
        title=("[data-test='product-title']", "[class*='styles__ProductTitle']", "h1"),
        price=("[data-test='product-price']", "[class*='styles__CurrentPrice']"),
        brand=("[data-test='product-brand']", "[class*='styles__BrandLink']"),
        description=("[data-test='item-details-description']", "[class*='styles__Description']"),
        bullets=("[class*='styles__Specifications'] li", "[class*='styles__Details'] li", "[data-test='item-details-specifications'] div"),
        detail_rows=("[class*='styles__Specifications'] tr", "[class*='styles__Details'] tr", "table tr"),
        images=("[class*='styles__ProductImage'] img", "[class*='styles__Gallery'] img", "[data-test='product-image'] img"),
        breadcrumbs=("[data-test='breadcrumb'] a",),
        size_relevance=0.6,
        default_currency="USD",
    ),
    Platform.GENERIC: _GENERIC,
    Platform.UNKNOWN: _GENERIC,
}


def profile_for(platform: Platform) -> PlatformProfile:
    return PLATFORM_PROFILES[Platform(platform)]


def _check_profiles() -> None:
    missing = [platform.value for platform in Platform if platform not in PLATFORM_PROFILES]
    if missing:
        raise RuntimeError(f"Missing platform profiles: {', '.join(missing)}")
    for platform, profile in PLATFORM_PROFILES.items():
        if not profile.title or not profile.images:
            raise RuntimeError(f"Platform profile {platform.value} needs title and image selectors")
        if not 0.0 <= profile.size_relevance <= 1.0:
            raise RuntimeError(f"Platform profile {platform.value} has an out-of-range size relevance")


_check_profiles()


__all__ = ["PLATFORM_PROFILES", "PlatformProfile", "profile_for"]
