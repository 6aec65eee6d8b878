"""Core engine API.

The core layer is framework-agnostic and safe to import from scripts, tests,
CLI commands, and service frontends.
"""

from typing import Any

_LAZY_EXPORTS: dict[str, tuple[str, str]] = {
    "CircuitBreaker": ("sizeshift.core.resilience.circuit_breaker", "CircuitBreaker"),
    "CircuitBreakerRegistry": ("sizeshift.core.resilience.circuit_breaker", "CircuitBreakerRegistry"),
    "CoreConfig": ("sizeshift.core.config", "CoreConfig"),
    "CrawlError": ("sizeshift.core.errors", "CrawlError"),
    "DimensionExtractor": ("sizeshift.core.extract.dimensions", "DimensionExtractor"),
    "ExtractedDimensions": ("sizeshift.core.canonical.entities", "ExtractedDimensions"),
    "HttpFetcher": ("sizeshift.core.fetch.http", "HttpFetcher"),
    "NormalizedUrl": ("sizeshift.core.canonical.entities", "NormalizedUrl"),
    "Platform": ("sizeshift.core.canonical.entities", "Platform"),
    "ProductCrawler": ("sizeshift.core.crawler", "ProductCrawler"),
    "ProductRecord": ("sizeshift.core.canonical.entities", "ProductRecord"),
    "ProductType": ("sizeshift.core.canonical.entities", "ProductType"),
    "TTLCache": ("sizeshift.core.cache", "TTLCache"),
    "UrlResolver": ("sizeshift.core.urls.resolver", "UrlResolver"),
    "ValidationStatus": ("sizeshift.core.canonical.entities", "ValidationStatus"),
    "categorize": ("sizeshift.core.categorize", "categorize"),
    "config_from_env": ("sizeshift.core.config", "config_from_env"),
    "convert_to_mm": ("sizeshift.core.extract.units", "convert_to_mm"),
    "detect_product_url": ("sizeshift.core.detect.url", "detect_product_url"),
    "error_response": ("sizeshift.core.errors", "error_response"),
    "extract_dimensions": ("sizeshift.core.extract.dimensions", "extract_dimensions"),
    "normalize_url": ("sizeshift.core.urls.normalizer", "normalize_url"),
    "parse_product_page": ("sizeshift.core.extract.page", "parse_product_page"),
    "validate": ("sizeshift.core.validate.rules", "validate"),
    "validate_partial": ("sizeshift.core.validate.rules", "validate_partial"),
    "validate_product": ("sizeshift.core.validate.rules", "validate_product"),
}

__all__ = sorted(_LAZY_EXPORTS)


def __getattr__(name: str) -> Any:
    target = _LAZY_EXPORTS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_name, attribute_name = target
    module = __import__(module_name, fromlist=[attribute_name])
    value = getattr(module, attribute_name)
    globals()[name] = value
    return value
