"""Public package entrypoint for the Sizeshift engine.

This package provides a stable import surface for product attribute
acquisition (URL normalization, resilient fetching, dimension extraction
and validation), plus a thin CLI adapter.
"""

from importlib.metadata import PackageNotFoundError, version
from typing import Any

_LAZY_EXPORTS: dict[str, tuple[str, str]] = {
    "ProductCrawler": ("sizeshift.core", "ProductCrawler"),
    "ProductRecord": ("sizeshift.core", "ProductRecord"),
    "extract_dimensions": ("sizeshift.core", "extract_dimensions"),
    "normalize_url": ("sizeshift.core", "normalize_url"),
    "validate_product": ("sizeshift.core", "validate_product"),
}

try:
    __version__ = version("sizeshift")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "ProductCrawler",
    "ProductRecord",
    "__version__",
    "extract_dimensions",
    "normalize_url",
    "validate_product",
]


def __getattr__(name: str) -> Any:
    target = _LAZY_EXPORTS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_name, attribute_name = target
    module = __import__(module_name, fromlist=[attribute_name])
    value = getattr(module, attribute_name)
    globals()[name] = value
    return value
