"""Canonical product URLs.

``normalize_url`` turns a user-supplied link into a ``NormalizedUrl`` whose
canonical form is stable: tracking parameters are gone, the host is lower
case, fragments and default ports are dropped, and normalizing a canonical
URL again returns it unchanged.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from ..canonical.entities import NormalizedUrl, Platform
from ..detect.url import (
    AMAZON_NON_PRODUCT_RE,
    IKEA_PRODUCT_RE,
    TARGET_NON_PRODUCT_RE,
    TARGET_PRODUCT_RE,
    WALMART_NON_PRODUCT_RE,
    WALMART_PRODUCT_RE,
    extract_amazon_asin,
    is_short_link,
    platform_for_host,
)
from ..errors import InvalidUrlError

if TYPE_CHECKING:
    from .resolver import UrlResolver

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = {"http", "https"}
_DEFAULT_PORTS = {"http": 80, "https": 443}

TRACKING_PARAMS: frozenset[str] = frozenset(
    {
        "fbclid",
        "gclid",
        "gclsrc",
        "dclid",
        "msclkid",
        "yclid",
        "mc_cid",
        "mc_eid",
        "_ga",
        "_gl",
        "ref",
        "ref_",
        "tag",
        "spm",
        "scm",
        "igshid",
        "sid",
        "sessionid",
        "session_id",
        "psc",
        "th",
        "linkcode",
        "linkid",
        "camp",
        "creative",
        "creativeasin",
    }
)
_ESSENTIAL_KEYS = ("id", "item", "product", "pid", "sku")
_ESSENTIAL_EXCLUDED = {"content-id", "content_id"}


def _is_tracking_param(key: str) -> bool:
    lowered = key.lower()
    return lowered.startswith(("utm_", "pd_rd_", "pf_rd_")) or lowered in TRACKING_PARAMS


def _is_essential_param(key: str) -> bool:
    lowered = key.lower()
    if lowered in _ESSENTIAL_EXCLUDED:
        return False
    return lowered in _ESSENTIAL_KEYS or any(token in lowered for token in _ESSENTIAL_KEYS)


def _netloc(scheme: str, host: str, port: int | None) -> str:
    if ":" in host:
        # urlparse strips IPv6 brackets from hostname.
        host = f"[{host}]"
    if port is None or _DEFAULT_PORTS.get(scheme) == port:
        return host
    return f"{host}:{port}"


def _amazon(scheme: str, netloc: str, path: str, query: str, raw: str) -> NormalizedUrl:
    if AMAZON_NON_PRODUCT_RE.search(path):
        raise InvalidUrlError("Amazon search and category pages are not product pages", url=raw)
    asin = extract_amazon_asin(path, query)
    if not asin:
        raise InvalidUrlError("Amazon URL does not contain a product identifier (ASIN)", url=raw)
    canonical = urlunparse((scheme, netloc, f"/dp/{asin}", "", "", ""))
    return NormalizedUrl(raw=raw, canonical=canonical, platform=Platform.AMAZON, product_identifier=asin)


def _ikea(scheme: str, netloc: str, path: str, query: str, raw: str) -> NormalizedUrl:
    match = IKEA_PRODUCT_RE.search(path)
    if not match:
        raise InvalidUrlError("IKEA URL is not a product page (/<country>/<lang>/p/<name>-<id>/)", url=raw)
    country, lang, slug, product_id = match.groups()
    canonical_path = f"/{country.lower()}/{lang.lower()}/p/{slug}-{product_id}/"
    canonical = urlunparse((scheme, netloc, canonical_path, "", "", ""))
    return NormalizedUrl(raw=raw, canonical=canonical, platform=Platform.IKEA, product_identifier=product_id)


def _walmart(scheme: str, netloc: str, path: str, query: str, raw: str) -> NormalizedUrl:
    if WALMART_NON_PRODUCT_RE.search(path):
        raise InvalidUrlError("Walmart search, browse and category pages are not product pages", url=raw)
    match = WALMART_PRODUCT_RE.search(path)
    if not match:
        raise InvalidUrlError("Walmart URL is not a product page (/ip/<id>)", url=raw)
    item_id = match.group(2)
    canonical = urlunparse((scheme, netloc, f"/ip/{item_id}", "", "", ""))
    return NormalizedUrl(raw=raw, canonical=canonical, platform=Platform.WALMART, product_identifier=item_id)


def _target(scheme: str, netloc: str, path: str, query: str, raw: str) -> NormalizedUrl:
    if TARGET_NON_PRODUCT_RE.search(path):
        raise InvalidUrlError("Target search and category pages are not product pages", url=raw)
    match = TARGET_PRODUCT_RE.search(path)
    if not match:
        raise InvalidUrlError("Target URL is not a product page (/p/-/A-<id>)", url=raw)
    tcin = match.group(2).upper()
    canonical = urlunparse((scheme, netloc, f"/p/-/{tcin}", "", "", ""))
    return NormalizedUrl(raw=raw, canonical=canonical, platform=Platform.TARGET, product_identifier=tcin)


def _generic(scheme: str, netloc: str, path: str, query: str, raw: str) -> NormalizedUrl:
    kept = [
        (key, value)
        for key, value in parse_qsl(query, keep_blank_values=False)
        if not _is_tracking_param(key) and _is_essential_param(key)
    ]
    kept.sort()
    identifier = kept[0][1] if kept else None
    canonical = urlunparse((scheme, netloc, path or "/", "", urlencode(kept), ""))
    return NormalizedUrl(raw=raw, canonical=canonical, platform=Platform.GENERIC, product_identifier=identifier)


_PLATFORM_RULES = {
    Platform.AMAZON: _amazon,
    Platform.IKEA: _ikea,
    Platform.WALMART: _walmart,
    Platform.TARGET: _target,
    Platform.GENERIC: _generic,
}


def normalize_url(raw: str, *, resolver: "UrlResolver | None" = None) -> NormalizedUrl:
    """Normalize ``raw`` into a canonical product URL.

    Short links are expanded through ``resolver`` first; without one they are
    rejected. Raises ``InvalidUrlError`` for anything that is not an http(s)
    product page.
    """
    text = (raw or "").strip()
    if not text:
        raise InvalidUrlError("URL is empty", url=raw)

    try:
        parsed = urlparse(text)
        port = parsed.port
    except ValueError as exc:
        raise InvalidUrlError(f"URL could not be parsed: {exc}", url=raw) from exc

    scheme = (parsed.scheme or "").lower()
    if scheme not in _ALLOWED_SCHEMES:
        raise InvalidUrlError("URL must start with http:// or https://", url=raw)

    host = (parsed.hostname or "").lower().rstrip(".")
    if not host:
        raise InvalidUrlError("URL has no host", url=raw)

    if is_short_link(host):
        if resolver is None:
            raise InvalidUrlError("Short links require a resolver", url=raw)
        resolved = resolver.resolve(text)
        logger.debug("Resolved short link %s -> %s", text, resolved)
        if is_short_link(urlparse(resolved).hostname or ""):
            raise InvalidUrlError("Short link resolved to another short link", url=raw)
        normalized = normalize_url(resolved)
        return NormalizedUrl(
            raw=raw,
            canonical=normalized.canonical,
            platform=normalized.platform,
            product_identifier=normalized.product_identifier,
        )

    platform = platform_for_host(host)
    rule = _PLATFORM_RULES[platform]
    path = re.sub(r"/{2,}", "/", parsed.path or "")
    return rule(scheme, _netloc(scheme, host, port), path, parsed.query, raw)


__all__ = ["TRACKING_PARAMS", "normalize_url"]
