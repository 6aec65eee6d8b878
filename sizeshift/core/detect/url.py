"""Product URL detection."""

import re
from urllib.parse import parse_qs, urlparse

from ..canonical.entities import Platform

SHORT_LINK_HOSTS: frozenset[str] = frozenset(
    {
        "a.co",
        "amzn.to",
        "amzn.eu",
        "amzn.asia",
        "bit.ly",
        "tinyurl.com",
        "short.link",
        "t.co",
        "goo.gl",
        "ow.ly",
        "is.gd",
    }
)

# Fixed priority: the first matching platform wins.
PLATFORM_HOST_PATTERNS: tuple[tuple[Platform, re.Pattern[str]], ...] = (
    (Platform.AMAZON, re.compile(r"(?:^|\.)amazon\.[a-z.]+$", re.I)),
    (Platform.IKEA, re.compile(r"(?:^|\.)ikea\.[a-z.]+$", re.I)),
    (Platform.WALMART, re.compile(r"(?:^|\.)walmart\.[a-z.]+$", re.I)),
    (Platform.TARGET, re.compile(r"(?:^|\.)target\.com$", re.I)),
)

AMAZON_ASIN_RE = re.compile(r"/(?:gp/product|dp)/([A-Z0-9]{10})(?:[/?#]|$)", re.I)
AMAZON_NON_PRODUCT_RE = re.compile(r"^/(?:s(?:/|$)|b(?:/|$))", re.I)
IKEA_PRODUCT_RE = re.compile(r"^/([a-z]{2})/([a-z]{2})/p/([^/]+?)-(\d+)/?$", re.I)
WALMART_PRODUCT_RE = re.compile(r"^/ip/(?:([^/]+)/)?(\d+)/?$", re.I)
WALMART_NON_PRODUCT_RE = re.compile(r"^/(?:search|browse|cp)(?:/|$)", re.I)
TARGET_PRODUCT_RE = re.compile(r"^/p/(?:([^/]+)/)?-/(A-\d+)/?$", re.I)
TARGET_NON_PRODUCT_RE = re.compile(r"^/(?:s|c)(?:/|$)", re.I)


def host_of(url: str) -> str:
    try:
        parsed = urlparse(url)
    except ValueError:
        return ""
    return (parsed.hostname or "").lower()


def is_short_link(host: str) -> bool:
    host = (host or "").lower().strip(".")
    if host.startswith("www."):
        host = host[4:]
    return any(host == short or host.endswith(f".{short}") for short in SHORT_LINK_HOSTS)


def platform_for_host(host: str) -> Platform:
    for platform, pattern in PLATFORM_HOST_PATTERNS:
        if pattern.search(host or ""):
            return platform
    return Platform.GENERIC


def extract_amazon_asin(path: str, query: str = "") -> str | None:
    match = AMAZON_ASIN_RE.search(path or "")
    if match:
        return match.group(1).upper()
    params = parse_qs(query or "")
    for key in ("asin", "ASIN"):
        values = params.get(key) or []
        if values and re.fullmatch(r"[A-Z0-9]{10}", values[0], re.I):
            return values[0].upper()
    return None


def detect_product_url(url: str) -> dict:
    """
    Returns: {'platform', 'is_product', 'product_id', 'short_link'}
    """
    res = {"platform": None, "is_product": False, "product_id": None, "short_link": False}
    try:
        parsed = urlparse(url)
    except ValueError:
        return res

    host = (parsed.hostname or "").lower()
    if not host:
        return res
    path = parsed.path or ""

    if is_short_link(host):
        res.update(short_link=True)
        return res

    platform = platform_for_host(host)
    res.update(platform=platform.value)

    if platform is Platform.AMAZON:
        if AMAZON_NON_PRODUCT_RE.search(path):
            return res
        asin = extract_amazon_asin(path, parsed.query)
        if asin:
            res.update(is_product=True, product_id=asin)
        return res

    if platform is Platform.IKEA:
        match = IKEA_PRODUCT_RE.search(path)
        if match:
            res.update(is_product=True, product_id=match.group(4))
        return res

    if platform is Platform.WALMART:
        if WALMART_NON_PRODUCT_RE.search(path):
            return res
        match = WALMART_PRODUCT_RE.search(path)
        if match:
            res.update(is_product=True, product_id=match.group(2))
        return res

    if platform is Platform.TARGET:
        if TARGET_NON_PRODUCT_RE.search(path):
            return res
        match = TARGET_PRODUCT_RE.search(path)
        if match:
            res.update(is_product=True, product_id=match.group(2).upper())
        return res

    # Generic pages cannot be told apart from listings by URL alone.
    res.update(is_product=True)
    return res


__all__ = [
    "PLATFORM_HOST_PATTERNS",
    "SHORT_LINK_HOSTS",
    "detect_product_url",
    "extract_amazon_asin",
    "host_of",
    "is_short_link",
    "platform_for_host",
]
