"""Product page parsing.

Turns fetched HTML into a ``ProductPage``: the raw text fields the
dimension extractor and record builder work from. Platform selectors come
first; JSON-LD ``Product`` nodes and Open Graph tags fill whatever the
selectors miss.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from ..canonical.entities import Money, Platform
from ..canonical.helpers import clean_text, guess_currency, ordered_unique_strings
from .platforms import profile_for

logger = logging.getLogger(__name__)

_BYLINE_RE = re.compile(r"^(?:Visit the (?P<store>.+?) Store|Brand:\s*(?P<brand>.+))$", re.I)
_MATERIAL_LABELS = ("material", "materials", "fabric", "素材", "材質", "material principal", "matériau")
_COLOR_LABELS = ("color", "colour", "色", "カラー", "farbe", "couleur")
_BRAND_LABELS = ("brand", "manufacturer", "ブランド", "メーカー", "marke", "marque", "marca")


@dataclass
class ProductPage:
    url: str
    platform: Platform
    title: str | None = None
    brand: str | None = None
    price: Money | None = None
    description: str | None = None
    bullets: list[str] = field(default_factory=list)
    detail_rows: list[tuple[str, str]] = field(default_factory=list)
    images: list[str] = field(default_factory=list)
    breadcrumbs: list[str] = field(default_factory=list)
    materials: list[str] = field(default_factory=list)
    colors: list[str] = field(default_factory=list)
    json_ld: list[dict[str, Any]] = field(default_factory=list)

    @property
    def category(self) -> str | None:
        if not self.breadcrumbs:
            return None
        return " > ".join(self.breadcrumbs)

    def text_blocks(self) -> list[str]:
        blocks: list[str] = []
        if self.description:
            blocks.append(self.description)
        blocks.extend(self.bullets)
        blocks.extend(f"{label}: {value}" for label, value in self.detail_rows)
        return blocks


def _select_text(soup: BeautifulSoup, selectors: tuple[str, ...]) -> str | None:
    for selector in selectors:
        for node in soup.select(selector):
            text = clean_text(node.get_text(" ", strip=True))
            if text:
                return text
    return None


def _select_all_text(soup: BeautifulSoup, selectors: tuple[str, ...]) -> list[str]:
    values: list[str] = []
    for selector in selectors:
        for node in soup.select(selector):
            text = clean_text(node.get_text(" ", strip=True))
            if text:
                values.append(text)
    return ordered_unique_strings(values)


def _row_pair(node: Tag) -> tuple[str, str] | None:
    if node.name == "tr":
        label_node = node.find("th")
        cells = node.find_all("td")
        if label_node is None and len(cells) >= 2:
            label_node, value_node = cells[0], cells[1]
        elif label_node is not None and cells:
            value_node = cells[0]
        else:
            return None
        label = clean_text(label_node.get_text(" ", strip=True))
        value = clean_text(value_node.get_text(" ", strip=True))
    else:
        text = clean_text(node.get_text(" ", strip=True))
        if not text or ":" not in text:
            return None
        label, _, value = text.partition(":")
        label, value = clean_text(label), clean_text(value)
    if not label or not value:
        return None
    # Amazon detail bullets carry invisible direction marks.
    label = label.strip("‎‏ :").strip()
    return (label, value) if label else None


def _detail_rows(soup: BeautifulSoup, selectors: tuple[str, ...]) -> list[tuple[str, str]]:
    rows: list[tuple[str, str]] = []
    seen: set[tuple[str, str]] = set()
    for selector in selectors:
        for node in soup.select(selector):
            pair = _row_pair(node)
            if pair is None or pair in seen:
                continue
            seen.add(pair)
            rows.append(pair)
    return rows


def _image_candidates(node: Tag) -> list[str]:
    urls: list[str] = []
    dynamic = node.get("data-a-dynamic-image")
    if isinstance(dynamic, str) and dynamic.strip().startswith("{"):
        try:
            urls.extend(json.loads(dynamic).keys())
        except ValueError:
            logger.debug("Skipping malformed data-a-dynamic-image attribute")
    for attr in ("data-old-hires", "data-src", "src", "content", "href"):
        value = node.get(attr)
        if isinstance(value, str) and value.strip():
            urls.append(value.strip())
    return urls


def _images(soup: BeautifulSoup, selectors: tuple[str, ...], base_url: str) -> list[str]:
    urls: list[str] = []
    for selector in selectors:
        for node in soup.select(selector):
            for candidate in _image_candidates(node):
                if candidate.startswith("data:"):
                    continue
                if candidate.startswith("//"):
                    candidate = f"https:{candidate}"
                urls.append(urljoin(base_url, candidate))
    return ordered_unique_strings(urls)


def _json_ld_nodes(data: Any) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    if isinstance(data, dict):
        node_type = data.get("@type")
        if node_type == "Product" or (isinstance(node_type, list) and "Product" in node_type):
            out.append(data)
        graph = data.get("@graph")
        if isinstance(graph, list):
            for item in graph:
                out.extend(_json_ld_nodes(item))
    elif isinstance(data, list):
        for item in data:
            out.extend(_json_ld_nodes(item))
    return out


def extract_product_json_ld_nodes(soup: BeautifulSoup) -> list[dict[str, Any]]:
    products: list[dict[str, Any]] = []
    for tag in soup.find_all("script", attrs={"type": "application/ld+json"}):
        text = tag.string or tag.get_text()
        if not text or not text.strip():
            continue
        try:
            data = json.loads(text)
        except ValueError:
            logger.debug("Skipping malformed JSON-LD block")
            continue
        products.extend(_json_ld_nodes(data))
    return products


def _pick_name(value: Any) -> str | None:
    if isinstance(value, str):
        return clean_text(value)
    if isinstance(value, dict):
        return clean_text(value.get("name"))
    if isinstance(value, list) and value:
        return _pick_name(value[0])
    return None


def _json_ld_images(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, dict):
        url = value.get("url") or value.get("contentUrl")
        return [url] if isinstance(url, str) else []
    if isinstance(value, list):
        out: list[str] = []
        for item in value:
            out.extend(_json_ld_images(item))
        return out
    return []


def _json_ld_price(node: dict[str, Any]) -> Money | None:
    offers = node.get("offers")
    if isinstance(offers, list):
        offers = offers[0] if offers else None
    if not isinstance(offers, dict):
        return None
    amount = offers.get("price") or offers.get("lowPrice")
    money = Money(amount=amount, currency=offers.get("priceCurrency"))
    return money if money.amount is not None else None


def _meta_content(soup: BeautifulSoup, prop: str) -> str | None:
    tag = soup.find("meta", attrs={"property": prop}) or soup.find("meta", attrs={"name": prop})
    if tag is None:
        return None
    return clean_text(tag.get("content"))


def _brand_from_byline(text: str | None) -> str | None:
    if not text:
        return None
    match = _BYLINE_RE.match(text.strip())
    if not match:
        return text
    return clean_text(match.group("store") or match.group("brand"))


def _label_values(rows: list[tuple[str, str]], labels: tuple[str, ...]) -> list[str]:
    values: list[str] = []
    for label, value in rows:
        lowered = label.lower()
        if any(lowered == key or lowered.startswith(key) for key in labels):
            values.extend(part.strip() for part in re.split(r"[,/、]", value))
    return ordered_unique_strings(values)


def _parse_price(text: str | None, default_currency: str | None) -> Money | None:
    if not text:
        return None
    money = Money(amount=text, currency=guess_currency(text, default=default_currency))
    return money if money.amount is not None else None


def parse_product_page(html: str, *, url: str, platform: Platform) -> ProductPage:
    soup = BeautifulSoup(html or "", "lxml")
    profile = profile_for(platform)

    page = ProductPage(url=url, platform=Platform(platform))
    page.title = _select_text(soup, profile.title)
    page.brand = _brand_from_byline(_select_text(soup, profile.brand)) if profile.brand else None
    page.price = _parse_price(_select_text(soup, profile.price), profile.default_currency)
    page.description = _select_text(soup, profile.description)
    page.bullets = _select_all_text(soup, profile.bullets)
    page.detail_rows = _detail_rows(soup, profile.detail_rows)
    page.images = _images(soup, profile.images, url)
    page.breadcrumbs = _select_all_text(soup, profile.breadcrumbs)
    page.json_ld = extract_product_json_ld_nodes(soup)

    for node in page.json_ld:
        page.title = page.title or _pick_name(node.get("name"))
        page.brand = page.brand or _pick_name(node.get("brand"))
        page.description = page.description or clean_text(node.get("description"))
        page.price = page.price or _json_ld_price(node)
        if not page.images:
            page.images = ordered_unique_strings(urljoin(url, item) for item in _json_ld_images(node.get("image")))
        if not page.breadcrumbs and isinstance(node.get("category"), str):
            page.breadcrumbs = [part.strip() for part in re.split(r"[>/]", node["category"]) if part.strip()]
        if node.get("material"):
            page.materials.extend(ordered_unique_strings([_pick_name(node.get("material"))]))
        if node.get("color"):
            page.colors.extend(ordered_unique_strings([_pick_name(node.get("color"))]))

    page.title = page.title or _meta_content(soup, "og:title")
    page.description = page.description or _meta_content(soup, "og:description")
    if not page.images:
        og_image = _meta_content(soup, "og:image")
        if og_image:
            page.images = [urljoin(url, og_image)]

    page.brand = page.brand or next(iter(_label_values(page.detail_rows, _BRAND_LABELS)), None)
    page.materials = ordered_unique_strings([*page.materials, *_label_values(page.detail_rows, _MATERIAL_LABELS)])
    page.colors = ordered_unique_strings([*page.colors, *_label_values(page.detail_rows, _COLOR_LABELS)])

    logger.debug(
        "Parsed %s page %s: title=%r rows=%d bullets=%d images=%d",
        page.platform.value,
        url,
        page.title,
        len(page.detail_rows),
        len(page.bullets),
        len(page.images),
    )
    return page


__all__ = ["ProductPage", "extract_product_json_ld_nodes", "parse_product_page"]
