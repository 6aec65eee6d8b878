"""Multi-strategy dimension extraction.

Strategies run in order and the first confident result wins:

1. ``structured_markup``: schema.org ``depth``/``width``/``height`` in JSON-LD.
2. ``details_table``: labelled detail rows and bullets that mention size.
3. ``free_text``: description and other text blocks.
4. ``ai``: an external model, only when the deterministic strategies fail.

A failing strategy is logged and skipped. When every strategy comes up
empty ``ExtractionNotFoundError`` is raised; callers treat it as "no
dimensions", never as a crawl failure.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import replace
from typing import Any

from ..canonical.entities import ExtractedDimensions
from ..errors import ExtractionNotFoundError
from .page import ProductPage
from .units import FALLBACK_UNIT, canonical_unit, convert_to_mm

logger = logging.getLogger(__name__)

Strategy = Callable[[ProductPage], "ExtractedDimensions | None"]

EXPLICIT_UNIT_CONFIDENCE = 0.9
INFERRED_UNIT_CONFIDENCE = 0.7
AXIS_ROWS_CONFIDENCE = 0.8

# Page text is untrusted; only the head of a block is scanned.
MAX_TEXT_CHARS = 10_000

_NUM = r"(?<!\d)(\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:[.,]\d+)?)"
_SEP = r"\s*[x×X*]\s*"
_AXIS = r"(?:[LWDHlwdh]\.?|幅|奥行き?|高さ)?\s*"
_UNIT = r"(mm|cm|inches|inch|in|millimet(?:er|re)s?|centimet(?:er|re)s?|ミリ|センチ|\"|″)"
_UNIT_END = r"(?![a-z])"

_TRIPLE_RE = re.compile(rf"{_AXIS}{_NUM}{_SEP}{_AXIS}{_NUM}{_SEP}{_AXIS}{_NUM}\s*{_UNIT}{_UNIT_END}", re.I)
_LABEL_GAP = r"[^\d]{0,40}"
_LABELLED_RE = re.compile(
    rf"length\s*[:=]?\s*{_NUM}\s*(?:{_UNIT}{_UNIT_END})?{_LABEL_GAP}"
    rf"width\s*[:=]?\s*{_NUM}\s*(?:{_UNIT}{_UNIT_END})?{_LABEL_GAP}"
    rf"height\s*[:=]?\s*{_NUM}\s*(?:{_UNIT}{_UNIT_END})?",
    re.I,
)


def _unit_triple_re(unit: str) -> re.Pattern[str]:
    return re.compile(rf"{_NUM}\s*{unit}{_UNIT_END}{_SEP}{_NUM}\s*{unit}{_UNIT_END}{_SEP}{_NUM}\s*{unit}{_UNIT_END}", re.I)


_PER_AXIS_UNIT_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (_unit_triple_re(r"cm"), "cm"),
    (_unit_triple_re(r"(?:inches|inch|in|\"|″)"), "in"),
    (_unit_triple_re(r"mm"), "mm"),
)

SIZE_KEYWORDS: tuple[str, ...] = (
    "dimension",
    "size",
    "measurement",
    "サイズ",
    "寸法",
    "大きさ",
    "abmessung",
    "maße",
    "größe",
    "taille",
    "mesures",
    "medidas",
    "dimensiones",
    "tamaño",
)
_DEPRIORITIZED_KEYWORDS = ("package", "packaging", "shipping", "梱包", "パッケージ")

_AXIS_LABELS: dict[str, tuple[str, ...]] = {
    "length": ("length", "depth", "奥行", "長さ", "länge", "tiefe", "longueur", "profondeur", "largo", "fondo"),
    "width": ("width", "幅", "breite", "largeur", "ancho"),
    "height": ("height", "高さ", "höhe", "hauteur", "alto", "altura"),
}
_AXIS_VALUE_RE = re.compile(rf"^\s*{_NUM}\s*{_UNIT}?{_UNIT_END}", re.I)


def _to_float(text: str) -> float:
    if re.fullmatch(r"\d{1,3}(?:,\d{3})+(?:\.\d+)?", text):
        return float(text.replace(",", ""))
    return float(text.replace(",", "."))


def _build(
    values: Iterable[str],
    unit: str | None,
    *,
    confidence: float,
    strategy: str,
) -> ExtractedDimensions | None:
    numbers = [_to_float(value) for value in values]
    if len(numbers) != 3 or any(number <= 0 for number in numbers):
        return None
    source_unit = canonical_unit(unit) if unit else FALLBACK_UNIT
    length, width, height = (convert_to_mm(number, unit or FALLBACK_UNIT) for number in numbers)
    return ExtractedDimensions(
        length_mm=length,
        width_mm=width,
        height_mm=height,
        confidence=confidence,
        source_strategy=strategy,
        source_unit=source_unit or FALLBACK_UNIT,
    )


def parse_dimensions_text(text: str | None, *, strategy: str = "free_text") -> ExtractedDimensions | None:
    """Parse the first ``L x W x H`` triple found in ``text``."""
    if not text:
        return None
    text = text[:MAX_TEXT_CHARS]

    match = _TRIPLE_RE.search(text)
    if match:
        found = _build(match.groups()[:3], match.group(4), confidence=EXPLICIT_UNIT_CONFIDENCE, strategy=strategy)
        if found:
            return found

    match = _LABELLED_RE.search(text)
    if match:
        length, length_unit, width, width_unit, height, height_unit = match.groups()
        unit = height_unit or width_unit or length_unit
        confidence = EXPLICIT_UNIT_CONFIDENCE if unit else INFERRED_UNIT_CONFIDENCE
        found = _build((length, width, height), unit, confidence=confidence, strategy=strategy)
        if found:
            return found

    for pattern, unit in _PER_AXIS_UNIT_PATTERNS:
        match = pattern.search(text)
        if match:
            found = _build(match.groups()[:3], unit, confidence=EXPLICIT_UNIT_CONFIDENCE, strategy=strategy)
            if found:
                return found
    return None


def _is_size_text(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in SIZE_KEYWORDS)


def _size_candidates(page: ProductPage) -> list[str]:
    rows = [f"{label}: {value}" for label, value in page.detail_rows if _is_size_text(label)]
    bullets = [bullet for bullet in page.bullets if _is_size_text(bullet)]
    candidates = rows + bullets
    # Product dimensions before package dimensions.
    return sorted(candidates, key=lambda text: any(word in text.lower() for word in _DEPRIORITIZED_KEYWORDS))


def find_dimension_text(page: ProductPage) -> str | None:
    candidates = _size_candidates(page)
    return candidates[0] if candidates else None


def _axis_rows(page: ProductPage) -> ExtractedDimensions | None:
    found: dict[str, tuple[str, str | None]] = {}
    for label, value in page.detail_rows:
        lowered = label.lower()
        for axis, names in _AXIS_LABELS.items():
            if axis in found or not any(lowered.startswith(name) for name in names):
                continue
            match = _AXIS_VALUE_RE.match(value)
            if match:
                found[axis] = (match.group(1), match.group(2))
    if len(found) != 3:
        return None
    units = {unit for _, unit in found.values() if unit}
    unit = units.pop() if len(units) == 1 else None
    confidence = AXIS_ROWS_CONFIDENCE if unit else INFERRED_UNIT_CONFIDENCE
    return _build(
        (found["length"][0], found["width"][0], found["height"][0]),
        unit,
        confidence=confidence,
        strategy="details_table",
    )


_UNIT_CODES = {"MMT": "mm", "CMT": "cm", "INH": "in"}


def _markup_axis(value: Any) -> tuple[str, str | None] | None:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        number = value.get("value")
        if number is None or isinstance(number, bool):
            return None
        unit = _UNIT_CODES.get(str(value.get("unitCode") or "").upper()) or value.get("unitText") or ""
        text = f"{number} {unit}"
    elif isinstance(value, (int, float, str)) and not isinstance(value, bool):
        text = str(value)
    else:
        return None
    match = _AXIS_VALUE_RE.match(text[:MAX_TEXT_CHARS])
    if not match:
        return None
    return match.group(1), match.group(2)


def structured_markup_strategy(page: ProductPage) -> ExtractedDimensions | None:
    """Read schema.org ``depth``/``width``/``height`` from Product JSON-LD."""
    for node in page.json_ld:
        axes = [
            _markup_axis(node.get("depth") or node.get("length")),
            _markup_axis(node.get("width")),
            _markup_axis(node.get("height")),
        ]
        if any(axis is None for axis in axes):
            continue
        units = {canonical_unit(unit) or unit for _, unit in axes if unit}
        if len(units) > 1:
            logger.debug("Mixed units in structured markup for %s: %s", page.url, sorted(units))
            continue
        unit = units.pop() if units else None
        found = _build(
            [number for number, _ in axes],
            unit,
            confidence=EXPLICIT_UNIT_CONFIDENCE if unit else INFERRED_UNIT_CONFIDENCE,
            strategy="structured_markup",
        )
        if found:
            return found
    return None


def details_table_strategy(page: ProductPage) -> ExtractedDimensions | None:
    for text in _size_candidates(page):
        found = parse_dimensions_text(text, strategy="details_table")
        if found:
            return found
    return _axis_rows(page)


def free_text_strategy(page: ProductPage) -> ExtractedDimensions | None:
    for block in page.text_blocks():
        found = parse_dimensions_text(block, strategy="free_text")
        if found:
            return found
    return None


class DimensionExtractor:
    def __init__(
        self,
        strategies: list[tuple[str, Strategy]] | None = None,
        *,
        min_confidence: float = 0.0,
    ) -> None:
        self.strategies: list[tuple[str, Strategy]] = list(
            strategies
            if strategies is not None
            else [
                ("structured_markup", structured_markup_strategy),
                ("details_table", details_table_strategy),
                ("free_text", free_text_strategy),
            ]
        )
        self.min_confidence = min_confidence

    def with_strategy(self, name: str, strategy: Strategy) -> "DimensionExtractor":
        return DimensionExtractor([*self.strategies, (name, strategy)], min_confidence=self.min_confidence)

    def extract(self, page: ProductPage) -> ExtractedDimensions:
        for name, strategy in self.strategies:
            try:
                found = strategy(page)
            except Exception:
                logger.warning("Dimension strategy %s failed for %s", name, page.url, exc_info=True)
                continue
            if found is None:
                logger.debug("Dimension strategy %s found nothing for %s", name, page.url)
                continue
            if found.confidence < self.min_confidence:
                logger.debug(
                    "Dimension strategy %s below confidence threshold (%.2f < %.2f)",
                    name,
                    found.confidence,
                    self.min_confidence,
                )
                continue
            if found.source_strategy != name:
                found = replace(found, source_strategy=name)
            return found
        raise ExtractionNotFoundError(url=page.url)

    def try_extract(self, page: ProductPage) -> ExtractedDimensions | None:
        try:
            return self.extract(page)
        except ExtractionNotFoundError:
            return None


def extract_dimensions(
    page: ProductPage | str,
    *,
    extractor: DimensionExtractor | None = None,
) -> ExtractedDimensions | None:
    """Extract dimensions from a parsed page or a bare text blob."""
    if isinstance(page, str):
        return parse_dimensions_text(page)
    return (extractor or DimensionExtractor()).try_extract(page)


__all__ = [
    "DimensionExtractor",
    "SIZE_KEYWORDS",
    "Strategy",
    "details_table_strategy",
    "extract_dimensions",
    "find_dimension_text",
    "free_text_strategy",
    "parse_dimensions_text",
    "structured_markup_strategy",
]
