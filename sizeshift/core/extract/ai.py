"""AI fallback for dimension extraction.

The model is asked for a single line, ``"<L> x <W> x <H> <unit>"`` or
``"No dimensions found"``. Anything else is treated as not found. The call
runs behind the ``ai_extraction`` circuit so an unavailable model degrades
to "no dimensions" instead of failing the crawl.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Protocol

from anthropic import Anthropic

from ...config import get_settings
from ..canonical.entities import ExtractedDimensions
from ..resilience.circuit_breaker import CircuitBreakerRegistry
from .page import ProductPage
from .units import canonical_unit, convert_to_mm

logger = logging.getLogger(__name__)

AI_SERVICE = "ai_extraction"
AI_CONFIDENCE = 0.95
NO_DIMENSIONS = "No dimensions found"

_DESCRIPTION_LIMIT = 2000
_RESPONSE_RE = re.compile(
    r"^\s*(\d+(?:\.\d+)?)\s*[x×]\s*(\d+(?:\.\d+)?)\s*[x×]\s*(\d+(?:\.\d+)?)\s*"
    r"(mm|cm|in|inch|inches)\s*\.?\s*$",
    re.I,
)

_PROMPT_TEMPLATE = """Extract the physical product dimensions from the listing below.

Product Title: {title}
Brand: {brand}
Description: {description}

Return the dimensions of the product itself (not the package) on a single line
in the format "L x W x H mm", for example "600 x 400 x 750 mm". Use mm, cm or in.
If the listing does not state the dimensions, reply exactly "{no_dimensions}".
Do not add any other text."""


@dataclass(frozen=True)
class AiResult:
    ok: bool
    raw_text: str | None = None
    reason: str | None = None


class AiExtractionClient(Protocol):
    def extract(self, prompt: str) -> AiResult: ...


class AnthropicDimensionClient:
    """``AiExtractionClient`` backed by the Anthropic Messages API."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        client: object | None = None,
    ) -> None:
        settings = get_settings()
        self.model = model or settings.ai_model
        self.max_tokens = max_tokens or settings.ai_max_tokens
        if client is None:
            client = Anthropic(api_key=api_key or settings.anthropic_api_key)
        self._client = client

    def extract(self, prompt: str) -> AiResult:
        response = self._client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        blocks = getattr(response, "content", None) or []
        text = "".join(getattr(block, "text", "") for block in blocks).strip()
        if not text:
            return AiResult(ok=False, reason="empty response")
        return AiResult(ok=True, raw_text=text)


def build_dimension_prompt(page: ProductPage) -> str:
    description_parts = [page.description or "", *page.bullets]
    description = " ".join(part for part in description_parts if part).strip()
    if len(description) > _DESCRIPTION_LIMIT:
        description = description[:_DESCRIPTION_LIMIT].rstrip()
    return _PROMPT_TEMPLATE.format(
        title=page.title or "Unknown",
        brand=page.brand or "Unknown",
        description=description or "None",
        no_dimensions=NO_DIMENSIONS,
    )


def parse_ai_response(text: str | None) -> ExtractedDimensions | None:
    if not text:
        return None
    stripped = text.strip()
    if stripped.rstrip(".").lower() == NO_DIMENSIONS.lower():
        return None
    match = _RESPONSE_RE.fullmatch(stripped)
    if not match:
        logger.info("Discarding malformed AI dimension response: %r", stripped[:120])
        return None
    length, width, height, unit = match.groups()
    values = [float(length), float(width), float(height)]
    if any(value <= 0 for value in values):
        return None
    return ExtractedDimensions(
        length_mm=convert_to_mm(values[0], unit),
        width_mm=convert_to_mm(values[1], unit),
        height_mm=convert_to_mm(values[2], unit),
        confidence=AI_CONFIDENCE,
        source_strategy="ai",
        source_unit=canonical_unit(unit) or unit.lower(),
    )


def ai_strategy(client: AiExtractionClient, breakers: CircuitBreakerRegistry):
    """Build the ``ai`` strategy for ``DimensionExtractor``."""

    def _run(page: ProductPage) -> ExtractedDimensions | None:
        prompt = build_dimension_prompt(page)

        def _primary() -> AiResult:
            return client.extract(prompt)

        result = breakers.call(AI_SERVICE, _primary, lambda: AiResult(ok=False, reason="ai unavailable"))
        if not result.ok:
            logger.debug("AI extraction returned nothing for %s: %s", page.url, result.reason)
            return None
        return parse_ai_response(result.raw_text)

    return _run


__all__ = [
    "AI_CONFIDENCE",
    "AI_SERVICE",
    "AiExtractionClient",
    "AiResult",
    "AnthropicDimensionClient",
    "NO_DIMENSIONS",
    "ai_strategy",
    "build_dimension_prompt",
    "parse_ai_response",
]
