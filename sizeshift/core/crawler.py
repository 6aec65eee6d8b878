"""Product crawl orchestration.

``ProductCrawler`` composes the pipeline: normalize the URL, look it up in
the cache and, on a miss, fetch the page behind the platform's circuit
breaker, parse it, extract dimensions, categorize, and validate (strict
first, partial as the fallback). The crawler owns its cache, breakers and
HTTP session; use it as a context manager or call ``close()``.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Any

from ..config import get_settings
from ..logging.product_payloads import product_record_to_loggable
from .cache import TTLCache
from .canonical.entities import NormalizedUrl, ProductRecord
from .categorize import categorize
from .config import CoreConfig
from .detect.url import host_of, is_short_link
from .errors import (
    CrawlError,
    ForbiddenError,
    InvalidUrlError,
    NotFoundUpstreamError,
    UnauthorizedError,
    ValidationFailedError,
    error_response,
)
from .extract.ai import AiExtractionClient, AnthropicDimensionClient, ai_strategy
from .extract.dimensions import DimensionExtractor, find_dimension_text
from .extract.page import ProductPage, parse_product_page
from .fetch.http import FetchResponse, HttpFetcher
from .resilience.circuit_breaker import CircuitBreakerRegistry
from .resilience.retry import retry_with_backoff
from .urls.normalizer import normalize_url
from .urls.resolver import UrlResolver
from .validate.rules import validate, validate_partial

logger = logging.getLogger(__name__)

# Client-side failures say nothing about upstream health.
BREAKER_EXCLUDED_ERRORS: tuple[type[BaseException], ...] = (
    InvalidUrlError,
    NotFoundUpstreamError,
    UnauthorizedError,
    ForbiddenError,
)
DEFAULT_BATCH_WORKERS = 8


def page_service(platform_value: str) -> str:
    return f"{platform_value}_page"


def _default_ai_client(config: CoreConfig) -> AiExtractionClient | None:
    if not config.ai_enabled:
        return None
    if not get_settings().anthropic_api_key:
        logger.info("ANTHROPIC_API_KEY not set, AI dimension fallback disabled")
        return None
    return AnthropicDimensionClient()


class ProductCrawler:
    def __init__(
        self,
        config: CoreConfig | None = None,
        *,
        fetcher: HttpFetcher | None = None,
        breakers: CircuitBreakerRegistry | None = None,
        cache: TTLCache[ProductRecord] | None = None,
        ai_client: AiExtractionClient | None = None,
        extractor: DimensionExtractor | None = None,
        resolver: UrlResolver | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        max_workers: int = DEFAULT_BATCH_WORKERS,
    ) -> None:
        self.config = (config or CoreConfig()).validate()
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or HttpFetcher(self.config.fetch, user_agent=get_settings().user_agent)
        self.breakers = breakers or CircuitBreakerRegistry(
            self.config.breaker,
            clock=clock,
            excluded=BREAKER_EXCLUDED_ERRORS,
        )
        self.cache: TTLCache[ProductRecord] = cache or TTLCache(self.config.cache, clock=clock)
        self.resolver = resolver or UrlResolver(self.fetcher, self.breakers)
        if ai_client is None:
            ai_client = _default_ai_client(self.config)
        self.ai_client = ai_client
        if extractor is None:
            extractor = DimensionExtractor(min_confidence=self.config.min_confidence)
            if ai_client is not None:
                extractor = extractor.with_strategy("ai", ai_strategy(ai_client, self.breakers))
        self.extractor = extractor
        self.max_workers = max(1, max_workers)
        self._sleep = sleep

    def __enter__(self) -> "ProductCrawler":
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def start(self) -> None:
        self.cache.start()

    def close(self) -> None:
        self.cache.close()
        if self._owns_fetcher:
            self.fetcher.close()

    def normalize(self, url: str) -> NormalizedUrl:
        return normalize_url(url, resolver=self.resolver)

    def _fetch(self, target: NormalizedUrl) -> FetchResponse:
        fetch_config = self.config.fetch

        def _attempts() -> FetchResponse:
            return retry_with_backoff(
                lambda: self.fetcher.get_page(target.canonical),
                max_attempts=fetch_config.max_retries,
                base_delay=fetch_config.backoff_base_seconds,
                sleep=self._sleep,
                url=target.canonical,
            )

        return self.breakers.call(page_service(target.platform.value), _attempts)

    def _signal_url(self, target: NormalizedUrl) -> str:
        # Short links carry no product words; fall back to the canonical URL.
        if is_short_link(host_of(target.raw)):
            return target.canonical
        return target.raw

    def build_record(self, target: NormalizedUrl, page: ProductPage) -> ProductRecord:
        draft = ProductRecord(
            title=page.title or "",
            platform=target.platform,
            source_url=target.canonical,
            brand=page.brand,
            category=page.category,
            price=page.price,
            description=page.description,
            materials=tuple(page.materials),
            colors=tuple(page.colors),
            images=tuple(page.images),
            dimensions=self.extractor.try_extract(page),
            dimension_text=find_dimension_text(page),
            raw={"product_identifier": target.product_identifier, "detail_rows": [list(row) for row in page.detail_rows]},
        )
        result = categorize(self._signal_url(target), draft, platform=target.platform)
        return replace(
            draft,
            ar_suitable=result.ar_suitable,
            product_type=result.product_type,
            size_relevance_score=result.size_relevance_score,
            category_metadata=result.metadata,
        )

    def _crawl(self, target: NormalizedUrl) -> ProductRecord:
        resp = self._fetch(target)
        page = parse_product_page(resp.body, url=target.canonical, platform=target.platform)
        record = self.build_record(target, page)
        try:
            record = validate(record)
        except ValidationFailedError as exc:
            logger.info("Strict validation failed for %s, falling back to partial: %s", target.canonical, exc.message)
            record = validate_partial(record)

        settings = get_settings()
        if self.config.debug or settings.debug:
            logger.debug(
                "Crawled product summary:\n%s",
                json.dumps(
                    product_record_to_loggable(record, verbosity=settings.log_verbosity, debug_enabled=True),
                    ensure_ascii=False,
                    indent=2,
                ),
            )
        return record

    def crawl_product(self, url: str, *, force_refresh: bool = False) -> ProductRecord:
        target = self.normalize(url)
        if force_refresh:
            self.cache.invalidate(target.cache_key)
        return self.cache.get_or_compute(target.cache_key, lambda: self._crawl(target))

    def crawl_product_fresh(self, url: str) -> ProductRecord:
        return self.crawl_product(url, force_refresh=True)

    def crawl_products_batch(self, urls: Iterable[str]) -> tuple[list[ProductRecord], list[dict[str, Any]]]:
        """Crawl many URLs concurrently with partial-success semantics.

        Returns ``(records, errors)`` in input order, where *errors* holds one
        ``{"url": ..., "detail": ..., ...}`` dict per failed URL.
        """
        url_list = [str(url) for url in urls]
        if not url_list:
            return [], []

        def _one(url: str) -> ProductRecord | dict[str, Any]:
            try:
                return self.crawl_product(url)
            except Exception as exc:
                if not isinstance(exc, CrawlError):
                    logger.exception("Unexpected crawl failure for %s", url)
                return error_response(exc, url=url)

        records: list[ProductRecord] = []
        errors: list[dict[str, Any]] = []
        workers = min(self.max_workers, len(url_list))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sizeshift-crawl") as pool:
            for url, outcome in zip(url_list, pool.map(_one, url_list)):
                if isinstance(outcome, ProductRecord):
                    records.append(outcome)
                else:
                    outcome["url"] = url
                    errors.append(outcome)
        return records, errors

    def invalidate(self, url: str) -> bool:
        return self.cache.invalidate(self.normalize(url).cache_key)

    def circuit_stats(self, service: str | None = None) -> dict[str, Any]:
        return self.breakers.stats(service)

    def reset_circuit(self, service: str) -> None:
        self.breakers.reset(service)

    def cache_stats(self) -> dict[str, Any]:
        return self.cache.stats()


__all__ = ["BREAKER_EXCLUDED_ERRORS", "ProductCrawler", "page_service"]
