"""Short-link expansion."""

from __future__ import annotations

import logging

from ..errors import CrawlError, InvalidUrlError
from ..fetch.http import HttpFetcher
from ..resilience.circuit_breaker import CircuitBreakerRegistry

logger = logging.getLogger(__name__)

RESOLVE_SERVICE = "url_resolve"


class UrlResolver:
    """Follow a short link's redirects with HEAD requests to its target."""

    def __init__(self, fetcher: HttpFetcher, breakers: CircuitBreakerRegistry) -> None:
        self.fetcher = fetcher
        self.breakers = breakers

    def _follow(self, url: str, method: str = "HEAD") -> str:
        config = self.fetcher.config
        try:
            resp = self.fetcher.follow(
                method,
                url,
                timeout=config.resolve_timeout,
                max_redirects=config.max_redirects,
            )
        except InvalidUrlError:
            raise
        except CrawlError as exc:
            if exc.status == 405 and method == "HEAD":
                return self._follow(url, "GET")
            if exc.status is not None and exc.status < 500 and exc.status != 429:
                raise InvalidUrlError(f"Short link could not be resolved: {exc.message}", url=url) from exc
            raise
        return resp.url

    def resolve(self, url: str) -> str:
        final_url = self.breakers.call(RESOLVE_SERVICE, lambda: self._follow(url))
        if final_url == url:
            raise InvalidUrlError("Short link did not redirect", url=url)
        logger.debug("Short link %s resolved to %s", url, final_url)
        return final_url


__all__ = ["RESOLVE_SERVICE", "UrlResolver"]
