"""Outbound HTTP for product pages.

The session never retries or follows redirects on its own: retries belong
to the pipeline's backoff policy and redirects are followed here so the hop
budget and cycle detection apply to every request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import FetchConfig
from ..errors import InvalidUrlError, classify_exception, error_for_status

logger = logging.getLogger(__name__)

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9,ja;q=0.8",
    "Accept-Encoding": "gzip, deflate",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
}

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


def http_session() -> requests.Session:
    s = requests.Session()
    retries = Retry(total=0, redirect=0, raise_on_status=False)
    adapter = HTTPAdapter(max_retries=retries)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    return s


@dataclass(frozen=True)
class FetchResponse:
    status: int
    body: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def location(self) -> str | None:
        for key, value in self.headers.items():
            if key.lower() == "location":
                return value
        return None


class HttpFetcher:
    def __init__(
        self,
        config: FetchConfig | None = None,
        *,
        session: Any | None = None,
        user_agent: str | None = None,
    ) -> None:
        self.config = config or FetchConfig()
        self.session = session if session is not None else http_session()
        self.headers = dict(DEFAULT_HEADERS)
        if user_agent:
            self.headers["User-Agent"] = user_agent

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> FetchResponse:
        """Issue one request without following redirects.

        Redirect responses are returned as-is; other non-success statuses and
        transport failures raise the matching ``CrawlError``.
        """
        merged = dict(self.headers)
        merged.update(headers or {})
        timeout = self.config.request_timeout if timeout is None else timeout
        try:
            resp = self.session.request(
                method,
                url,
                headers=merged,
                timeout=timeout,
                allow_redirects=False,
            )
        except requests.RequestException as exc:
            raise classify_exception(exc, url=url) from exc

        status = int(resp.status_code)
        if status not in REDIRECT_STATUSES:
            error = error_for_status(status, url=url)
            if error is not None:
                logger.debug("%s %s -> HTTP %d", method, url, status)
                raise error
        return FetchResponse(
            status=status,
            body=resp.text if method.upper() != "HEAD" else "",
            url=url,
            headers=dict(resp.headers or {}),
        )

    def follow(
        self,
        method: str,
        url: str,
        *,
        timeout: float | None = None,
        max_redirects: int | None = None,
    ) -> FetchResponse:
        """Request ``url`` and follow redirects up to the hop budget.

        A URL visited twice, a redirect without ``Location`` or more hops than
        allowed raise ``InvalidUrlError``.
        """
        budget = self.config.max_redirects if max_redirects is None else max_redirects
        seen = {url}
        current = url
        for _ in range(budget + 1):
            resp = self.request(method, current, timeout=timeout)
            if resp.status not in REDIRECT_STATUSES:
                return resp
            location = resp.location
            if not location:
                raise InvalidUrlError("Redirect response without a location", url=url)
            target = urljoin(current, location)
            if target in seen:
                raise InvalidUrlError("Circular redirect detected", url=url)
            seen.add(target)
            logger.debug("Redirect %d: %s -> %s", resp.status, current, target)
            current = target
        raise InvalidUrlError(f"Too many redirects (more than {budget})", url=url)

    def get_page(self, url: str) -> FetchResponse:
        return self.follow("GET", url)

    def close(self) -> None:
        close = getattr(self.session, "close", None)
        if callable(close):
            close()


__all__ = ["DEFAULT_HEADERS", "FetchResponse", "HttpFetcher", "REDIRECT_STATUSES", "http_session"]
