"""Error taxonomy for the acquisition pipeline.

Every failure that can leave the pipeline is a ``CrawlError`` subclass. Each
kind carries a user-facing suggestion and a ``retry_after`` hint in seconds
(``0`` means retrying will not help).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import requests

if TYPE_CHECKING:
    from .validate.report import ValidationReport


class CrawlError(Exception):
    kind: str = "unknown"
    error_code: str = "UNKNOWN_ERROR"
    suggestion: str = "Please try again later or contact support if the problem persists."
    retry_after: int = 60
    retryable: bool = False
    status: int | None = None

    def __init__(self, message: str | None = None, *, url: str | None = None) -> None:
        self.message = message or self.default_message()
        self.url = url
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return "An unexpected error occurred"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "error_code": self.error_code,
            "detail": self.message,
            "suggestion": self.suggestion,
            "retry_after": self.retry_after,
            "retryable": self.retryable,
        }


class InvalidUrlError(CrawlError, ValueError):
    kind = "invalid_url"
    error_code = "INVALID_URL"
    suggestion = "Check the product URL. It must be a product page, not a search or category page."
    retry_after = 0

    def __init__(self, reason: str, *, url: str | None = None) -> None:
        self.reason = reason
        super().__init__(reason, url=url)


class NetworkError(CrawlError):
    kind = "network"
    error_code = "NETWORK_ERROR"
    suggestion = "Please check your internet connection and try again."
    retry_after = 30
    retryable = True

    @classmethod
    def default_message(cls) -> str:
        return "Network connection failed"


class FetchTimeoutError(NetworkError):
    kind = "timeout"
    error_code = "TIMEOUT_ERROR"
    suggestion = "The request took too long. Please try again."
    retry_after = 60

    @classmethod
    def default_message(cls) -> str:
        return "Request timed out"


class RateLimitedError(CrawlError):
    kind = "rate_limited"
    error_code = "RATE_LIMIT_EXCEEDED"
    suggestion = "Too many requests. Please wait 5 minutes before trying again."
    retry_after = 300
    retryable = True

    @classmethod
    def default_message(cls) -> str:
        return "Rate limit exceeded"


class ServiceUnavailableError(CrawlError):
    kind = "service_unavailable"
    error_code = "SERVICE_UNAVAILABLE"
    suggestion = "The service is temporarily unavailable. Please try again in a few minutes."
    retry_after = 300

    @classmethod
    def default_message(cls) -> str:
        return "no fallback available"


class UpstreamServerError(CrawlError):
    kind = "upstream_server"
    error_code = "SERVER_ERROR"
    suggestion = "The website is experiencing issues. Please try again later."
    retry_after = 60
    retryable = True

    def __init__(self, message: str | None = None, *, url: str | None = None, status: int | None = None) -> None:
        self.status = status
        super().__init__(message, url=url)

    @classmethod
    def default_message(cls) -> str:
        return "Upstream server error"


class NotFoundUpstreamError(CrawlError):
    kind = "not_found"
    error_code = "PRODUCT_NOT_FOUND"
    suggestion = "The product page was not found. Please check the URL."
    retry_after = 0

    @classmethod
    def default_message(cls) -> str:
        return "Product not found"


class UnauthorizedError(CrawlError):
    kind = "unauthorized"
    error_code = "UNAUTHORIZED"
    suggestion = "Access to this page requires authentication."
    retry_after = 0

    @classmethod
    def default_message(cls) -> str:
        return "Access unauthorized"


class ForbiddenError(CrawlError):
    kind = "forbidden"
    error_code = "ACCESS_FORBIDDEN"
    suggestion = "Access to this product is restricted."
    retry_after = 0

    @classmethod
    def default_message(cls) -> str:
        return "Access forbidden"


class ValidationFailedError(CrawlError):
    kind = "validation_failed"
    error_code = "VALIDATION_FAILED"
    suggestion = "The product page did not contain enough usable data."
    retry_after = 0

    def __init__(
        self,
        message: str | None = None,
        *,
        url: str | None = None,
        report: "ValidationReport | None" = None,
    ) -> None:
        self.report = report
        super().__init__(message, url=url)

    @classmethod
    def default_message(cls) -> str:
        return "Product validation failed"

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.report is not None:
            payload["issues"] = [issue.message for issue in self.report.issues]
        return payload


class ExtractionNotFoundError(CrawlError):
    kind = "not_found"
    error_code = "EXTRACTION_NOT_FOUND"
    suggestion = "No dimensions could be read from this page."
    retry_after = 0

    @classmethod
    def default_message(cls) -> str:
        return "No dimensions found"


_STATUS_ERRORS: dict[int, type[CrawlError]] = {
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundUpstreamError,
    429: RateLimitedError,
}


def error_for_status(status: int, *, url: str | None = None) -> CrawlError | None:
    """Map an HTTP status code to its error, or ``None`` for success codes."""
    if status < 400:
        return None
    error_cls = _STATUS_ERRORS.get(status)
    if error_cls is not None:
        error = error_cls(url=url)
    elif status >= 500:
        error = UpstreamServerError(f"HTTP {status}", url=url, status=status)
    else:
        error = CrawlError(f"HTTP {status}", url=url)
    error.status = status
    return error


def classify_exception(exc: BaseException, *, url: str | None = None) -> CrawlError:
    if isinstance(exc, CrawlError):
        return exc
    if isinstance(exc, requests.Timeout):
        return FetchTimeoutError(str(exc) or None, url=url)
    if isinstance(exc, requests.ConnectionError):
        return NetworkError(str(exc) or None, url=url)
    if isinstance(exc, requests.HTTPError):
        status = getattr(exc.response, "status_code", None)
        if status:
            mapped = error_for_status(int(status), url=url)
            if mapped is not None:
                return mapped
    if isinstance(exc, requests.RequestException):
        return NetworkError(str(exc) or None, url=url)

    text = str(exc).lower()
    if "timeout" in text or "timed out" in text:
        return FetchTimeoutError(str(exc), url=url)
    if "rate limit" in text or "429" in text:
        return RateLimitedError(str(exc), url=url)
    if "econnrefused" in text or "connection" in text:
        return NetworkError(str(exc), url=url)
    return CrawlError(str(exc) or None, url=url)


def error_response(error: BaseException, *, url: str | None = None) -> dict[str, Any]:
    """User-facing payload for a failed crawl."""
    crawl_error = classify_exception(error, url=url)
    payload = crawl_error.to_dict()
    payload["url"] = crawl_error.url or url
    return payload


__all__ = [
    "CrawlError",
    "ExtractionNotFoundError",
    "FetchTimeoutError",
    "ForbiddenError",
    "InvalidUrlError",
    "NetworkError",
    "NotFoundUpstreamError",
    "RateLimitedError",
    "ServiceUnavailableError",
    "UnauthorizedError",
    "UpstreamServerError",
    "ValidationFailedError",
    "classify_exception",
    "error_for_status",
    "error_response",
]
