import pytest
import requests

from sizeshift.core.config import FetchConfig
from sizeshift.core.errors import (
    FetchTimeoutError,
    ForbiddenError,
    InvalidUrlError,
    NetworkError,
    NotFoundUpstreamError,
    RateLimitedError,
    UpstreamServerError,
)
from sizeshift.core.fetch import DEFAULT_HEADERS, HttpFetcher
from tests._crawl_helpers import FakeResponse, FakeSession

PAGE = "https://shop.example.com/item?id=1"


def test_get_page_sends_browser_headers_and_returns_body() -> None:
    session = FakeSession({("GET", PAGE): FakeResponse(text="<html>desk</html>")})
    fetcher = HttpFetcher(FetchConfig(request_timeout_ms=5_000), session=session)

    resp = fetcher.get_page(PAGE)

    assert resp.status == 200
    assert resp.body == "<html>desk</html>"
    assert resp.url == PAGE
    call = session.calls[0]
    assert call["timeout"] == 5.0
    assert call["allow_redirects"] is False
    assert call["headers"]["User-Agent"] == DEFAULT_HEADERS["User-Agent"]
    assert "ja" in call["headers"]["Accept-Language"]


def test_custom_user_agent_overrides_default() -> None:
    session = FakeSession({("GET", PAGE): FakeResponse(text="ok")})
    fetcher = HttpFetcher(session=session, user_agent="sizeshift-test/1.0")

    fetcher.get_page(PAGE)

    assert session.calls[0]["headers"]["User-Agent"] == "sizeshift-test/1.0"


def test_follow_resolves_relative_redirects() -> None:
    session = FakeSession(
        {
            ("GET", "https://shop.example.com/old"): FakeResponse(status_code=301, headers={"Location": "/new"}),
            ("GET", "https://shop.example.com/new"): FakeResponse(text="moved here"),
        }
    )
    fetcher = HttpFetcher(session=session)

    resp = fetcher.get_page("https://shop.example.com/old")

    assert resp.url == "https://shop.example.com/new"
    assert resp.body == "moved here"


def test_follow_detects_redirect_cycles() -> None:
    session = FakeSession(
        {
            ("GET", "https://shop.example.com/a"): FakeResponse(status_code=302, headers={"location": "/b"}),
            ("GET", "https://shop.example.com/b"): FakeResponse(status_code=302, headers={"location": "/a"}),
        }
    )
    fetcher = HttpFetcher(session=session)

    with pytest.raises(InvalidUrlError, match="Circular redirect"):
        fetcher.get_page("https://shop.example.com/a")


def test_follow_enforces_redirect_budget() -> None:
    routes = {
        ("GET", f"https://shop.example.com/{i}"): FakeResponse(status_code=302, headers={"Location": f"/{i + 1}"})
        for i in range(10)
    }
    fetcher = HttpFetcher(FetchConfig(max_redirects=3), session=FakeSession(routes))

    with pytest.raises(InvalidUrlError, match="Too many redirects"):
        fetcher.get_page("https://shop.example.com/0")


def test_redirect_without_location_is_rejected() -> None:
    session = FakeSession({("GET", PAGE): FakeResponse(status_code=302)})

    with pytest.raises(InvalidUrlError, match="without a location"):
        HttpFetcher(session=session).get_page(PAGE)


@pytest.mark.parametrize(
    ("status", "error_cls"),
    [
        (403, ForbiddenError),
        (404, NotFoundUpstreamError),
        (429, RateLimitedError),
        (503, UpstreamServerError),
    ],
)
def test_error_statuses_raise_typed_errors(status: int, error_cls: type) -> None:
    session = FakeSession({("GET", PAGE): FakeResponse(status_code=status)})

    with pytest.raises(error_cls) as exc_info:
        HttpFetcher(session=session).get_page(PAGE)
    assert exc_info.value.status == status
    assert exc_info.value.url == PAGE


def test_transport_failures_are_classified() -> None:
    session = FakeSession(
        {
            ("GET", PAGE): requests.Timeout("read timed out"),
            ("GET", "https://shop.example.com/down"): requests.ConnectionError("refused"),
        }
    )
    fetcher = HttpFetcher(session=session)

    with pytest.raises(FetchTimeoutError):
        fetcher.get_page(PAGE)
    with pytest.raises(NetworkError):
        fetcher.get_page("https://shop.example.com/down")


def test_head_requests_return_empty_body_and_close_closes_session() -> None:
    session = FakeSession({("HEAD", PAGE): FakeResponse(text="ignored")})
    fetcher = HttpFetcher(session=session)

    assert fetcher.request("HEAD", PAGE).body == ""

    fetcher.close()
    assert session.closed is True
