import pytest

from sizeshift.core.canonical.entities import Platform
from sizeshift.core.detect.url import detect_product_url, is_short_link, platform_for_host
from sizeshift.core.errors import InvalidUrlError
from sizeshift.core.urls import normalize_url


class _StubResolver:
    def __init__(self, target: str) -> None:
        self.target = target
        self.calls: list[str] = []

    def resolve(self, url: str) -> str:
        self.calls.append(url)
        return self.target


def test_amazon_urls_collapse_to_dp_asin() -> None:
    normalized = normalize_url(
        "https://www.Amazon.com/FlexiDesk-Standing-Desk/dp/B08XYZ1234/ref=sr_1_3?tag=aff-20&utm_source=mail#reviews"
    )

    assert normalized.platform is Platform.AMAZON
    assert normalized.canonical == "https://www.amazon.com/dp/B08XYZ1234"
    assert normalized.product_identifier == "B08XYZ1234"
    assert normalized.cache_key == "amazon:https://www.amazon.com/dp/B08XYZ1234"


def test_amazon_gp_product_and_regional_hosts() -> None:
    normalized = normalize_url("https://www.amazon.co.jp/gp/product/b08xyz1234?psc=1")

    assert normalized.platform is Platform.AMAZON
    assert normalized.canonical == "https://www.amazon.co.jp/dp/B08XYZ1234"


def test_ikea_walmart_and_target_canonical_forms() -> None:
    ikea = normalize_url("https://www.ikea.com/US/EN/p/billy-bookcase-white-00263850?utm_campaign=x")
    assert ikea.canonical == "https://www.ikea.com/us/en/p/billy-bookcase-white-00263850/"
    assert ikea.product_identifier == "00263850"

    walmart = normalize_url("https://www.walmart.com/ip/Mainstays-Desk/123456789?athbdg=L1600")
    assert walmart.platform is Platform.WALMART
    assert walmart.canonical == "https://www.walmart.com/ip/123456789"

    target = normalize_url("https://www.target.com/p/desk-chair/-/A-54551690#lnk=sametab")
    assert target.platform is Platform.TARGET
    assert target.canonical == "https://www.target.com/p/-/A-54551690"
    assert target.product_identifier == "A-54551690"


def test_generic_urls_keep_only_essential_params_sorted() -> None:
    normalized = normalize_url(
        "https://Shop.Example.com:443//catalog//item?utm_source=news&sku=OAK-1&color=red&fbclid=abc&product_id=42"
    )

    assert normalized.platform is Platform.GENERIC
    assert normalized.canonical == "https://shop.example.com/catalog/item?product_id=42&sku=OAK-1"
    assert normalized.product_identifier == "42"


def test_non_default_port_is_kept() -> None:
    normalized = normalize_url("http://shop.example.com:8080/item?id=7")
    assert normalized.canonical == "http://shop.example.com:8080/item?id=7"


@pytest.mark.parametrize(
    "url",
    [
        "https://www.amazon.com/Desk/dp/B08XYZ1234/ref=sr_1_3?tag=aff-20",
        "https://www.ikea.com/us/en/p/billy-bookcase-white-00263850/",
        "https://www.walmart.com/ip/Mainstays-Desk/123456789",
        "https://www.target.com/p/desk-chair/-/A-54551690",
        "https://shop.example.com/item?utm_medium=x&id=9&pid=3",
        "http://[2001:db8::1]:8080/item?id=5",
        "https://[2001:DB8::2]/item?sku=A1",
    ],
)
def test_normalizing_a_canonical_url_is_a_no_op(url: str) -> None:
    once = normalize_url(url)
    twice = normalize_url(once.canonical)

    assert twice.canonical == once.canonical
    assert twice.platform is once.platform
    assert twice.cache_key == once.cache_key


@pytest.mark.parametrize(
    "url",
    [
        "",
        "   ",
        "ftp://www.amazon.com/dp/B08XYZ1234",
        "javascript:alert(1)",
        "https:///dp/B08XYZ1234",
        "https://www.amazon.com/s?k=standing+desk",
        "https://www.amazon.com/b?node=1234",
        "https://www.amazon.com/gp/help/customer",
        "https://www.ikea.com/us/en/cat/bookcases-10382/",
        "https://www.walmart.com/search?q=desk",
        "https://www.walmart.com/browse/furniture/123",
        "https://www.target.com/s?searchTerm=desk",
        "https://www.target.com/c/furniture/-/N-5xtnr",
    ],
)
def test_invalid_urls_are_rejected(url: str) -> None:
    with pytest.raises(InvalidUrlError):
        normalize_url(url)


def test_short_link_requires_resolver() -> None:
    with pytest.raises(InvalidUrlError, match="resolver"):
        normalize_url("https://amzn.to/3xYz")


def test_short_link_is_resolved_and_raw_is_kept() -> None:
    resolver = _StubResolver("https://www.amazon.com/dp/B08XYZ1234?tag=share-20")

    normalized = normalize_url("https://amzn.to/3xYz", resolver=resolver)

    assert resolver.calls == ["https://amzn.to/3xYz"]
    assert normalized.raw == "https://amzn.to/3xYz"
    assert normalized.canonical == "https://www.amazon.com/dp/B08XYZ1234"
    assert normalized.platform is Platform.AMAZON


def test_short_link_resolving_to_another_short_link_is_rejected() -> None:
    resolver = _StubResolver("https://bit.ly/other")

    with pytest.raises(InvalidUrlError, match="another short link"):
        normalize_url("https://a.co/d/abc", resolver=resolver)


def test_short_link_hosts_and_platform_priority() -> None:
    assert is_short_link("amzn.to") is True
    assert is_short_link("www.bit.ly") is True
    assert is_short_link("notbit.ly") is False
    assert platform_for_host("www.amazon.de") is Platform.AMAZON
    assert platform_for_host("www.ikea.com") is Platform.IKEA
    assert platform_for_host("shop.example.com") is Platform.GENERIC


def test_detect_product_url_shapes() -> None:
    amazon = detect_product_url("https://www.amazon.com/dp/B08XYZ1234")
    assert amazon == {"platform": "amazon", "is_product": True, "product_id": "B08XYZ1234", "short_link": False}

    search = detect_product_url("https://www.amazon.com/s?k=desk")
    assert search["platform"] == "amazon"
    assert search["is_product"] is False

    short = detect_product_url("https://a.co/d/abc")
    assert short["short_link"] is True
    assert short["platform"] is None


def test_ipv6_hosts_keep_their_brackets() -> None:
    assert normalize_url("http://[2001:db8::1]:8080/item?id=5").canonical == "http://[2001:db8::1]:8080/item?id=5"
    assert normalize_url("https://[2001:db8::1]:443/item?id=5").canonical == "https://[2001:db8::1]/item?id=5"
