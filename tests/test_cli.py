import json

from sizeshift.cli import main as cli
from sizeshift.core.config import CoreConfig
from sizeshift.core.crawler import ProductCrawler
from sizeshift.core.fetch import HttpFetcher
from tests._crawl_helpers import AMAZON_PRODUCT_HTML, FakeResponse, FakeSession

AMAZON_CANONICAL = "https://www.amazon.com/dp/B08XYZ1234"


def _fake_crawler_factory(session: FakeSession):
    def _factory(args) -> ProductCrawler:
        config = CoreConfig(ai_enabled=False)
        return ProductCrawler(config, fetcher=HttpFetcher(config.fetch, session=session), sleep=lambda _: None)

    return _factory


def test_dimensions_command_prints_millimetres(capsys) -> None:
    exit_code = cli.main(["dimensions", "25.9 x 13 x 6.1 cm"])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["dimensions"]["length_mm"] == 259.0
    assert payload["dimensions"]["unit"] == "mm"
    assert payload["dimensions"]["source_unit"] == "cm"


def test_dimensions_command_without_match_exits_1(capsys) -> None:
    assert cli.main(["dimensions", "solid oak"]) == 1
    assert json.loads(capsys.readouterr().out) == {"dimensions": None}


def test_normalize_command(capsys) -> None:
    exit_code = cli.main(["normalize", "https://www.amazon.com/Desk/dp/B08XYZ1234?tag=aff-20"])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["canonical"] == AMAZON_CANONICAL
    assert payload["platform"] == "amazon"
    assert payload["cache_key"] == f"amazon:{AMAZON_CANONICAL}"


def test_invalid_url_prints_error_payload(capsys) -> None:
    exit_code = cli.main(["normalize", "ftp://example.com/file"])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 2
    assert payload["error"]["kind"] == "invalid_url"
    assert payload["error"]["retry_after"] == 0


def test_crawl_command_outputs_product_and_circuits(monkeypatch, capsys) -> None:
    session = FakeSession({("GET", AMAZON_CANONICAL): FakeResponse(text=AMAZON_PRODUCT_HTML)})
    monkeypatch.setattr(cli, "_crawler", _fake_crawler_factory(session))

    exit_code = cli.main(["crawl", AMAZON_CANONICAL, "--fresh"])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["product"]["title"] == "Standing Desk with Oak Top"
    assert payload["product"]["validation_status"] == "passed"
    assert "raw" not in payload["product"]
    assert payload["circuits"]["amazon_page"]["state"] == "closed"


def test_crawl_batch_reads_input_file_and_reports_errors(monkeypatch, capsys, tmp_path) -> None:
    session = FakeSession({("GET", AMAZON_CANONICAL): FakeResponse(text=AMAZON_PRODUCT_HTML)})
    monkeypatch.setattr(cli, "_crawler", _fake_crawler_factory(session))
    url_file = tmp_path / "urls.txt"
    url_file.write_text(f"{AMAZON_CANONICAL}\n\nhttps://www.amazon.com/s?k=desk\n", encoding="utf-8")

    exit_code = cli.main(["crawl-batch", "--input", str(url_file)])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 1
    assert len(payload["products"]) == 1
    assert payload["errors"][0]["url"] == "https://www.amazon.com/s?k=desk"
    assert payload["errors"][0]["kind"] == "invalid_url"
