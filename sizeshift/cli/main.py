"""Command-line frontend for the Sizeshift core engine."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from sizeshift.config import get_settings
from sizeshift.core import (
    CrawlError,
    ProductCrawler,
    config_from_env,
    error_response,
    extract_dimensions,
    normalize_url,
)

load_dotenv(Path(__file__).resolve().parents[2] / ".env")


def _json_dump(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _crawler(args: argparse.Namespace) -> ProductCrawler:
    return ProductCrawler(config_from_env(debug=args.debug))


def _cmd_normalize(args: argparse.Namespace) -> int:
    with _crawler(args) as crawler:
        normalized = normalize_url(args.url, resolver=crawler.resolver)
    payload = asdict(normalized)
    payload["platform"] = normalized.platform.value
    payload["cache_key"] = normalized.cache_key
    _json_dump(payload)
    return 0


def _cmd_crawl(args: argparse.Namespace) -> int:
    with _crawler(args) as crawler:
        record = crawler.crawl_product(args.url, force_refresh=args.fresh)
        _json_dump(
            {
                "product": record.to_dict(include_raw=args.include_raw),
                "circuits": crawler.circuit_stats(),
            }
        )
    return 0


def _cmd_crawl_batch(args: argparse.Namespace) -> int:
    urls = list(args.urls)
    if args.input:
        urls.extend(line.strip() for line in Path(args.input).read_text(encoding="utf-8").splitlines() if line.strip())
    with _crawler(args) as crawler:
        records, errors = crawler.crawl_products_batch(urls)
    _json_dump(
        {
            "products": [record.to_dict(include_raw=args.include_raw) for record in records],
            "errors": errors,
        }
    )
    return 0 if not errors else 1


def _cmd_dimensions(args: argparse.Namespace) -> int:
    found = extract_dimensions(args.text)
    _json_dump({"dimensions": found.to_dict() if found else None})
    return 0 if found else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sizeshift", description="Product dimension acquisition toolkit")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_normalize = sub.add_parser("normalize", help="Normalize a product URL")
    p_normalize.add_argument("url")
    p_normalize.set_defaults(func=_cmd_normalize)

    p_crawl = sub.add_parser("crawl", help="Crawl one product URL")
    p_crawl.add_argument("url")
    p_crawl.add_argument("--fresh", action="store_true", help="Bypass the cache")
    p_crawl.add_argument("--include-raw", action="store_true")
    p_crawl.set_defaults(func=_cmd_crawl)

    p_batch = sub.add_parser("crawl-batch", help="Crawl several product URLs concurrently")
    p_batch.add_argument("urls", nargs="*")
    p_batch.add_argument("--input", help="File with one URL per line")
    p_batch.add_argument("--include-raw", action="store_true")
    p_batch.set_defaults(func=_cmd_crawl_batch)

    p_dims = sub.add_parser("dimensions", help="Parse dimensions from free text")
    p_dims.add_argument("text")
    p_dims.set_defaults(func=_cmd_dimensions)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    debug = args.debug or get_settings().debug
    args.debug = debug
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return int(args.func(args))
    except CrawlError as exc:
        _json_dump({"error": error_response(exc)})
        return 2
    except Exception as exc:
        parser.exit(status=2, message=f"error: {exc}\n")


if __name__ == "__main__":
    raise SystemExit(main())
