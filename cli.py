"""
Sitemap Stream Crawler - CLI

Command-line interface for sitemap traversal.
"""

import asyncio
import argparse
import sys
import json

from sitemap_stream.config import get_config
from sitemap_stream.errors import AggregateError, SitemapError
from sitemap_stream.logging_config import setup_logging, get_logger
from sitemap_stream.sitemap import (
    TraverseOptions,
    extract_sitemap_directives,
    ignore_errors,
    raise_error,
    traverse_many,
)


def run_pages(args) -> int:
    """Stream the pages of one or more sitemap trees to stdout."""
    config = get_config()
    setup_logging(level=args.log_level or config.log_level, json_format=config.log_json)
    logger = get_logger("cli")

    emitted = 0

    def limit_reached() -> bool:
        return bool(args.limit) and emitted >= args.limit

    def on_page(page) -> bool:
        nonlocal emitted
        if limit_reached():
            return False
        emitted += 1
        if args.json:
            print(json.dumps({
                "url": page.url,
                "last_modified": page.last_modified,
                "sitemap_url": page.sitemap_url,
            }))
        else:
            print(f"{page.url} - {page.last_modified}")
        return not limit_reached()

    option_args = {
        # Once the limit is hit there is no point fetching more sitemaps
        "check_sitemap": lambda url: not limit_reached(),
        "on_error": ignore_errors if args.ignore_errors else raise_error,
    }
    if args.max_parallel:
        option_args["max_parallel"] = args.max_parallel
    options = TraverseOptions.from_config(config, **option_args)

    try:
        asyncio.run(traverse_many(args.urls, on_page, options))
    except AggregateError as e:
        for err in e.errors:
            logger.error(f"Sitemap failed: {err}")
        return 1
    except SitemapError as e:
        logger.error(f"Sitemap failed: {e}")
        return 1

    logger.info(f"Emitted {emitted} pages")
    return 0


def run_robots(args) -> int:
    """Print the sitemap directives of a robots.txt file."""
    if args.file == "-":
        text = sys.stdin.read()
    else:
        with open(args.file, "r", encoding="utf-8", errors="replace") as f:
            text = f.read()

    for url in extract_sitemap_directives(text):
        print(url)
    return 0


def show_config(args) -> int:
    """Print the effective configuration."""
    print(json.dumps(get_config().to_dict(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Sitemap Stream Crawler CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # pages command
    pages_parser = subparsers.add_parser(
        "pages",
        help="List every page reachable from sitemap URLs"
    )
    pages_parser.add_argument("urls", nargs="+", help="Sitemap or sitemap index URLs")
    pages_parser.add_argument("--limit", type=int, default=0, help="Stop after N pages")
    pages_parser.add_argument("--json", action="store_true", help="Print one JSON object per page")
    pages_parser.add_argument("--max-parallel", type=int, default=None, help="Child sitemaps fetched at once")
    pages_parser.add_argument(
        "--ignore-errors",
        action="store_true",
        help="Skip sitemaps that fail to download or parse"
    )
    pages_parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    pages_parser.set_defaults(func=run_pages)

    # robots command
    robots_parser = subparsers.add_parser(
        "robots",
        help="Print Sitemap: directives of a robots.txt file"
    )
    robots_parser.add_argument("file", help="Path to robots.txt, or - for stdin")
    robots_parser.set_defaults(func=run_robots)

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Show effective configuration"
    )
    config_parser.set_defaults(func=show_config)

    return parser


def main(argv=None) -> int:
    """CLI main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
