"""
Streaming sitemap tree crawler.

Discovers every page reachable from a sitemap or sitemap index without
buffering whole documents, fetching each sub-sitemap once and at most
``max_parallel`` at a time per index.
"""

from sitemap_stream.errors import SitemapError, TransportError, ParseError, AggregateError
from sitemap_stream.scheduler import run_capped
from sitemap_stream.sitemap import (
    Page,
    ErrorContext,
    raise_error,
    ignore_errors,
    ignore_errors_when,
    SitemapFetcher,
    ContentStream,
    SitemapTraverser,
    TraverseOptions,
    VisitedSet,
    PageCollector,
    traverse,
    traverse_many,
    traverse_from_content,
    traverse_stream,
    collect,
    collect_many,
    collect_from_content,
    collect_stream,
    extract_sitemap_directives,
)

__version__ = "0.1.0"

__all__ = [
    "SitemapError", "TransportError", "ParseError", "AggregateError",
    "run_capped",
    "Page", "ErrorContext", "raise_error", "ignore_errors", "ignore_errors_when",
    "SitemapFetcher", "ContentStream",
    "SitemapTraverser", "TraverseOptions", "VisitedSet", "PageCollector",
    "traverse", "traverse_many", "traverse_from_content", "traverse_stream",
    "collect", "collect_many", "collect_from_content", "collect_stream",
    "extract_sitemap_directives",
]
