# Sitemap module
from sitemap_stream.sitemap.fetcher import SitemapFetcher, SitemapStream, ContentStream, IterableStream
from sitemap_stream.sitemap.parser import Page, SitemapExtractor, DocumentKind, RecordPhase
from sitemap_stream.sitemap.policy import ErrorContext, raise_error, ignore_errors, ignore_errors_when
from sitemap_stream.sitemap.robots import extract_sitemap_directives
from sitemap_stream.sitemap.tokenizer import XmlTokenizer, Token, TokenKind
from sitemap_stream.sitemap.traversal import (
    SitemapTraverser,
    TraverseOptions,
    VisitedSet,
    traverse,
    traverse_many,
    traverse_from_content,
    traverse_stream,
)
from sitemap_stream.sitemap.collector import PageCollector, collect, collect_many, collect_from_content, collect_stream

__all__ = [
    "SitemapFetcher", "SitemapStream", "ContentStream", "IterableStream",
    "Page", "SitemapExtractor", "DocumentKind", "RecordPhase",
    "ErrorContext", "raise_error", "ignore_errors", "ignore_errors_when",
    "extract_sitemap_directives",
    "XmlTokenizer", "Token", "TokenKind",
    "SitemapTraverser", "TraverseOptions", "VisitedSet",
    "traverse", "traverse_many", "traverse_from_content", "traverse_stream",
    "PageCollector", "collect", "collect_many", "collect_from_content", "collect_stream",
]
