"""
Recursive sitemap traversal.

Walks a sitemap tree from one or more roots: urlset documents are streamed
page by page into a callback, sitemap index documents fan out to their
children with bounded concurrency. Every sitemap URL is fetched at most
once per top-level call.
"""

import threading
from contextlib import asynccontextmanager
from dataclasses import dataclass
from functools import partial
from typing import AsyncContextManager, AsyncIterable, AsyncIterator, Callable, Iterable, Iterator, Optional, Union

from sitemap_stream.config import CrawlerConfig, get_config
from sitemap_stream.errors import ParseError, TransportError
from sitemap_stream.logging_config import get_logger
from sitemap_stream.scheduler import run_capped
from sitemap_stream.sitemap.fetcher import ContentStream, IterableStream, SitemapFetcher
from sitemap_stream.sitemap.parser import DocumentKind, Page, SitemapExtractor
from sitemap_stream.sitemap.policy import ErrorContext, ErrorHandler, apply_policy, raise_error
from sitemap_stream.sitemap.tokenizer import XmlTokenizer

logger = get_logger("sitemap.traversal")

DEFAULT_MAX_PARALLEL = 4

# Return False to stop reading the current document
OnPage = Callable[[Page], Optional[bool]]
StreamOpener = Callable[[str], AsyncContextManager]


def _accept(url: str) -> bool:
    return True


@dataclass
class TraverseOptions:
    """Per-call traversal settings, shared by every sub-traversal."""
    check_sitemap: Callable[[str], bool] = _accept
    check_url: Callable[[str], bool] = _accept
    on_error: ErrorHandler = raise_error
    max_parallel: int = DEFAULT_MAX_PARALLEL

    def __post_init__(self):
        if self.max_parallel < 1:
            raise ValueError("max_parallel must be at least 1")

    @classmethod
    def from_config(cls, config: Optional[CrawlerConfig] = None, **kwargs) -> "TraverseOptions":
        config = config or get_config()
        kwargs.setdefault("max_parallel", config.max_parallel)
        return cls(**kwargs)


class VisitedSet:
    """
    Sitemap URLs already claimed by a traversal.

    ``mark`` is the only mutation and is atomic, so two branches racing on
    the same URL cannot both claim it.
    """

    def __init__(self, urls: Iterable[str] = ()):
        self._urls = set(urls)
        self._lock = threading.Lock()

    def __contains__(self, url: object) -> bool:
        return url in self._urls

    def __len__(self) -> int:
        return len(self._urls)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            snapshot = list(self._urls)
        return iter(snapshot)

    def mark(self, url: str) -> bool:
        """Claim ``url``; False if it was already claimed."""
        with self._lock:
            if url in self._urls:
                return False
            self._urls.add(url)
            return True


class SitemapTraverser:
    """
    Drives fetch -> tokenize -> extract for a sitemap tree.

    One traverser corresponds to one logical traversal: its visited set is
    shared by every document reached through it.
    """

    def __init__(
        self,
        fetcher,
        options: Optional[TraverseOptions] = None,
        visited: Optional[VisitedSet] = None
    ):
        self.fetcher = fetcher
        self.options = options or TraverseOptions()
        self.visited = visited if visited is not None else VisitedSet()

    async def traverse(self, url: str, on_page: OnPage) -> None:
        """Stream every page reachable from the sitemap at ``url``."""
        await self._traverse(url, self.fetcher.open, on_page)

    async def traverse_many(self, urls: Iterable[str], on_page: OnPage) -> None:
        """Traverse several roots concurrently, sharing the visited set."""
        tasks = [partial(self.traverse, url, on_page) for url in urls]
        await run_capped(tasks, self.options.max_parallel)

    async def traverse_from_content(self, base_url: str, content: Union[str, bytes], on_page: OnPage) -> None:
        """Traverse a document already in memory; its children are fetched."""
        opener = partial(ContentStream, content=content)
        await self._traverse(base_url, opener, on_page)

    async def traverse_stream(
        self,
        base_url: str,
        stream: AsyncIterable[bytes],
        on_page: OnPage,
        encoding: Optional[str] = None
    ) -> None:
        """
        Traverse a document read from ``stream``, an async iterable of bytes.

        Chunks are parsed as they arrive. If the page callback stops the
        traversal, ``stream`` is closed. Children are fetched.
        """
        opener = partial(IterableStream, source=stream, encoding=encoding)
        await self._traverse(base_url, opener, on_page)

    def _claim(self, url: str) -> bool:
        # No await between the check and the mark
        if url in self.visited:
            logger.debug("Sitemap already visited", extra={"url": url})
            return False
        if not self.options.check_sitemap(url):
            logger.debug("Sitemap excluded by check_sitemap", extra={"url": url})
            return False
        return self.visited.mark(url)

    def _page_filter(self, on_page: OnPage) -> Callable[[Page], bool]:
        check_url = self.options.check_url

        def emit(page: Page) -> bool:
            if not check_url(page.url):
                return True
            return on_page(page) is not False

        return emit

    async def _traverse(self, url: str, opener: StreamOpener, on_page: OnPage) -> None:
        if not self._claim(url):
            return

        extractor = SitemapExtractor(url, self._page_filter(on_page))
        try:
            await self._consume(url, opener, extractor)
        except (TransportError, ParseError) as e:
            await apply_policy(self.options.on_error, e, ErrorContext(url=url))
            return

        if extractor.kind is DocumentKind.UNKNOWN:
            logger.warning("Document is neither a urlset nor a sitemap index", extra={"url": url})
            return

        logger.info(
            "Sitemap processed",
            extra={"url": url, "pages": extractor.records_seen, "children": len(extractor.sitemaps)}
        )

        if extractor.sitemaps:
            tasks = [partial(self.traverse, child, on_page) for child in extractor.sitemaps]
            await run_capped(tasks, self.options.max_parallel)

    async def _consume(self, url: str, opener: StreamOpener, extractor: SitemapExtractor) -> None:
        async with opener(url) as stream:
            tokenizer = XmlTokenizer(url, encoding=stream.encoding)
            async for chunk in stream:
                for token in tokenizer.feed(chunk):
                    extractor.process(token)
                    if extractor.ended:
                        break
                if extractor.ended:
                    # Abort the transfer, not just the parsing
                    stream.close()
                    logger.debug("Stopped early by page callback", extra={"url": url})
                    return
            for token in tokenizer.close():
                extractor.process(token)


@asynccontextmanager
async def _open_traverser(
    options: Optional[TraverseOptions],
    visited: Optional[VisitedSet],
    fetcher
) -> AsyncIterator[SitemapTraverser]:
    if fetcher is not None:
        yield SitemapTraverser(fetcher, options, visited)
    else:
        async with SitemapFetcher() as own_fetcher:
            yield SitemapTraverser(own_fetcher, options, visited)


async def traverse(
    url: str,
    on_page: OnPage,
    options: Optional[TraverseOptions] = None,
    visited: Optional[VisitedSet] = None,
    fetcher=None
) -> None:
    """Stream the pages of the sitemap tree rooted at ``url`` into ``on_page``."""
    async with _open_traverser(options, visited, fetcher) as traverser:
        await traverser.traverse(url, on_page)


async def traverse_many(
    urls: Iterable[str],
    on_page: OnPage,
    options: Optional[TraverseOptions] = None,
    visited: Optional[VisitedSet] = None,
    fetcher=None
) -> None:
    """Like ``traverse`` for several roots sharing one visited set."""
    async with _open_traverser(options, visited, fetcher) as traverser:
        await traverser.traverse_many(urls, on_page)


async def traverse_from_content(
    base_url: str,
    content: Union[str, bytes],
    on_page: OnPage,
    options: Optional[TraverseOptions] = None,
    fetcher=None
) -> None:
    """Like ``traverse`` for a document whose text is already at hand."""
    async with _open_traverser(options, None, fetcher) as traverser:
        await traverser.traverse_from_content(base_url, content, on_page)


async def traverse_stream(
    base_url: str,
    stream: AsyncIterable[bytes],
    on_page: OnPage,
    options: Optional[TraverseOptions] = None,
    fetcher=None,
    encoding: Optional[str] = None
) -> None:
    """Like ``traverse`` for a document read from a caller-supplied byte stream."""
    async with _open_traverser(options, None, fetcher) as traverser:
        await traverser.traverse_stream(base_url, stream, on_page, encoding)
