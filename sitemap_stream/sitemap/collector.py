"""
Buffering helpers for callers that want a list instead of a callback.
"""

from typing import AsyncIterable, Iterable, List, Optional, Union

from sitemap_stream.sitemap.parser import Page
from sitemap_stream.sitemap.traversal import (
    TraverseOptions,
    VisitedSet,
    traverse,
    traverse_from_content,
    traverse_many,
    traverse_stream,
)


class PageCollector:
    """
    Accumulates every emitted page, in emission order.

    If the traversal fails, the collect methods raise and ``pages`` keeps
    whatever had been delivered before the failure.
    """

    def __init__(self, options: Optional[TraverseOptions] = None, fetcher=None):
        self.options = options
        self.fetcher = fetcher
        self.pages: List[Page] = []

    def on_page(self, page: Page) -> bool:
        self.pages.append(page)
        return True

    async def collect(self, url: str, visited: Optional[VisitedSet] = None) -> List[Page]:
        await traverse(url, self.on_page, self.options, visited, fetcher=self.fetcher)
        return self.pages

    async def collect_many(self, urls: Iterable[str], visited: Optional[VisitedSet] = None) -> List[Page]:
        await traverse_many(urls, self.on_page, self.options, visited, fetcher=self.fetcher)
        return self.pages

    async def collect_from_content(self, base_url: str, content: Union[str, bytes]) -> List[Page]:
        await traverse_from_content(base_url, content, self.on_page, self.options, fetcher=self.fetcher)
        return self.pages

    async def collect_stream(
        self,
        base_url: str,
        stream: AsyncIterable[bytes],
        encoding: Optional[str] = None
    ) -> List[Page]:
        await traverse_stream(base_url, stream, self.on_page, self.options, fetcher=self.fetcher, encoding=encoding)
        return self.pages


async def collect(
    url: str,
    options: Optional[TraverseOptions] = None,
    visited: Optional[VisitedSet] = None,
    fetcher=None
) -> List[Page]:
    return await PageCollector(options, fetcher).collect(url, visited)


async def collect_many(
    urls: Iterable[str],
    options: Optional[TraverseOptions] = None,
    visited: Optional[VisitedSet] = None,
    fetcher=None
) -> List[Page]:
    return await PageCollector(options, fetcher).collect_many(urls, visited)


async def collect_from_content(
    base_url: str,
    content: Union[str, bytes],
    options: Optional[TraverseOptions] = None,
    fetcher=None
) -> List[Page]:
    return await PageCollector(options, fetcher).collect_from_content(base_url, content)


async def collect_stream(
    base_url: str,
    stream: AsyncIterable[bytes],
    options: Optional[TraverseOptions] = None,
    fetcher=None,
    encoding: Optional[str] = None
) -> List[Page]:
    return await PageCollector(options, fetcher).collect_stream(base_url, stream, encoding)
