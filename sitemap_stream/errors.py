"""
Exceptions raised while traversing sitemap trees.
"""

from typing import Iterable, List, Optional


class SitemapError(Exception):
    """Base class for all sitemap traversal errors."""


class TransportError(SitemapError):
    """A sitemap could not be fetched (network failure or HTTP status)."""

    def __init__(self, url: str, message: str = "", status: Optional[int] = None):
        self.url = url
        self.status = status
        if not message:
            message = f"HTTP {status}" if status is not None else "fetch failed"
        super().__init__(f"{message} ({url})")


class ParseError(SitemapError):
    """A sitemap document is not well-formed XML."""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(f"{message} ({url})")


class AggregateError(SitemapError):
    """
    One or more tasks of a fan-out failed.

    Nested aggregates are flattened so ``errors`` always holds the
    individual failures.
    """

    def __init__(self, errors: Iterable[BaseException]):
        self.errors: List[BaseException] = []
        for error in errors:
            if isinstance(error, AggregateError):
                self.errors.extend(error.errors)
            else:
                self.errors.append(error)
        super().__init__(f"{len(self.errors)} sitemap task(s) failed: {self.urls or self.errors}")

    @property
    def urls(self) -> List[str]:
        """URLs of the failing sitemaps, in failure order."""
        return [err.url for err in self.errors if getattr(err, "url", None)]
