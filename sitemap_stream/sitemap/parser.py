"""
Streaming sitemap extractor.
Turns the token stream of one document into page records (urlset)
or child sitemap URLs (sitemap index), in document order.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple
from datetime import datetime
from urllib.parse import urljoin
from dateutil.parser import parse as parse_date

from sitemap_stream.sitemap.tokenizer import Token, TokenKind


@dataclass(frozen=True)
class Page:
    """A single page record from a urlset document."""
    url: str
    last_modified: str = ""
    sitemap_url: str = ""  # Document the record was found in

    @property
    def last_modified_datetime(self) -> Optional[datetime]:
        """Parse last_modified as datetime."""
        if not self.last_modified:
            return None
        try:
            return parse_date(self.last_modified)
        except (ValueError, OverflowError):
            return None


class DocumentKind(Enum):
    UNKNOWN = "unknown"
    PAGE_SET = "urlset"
    INDEX = "sitemapindex"


class RecordPhase(Enum):
    NONE = "none"
    IN_RECORD = "in_record"
    IN_LOCATION = "in_location"
    IN_LAST_MODIFIED = "in_last_modified"
    ENDED = "ended"


# Symbolic tags the transition tables are keyed on
RECORD = "record"
LOC = "loc"
LASTMOD = "lastmod"

_ROOT_KINDS = {
    "urlset": DocumentKind.PAGE_SET,
    "sitemapindex": DocumentKind.INDEX,
}

_START_TRANSITIONS: Dict[Tuple[RecordPhase, str], RecordPhase] = {
    (RecordPhase.NONE, RECORD): RecordPhase.IN_RECORD,
    (RecordPhase.IN_RECORD, LOC): RecordPhase.IN_LOCATION,
    (RecordPhase.IN_RECORD, LASTMOD): RecordPhase.IN_LAST_MODIFIED,
}

_END_TRANSITIONS: Dict[Tuple[RecordPhase, str], RecordPhase] = {
    (RecordPhase.IN_LOCATION, LOC): RecordPhase.IN_RECORD,
    (RecordPhase.IN_LAST_MODIFIED, LASTMOD): RecordPhase.IN_RECORD,
    (RecordPhase.IN_RECORD, RECORD): RecordPhase.NONE,
}

PageCallback = Callable[[Page], bool]


class SitemapExtractor:
    """
    Finite-state extractor for a single sitemap document.

    The document kind is fixed by the root element. Pages are handed to
    ``emit`` as each ``<url>`` record closes; ``emit`` returns False to
    stop, after which every further token is ignored and ``ended`` is set.
    Child sitemap URLs of an index accumulate in ``sitemaps``.
    """

    def __init__(self, base_url: str, emit: PageCallback):
        self.base_url = base_url
        self.emit = emit
        self.kind = DocumentKind.UNKNOWN
        self.phase = RecordPhase.NONE
        self.sitemaps: List[str] = []
        self.records_seen = 0
        self._root_seen = False
        self._url = ""
        self._last_modified = ""

    @property
    def ended(self) -> bool:
        return self.phase is RecordPhase.ENDED

    def process(self, token: Token) -> None:
        if self.ended:
            return
        if token.kind is TokenKind.START:
            self._on_start(token.value)
        elif token.kind is TokenKind.END:
            self._on_end(token.value)
        else:
            self._on_text(token.value)

    def _symbol(self, name: str) -> Optional[str]:
        if self.kind is DocumentKind.PAGE_SET:
            if name == "url":
                return RECORD
            if name in (LOC, LASTMOD):
                return name
        elif self.kind is DocumentKind.INDEX:
            if name == "sitemap":
                return RECORD
            if name == LOC:
                return LOC
        return None

    def _on_start(self, name: str) -> None:
        if not self._root_seen:
            self._root_seen = True
            self.kind = _ROOT_KINDS.get(name, DocumentKind.UNKNOWN)
            return

        symbol = self._symbol(name)
        next_phase = _START_TRANSITIONS.get((self.phase, symbol))
        if next_phase is None:
            return
        if symbol == RECORD:
            self._url = ""
            self._last_modified = ""
        self.phase = next_phase

    def _on_text(self, text: str) -> None:
        if self.phase is RecordPhase.IN_LOCATION:
            self._url = urljoin(self.base_url, text)
        elif self.phase is RecordPhase.IN_LAST_MODIFIED:
            self._last_modified = text

    def _on_end(self, name: str) -> None:
        symbol = self._symbol(name)
        next_phase = _END_TRANSITIONS.get((self.phase, symbol))
        if next_phase is None:
            return
        self.phase = next_phase
        if symbol == RECORD:
            self._finish_record()

    def _finish_record(self) -> None:
        if self.kind is DocumentKind.INDEX:
            if self._url:
                self.sitemaps.append(self._url)
            return

        page = Page(url=self._url, last_modified=self._last_modified, sitemap_url=self.base_url)
        self.records_seen += 1
        if not self.emit(page):
            self.phase = RecordPhase.ENDED
