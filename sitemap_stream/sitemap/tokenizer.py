"""
Incremental XML tokenizer for sitemap documents.
Wraps lxml's pull parser and turns its element events into a flat token stream.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional
from lxml import etree

from sitemap_stream.errors import ParseError

# Sitemap protocol namespaces - both HTTP and HTTPS variants are seen in the wild
SITEMAP_NAMESPACES = frozenset({
    "http://www.sitemaps.org/schemas/sitemap/0.9",
    "https://www.sitemaps.org/schemas/sitemap/0.9",
})

# Concatenated descendant text; comments and processing instructions excluded
_string_value = etree.XPath("string()")


class TokenKind(Enum):
    START = "start"
    TEXT = "text"
    END = "end"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str


def _token_name(element) -> str:
    """Lowercase local name for sitemap elements, Clark notation for foreign ones."""
    qname = etree.QName(element)
    if qname.namespace is None or qname.namespace in SITEMAP_NAMESPACES:
        return qname.localname.lower()
    return f"{{{qname.namespace}}}{qname.localname.lower()}"


class XmlTokenizer:
    """
    Push bytes in, pull tokens out.

    Each element produces a START token, then (once the element is closed)
    its stripped string value as a TEXT token if non-blank, then an END
    token.
    Closed elements are cleared and detached so the tree never grows
    beyond the current path.
    """

    def __init__(self, url: str, encoding: Optional[str] = None):
        self.url = url
        self._parser = etree.XMLPullParser(
            events=("start", "end"),
            encoding=encoding,
            resolve_entities=False,
            no_network=True,
        )

    def feed(self, chunk: bytes) -> Iterator[Token]:
        try:
            self._parser.feed(chunk)
        except etree.LxmlError as e:
            return self._fail(e)
        return self._drain()

    def close(self) -> Iterator[Token]:
        try:
            self._parser.close()
        except etree.LxmlError as e:
            return self._fail(e)
        return self._drain()

    def _fail(self, error: Exception) -> Iterator[Token]:
        # Tokens parsed before the error still belong to the document
        yield from self._drain()
        raise ParseError(self.url, str(error)) from error

    def _drain(self) -> Iterator[Token]:
        events = list(self._parser.read_events())
        for event, element in events:
            if not isinstance(element.tag, str):
                continue
            name = _token_name(element)
            if event == "start":
                yield Token(TokenKind.START, name)
                continue

            text = _string_value(element).strip()
            if text:
                yield Token(TokenKind.TEXT, text)
            yield Token(TokenKind.END, name)

            element.clear(keep_tail=True)
            parent = element.getparent()
            if parent is not None:
                while element.getprevious() is not None:
                    del parent[0]
