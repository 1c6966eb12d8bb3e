"""
Sitemap fetcher with async HTTP streaming and gzip support.
Bodies are handed out chunk by chunk and can be closed mid-stream.
"""

import asyncio
import zlib
from contextlib import asynccontextmanager
from typing import AsyncIterable, AsyncIterator, Optional, Union
from urllib.parse import urlparse
import aiohttp
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential, retry_if_exception_type

from sitemap_stream.config import get_config
from sitemap_stream.errors import TransportError
from sitemap_stream.logging_config import get_logger

logger = get_logger("sitemap.fetcher")

GZIP_MAGIC = b"\x1f\x8b"

# Failures worth another attempt before any byte has been read
RETRYABLE_ERRORS = (aiohttp.ClientConnectionError, asyncio.TimeoutError)


class SitemapStream:
    """
    Body of one sitemap response as an async iterator of byte chunks.

    ``close()`` aborts the underlying connection; it is safe to call more
    than once.
    """

    encoding: Optional[str] = None

    def __init__(self, url: str, response: aiohttp.ClientResponse, chunk_size: int):
        self.url = url
        self.chunk_size = chunk_size
        self.exhausted = False
        self._response = response
        self._closed = False
        self._decompressor = None
        self._sniffed = not urlparse(url).path.endswith(".gz")

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "SitemapStream":
        return self

    async def __anext__(self) -> bytes:
        while not self._closed and not self.exhausted:
            try:
                raw = await self._response.content.read(self.chunk_size)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise TransportError(self.url, f"Read failed: {e}") from e

            if not raw:
                self.exhausted = True
                tail = self._decompressor.flush() if self._decompressor else b""
                if tail:
                    return tail
                break

            chunk = self._decode(raw)
            if chunk:
                return chunk
        raise StopAsyncIteration

    def _decode(self, raw: bytes) -> bytes:
        if not self._sniffed:
            self._sniffed = True
            # Some servers already decompress .gz files on the fly
            if raw.startswith(GZIP_MAGIC):
                self._decompressor = zlib.decompressobj(16 + zlib.MAX_WBITS)
        if self._decompressor is None:
            return raw
        try:
            return self._decompressor.decompress(raw)
        except zlib.error as e:
            raise TransportError(self.url, f"Invalid gzip body: {e}") from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._response.close()

    def release(self) -> None:
        """Hand the connection back to the pool after a full read."""
        if not self._closed:
            self._closed = True
            self._response.release()


class ContentStream:
    """In-memory sitemap text with the same interface as SitemapStream."""

    def __init__(self, url: str, content: Union[str, bytes], chunk_size: int = 64 * 1024):
        self.url = url
        self.chunk_size = chunk_size
        if isinstance(content, str):
            self._data = content.encode("utf-8")
            # The text is already decoded, so any XML declaration is stale
            self.encoding: Optional[str] = "utf-8"
        else:
            self._data = content
            self.encoding = None
        self._offset = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> "ContentStream":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __aiter__(self) -> "ContentStream":
        return self

    async def __anext__(self) -> bytes:
        if self._closed or self._offset >= len(self._data):
            raise StopAsyncIteration
        chunk = self._data[self._offset:self._offset + self.chunk_size]
        self._offset += len(chunk)
        return chunk

    def close(self) -> None:
        self._closed = True


class IterableStream:
    """
    Caller-supplied async iterable of bytes with the same interface as
    SitemapStream.

    The source is only read, never buffered. When the traversal stops early
    the source is shut down: its ``close()`` is called if it has one, and an
    async generator iterator is ``aclose()``d on exit.
    """

    def __init__(self, url: str, source: AsyncIterable[bytes], encoding: Optional[str] = None):
        self.url = url
        self.encoding = encoding
        self._source = source
        self._iterator: Optional[AsyncIterator[bytes]] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> "IterableStream":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        aclose = getattr(self._iterator, "aclose", None)
        if self._closed and aclose is not None:
            await aclose()

    def __aiter__(self) -> "IterableStream":
        return self

    async def __anext__(self) -> bytes:
        if self._closed:
            raise StopAsyncIteration
        if self._iterator is None:
            self._iterator = self._source.__aiter__()
        try:
            return await self._iterator.__anext__()
        except (OSError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(self.url, f"Read failed: {e}") from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        close = getattr(self._source, "close", None)
        if callable(close):
            close()


class SitemapFetcher:
    """
    Async sitemap fetcher with retry logic and gzip support.
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        chunk_size: Optional[int] = None
    ):
        self._session = session
        self._own_session = session is None
        self.config = get_config()
        self.user_agent = user_agent or self.config.user_agent
        self.timeout = self.config.request_timeout if timeout is None else timeout
        if max_retries is None:
            max_retries = self.config.max_retries
        self.max_retries = max(1, max_retries)
        self.chunk_size = chunk_size or self.config.chunk_size

    async def __aenter__(self):
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=None, sock_connect=self.timeout, sock_read=self.timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._own_session and self._session:
            await self._session.close()
            self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("Session not initialized. Use async context manager.")
        return self._session

    def _get_headers(self) -> dict:
        """Get request headers."""
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/xml, text/xml, */*",
            "Accept-Encoding": "gzip, deflate",
        }

    async def _request(self, url: str) -> aiohttp.ClientResponse:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self.session.get(url, headers=self._get_headers())
        except asyncio.TimeoutError as e:
            logger.error("Sitemap fetch timeout", extra={"url": url})
            raise TransportError(url, "Timeout") from e
        except aiohttp.ClientError as e:
            logger.error(f"Sitemap fetch error: {e}", extra={"url": url})
            raise TransportError(url, str(e)) from e

        # Accept any 2xx status code as success
        if not (200 <= response.status < 300):
            logger.warning("Sitemap fetch failed", extra={"url": url, "http_code": response.status})
            response.release()
            raise TransportError(url, status=response.status)

        logger.debug("Sitemap response opened", extra={"url": url, "http_code": response.status})
        return response

    @asynccontextmanager
    async def open(self, url: str) -> AsyncIterator[SitemapStream]:
        """
        Open a sitemap URL for streaming.

        Yields:
            SitemapStream over the (decompressed) body

        Raises:
            TransportError: on connection failure or non-2xx status
        """
        response = await self._request(url)
        stream = SitemapStream(url, response, self.chunk_size)
        try:
            yield stream
        finally:
            if stream.exhausted:
                stream.release()
            else:
                stream.close()
