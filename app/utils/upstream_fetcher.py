import asyncio
import logging
from typing import AsyncIterator, Dict, Optional, Type
from urllib.parse import urlsplit

import httpx

from app.utils.constants import (
    UPSTREAM_TIMEOUT_SECONDS,
    STREAM_CHUNK_SIZE,
    STREAM_FORCE_BUFFERING,
    ERROR_DETAIL_LIMIT,
)
from app.utils.stream_errors import UpstreamTimeout, UpstreamUnreachable

logger = logging.getLogger(__name__)

PASSTHROUGH_HEADERS = (
    "content-type",
    "content-length",
    "content-range",
    "content-encoding",
    "accept-ranges",
    "cache-control",
    "last-modified",
    "etag",
)
SUPPORTED_SCHEMES = ("http", "https")


class ByteStreamSource:
    """
    Body of an upstream response as seen by the relay.

    Implementations are picked once at startup by resolve_byte_source();
    the relay only iterates them and never checks which one it got.
    """

    name = "base"

    def __init__(self, response: httpx.Response, chunk_size: int = STREAM_CHUNK_SIZE):
        self.response = response
        self.chunk_size = chunk_size

    async def prepare(self) -> None:
        """Runs before any header is committed to the client."""

    @property
    def length(self) -> Optional[int]:
        return None

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self.iter_chunks()

    def iter_chunks(self) -> AsyncIterator[bytes]:
        raise NotImplementedError


class StreamingByteSource(ByteStreamSource):
    name = "streaming"

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        async for chunk in self.response.aiter_raw(self.chunk_size):
            if chunk:
                yield chunk


class BufferedByteSource(ByteStreamSource):
    """Reads the whole upstream body into memory. Only meant for small files."""

    name = "buffered"

    def __init__(self, response: httpx.Response, chunk_size: int = STREAM_CHUNK_SIZE):
        super().__init__(response, chunk_size)
        self._body: Optional[bytes] = None

    async def prepare(self) -> None:
        chunks = []
        try:
            async for chunk in self.response.aiter_raw():
                chunks.append(chunk)
        except httpx.TimeoutException as e:
            raise UpstreamTimeout(f"Timed out buffering origin body: {e}") from e
        except httpx.TransportError as e:
            raise UpstreamUnreachable(f"Failed buffering origin body: {e}") from e
        self._body = b"".join(chunks)

    @property
    def length(self) -> Optional[int]:
        return len(self._body) if self._body is not None else None

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        body = self._body or b""
        for start in range(0, len(body), self.chunk_size):
            yield body[start:start + self.chunk_size]


def resolve_byte_source(force_buffering: bool = STREAM_FORCE_BUFFERING) -> Type[ByteStreamSource]:
    if force_buffering or not callable(getattr(httpx.Response, "aiter_raw", None)):
        logger.warning("Incremental relay unavailable, upstream bodies will be buffered in memory")
        return BufferedByteSource
    return StreamingByteSource


class UpstreamResponse:
    def __init__(self, response: httpx.Response, body: ByteStreamSource):
        self.status_code = response.status_code
        self.headers: Dict[str, str] = {
            name: response.headers[name] for name in PASSTHROUGH_HEADERS if name in response.headers
        }
        self.body = body
        self.closed = False
        self._response = response

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_partial(self) -> bool:
        return self.status_code == 206

    async def read_error_text(self, limit: int = ERROR_DETAIL_LIMIT) -> str:
        try:
            raw = await self._response.aread()
        except (httpx.HTTPError, httpx.StreamError):
            return "Upstream fetch failed"
        return raw.decode("utf-8", errors="replace")[:limit]

    async def aclose(self) -> None:
        if self.closed:
            return
        self.closed = True
        await self._response.aclose()


class UpstreamFetcher:
    """
    Issues the forwarded GET against the origin.

    One instance (and one httpx.AsyncClient) is shared by all requests;
    nothing else is shared, every call gets its own UpstreamResponse.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = UPSTREAM_TIMEOUT_SECONDS,
        byte_source: Optional[Type[ByteStreamSource]] = None,
        chunk_size: int = STREAM_CHUNK_SIZE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.byte_source = byte_source or resolve_byte_source()
        # identity encoding keeps relayed bytes in line with the passthrough content-length
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            headers={"Accept-Encoding": "identity"},
            transport=transport,
        )

    async def fetch(self, url: str, headers: Dict[str, str]) -> UpstreamResponse:
        scheme = urlsplit(url or "").scheme.lower()
        if scheme not in SUPPORTED_SCHEMES:
            raise UpstreamUnreachable(f"Unsupported origin url: {url!r}")

        try:
            request = self.client.build_request("GET", url, headers=headers)
        except httpx.InvalidURL as e:
            raise UpstreamUnreachable(f"Invalid origin url {url!r}: {e}") from e

        try:
            response = await asyncio.wait_for(self.client.send(request, stream=True), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise UpstreamTimeout(f"Origin did not respond within {self.timeout}s") from e
        except (httpx.TransportError, httpx.TooManyRedirects) as e:
            raise UpstreamUnreachable(f"Origin unreachable: {e}") from e

        upstream = UpstreamResponse(response, self.byte_source(response, self.chunk_size))
        logger.debug(f"Origin answered {upstream.status_code} for {url}")
        if upstream.is_success:
            try:
                await upstream.body.prepare()
            except BaseException:
                await upstream.aclose()
                raise
        return upstream

    async def aclose(self) -> None:
        await self.client.aclose()
