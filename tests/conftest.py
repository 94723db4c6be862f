import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import asyncio
from typing import Callable, Dict, List

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.database import get_database
from app.main import app, configure_streaming
from app.models import Base, Media
from app.utils.constants import FAILURE_POLICY_REDIRECT
from app.utils.upstream_fetcher import UpstreamFetcher

ORIGIN = "https://storage.example.com/object/public/media"


class BodyStream(httpx.AsyncByteStream):
    """Unread origin body, delivered in chunks like a network socket would."""

    def __init__(self, body: bytes, chunk_size: int = 65536, delay: float = 0):
        self.body = body
        self.chunk_size = chunk_size
        self.delay = delay

    async def __aiter__(self):
        for start in range(0, len(self.body), self.chunk_size):
            if self.delay:
                await asyncio.sleep(self.delay)
            yield self.body[start:start + self.chunk_size]


def origin_response(status_code: int, body: bytes = b"", headers: dict = None, **stream_kwargs) -> httpx.Response:
    headers = dict(headers or {})
    headers.setdefault("Content-Length", str(len(body)))
    return httpx.Response(status_code, headers=headers, stream=BodyStream(body, **stream_kwargs))


class OriginStub:
    """Fake object-storage origin served through httpx.MockTransport."""

    def __init__(self):
        self.routes: Dict[str, Callable] = {}
        self.requests: List[httpx.Request] = []
        self.transport = httpx.MockTransport(self.handle)

    def add(self, url: str, handler: Callable) -> None:
        self.routes[url] = handler

    def serve_bytes(self, url: str, body: bytes, content_type: str = None, honor_range: bool = True, extra_headers: dict = None) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            headers = dict(extra_headers or {})
            if content_type:
                headers["Content-Type"] = content_type
            range_value = request.headers.get("range")
            if honor_range and range_value and range_value.startswith("bytes="):
                start_str, end_str = range_value[len("bytes="):].split("-")
                start = int(start_str)
                end = int(end_str) if end_str else len(body) - 1
                headers["Content-Range"] = f"bytes {start}-{end}/{len(body)}"
                return origin_response(206, body[start:end + 1], headers)
            return origin_response(200, body, headers)

        self.add(url, handler)

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(str(request.url))
        if handler is None:
            return origin_response(404, b"NoSuchKey")
        result = handler(request)
        if asyncio.iscoroutine(result):
            result = await result
        return result


@pytest.fixture
def origin() -> OriginStub:
    return OriginStub()


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'media.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def create_media(session_factory):
    async def _create(url: str, mime_type: str = "video/mp4", title: str = "clip", **kwargs) -> Media:
        async with session_factory() as session:
            media = Media(title=title, url=url, mime_type=mime_type, type=Media.type_for_mime(mime_type), **kwargs)
            session.add(media)
            await session.commit()
            return media

    return _create


@pytest.fixture
async def make_client(origin, session_factory):
    clients = []

    async def _make(failure_policy: str = FAILURE_POLICY_REDIRECT, **fetcher_kwargs) -> httpx.AsyncClient:
        async def override_get_database():
            async with session_factory() as session:
                yield session

        fetcher_kwargs.setdefault("transport", origin.transport)
        fetcher = UpstreamFetcher(**fetcher_kwargs)
        configure_streaming(fetcher, failure_policy)
        app.dependency_overrides[get_database] = override_get_database
        client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")
        clients.append((client, fetcher))
        return client

    yield _make

    app.dependency_overrides.clear()
    for client, fetcher in clients:
        await client.aclose()
        await fetcher.aclose()


@pytest.fixture
async def client(make_client):
    return await make_client()
