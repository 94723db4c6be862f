import logging
from enum import Enum
from typing import AsyncIterator, Dict, Optional

import anyio
import httpx
from fastapi.responses import RedirectResponse, StreamingResponse
from starlette.responses import Response

from app.utils.constants import (
    DEFAULT_CONTENT_TYPE,
    ERROR_DETAIL_LIMIT,
    FAILURE_POLICY_ERROR,
)
from app.utils.returns_data import returnsdata
from app.utils.stream_errors import (
    HeadersAlreadySent,
    MidStreamFailure,
    StreamProxyError,
    UpstreamErrorStatus,
)
from app.utils.upstream_fetcher import PASSTHROUGH_HEADERS, UpstreamResponse

logger = logging.getLogger(__name__)


class StreamState(str, Enum):
    INIT = "init"
    RELAYING = "relaying"
    RELAYING_COMPLETE = "relaying_complete"
    FALLBACK_REDIRECT_SENT = "fallback_redirect_sent"
    ABORTED = "aborted"
    ERROR_REPORTED = "error_reported"


TERMINAL_STATES = {
    StreamState.RELAYING_COMPLETE,
    StreamState.FALLBACK_REDIRECT_SENT,
    StreamState.ABORTED,
    StreamState.ERROR_REPORTED,
}


class StreamSession:
    """Per-request state of one /media/{id}/stream call."""

    def __init__(self, media_id: str, origin_url: str, mime_type: Optional[str] = None, range_header: Optional[str] = None):
        self.media_id = media_id
        self.origin_url = origin_url
        self.mime_type = mime_type
        self.range_header = range_header
        self.state = StreamState.INIT
        self.headers_sent = False
        self.bytes_sent = 0

    def transition(self, state: StreamState) -> None:
        if self.state in TERMINAL_STATES:
            logger.debug(f"Stream {self.media_id} already {self.state.value}, ignoring {state.value}")
            return
        log = logger.warning if state in (StreamState.ABORTED, StreamState.FALLBACK_REDIRECT_SENT, StreamState.ERROR_REPORTED) else logger.info
        log(f"Stream {self.media_id}: {self.state.value} -> {state.value} (range={self.range_header!r}, bytes={self.bytes_sent})")
        self.state = state

    def commit_headers(self) -> None:
        if self.headers_sent:
            raise HeadersAlreadySent(f"Headers for media {self.media_id} were already sent")
        self.headers_sent = True


def relay_status(upstream: UpstreamResponse) -> int:
    return 206 if upstream.is_partial else 200


def build_relay_headers(upstream: UpstreamResponse, fallback_mime: Optional[str] = None) -> Dict[str, str]:
    headers = {"content-type": upstream.headers.get("content-type") or fallback_mime or DEFAULT_CONTENT_TYPE}
    for name in PASSTHROUGH_HEADERS:
        if name != "content-type" and upstream.headers.get(name):
            headers[name] = upstream.headers[name]
    if upstream.body.length is not None:
        headers["content-length"] = str(upstream.body.length)
    headers["accept-ranges"] = "bytes"
    return headers


async def relay_body(session: StreamSession, upstream: UpstreamResponse) -> AsyncIterator[bytes]:
    """
    Pipes the upstream body to the client. Headers are already committed
    here, so any failure ends the response without a corrective status.
    """
    try:
        async for chunk in upstream.body:
            session.bytes_sent += len(chunk)
            yield chunk
    except (httpx.HTTPError, httpx.StreamError, OSError) as e:
        logger.error(f"Stream {session.media_id} failed after {session.bytes_sent} bytes: {e}")
        session.transition(StreamState.ABORTED)
        raise MidStreamFailure(str(e)) from e
    except BaseException:
        # client went away (cancellation or generator close)
        logger.info(f"Stream {session.media_id} closed by client after {session.bytes_sent} bytes")
        session.transition(StreamState.ABORTED)
        raise
    else:
        session.transition(StreamState.RELAYING_COMPLETE)
    finally:
        with anyio.CancelScope(shield=True):
            await upstream.aclose()


class RelayStreamingResponse(StreamingResponse):
    """
    StreamingResponse that owns its upstream response. However the ASGI
    call ends, client disconnect included, the relay generator and the
    upstream response are closed before the call returns.
    """

    def __init__(self, session: StreamSession, upstream: UpstreamResponse, **kwargs):
        super().__init__(relay_body(session, upstream), **kwargs)
        self.session = session
        self.upstream = upstream

    async def __call__(self, scope, receive, send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            with anyio.CancelScope(shield=True):
                await self.body_iterator.aclose()
                await self.upstream.aclose()
            if self.session.state == StreamState.RELAYING:
                logger.info(f"Stream {self.session.media_id} ended before the body was relayed")
                self.session.transition(StreamState.ABORTED)


def relay_response(session: StreamSession, upstream: UpstreamResponse) -> Response:
    status_code = relay_status(upstream)
    headers = build_relay_headers(upstream, session.mime_type)
    session.commit_headers()
    session.transition(StreamState.RELAYING)
    return RelayStreamingResponse(session, upstream, status_code=status_code, headers=headers)


def fallback_response(session: StreamSession, error: StreamProxyError, policy: str) -> Response:
    """
    Answers a failed upstream leg while nothing has been sent to the client:
    a 302 to the origin url, or a 502 JSON body under the error policy.
    """
    session.commit_headers()
    if policy == FAILURE_POLICY_ERROR:
        upstream_status = error.status_code if isinstance(error, UpstreamErrorStatus) else None
        detail = error.detail if isinstance(error, UpstreamErrorStatus) else str(error)
        session.transition(StreamState.ERROR_REPORTED)
        return returnsdata.bad_gateway("Failed to retrieve media", upstream_status, detail[:ERROR_DETAIL_LIMIT])

    logger.warning(f"Stream {session.media_id} falling back to origin redirect: {error}")
    session.transition(StreamState.FALLBACK_REDIRECT_SENT)
    return RedirectResponse(session.origin_url, status_code=302)
