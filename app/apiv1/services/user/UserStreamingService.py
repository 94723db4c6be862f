from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response
from typing import Any, Mapping
from app.apiv1.services.user.UserMediaService import get_media_location
from app.utils.constants import FAILURE_POLICY_ERROR
from app.utils.range_headers import build_forward_headers
from app.utils.stream_errors import UpstreamTimeout, UpstreamUnreachable, UpstreamErrorStatus
from app.utils.stream_relay import StreamSession, relay_response, fallback_response
from app.utils.upstream_fetcher import UpstreamFetcher
import logging

logger = logging.getLogger(__name__)


async def stream_media(db: AsyncSession, media_id: str, request_headers: Mapping[str, Any], fetcher: UpstreamFetcher, failure_policy: str) -> Response:
    # 404 is raised here, before any upstream call
    location = await get_media_location(db, media_id)

    forward_headers = build_forward_headers(request_headers)
    session = StreamSession(media_id, location["url"], location.get("mimeType"), forward_headers.get("Range"))

    try:
        upstream = await fetcher.fetch(session.origin_url, forward_headers)
    except (UpstreamTimeout, UpstreamUnreachable) as e:
        return fallback_response(session, e, failure_policy)

    if not upstream.is_success:
        try:
            detail = await upstream.read_error_text() if failure_policy == FAILURE_POLICY_ERROR else ""
        finally:
            await upstream.aclose()
        return fallback_response(session, UpstreamErrorStatus(upstream.status_code, detail), failure_policy)

    return relay_response(session, upstream)
