from fastapi import APIRouter, Request, status, HTTPException, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_database
from app.utils.constants import SUCCESS, ERROR
from app.utils.returns_data import returnsdata
from app.utils.upstream_fetcher import UpstreamFetcher
from app.apiv1.services.user.UserMediaService import get_media_list, get_media_by_id
from app.apiv1.services.user.UserStreamingService import stream_media
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


def get_upstream_fetcher(request: Request) -> UpstreamFetcher:
    fetcher = getattr(request.app.state, "upstream_fetcher", None)
    if fetcher is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Streaming service not initialized")
    return fetcher


@router.get("", status_code=status.HTTP_200_OK)
async def fetch_media(page: int = Query(1, ge=1), per_page: int = Query(50, ge=1, le=200), db: AsyncSession = Depends(get_database)):
    try:
        data = await get_media_list(db, page=page, per_page=per_page)
        return returnsdata.success(data=data, msg="Media fetched successfully", status=SUCCESS)
    except HTTPException as e:
        return returnsdata.error_msg(f"Failed to fetch media: {e.detail}", ERROR, e.status_code)


@router.get("/{media_id}", status_code=status.HTTP_200_OK)
async def fetch_media_item(media_id: str, db: AsyncSession = Depends(get_database)):
    try:
        data = await get_media_by_id(db, media_id)
        return returnsdata.success(data=data, msg="Media fetched successfully", status=SUCCESS)
    except HTTPException as e:
        if e.status_code == status.HTTP_404_NOT_FOUND:
            return returnsdata.not_found("Media not found", ERROR)
        return returnsdata.error_msg(f"Failed to fetch media: {e.detail}", ERROR, e.status_code)


@router.get("/{media_id}/stream")
async def stream_media_item(media_id: str, request: Request, db: AsyncSession = Depends(get_database), fetcher: UpstreamFetcher = Depends(get_upstream_fetcher)):
    """Proxies the stored origin file with Range support, see UserStreamingService.stream_media."""
    return await stream_media(db, media_id, request.headers, fetcher, request.app.state.failure_policy)
