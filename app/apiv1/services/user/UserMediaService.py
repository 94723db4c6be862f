from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, desc, func
from typing import Dict, Any
from app.models.MediaModel import Media
from app.utils.pagination import build_pagination
import logging

logger = logging.getLogger(__name__)


async def _find_media(db: AsyncSession, media_id: str) -> Media:
    result = await db.execute(select(Media).where(and_(Media.id == media_id, Media.state == True)).limit(1))
    media = result.scalar_one_or_none()
    if not media:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Media not found")
    return media


async def get_media_list(db: AsyncSession, page: int = 1, per_page: int = 50) -> Dict[str, Any]:
    try:
        page = max(1, page)
        per_page = max(1, per_page)
        total = (await db.execute(select(func.count(Media.id)).where(Media.state == True))).scalar_one()

        media_query = select(Media).where(Media.state == True).order_by(desc(Media.uploaded_at)).offset((page - 1) * per_page).limit(per_page)
        result = await db.execute(media_query)
        items = [media.to_dict() for media in result.scalars().all()]
        return build_pagination(items, total=total, page=page, per_page=per_page)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


async def get_media_by_id(db: AsyncSession, media_id: str) -> Dict[str, Any]:
    try:
        media = await _find_media(db, media_id)
        return media.to_dict()
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


async def get_media_location(db: AsyncSession, media_id: str) -> Dict[str, Any]:
    """Resolve the origin url and stored mime type of a media record, 404 when unknown."""
    try:
        media = await _find_media(db, media_id)
        return media.to_location()
    except HTTPException:
        logger.info(f"Media {media_id} not found for streaming")
        raise
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
