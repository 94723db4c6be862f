from sqlalchemy import Column, String, DateTime, Text, BigInteger
from app.models.BaseModel import Base
from datetime import datetime
from typing import Dict, Any

MEDIA_TYPE_IMAGE = "image"
MEDIA_TYPE_VIDEO = "video"


class Media(Base):
    __tablename__ = "media"

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Origin location of the bytes in object storage
    url = Column(String(1024), nullable=False)
    type = Column(String(20), nullable=False, default=MEDIA_TYPE_IMAGE)
    mime_type = Column(String(255), nullable=True)
    size = Column(BigInteger, nullable=True)
    thumbnail_url = Column(String(1024), nullable=True)
    uploaded_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    @staticmethod
    def type_for_mime(mime_type: str) -> str:
        return MEDIA_TYPE_VIDEO if mime_type and mime_type.startswith("video") else MEDIA_TYPE_IMAGE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'url': self.url,
            'type': self.type,
            'mimeType': self.mime_type,
            'size': self.size,
            'uploadedAt': self.uploaded_at.isoformat() if self.uploaded_at else None,
            'thumbnailUrl': self.thumbnail_url
        }

    def to_location(self) -> Dict[str, Any]:
        return {
            'url': self.url,
            'mimeType': self.mime_type
        }
