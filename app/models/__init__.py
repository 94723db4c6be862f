from app.models.BaseModel import Base
from app.models.MediaModel import Media

__all__ = ["Base", "Media"]
