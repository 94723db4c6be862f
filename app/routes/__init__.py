from fastapi import APIRouter
from app.routes.v1.media_routes import media_routers

api_router = APIRouter()

api_router.include_router(media_routers)
