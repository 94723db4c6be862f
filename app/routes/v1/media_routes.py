from fastapi import APIRouter
from app.apiv1.http.user import MediaController

media_routers = APIRouter()
media_routers.include_router(MediaController.router, prefix="/media", tags=["Media"])
