from fastapi import APIRouter
from hall.api.api_v1.endpoints import rooms
from hall.routers import health

api_router = APIRouter()

api_router.include_router(rooms.router, prefix="/rooms", tags=["rooms"])
api_router.include_router(health.router, tags=["health"])
