from fastapi import APIRouter

from authbot.presentation.routers.auth import router as auth_router
from authbot.presentation.routers.bots import router as bots_router
from authbot.presentation.routes.health import router as health_router

api = APIRouter()

# Add all routers here
routers = (health_router, auth_router, bots_router)
for router in routers:
    api.include_router(router)
