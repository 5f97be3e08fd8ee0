from fastapi import APIRouter

from calshare.api.v1 import health, invites


api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(invites.router, prefix="/invites", tags=["invites"])
