"""Version 1 API routers."""

from fastapi import APIRouter

from . import entitlements, notifications

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(notifications.router)
api_router.include_router(entitlements.router)

__all__ = ["api_router"]
