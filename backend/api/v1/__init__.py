"""Version 1 API routers."""

from fastapi import APIRouter

from .posts import router as posts_router
from .users import router as users_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(users_router)
api_router.include_router(posts_router)

__all__ = ["api_router"]
