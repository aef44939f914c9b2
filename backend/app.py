"""Application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.v1 import api_router
from api.v1.responses import failure
from core import AppError, configure_logging, settings
from db import MongoResources
from services import EventPublisher

logger = logging.getLogger(__name__)

ARCHITECTURE = "Event-Driven with AWS EventBridge → SQS → Lambda → SNS"
AVAILABLE_ROUTES = [
    "GET /",
    "GET /health",
    "GET /api/v1/users",
    "GET /api/v1/posts",
]
ENDPOINTS = {
    "health": "GET /health",
    "users": {
        "Get all users": "GET /api/v1/users",
        "Create user": "POST /api/v1/users",
        "Search users": "GET /api/v1/users/search?query=",
        "Get user by email": "GET /api/v1/users/email/:email",
        "Get user": "GET /api/v1/users/:userId",
        "Update user": "PUT /api/v1/users/:userId",
        "Delete user": "DELETE /api/v1/users/:userId",
    },
    "posts": {
        "Get all posts": "GET /api/v1/posts",
        "Create post": "POST /api/v1/posts",
        "Get posts by author": "GET /api/v1/posts/author/:authorId",
        "Get post": "GET /api/v1/posts/:postId",
        "Update post": "PUT /api/v1/posts/:postId",
        "Delete post": "DELETE /api/v1/posts/:postId",
        "Get post likes": "GET /api/v1/posts/:postId/likes",
        "Like post": "POST /api/v1/posts/:postId/like",
        "Unlike post": "DELETE /api/v1/posts/:postId/like",
    },
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    resources = MongoResources.from_settings()
    await resources.connect()
    app.state.mongo = resources
    app.state.event_publisher = EventPublisher.from_settings()
    try:
        yield
    finally:
        await resources.close()


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = str(first.get("msg", "Invalid value"))
    return f"{location}: {message}" if location else message


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _handle_app_error(_: Request, exc: AppError) -> JSONResponse:
        return failure(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def _handle_http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Routing misses, including a known path with the wrong method.
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return failure(
                status.HTTP_404_NOT_FOUND,
                "Route not found",
                availableRoutes=AVAILABLE_ROUTES,
            )
        return failure(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def _handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        return failure(status.HTTP_400_BAD_REQUEST, _validation_message(exc))

    @app.exception_handler(Exception)
    async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled server error",
            extra={"path": request.url.path, "method": request.method},
            exc_info=exc,
        )
        message = "Something went wrong" if settings.is_production else str(exc)
        return failure(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            message=message,
        )


def create_app() -> FastAPI:
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/health", tags=["service"])
    async def health() -> dict[str, Any]:
        return {
            "status": "OK",
            "service": settings.app_name,
            "version": settings.app_version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/", tags=["service"])
    async def root() -> dict[str, Any]:
        return {
            "message": f"{settings.app_name} - Event Driven Architecture Demo",
            "endpoints": ENDPOINTS,
            "architecture": ARCHITECTURE,
            "demo": "Create users, posts, then like posts to trigger notification events",
        }

    app.include_router(api_router)

    return app
