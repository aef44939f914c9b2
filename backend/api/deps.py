"""FastAPI dependencies shared by the v1 routers."""

from __future__ import annotations

from fastapi import Request
from pymongo.asynchronous.database import AsyncDatabase

from db import MongoResources
from services import EventPublisher


def get_db(request: Request) -> AsyncDatabase:
    """Return the database opened by the application lifespan."""
    resources: MongoResources = request.app.state.mongo
    return resources.database


def get_event_publisher(request: Request) -> EventPublisher:
    return request.app.state.event_publisher
