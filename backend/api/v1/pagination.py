"""Shared pagination constants and response header helpers."""

from __future__ import annotations

from typing import TypeVar

from fastapi import Response

MAX_PAGE_SIZE = 100
DEFAULT_POST_PAGE_SIZE = 20
DEFAULT_USER_PAGE_SIZE = 50
DEFAULT_SEARCH_PAGE_SIZE = 20

T = TypeVar("T")


def split_page(items: list[T], limit: int) -> tuple[list[T], bool]:
    """Trim a ``limit + 1`` fetch down to one page and report if more exist."""
    has_more = len(items) > limit
    return (items[:limit] if has_more else items), has_more


def set_next_offset_header(
    response: Response,
    *,
    offset: int,
    limit: int,
    has_more: bool,
) -> None:
    if has_more:
        response.headers["X-Next-Offset"] = str(offset + limit)
