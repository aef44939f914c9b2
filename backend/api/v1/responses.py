"""Success and failure envelopes shared by every endpoint."""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse


def success(data: Any, *, message: str | None = None, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"success": True, "data": data}
    if message is not None:
        body["message"] = message
    body.update(extra)
    return body


def failure(status_code: int, error: str, **extra: Any) -> JSONResponse:
    return JSONResponse({"success": False, "error": error, **extra}, status_code=status_code)
