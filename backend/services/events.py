"""EventBridge publisher for downstream notification processing."""

from __future__ import annotations

import asyncio
import json
import logging
import secrets
import string
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel

from core import settings

logger = logging.getLogger(__name__)

EVENT_ID_PREFIX = "evt"
EVENT_ID_SUFFIX_LENGTH = 9
_EVENT_ID_ALPHABET = string.digits + string.ascii_lowercase


class PublishResult(BaseModel):
    ok: bool
    message_id: str | None = None
    error: str | None = None


@lru_cache
def get_eventbridge_client() -> Any:
    """Return a cached EventBridge client configured from settings."""
    return boto3.client(
        "events",
        region_name=settings.aws_region,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
    )


def build_event_id(now_ms: int | None = None) -> str:
    """Return ``evt_<epoch-ms>_<random base36 suffix>``."""
    timestamp_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = "".join(
        secrets.choice(_EVENT_ID_ALPHABET) for _ in range(EVENT_ID_SUFFIX_LENGTH)
    )
    return f"{EVENT_ID_PREFIX}_{timestamp_ms}_{suffix}"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class EventPublisher:
    """Submits one event per call to the configured event bus.

    ``publish`` converts every failure into a ``PublishResult`` with
    ``ok=False``; it never raises.
    """

    def __init__(
        self,
        client: Any | None = None,
        *,
        bus_name: str,
        source: str,
    ) -> None:
        self._client = client
        self.bus_name = bus_name
        self.source = source

    @classmethod
    def from_settings(cls) -> "EventPublisher":
        return cls(bus_name=settings.event_bus_name, source=settings.event_source)

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = get_eventbridge_client()
        return self._client

    def build_entry(self, detail_type: str, payload: Mapping[str, Any]) -> dict[str, str]:
        detail = {
            **payload,
            "timestamp": _utc_timestamp(),
            "eventId": build_event_id(),
        }
        return {
            "Source": self.source,
            "DetailType": detail_type,
            "Detail": json.dumps(detail, default=str),
            "EventBusName": self.bus_name,
        }

    async def publish(self, detail_type: str, payload: Mapping[str, Any]) -> PublishResult:
        logger.info("Publishing event", extra={"detail_type": detail_type})
        try:
            entry = self.build_entry(detail_type, payload)
            client = self._get_client()
            response = await asyncio.to_thread(client.put_events, Entries=[entry])
        except (BotoCoreError, ClientError) as exc:
            logger.warning(
                "EventBridge publish failed",
                extra={"detail_type": detail_type},
                exc_info=exc,
            )
            return PublishResult(ok=False, error=str(exc))
        except Exception as exc:
            logger.warning(
                "Unexpected error while publishing event",
                extra={"detail_type": detail_type},
                exc_info=exc,
            )
            return PublishResult(ok=False, error=str(exc))

        entries = response.get("Entries") or []
        failed_count = int(response.get("FailedEntryCount") or 0)
        if failed_count > 0:
            error = f"EventBridge failed: {json.dumps(entries, default=str)}"
            logger.warning(
                "EventBridge rejected event entries",
                extra={"detail_type": detail_type, "failed_entry_count": failed_count},
            )
            return PublishResult(ok=False, error=error)

        message_id = entries[0].get("EventId") if entries else None
        logger.info(
            "Event published",
            extra={"detail_type": detail_type, "message_id": message_id},
        )
        return PublishResult(ok=True, message_id=message_id)


__all__ = [
    "EventPublisher",
    "PublishResult",
    "build_event_id",
    "get_eventbridge_client",
]
