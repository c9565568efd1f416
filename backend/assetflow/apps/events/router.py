from __future__ import annotations

import asyncio
import json
import queue
import time
from typing import AsyncGenerator, List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from assetflow.apps.accounts import models as account_models
from assetflow.security import require_superadmin

from .broker import EventBroker, get_event_broker

router = APIRouter(prefix="/api", tags=["events"])

KEEPALIVE_SECONDS = 15


class ActivityEventRead(BaseModel):
    id: str
    type: str
    entityType: str
    entityId: str
    action: str
    severity: str
    timestamp: str
    actor: Optional[dict] = None
    details: str = ""
    metadata: dict = {}


class ActivityListResponse(BaseModel):
    data: List[ActivityEventRead]


def format_sse(data: str, event: Optional[str] = None, event_id: Optional[str] = None) -> str:
    lines = []
    if event_id:
        lines.append(f"id: {event_id}")
    if event:
        lines.append(f"event: {event}")
    for chunk in data.splitlines():
        lines.append(f"data: {chunk}")
    lines.append("")
    return "\n".join(lines) + "\n"


def keepalive_message() -> str:
    payload = json.dumps({"type": "heartbeat", "ts": time.time()})
    return format_sse(payload, event="heartbeat")


@router.get("/activities", response_model=ActivityListResponse)
def list_activities(
    limit: int = Query(default=100, ge=1, le=500),
    entityType: Optional[str] = None,
    broker: EventBroker = Depends(get_event_broker),
    current_user: account_models.User = Depends(require_superadmin),
) -> ActivityListResponse:
    events = broker.recent(limit, entity_type=entityType)
    return ActivityListResponse(data=[ActivityEventRead(**event.to_dict()) for event in events])


async def _event_generator(request: Request, broker: EventBroker) -> AsyncGenerator[str, None]:
    q = broker.subscribe()
    try:
        while True:
            if await request.is_disconnected():
                break
            try:
                event = await asyncio.to_thread(q.get, True, KEEPALIVE_SECONDS)
                yield format_sse(event.to_json(), event=event.type, event_id=event.id)
            except queue.Empty:
                yield keepalive_message()
    finally:
        broker.unsubscribe(q)


@router.get("/activities/stream")
async def stream_activities(
    request: Request,
    broker: EventBroker = Depends(get_event_broker),
    current_user: account_models.User = Depends(require_superadmin),
) -> StreamingResponse:
    return StreamingResponse(
        _event_generator(request, broker),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )
