from __future__ import annotations

import json
import logging
import os
import queue
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Iterable, List, Optional, Protocol

from fastapi import Request

from assetflow.utils.identifiers import generate_uuid7

logger = logging.getLogger(__name__)

EVENT_HISTORY_SIZE = int(os.getenv("EVENT_HISTORY_SIZE", "2000"))


@dataclass
class EventEnvelope:
    type: str
    entityType: str
    entityId: str
    action: str
    severity: str = "info"
    actor: Optional[Dict[str, Any]] = None
    details: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=generate_uuid7)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "entityType": self.entityType,
            "entityId": self.entityId,
            "action": self.action,
            "severity": self.severity,
            "timestamp": self.timestamp,
            "actor": self.actor,
            "details": self.details,
            "metadata": self.metadata,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class EventStore(Protocol):
    def append(self, event: EventEnvelope) -> None:
        ...

    def recent(self, limit: int) -> List[EventEnvelope]:
        ...


class InMemoryEventStore:
    """Bounded newest-first history; oldest events fall off the end."""

    def __init__(self, maxlen: int = EVENT_HISTORY_SIZE) -> None:
        self._events: Deque[EventEnvelope] = deque(maxlen=maxlen)

    def append(self, event: EventEnvelope) -> None:
        self._events.appendleft(event)

    def recent(self, limit: int) -> List[EventEnvelope]:
        return list(self._events)[:limit]


class EventBroker:
    """
    Publish/subscribe hub for activity events.

    Each application builds its own broker, so tests get isolated instances.
    Subscribers receive events on bounded queues; a full queue drops its
    oldest event to make room.
    """

    def __init__(self, store: Optional[EventStore] = None, queue_size: int = 400) -> None:
        self._store: EventStore = store if store is not None else InMemoryEventStore()
        self._subscribers: set[queue.Queue[EventEnvelope]] = set()
        self._queue_size = queue_size
        self._lock = threading.Lock()

    def subscribe(self) -> queue.Queue[EventEnvelope]:
        q: queue.Queue[EventEnvelope] = queue.Queue(maxsize=self._queue_size)
        with self._lock:
            self._subscribers.add(q)
        return q

    def unsubscribe(self, q: queue.Queue[EventEnvelope]) -> None:
        with self._lock:
            self._subscribers.discard(q)

    def recent(self, limit: int = 100, *, entity_type: Optional[str] = None) -> List[EventEnvelope]:
        with self._lock:
            events = self._store.recent(EVENT_HISTORY_SIZE if entity_type else limit)
        if entity_type:
            events = [event for event in events if event.entityType == entity_type]
        return events[:limit]

    def publish(self, event: EventEnvelope) -> None:
        with self._lock:
            self._store.append(event)
            subscribers: Iterable[queue.Queue[EventEnvelope]] = list(self._subscribers)
        for q in subscribers:
            try:
                q.put_nowait(event)
            except queue.Full:
                try:
                    _ = q.get_nowait()
                    q.put_nowait(event)
                except (queue.Empty, queue.Full):
                    logger.warning("Dropped event for slow subscriber", extra={"event_id": event.id})
        logger.info("[events] %s: %s", event.severity.upper(), event.details or event.type)


def get_event_broker(request: Request) -> EventBroker:
    """FastAPI dependency: the broker owned by the running application."""
    return request.app.state.event_broker
