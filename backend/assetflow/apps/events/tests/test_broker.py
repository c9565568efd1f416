from __future__ import annotations

import json
import queue

from assetflow.apps.events import router as events_router
from assetflow.apps.events.broker import EventBroker, EventEnvelope, InMemoryEventStore


def _event(entity_type="audit", entity_id="run-1", **kwargs):
    return EventEnvelope(
        type=f"{entity_type}.completed",
        entityType=entity_type,
        entityId=entity_id,
        action="completed",
        **kwargs,
    )


def test_recent_is_newest_first_and_filterable():
    broker = EventBroker()
    broker.publish(_event(entity_id="run-1"))
    broker.publish(_event(entity_type="asset", entity_id="A1"))
    broker.publish(_event(entity_id="run-2"))

    assert [event.entityId for event in broker.recent(10)] == ["run-2", "A1", "run-1"]
    assert [event.entityId for event in broker.recent(10, entity_type="audit")] == ["run-2", "run-1"]
    assert [event.entityId for event in broker.recent(1, entity_type="audit")] == ["run-2"]


def test_brokers_are_isolated():
    first = EventBroker()
    second = EventBroker()

    first.publish(_event())

    assert len(first.recent()) == 1
    assert second.recent() == []


def test_subscribers_receive_published_events_until_unsubscribed():
    broker = EventBroker()
    q = broker.subscribe()

    broker.publish(_event(entity_id="run-1"))
    assert q.get_nowait().entityId == "run-1"

    broker.unsubscribe(q)
    broker.publish(_event(entity_id="run-2"))
    assert q.empty()


def test_full_subscriber_queue_drops_oldest_event():
    broker = EventBroker(queue_size=2)
    q = broker.subscribe()

    for index in range(3):
        broker.publish(_event(entity_id=f"run-{index}"))

    assert [q.get_nowait().entityId for _ in range(2)] == ["run-1", "run-2"]
    assert q.empty()


def test_in_memory_store_is_bounded():
    store = InMemoryEventStore(maxlen=2)
    broker = EventBroker(store=store)

    for index in range(3):
        broker.publish(_event(entity_id=f"run-{index}"))

    assert [event.entityId for event in broker.recent(10)] == ["run-2", "run-1"]


def test_envelope_json_round_trips_fields():
    payload = json.loads(_event(severity="warning", metadata={"missingItems": 2}).to_json())

    assert payload["entityType"] == "audit"
    assert payload["severity"] == "warning"
    assert payload["metadata"] == {"missingItems": 2}
    assert payload["id"] and payload["timestamp"]


def test_format_sse_frames_multiline_data():
    message = events_router.format_sse("a\nb", event="audit.completed", event_id="evt-1")

    assert message == "id: evt-1\nevent: audit.completed\ndata: a\ndata: b\n\n"


def test_keepalive_message_is_heartbeat_event():
    message = events_router.keepalive_message()

    assert message.startswith("event: heartbeat\n")
    assert json.loads(message.split("data: ", 1)[1])["type"] == "heartbeat"


def test_list_activities_reads_from_given_broker():
    broker = EventBroker()
    broker.publish(_event(entity_id="run-7"))

    response = events_router.list_activities(limit=5, entityType=None, broker=broker, current_user=None)

    assert [event.entityId for event in response.data] == ["run-7"]


def test_subscribe_queue_is_bounded():
    broker = EventBroker(queue_size=1)
    q = broker.subscribe()

    assert isinstance(q, queue.Queue)
    assert q.maxsize == 1
