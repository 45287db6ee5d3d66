from __future__ import annotations

from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from propops.context import get_correlation_id


@dataclass
class DomainEvent:
    event_type: str
    payload: dict[str, Any]


EventHandler = Callable[[DomainEvent], None]


class InProcessEventBus:
    def __init__(self) -> None:
        self._subscribers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        self._subscribers[event_type].append(handler)

    def dispatch(self, event: DomainEvent) -> None:
        for handler in self._subscribers.get(event.event_type, []):
            handler(event)


PUBLISHED_EVENTS_KEPT = 500

event_bus = InProcessEventBus()
published_events: deque[dict[str, Any]] = deque(maxlen=PUBLISHED_EVENTS_KEPT)


def publish(envelope: dict[str, Any]) -> None:
    """Record a committed domain change and fan it out to in-process subscribers."""
    if envelope.get("correlation_id") is None:
        envelope["correlation_id"] = get_correlation_id()

    published_events.append(envelope)
    event_type = envelope.get("event_type")
    if isinstance(event_type, str) and event_type:
        event_bus.dispatch(DomainEvent(event_type=event_type, payload=envelope))
