"""In-memory event bus implementation."""

from __future__ import annotations

from typing import Dict, List, Optional, Type

from shared.domain.bus import IEventBus, IEventHandler
from shared.domain.events import DomainEvent


class InMemoryEventBus(IEventBus):
    """Simple in-process event bus.

    Subscriptions also register the event class under its name so the
    outbox relay can rebuild events from persisted payloads.
    """

    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[IEventHandler]] = {}
        self._event_types: Dict[str, Type[DomainEvent]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        self._event_types[event_class.__name__] = event_class
        handlers = self._handlers.setdefault(event_class, [])
        if handler not in handlers:
            handlers.append(handler)

    def publish(self, event: DomainEvent) -> None:
        for handler in self._handlers.get(type(event), []):
            handler.handle(event)

    def event_class_for(self, event_name: str) -> Optional[Type[DomainEvent]]:
        return self._event_types.get(event_name)


# Global bus instance (singleton)

event_bus = InMemoryEventBus()
