"""Event primitives: immutable domain events and the in-process bus."""

from app.core.events.bus import InMemoryEventBus
from app.core.events.types import DomainEvent, EventHandlerType, IEventBus

__all__ = ["DomainEvent", "EventHandlerType", "IEventBus", "InMemoryEventBus"]
