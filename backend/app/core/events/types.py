"""Event type definitions.

Domain events are immutable pydantic models. Each concrete event declares its
payload as typed fields; the base class contributes identity, timestamp and
correlation metadata plus JSON-friendly serialization.

Architecture:
- DomainEvent: base immutable event
- EventHandlerType: accepted handler callables (sync or async)
- IEventBus: publish/subscribe contract
"""

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class DomainEvent(BaseModel):
    """
    Base domain event.

    Usage Example:
        class GroupRenamed(DomainEvent):
            group_id: UUID
            new_name: str

        event = GroupRenamed(group_id=group.id, new_name="Research")
        data = event.to_dict()
    """

    model_config = ConfigDict(frozen=True)

    event_id: UUID = Field(default_factory=uuid4)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    correlation_id: str | None = None

    @property
    def event_type(self) -> str:
        """Return the event type name."""
        return self.__class__.__name__

    def with_correlation(self, correlation_id: str) -> "DomainEvent":
        """Return a copy of the event carrying the given correlation ID."""
        return self.model_copy(update={"correlation_id": correlation_id})

    def to_dict(self) -> dict[str, Any]:
        """Serialize event to a JSON-compatible dictionary."""
        data = self.model_dump(mode="json")
        data["event_type"] = self.event_type
        return data

    def __str__(self) -> str:
        return f"{self.event_type}({self.event_id})"


EventHandlerType = Callable[[DomainEvent], None | Awaitable[None]]


@runtime_checkable
class IEventBus(Protocol):
    """Publish/subscribe contract the unit of work publishes through."""

    async def publish(
        self, event: DomainEvent, correlation_id: str | None = None
    ) -> None:
        ...

    def subscribe(
        self, event_type: type[DomainEvent], handler: EventHandlerType
    ) -> None:
        """Subscribe a handler to an event type (and its subclasses)."""
        ...

    def unsubscribe(
        self, event_type: type[DomainEvent], handler: EventHandlerType
    ) -> None:
        ...


__all__ = ["DomainEvent", "EventHandlerType", "IEventBus"]
