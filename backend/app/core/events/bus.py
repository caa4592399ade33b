"""In-process event bus.

Handlers subscribe to an event class and receive every published instance of
that class or of its subclasses, in subscription order. A failing handler is
logged and counted; delivery to the remaining handlers goes on and the
publisher never sees the error.

Usage Example:
    bus = InMemoryEventBus()

    async def reindex(event):
        ...

    bus.subscribe(GroupMemberAdded, reindex)
    await bus.publish(GroupMemberAdded(...))
"""

import inspect
from collections import Counter, defaultdict
from typing import Any

from app.core.errors import ValidationError
from app.core.events.types import DomainEvent, EventHandlerType
from app.core.logging import get_logger

logger = get_logger(__name__)


def _handler_name(handler: EventHandlerType) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


class InMemoryEventBus:
    """Single-process event bus accepting sync and async handlers."""

    def __init__(self):
        self._handlers: dict[type[DomainEvent], list[EventHandlerType]] = defaultdict(list)
        self._counters: Counter[str] = Counter()

    def subscribe(self, event_type: type[DomainEvent], handler: EventHandlerType) -> None:
        """
        Register ``handler`` for ``event_type`` and its subclasses.

        Raises:
            ValidationError: If the event type or the handler is unusable
        """
        if not (isinstance(event_type, type) and issubclass(event_type, DomainEvent)):
            raise ValidationError(f"Cannot subscribe to {event_type!r}: not a DomainEvent class")
        if not callable(handler):
            raise ValidationError(f"Handler must be callable, got {type(handler).__name__}")

        try:
            arity = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Cannot inspect handler {handler!r}: {e}") from e
        if arity != 1:
            raise ValidationError(
                f"Handler {_handler_name(handler)} must take the event as its only "
                f"argument, it takes {arity}"
            )

        self._handlers[event_type].append(handler)
        logger.debug(
            "Handler subscribed",
            event_type=event_type.__name__,
            handler=_handler_name(handler),
        )

    def unsubscribe(self, event_type: type[DomainEvent], handler: EventHandlerType) -> None:
        """Drop a subscription; unknown subscriptions are ignored."""
        handlers = self._handlers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    async def publish(self, event: DomainEvent, correlation_id: str | None = None) -> None:
        """
        Deliver ``event`` to every handler subscribed along its class hierarchy.

        Args:
            event: Event to deliver
            correlation_id: Stamped onto the event when it differs from the event's own

        Raises:
            ValidationError: If event is not a DomainEvent
        """
        if not isinstance(event, DomainEvent):
            raise ValidationError(f"Only domain events can be published, got {type(event).__name__}")
        if correlation_id and event.correlation_id != correlation_id:
            event = event.with_correlation(correlation_id)

        self._counters["events_published"] += 1
        handlers = [
            handler
            for cls in type(event).__mro__[: type(event).__mro__.index(DomainEvent) + 1]
            for handler in self._handlers.get(cls, ())
        ]
        logger.debug(
            "Publishing event",
            event_type=event.event_type,
            event_id=str(event.event_id),
            handler_count=len(handlers),
        )

        for handler in handlers:
            try:
                outcome = handler(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                self._counters["handler_failures"] += 1
                logger.exception(
                    "Event handler failed",
                    handler=_handler_name(handler),
                    event_type=event.event_type,
                    event_id=str(event.event_id),
                    error=str(e),
                )

    def get_statistics(self) -> dict[str, Any]:
        return {
            "events_published": self._counters["events_published"],
            "handler_failures": self._counters["handler_failures"],
            "subscriptions": {
                event_type.__name__: len(handlers)
                for event_type, handlers in self._handlers.items()
                if handlers
            },
        }


__all__ = ["InMemoryEventBus"]
