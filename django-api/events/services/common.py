"""Helpers shared by the event services."""

from collections.abc import Callable

import structlog

from events.domain import Event, EventId, OrderId, UserId
from events.domain.errors import InvalidIdError, NotFoundError
from events.stores.interfaces import EventStore

logger = structlog.get_logger(__name__)


def parse_event_id(value: str | EventId) -> EventId:
    """Raises InvalidIdError for anything that is not a UUID."""
    if isinstance(value, EventId):
        return value
    try:
        return EventId.from_string(value)
    except (TypeError, ValueError) as exc:
        raise InvalidIdError("event ID") from exc


def parse_order_id(value: str | OrderId) -> OrderId:
    if isinstance(value, OrderId):
        return value
    try:
        return OrderId.from_string(value)
    except (TypeError, ValueError) as exc:
        raise InvalidIdError("order ID") from exc


def load_event(store: EventStore, event_id: str | EventId) -> Event:
    event = store.get_event(parse_event_id(event_id))
    if event is None:
        raise NotFoundError("Event not found")
    return event


def load_organizer_event(store: EventStore, event_id: str | EventId, organizer_id: UserId) -> Event:
    """Return the event only when ``organizer_id`` owns it."""
    event = store.get_event(parse_event_id(event_id))
    if event is None or event.organizer.id != organizer_id:
        raise NotFoundError("Event not found for organizer")
    return event


def best_effort(action: str, operation: Callable[[], object], **context) -> bool:
    """Run an outbound side effect; a failure is logged and never propagates."""
    try:
        operation()
    except Exception:
        logger.warning(f"{action}_failed", exc_info=True, **context)
        return False
    return True
