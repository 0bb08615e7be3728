"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
Every write that a concurrent request could invalidate is backed by a storage
constraint; implementations report its violation as ConstraintViolation.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any
from uuid import UUID

from events.domain import (
    AttendanceLog,
    AttendanceStatus,
    Event,
    EventDraft,
    EventId,
    EventStatus,
    EventType,
    MerchandiseItem,
    MerchandiseOrder,
    OrderId,
    OrderStatus,
    Person,
    Registration,
    Ticket,
    TicketStatus,
    UserId,
)


class ConstraintViolation(Exception):
    """Raised when a write is refused by a uniqueness or check constraint."""


class EventStore(ABC):
    """Interface for event persistence operations."""

    @abstractmethod
    def atomic(self) -> AbstractContextManager:
        """Return a context manager wrapping one transaction."""
        ...

    @abstractmethod
    def get_event(self, event_id: EventId, *, for_update: bool = False) -> Event | None:
        """Return an event by ID, or None if not found.

        With ``for_update`` the event row stays locked until the surrounding
        transaction ends.
        """
        ...

    @abstractmethod
    def list_events(
        self,
        *,
        statuses: Iterable[EventStatus] | None = None,
        event_type: EventType | None = None,
        organizer_id: UserId | None = None,
        starts_after: datetime | None = None,
        starts_before: datetime | None = None,
    ) -> list[Event]:
        """Return events matching every given filter, ordered by start_date ascending."""
        ...

    @abstractmethod
    def create_event(self, organizer_id: UserId, draft: EventDraft) -> Event:
        """Persist a new event with its form and items."""
        ...

    @abstractmethod
    def save_event(self, event: Event, *, replace_items: bool = False) -> Event:
        """Persist an edited event; items are rewritten only when ``replace_items``."""
        ...

    @abstractmethod
    def lock_form(self, event_id: EventId) -> None:
        """Mark the event's custom form as locked."""
        ...

    @abstractmethod
    def get_item(self, event_id: EventId, sku: str, *, for_update: bool = False) -> MerchandiseItem | None:
        """Return the current state of one item, or None."""
        ...

    @abstractmethod
    def decrement_stock(self, event_id: EventId, sku: str, quantity: int) -> bool:
        """Take ``quantity`` units from stock; False when stock is insufficient."""
        ...


class RegistrationStore(ABC):
    """Interface for registration persistence operations."""

    @abstractmethod
    def count_seat_holding(self, event_id: EventId) -> int:
        """Count REGISTERED and COMPLETED registrations of the event."""
        ...

    @abstractmethod
    def get_for_participant(self, event_id: EventId, participant_id: UserId) -> Registration | None:
        ...

    @abstractmethod
    def team_names(self, event_id: EventId) -> list[str]:
        """Return the team name of every seat-holding registration of the event."""
        ...

    @abstractmethod
    def create(
        self,
        event_id: EventId,
        participant_id: UserId,
        team_name: str,
        responses: dict[str, dict[str, Any]],
    ) -> Registration:
        """Create a REGISTERED registration.

        Raises:
            ConstraintViolation: If the participant is already registered.
        """
        ...

    @abstractmethod
    def list_for_event(self, event_id: EventId, *, seat_holding_only: bool = False) -> list[Registration]:
        """Return registrations ordered by created_at ascending."""
        ...


class OrderStore(ABC):
    """Interface for merchandise order persistence operations."""

    @abstractmethod
    def approved_quantity(self, event_id: EventId) -> int:
        """Sum the quantity of APPROVED orders of the event."""
        ...

    @abstractmethod
    def get_open_order(self, event_id: EventId, participant_id: UserId) -> MerchandiseOrder | None:
        ...

    @abstractmethod
    def committed_quantity(self, event_id: EventId, participant_id: UserId, sku: str) -> int:
        """Sum CREATED, PENDING_APPROVAL and APPROVED quantity for one participant and item."""
        ...

    @abstractmethod
    def create(
        self,
        event_id: EventId,
        participant_id: UserId,
        item: MerchandiseItem,
        quantity: int,
    ) -> MerchandiseOrder:
        """Create a CREATED order priced at item price times quantity.

        Raises:
            ConstraintViolation: If the participant already has an open order.
        """
        ...

    @abstractmethod
    def get(self, order_id: OrderId, *, for_update: bool = False) -> MerchandiseOrder | None:
        ...

    @abstractmethod
    def save(self, order: MerchandiseOrder) -> MerchandiseOrder:
        """Persist status, proof and review fields of an order."""
        ...

    @abstractmethod
    def list_for_event(self, event_id: EventId, *, status: OrderStatus | None = None) -> list[MerchandiseOrder]:
        """Return orders ordered by created_at descending."""
        ...

    @abstractmethod
    def list_for_participant(self, participant_id: UserId) -> list[MerchandiseOrder]:
        ...


class TicketStore(ABC):
    """Interface for ticket persistence operations."""

    @abstractmethod
    def ticket_id_exists(self, ticket_id: str) -> bool:
        ...

    @abstractmethod
    def create(
        self,
        *,
        ticket_id: str,
        event_id: EventId,
        participant_id: UserId,
        payload: str,
        qr_image: str,
        registration_id: UUID | None = None,
        order_id: OrderId | None = None,
    ) -> Ticket:
        """Persist a new ACTIVE ticket.

        Raises:
            ConstraintViolation: If the ticket id is taken or the source already has a ticket.
        """
        ...

    @abstractmethod
    def get(self, ticket_id: str, *, event_id: EventId | None = None, for_update: bool = False) -> Ticket | None:
        """Return a ticket, optionally scoped to one event."""
        ...

    @abstractmethod
    def set_status(self, ticket_id: str, status: TicketStatus) -> None:
        ...


class AttendanceStore(ABC):
    """Interface for the append-only attendance ledger."""

    @abstractmethod
    def append(
        self,
        *,
        event_id: EventId,
        scanned_by: UserId,
        status: AttendanceStatus,
        participant_id: UserId | None = None,
        ticket_id: str | None = None,
        payload: str = "",
        note: str = "",
    ) -> AttendanceLog:
        """Append one log entry.

        Raises:
            ConstraintViolation: If a second SCANNED entry is written for a participant.
        """
        ...

    @abstractmethod
    def has_presence(self, event_id: EventId, participant_id: UserId) -> bool:
        """Check for any SCANNED or MANUAL_OVERRIDE entry of the participant."""
        ...

    @abstractmethod
    def list_for_event(
        self,
        event_id: EventId,
        *,
        statuses: Iterable[AttendanceStatus] | None = None,
        limit: int | None = None,
    ) -> list[AttendanceLog]:
        """Return entries ordered by created_at descending."""
        ...


class ParticipantDirectory(ABC):
    """Read access to participant identities."""

    @abstractmethod
    def find_participant_by_email(self, email: str) -> Person | None:
        """Return the participant-role account with this email, or None."""
        ...
