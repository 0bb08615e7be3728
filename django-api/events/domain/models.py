"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in events/models.py (persistence layer).
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from events.domain.enums import (
    AttendanceStatus,
    EventStatus,
    EventType,
    FieldType,
    OrderStatus,
    RegistrationStatus,
    TicketStatus,
)
from events.domain.value_objects import Capacity, EventId, Money, OrderId, UserId


@dataclass(frozen=True)
class Person:
    """Identity snapshot of a participant as shown to organizers."""

    id: UserId
    name: str
    email: str


@dataclass(frozen=True)
class OrganizerProfile:
    id: UserId
    name: str
    webhook_url: str = ""


@dataclass(frozen=True)
class FormField:
    """One declared field of a NORMAL event's registration form."""

    field_id: str
    label: str
    type: FieldType
    required: bool = False
    options: tuple[str, ...] = ()
    order: int = 0

    def to_json(self) -> dict[str, Any]:
        return {
            "field_id": self.field_id,
            "label": self.label,
            "type": self.type.value,
            "required": self.required,
            "options": list(self.options),
            "order": self.order,
        }


@dataclass(frozen=True)
class MerchandiseItem:
    """A purchasable stock-keeping unit of a MERCHANDISE event."""

    sku: str
    name: str
    price: Money
    stock: Capacity
    purchase_limit: int = 1
    size: str = ""
    color: str = ""
    variant: str = ""


@dataclass(frozen=True)
class EventDraft:
    """Editable content of an event before it is persisted."""

    name: str
    description: str
    type: EventType
    registration_deadline: datetime | None
    start_date: datetime | None
    end_date: datetime | None
    registration_limit: int = 1
    registration_fee: Decimal = Decimal("0")
    eligibility: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    team_based: bool = False
    max_team_size: int = 1
    status: EventStatus = EventStatus.DRAFT
    custom_form: tuple[FormField, ...] = ()
    items: tuple[MerchandiseItem, ...] = ()


@dataclass(frozen=True)
class Event:
    """Domain representation of an Event."""

    id: EventId
    organizer: OrganizerProfile
    name: str
    description: str
    type: EventType
    registration_deadline: datetime
    start_date: datetime
    end_date: datetime
    registration_limit: int
    registration_fee: Decimal
    status: EventStatus
    created_at: datetime
    updated_at: datetime
    eligibility: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    team_based: bool = False
    max_team_size: int = 1
    form_locked: bool = False
    custom_form: tuple[FormField, ...] = ()
    items: tuple[MerchandiseItem, ...] = ()

    @property
    def capacity(self) -> Capacity:
        return Capacity(self.registration_limit)


@dataclass(frozen=True)
class Registration:
    """A participant's seat in a NORMAL event."""

    id: UUID
    event_id: EventId
    participant: Person
    status: RegistrationStatus
    team_name: str
    responses: dict[str, dict[str, Any]]
    created_at: datetime
    ticket_id: str | None = None


@dataclass(frozen=True)
class MerchandiseOrder:
    """A participant's purchase of one item of a MERCHANDISE event."""

    id: OrderId
    event_id: EventId
    participant: Person
    item_sku: str
    quantity: int
    amount: Money
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
    payment_proof_path: str = ""
    payment_proof_name: str = ""
    payment_proof_mime_type: str = ""
    review_comment: str = ""
    reviewed_by: UserId | None = None
    reviewed_at: datetime | None = None
    ticket_id: str | None = None


@dataclass(frozen=True)
class Ticket:
    """Proof of entitlement presented at the door."""

    ticket_id: str
    event_id: EventId
    participant: Person
    payload: str
    qr_image: str
    status: TicketStatus
    issued_at: datetime
    registration_id: UUID | None = None
    order_id: OrderId | None = None


@dataclass(frozen=True)
class AttendanceLog:
    """One immutable record of a scan or override attempt."""

    id: UUID
    event_id: EventId
    scanned_by: UserId
    status: AttendanceStatus
    created_at: datetime
    participant: Person | None = None
    ticket_id: str | None = None
    payload: str = ""
    note: str = ""


@dataclass(frozen=True)
class TeamOption:
    team_key: str
    team_name: str
    member_count: int
    available_spots: int
    is_full: bool


@dataclass(frozen=True)
class ScanResult:
    participant: Person
    ticket_id: str
    scanned_at: datetime


@dataclass(frozen=True)
class EventAvailability:
    """An event together with its freshly counted seats."""

    event: Event
    occupied_spots: int
    available_spots: int


@dataclass(frozen=True)
class EventDetail:
    availability: EventAvailability
    registration_open: bool
    blocking_reason: str | None = None
    is_registered: bool = False
    latest_order: MerchandiseOrder | None = None
    team_options: tuple[TeamOption, ...] = ()


@dataclass(frozen=True)
class EventAnalytics:
    registrations: int
    sales: int
    revenue: Decimal
    attendance: int
    teams: int


@dataclass(frozen=True)
class ParticipantRow:
    participant: Person
    registered_at: datetime
    payment: Decimal
    team_name: str
    attendance: str
    ticket_id: str | None = None
    kind: str = "registration"


@dataclass(frozen=True)
class AttendanceDashboard:
    total_participants: int
    scanned: tuple[Person, ...]
    not_scanned: tuple[Person, ...]
    recent_logs: tuple[AttendanceLog, ...] = field(default=())


@dataclass(frozen=True)
class AttendanceReportRow:
    participant: Person
    present: bool
    timestamp: datetime | None = None
    method: AttendanceStatus | None = None

    @property
    def status_label(self) -> str:
        return "Present" if self.present else "Absent"
