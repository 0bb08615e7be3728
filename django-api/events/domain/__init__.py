from events.domain.enums import (
    AttendanceStatus,
    EventStatus,
    EventType,
    FieldType,
    OrderStatus,
    RegistrationStatus,
    ReviewAction,
    TeamAction,
    TicketStatus,
)
from events.domain.models import (
    AttendanceDashboard,
    AttendanceLog,
    AttendanceReportRow,
    Event,
    EventAnalytics,
    EventAvailability,
    EventDetail,
    EventDraft,
    FormField,
    MerchandiseItem,
    MerchandiseOrder,
    OrganizerProfile,
    ParticipantRow,
    Person,
    Registration,
    ScanResult,
    TeamOption,
    Ticket,
)
from events.domain.value_objects import Capacity, EventId, Money, OrderId, UserId

__all__ = [
    "AttendanceDashboard",
    "AttendanceLog",
    "AttendanceReportRow",
    "AttendanceStatus",
    "Capacity",
    "Event",
    "EventAnalytics",
    "EventAvailability",
    "EventDetail",
    "EventDraft",
    "EventId",
    "EventStatus",
    "EventType",
    "FieldType",
    "FormField",
    "MerchandiseItem",
    "MerchandiseOrder",
    "Money",
    "OrderId",
    "OrderStatus",
    "OrganizerProfile",
    "ParticipantRow",
    "Person",
    "Registration",
    "RegistrationStatus",
    "ReviewAction",
    "ScanResult",
    "TeamAction",
    "TeamOption",
    "Ticket",
    "TicketStatus",
    "UserId",
]
