"""Enumerations shared across the events domain."""

from enum import StrEnum


class EventType(StrEnum):
    NORMAL = "NORMAL"
    MERCHANDISE = "MERCHANDISE"


class EventStatus(StrEnum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ONGOING = "ONGOING"
    CLOSED = "CLOSED"
    COMPLETED = "COMPLETED"


class RegistrationStatus(StrEnum):
    REGISTERED = "REGISTERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"


class OrderStatus(StrEnum):
    CREATED = "CREATED"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class TicketStatus(StrEnum):
    ACTIVE = "ACTIVE"
    USED = "USED"
    CANCELLED = "CANCELLED"


class AttendanceStatus(StrEnum):
    SCANNED = "SCANNED"
    DUPLICATE = "DUPLICATE"
    INVALID = "INVALID"
    MANUAL_OVERRIDE = "MANUAL_OVERRIDE"


class FieldType(StrEnum):
    TEXT = "text"
    TEXTAREA = "textarea"
    DROPDOWN = "dropdown"
    CHECKBOX = "checkbox"
    FILE = "file"
    NUMBER = "number"
    EMAIL = "email"


class TeamAction(StrEnum):
    CREATE = "create"
    JOIN = "join"


class ReviewAction(StrEnum):
    APPROVE = "approve"
    REJECT = "reject"


# Registrations and orders in these states hold a seat.
SEAT_HOLDING_REGISTRATION_STATUSES = (RegistrationStatus.REGISTERED, RegistrationStatus.COMPLETED)
OPEN_ORDER_STATUSES = (OrderStatus.CREATED, OrderStatus.PENDING_APPROVAL)
COMMITTED_ORDER_STATUSES = (OrderStatus.CREATED, OrderStatus.PENDING_APPROVAL, OrderStatus.APPROVED)
PRESENCE_STATUSES = (AttendanceStatus.SCANNED, AttendanceStatus.MANUAL_OVERRIDE)
