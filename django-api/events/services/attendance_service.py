"""Attendance ledger.

Every scan attempt appends exactly one log entry, and that entry is
committed before any error is reported to the caller. Presence is derived
from SCANNED and MANUAL_OVERRIDE entries; nothing else is stored.
"""

import structlog

from events.domain import (
    AttendanceDashboard,
    AttendanceLog,
    AttendanceReportRow,
    AttendanceStatus,
    Event,
    OrderStatus,
    Person,
    ScanResult,
    TicketStatus,
    UserId,
)
from events.domain.enums import PRESENCE_STATUSES
from events.domain.errors import DuplicateScanError, NotFoundError, ValidationFailedError
from events.domain.tickets import InvalidTicketPayload
from events.services.common import load_organizer_event
from events.services.ticket_service import TicketService
from events.stores.interfaces import (
    AttendanceStore,
    ConstraintViolation,
    EventStore,
    OrderStore,
    ParticipantDirectory,
    RegistrationStore,
    TicketStore,
)

logger = structlog.get_logger(__name__)

RECENT_LOG_LIMIT = 50
DEFAULT_OVERRIDE_NOTE = "Manual override by organizer"


class AttendanceService:
    """Scans tickets at the door and derives who is present."""

    def __init__(
        self,
        events: EventStore,
        tickets: TicketStore,
        attendance: AttendanceStore,
        registrations: RegistrationStore,
        orders: OrderStore,
        directory: ParticipantDirectory,
        issuer: TicketService,
    ) -> None:
        self._events = events
        self._tickets = tickets
        self._attendance = attendance
        self._registrations = registrations
        self._orders = orders
        self._directory = directory
        self._issuer = issuer

    def scan(self, event_id: str, organizer_id: UserId, raw_payload: str) -> ScanResult:
        """Record one scan of a ticket QR payload.

        Raises:
            NotFoundError: The organizer does not own the event, or the ticket
                does not belong to it.
            ValidationFailedError: The payload is missing, unreadable, or the
                ticket is cancelled.
            DuplicateScanError: The participant is already present.
        """
        event = load_organizer_event(self._events, event_id, organizer_id)
        raw = str(raw_payload or "").strip()
        if not raw:
            raise ValidationFailedError("QR payload is required")

        try:
            payload = self._issuer.decode(raw)
        except InvalidTicketPayload as exc:
            self._append(event, organizer_id, AttendanceStatus.INVALID, payload=raw, note=str(exc))
            raise ValidationFailedError("Invalid QR payload", [str(exc)]) from exc

        ticket = self._tickets.get(payload.ticket_id, event_id=event.id)
        if ticket is None or str(ticket.participant.id) != payload.participant_id:
            self._append(
                event,
                organizer_id,
                AttendanceStatus.INVALID,
                payload=raw,
                ticket_id=ticket.ticket_id if ticket else None,
                note="Ticket not found for event",
            )
            raise NotFoundError("Ticket not found for this event")
        if ticket.status == TicketStatus.CANCELLED:
            self._append(
                event,
                organizer_id,
                AttendanceStatus.INVALID,
                payload=raw,
                participant=ticket.participant,
                ticket_id=ticket.ticket_id,
                note="Ticket has been cancelled",
            )
            raise ValidationFailedError("Ticket has been cancelled")

        participant = ticket.participant
        with self._events.atomic():
            self._tickets.get(ticket.ticket_id, event_id=event.id, for_update=True)
            log = None
            if not self._attendance.has_presence(event.id, participant.id):
                try:
                    log = self._attendance.append(
                        event_id=event.id,
                        scanned_by=organizer_id,
                        status=AttendanceStatus.SCANNED,
                        participant_id=participant.id,
                        ticket_id=ticket.ticket_id,
                        payload=raw,
                    )
                except ConstraintViolation:
                    log = None
                else:
                    self._tickets.set_status(ticket.ticket_id, TicketStatus.USED)

            if log is None:
                self._append(
                    event,
                    organizer_id,
                    AttendanceStatus.DUPLICATE,
                    payload=raw,
                    participant=participant,
                    ticket_id=ticket.ticket_id,
                    note="Duplicate scan rejected",
                )

        if log is None:
            raise DuplicateScanError(participant=participant, ticket_id=ticket.ticket_id)

        logger.info(
            "ticket_scanned",
            event_id=str(event.id),
            ticket_id=ticket.ticket_id,
            participant_id=str(participant.id),
        )
        return ScanResult(participant=participant, ticket_id=ticket.ticket_id, scanned_at=log.created_at)

    def manual_override(
        self,
        event_id: str,
        organizer_id: UserId,
        *,
        ticket_id: str | None = None,
        participant_email: str | None = None,
        note: str = "",
    ) -> AttendanceLog:
        """Mark a participant present without a scan.

        There is no duplicate check: an organizer may record an override for
        someone already present.

        Raises:
            ValidationFailedError: Neither identifier was given.
            NotFoundError: No participant matches.
        """
        event = load_organizer_event(self._events, event_id, organizer_id)
        ticket_id = str(ticket_id or "").strip()
        email = str(participant_email or "").strip().lower()
        if not ticket_id and not email:
            raise ValidationFailedError("Provide ticket_id or participant_email")

        ticket = self._tickets.get(ticket_id, event_id=event.id) if ticket_id else None
        participant = ticket.participant if ticket else None
        if participant is None and email:
            participant = self._directory.find_participant_by_email(email)
        if participant is None:
            raise NotFoundError("Participant not found for override")

        log = self._append(
            event,
            organizer_id,
            AttendanceStatus.MANUAL_OVERRIDE,
            participant=participant,
            ticket_id=ticket.ticket_id if ticket else None,
            note=str(note or "").strip() or DEFAULT_OVERRIDE_NOTE,
        )
        logger.info("attendance_overridden", event_id=str(event.id), participant_id=str(participant.id))
        return log

    def dashboard(self, event_id: str, organizer_id: UserId) -> AttendanceDashboard:
        event = load_organizer_event(self._events, event_id, organizer_id)
        pool = self._participant_pool(event)
        present = self._latest_presence(event)
        return AttendanceDashboard(
            total_participants=len(pool),
            scanned=tuple(person for person in pool.values() if person.id in present),
            not_scanned=tuple(person for person in pool.values() if person.id not in present),
            recent_logs=tuple(self._attendance.list_for_event(event.id, limit=RECENT_LOG_LIMIT)),
        )

    def report(self, event_id: str, organizer_id: UserId) -> list[AttendanceReportRow]:
        """One row per participant; present rows carry their most recent qualifying entry."""
        event = load_organizer_event(self._events, event_id, organizer_id)
        present = self._latest_presence(event)
        rows = []
        for person in self._participant_pool(event).values():
            log = present.get(person.id)
            rows.append(
                AttendanceReportRow(
                    participant=person,
                    present=log is not None,
                    timestamp=log.created_at if log else None,
                    method=log.status if log else None,
                )
            )
        return rows

    def _participant_pool(self, event: Event) -> dict[UserId, Person]:
        """Seat-holding registrants and approved buyers; a later record's identity wins."""
        pool: dict[UserId, Person] = {}
        for registration in self._registrations.list_for_event(event.id, seat_holding_only=True):
            pool[registration.participant.id] = registration.participant
        for order in self._orders.list_for_event(event.id, status=OrderStatus.APPROVED):
            pool[order.participant.id] = order.participant
        return pool

    def _latest_presence(self, event: Event) -> dict[UserId, AttendanceLog]:
        latest: dict[UserId, AttendanceLog] = {}
        for log in self._attendance.list_for_event(event.id, statuses=PRESENCE_STATUSES):
            if log.participant is not None:
                latest.setdefault(log.participant.id, log)
        return latest

    def _append(
        self,
        event: Event,
        scanned_by: UserId,
        status: AttendanceStatus,
        *,
        payload: str = "",
        participant: Person | None = None,
        ticket_id: str | None = None,
        note: str = "",
    ) -> AttendanceLog:
        log = self._attendance.append(
            event_id=event.id,
            scanned_by=scanned_by,
            status=status,
            participant_id=participant.id if participant else None,
            ticket_id=ticket_id,
            payload=payload,
            note=note,
        )
        if status in (AttendanceStatus.INVALID, AttendanceStatus.DUPLICATE):
            logger.warning("scan_rejected", event_id=str(event.id), status=status, note=note)
        return log
