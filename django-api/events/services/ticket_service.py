"""Ticket issuing, QR rendering and ticket lookup."""

import base64
import io
from uuid import UUID

import qrcode
import structlog

from events.domain import Event, OrderId, Ticket, UserId
from events.domain.errors import ConflictError, ForbiddenError, NotFoundError
from events.domain.tickets import TicketPayload, decode_payload, encode_payload, generate_ticket_id
from events.stores.interfaces import ConstraintViolation, EventStore, TicketStore

logger = structlog.get_logger(__name__)


def render_qr_data_url(payload: str) -> str:
    """Render ``payload`` as a PNG QR code wrapped in a data URL."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=8,
        border=2,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    image = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


class TicketService:
    """Issues tickets exactly once per registration or approved order."""

    MAX_ID_ATTEMPTS = 5

    def __init__(self, tickets: TicketStore, events: EventStore, prefix: str, signing_salt: str) -> None:
        self._tickets = tickets
        self._events = events
        self._prefix = prefix
        self._salt = signing_salt

    def issue(
        self,
        event: Event,
        participant_id: UserId,
        *,
        registration_id: UUID | None = None,
        order_id: OrderId | None = None,
    ) -> Ticket:
        """Create the ticket for one registration or one approved order.

        Raises:
            ConflictError: If the source already holds a ticket, or no free
                ticket id was found.
        """
        for _ in range(self.MAX_ID_ATTEMPTS):
            ticket_id = generate_ticket_id(self._prefix)
            if self._tickets.ticket_id_exists(ticket_id):
                continue

            payload = encode_payload(ticket_id, str(event.id), str(participant_id), salt=self._salt)
            try:
                ticket = self._tickets.create(
                    ticket_id=ticket_id,
                    event_id=event.id,
                    participant_id=participant_id,
                    payload=payload,
                    qr_image=render_qr_data_url(payload),
                    registration_id=registration_id,
                    order_id=order_id,
                )
            except ConstraintViolation as exc:
                if self._tickets.ticket_id_exists(ticket_id):
                    continue
                raise ConflictError("Ticket already issued") from exc

            logger.info(
                "ticket_issued",
                ticket_id=ticket.ticket_id,
                event_id=str(event.id),
                participant_id=str(participant_id),
            )
            return ticket

        raise ConflictError("Could not allocate a unique ticket id")

    def decode(self, raw_payload: str) -> TicketPayload:
        """Raises InvalidTicketPayload when the payload cannot be trusted."""
        return decode_payload(raw_payload, salt=self._salt)

    def get_ticket(self, ticket_id: str, viewer_id: UserId, *, viewer_is_admin: bool = False) -> Ticket:
        """Return a ticket to its holder, the event's organizer or an admin.

        Raises:
            NotFoundError: If the ticket does not exist.
            ForbiddenError: If the viewer may not see it.
        """
        ticket = self._tickets.get(str(ticket_id).strip())
        if ticket is None:
            raise NotFoundError("Ticket not found")
        if viewer_is_admin or ticket.participant.id == viewer_id:
            return ticket

        event = self._events.get_event(ticket.event_id)
        if event is not None and event.organizer.id == viewer_id:
            return ticket
        raise ForbiddenError("Not allowed to view this ticket")
