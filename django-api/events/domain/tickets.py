"""Ticket identifiers and the signed payload encoded into each QR code."""

import secrets
import string
import time
from dataclasses import dataclass
from typing import Any

from django.core import signing

TICKET_ALPHABET = string.ascii_uppercase + string.digits
TICKET_CODE_LENGTH = 10


class InvalidTicketPayload(ValueError):
    """Raised when a scanned payload is unsigned, tampered with or incomplete."""


@dataclass(frozen=True)
class TicketPayload:
    ticket_id: str
    event_id: str
    participant_id: str
    issued_at_ms: int

    def to_json(self) -> dict[str, Any]:
        return {"t": self.ticket_id, "e": self.event_id, "p": self.participant_id, "iat": self.issued_at_ms}


def generate_ticket_id(prefix: str = "FEL") -> str:
    code = "".join(secrets.choice(TICKET_ALPHABET) for _ in range(TICKET_CODE_LENGTH))
    return f"{prefix}-{code}"


def encode_payload(ticket_id: str, event_id: str, participant_id: str, salt: str, issued_at_ms: int | None = None) -> str:
    payload = TicketPayload(
        ticket_id=ticket_id,
        event_id=str(event_id),
        participant_id=str(participant_id),
        issued_at_ms=issued_at_ms if issued_at_ms is not None else int(time.time() * 1000),
    )
    return signing.dumps(payload.to_json(), salt=salt, compress=True)


def decode_payload(raw: str, salt: str) -> TicketPayload:
    """Verify and unpack a scanned payload.

    Raises:
        InvalidTicketPayload: If the signature is bad, the payload is not an
            object, or it carries no ticket id.
    """
    try:
        data = signing.loads(str(raw).strip(), salt=salt)
    except signing.BadSignature as exc:
        raise InvalidTicketPayload("Invalid QR payload") from exc

    if not isinstance(data, dict):
        raise InvalidTicketPayload("Invalid QR payload")
    ticket_id = str(data.get("t") or "").strip()
    if not ticket_id:
        raise InvalidTicketPayload("Missing ticket id in payload")

    try:
        issued_at_ms = int(data.get("iat") or 0)
    except (TypeError, ValueError):
        issued_at_ms = 0
    return TicketPayload(
        ticket_id=ticket_id,
        event_id=str(data.get("e") or ""),
        participant_id=str(data.get("p") or ""),
        issued_at_ms=issued_at_ms,
    )
