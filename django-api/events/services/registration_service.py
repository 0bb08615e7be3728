"""Registration engine for NORMAL events.

Admission runs inside one transaction that holds the event row lock, so the
capacity count, the duplicate check and the team checks all see the same
state. Uploaded files are stored before the transaction and are deleted
again if the registration does not go through.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

import structlog
from django.utils import timezone

from events.domain import Event, EventType, FieldType, Registration, TeamAction, Ticket, UserId
from events.domain.errors import ConflictError, NotFoundError, StateViolationError, ValidationFailedError
from events.domain.forms import FileAnswer, FormValidationError, serialize_answers, validate_responses
from events.domain.lifecycle import registration_block_reason
from events.domain.teams import build_team_options, normalize_team_name
from events.ports import FileStorage, NotificationSink, Upload
from events.services.capacity_service import CapacityService
from events.services.common import best_effort, load_event, parse_event_id
from events.services.ticket_service import TicketService
from events.stores.interfaces import ConstraintViolation, EventStore, RegistrationStore

logger = structlog.get_logger(__name__)

UPLOAD_FOLDER = "registration-files"


@dataclass(frozen=True)
class RegistrationResult:
    registration: Registration
    ticket: Ticket


def parse_registration_payload(raw: Any) -> dict[str, Any]:
    """Accept a mapping or a JSON object string; nested ``responses`` may also be a JSON string."""
    if raw is None or raw == "":
        return {}
    try:
        data = json.loads(raw) if isinstance(raw, (str, bytes)) else dict(raw)
        if not isinstance(data, dict):
            raise ValueError("payload must be an object")
        responses = data.get("responses")
        if isinstance(responses, str):
            data["responses"] = json.loads(responses) if responses.strip() else {}
        if data.get("responses") is not None and not isinstance(data["responses"], dict):
            raise ValueError("responses must be an object")
    except (TypeError, ValueError) as exc:
        raise ValidationFailedError("Invalid registration payload") from exc
    return data


class RegistrationService:
    """Admits participants into NORMAL events and issues their tickets."""

    def __init__(
        self,
        events: EventStore,
        registrations: RegistrationStore,
        capacity: CapacityService,
        tickets: TicketService,
        files: FileStorage,
        notifier: NotificationSink,
        max_file_bytes: int,
    ) -> None:
        self._events = events
        self._registrations = registrations
        self._capacity = capacity
        self._tickets = tickets
        self._files = files
        self._notifier = notifier
        self._max_file_bytes = max_file_bytes

    def register(
        self,
        event_id: str,
        participant_id: UserId,
        payload: Any = None,
        uploads: Mapping[str, Upload] | None = None,
    ) -> RegistrationResult:
        """Register a participant, issue the ticket and lock the form.

        ``uploads`` maps ``file_<field_id>`` to the uploaded file.

        Raises:
            NotFoundError: If the event does not exist.
            ValidationFailedError: Wrong event type, malformed payload, team or form violations.
            StateViolationError: If the event does not accept registrations.
            ConflictError: Capacity reached, already registered, or team name taken.
        """
        event = load_event(self._events, event_id)
        if event.type != EventType.NORMAL:
            raise ValidationFailedError("Use merchandise purchase flow for this event")
        request = parse_registration_payload(payload)

        stored = self._store_files(event, uploads or {})
        try:
            with self._events.atomic():
                locked = self._events.get_event(parse_event_id(event_id), for_update=True)
                if locked is None:
                    raise NotFoundError("Event not found")
                self._ensure_admissible(locked, participant_id)
                team_name = self._resolve_team(locked, request)
                try:
                    answers = validate_responses(locked.custom_form, request.get("responses"), stored)
                except FormValidationError as exc:
                    raise ValidationFailedError(exc.violations[0], exc.violations) from exc

                try:
                    registration = self._registrations.create(
                        locked.id, participant_id, team_name, serialize_answers(answers)
                    )
                except ConstraintViolation as exc:
                    raise ConflictError("Already registered for this event") from exc

                ticket = self._tickets.issue(locked, participant_id, registration_id=registration.id)
                if not locked.form_locked:
                    self._events.lock_form(locked.id)
        except Exception:
            self._discard(stored.values())
            raise

        registration = replace(registration, ticket_id=ticket.ticket_id)
        logger.info(
            "registration_created",
            event_id=str(event.id),
            participant_id=str(participant_id),
            ticket_id=ticket.ticket_id,
            team_name=team_name or None,
        )
        self._send_confirmation(locked, registration, ticket)
        return RegistrationResult(registration=registration, ticket=ticket)

    def _ensure_admissible(self, event: Event, participant_id: UserId) -> None:
        reason = registration_block_reason(event, timezone.now())
        if reason:
            raise StateViolationError(reason)
        if not event.capacity.admits(self._capacity.occupied_spots(event.id)):
            raise ConflictError("Registration limit reached")
        if self._registrations.get_for_participant(event.id, participant_id) is not None:
            raise ConflictError("Already registered for this event")

    def _resolve_team(self, event: Event, request: Mapping[str, Any]) -> str:
        """Return the team name the registration joins, or "" for solo events."""
        if not event.team_based:
            return ""

        action = str(request.get("team_action") or "").strip().lower()
        if action not in (TeamAction.CREATE, TeamAction.JOIN):
            raise ValidationFailedError("Choose whether to create a team or join an existing team")
        name = normalize_team_name(request.get("team_name"))
        if not name:
            raise ValidationFailedError("Team name is required for team-based events")

        teams = {
            option.team_key: option
            for option in build_team_options(self._registrations.team_names(event.id), event.max_team_size)
        }
        existing = teams.get(name.lower())
        if action == TeamAction.CREATE:
            if existing is not None:
                raise ConflictError("Team already exists. Choose join team instead.")
            return name

        if existing is None:
            raise ValidationFailedError("Selected team does not exist")
        if existing.is_full:
            raise ValidationFailedError("Selected team is full")
        return existing.team_name

    def _store_files(self, event: Event, uploads: Mapping[str, Upload]) -> dict[str, FileAnswer]:
        """Store uploads for declared file fields; others are ignored."""
        file_fields = [field for field in event.custom_form if field.type == FieldType.FILE]
        oversized = [
            f"File too large for field: {field.label}"
            for field in file_fields
            if (upload := uploads.get(f"file_{field.field_id}")) is not None and upload.size > self._max_file_bytes
        ]
        if oversized:
            raise ValidationFailedError(oversized[0], oversized)

        stored: dict[str, FileAnswer] = {}
        try:
            for field in file_fields:
                upload = uploads.get(f"file_{field.field_id}")
                if upload is None:
                    continue
                path = self._files.store(upload, f"{UPLOAD_FOLDER}/{event.id}")
                stored[field.field_id] = FileAnswer(
                    original_name=upload.name,
                    path=path,
                    mime_type=upload.content_type,
                    size=upload.size,
                )
        except Exception:
            self._discard(stored.values())
            raise
        return stored

    def _discard(self, files) -> None:
        for stored in files:
            best_effort("file_cleanup", lambda path=stored.path: self._files.delete(path), path=stored.path)

    def _send_confirmation(self, event: Event, registration: Registration, ticket: Ticket) -> None:
        lines = [
            f"Hi {registration.participant.name},",
            "",
            f"You are registered for {event.name}.",
            f"Ticket ID: {ticket.ticket_id}",
            f"Starts: {event.start_date.isoformat()}",
            f"Ends: {event.end_date.isoformat()}",
        ]
        if registration.team_name:
            lines.append(f"Team: {registration.team_name}")
        best_effort(
            "registration_email",
            lambda: self._notifier.send(
                registration.participant.email,
                f"Felicity Connect Ticket - {event.name}",
                "\n".join(lines),
            ),
            registration_id=str(registration.id),
        )
