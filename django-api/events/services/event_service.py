"""Event service - all event lifecycle business logic lives here.

Services:
- Depend only on interfaces (stores and ports)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors
"""

from collections.abc import Mapping
from dataclasses import replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog
from django.utils import timezone

from events.domain import (
    Event,
    EventAnalytics,
    EventAvailability,
    EventDetail,
    EventDraft,
    EventStatus,
    EventType,
    OrderStatus,
    ParticipantRow,
    UserId,
)
from events.domain.enums import PRESENCE_STATUSES
from events.domain.errors import NotFoundError, StateViolationError, ValidationFailedError
from events.domain.forms import FormValidationError, normalize_definition
from events.domain.lifecycle import (
    CREATABLE_STATUSES,
    EVENT_FIELDS,
    is_allowed,
    publish_readiness,
    registration_block_reason,
    requested_target,
    validate_published_changes,
    validate_team_configuration,
    validate_timeline,
)
from events.domain.merchandise import ItemDefinitionError, normalize_items
from events.domain.teams import build_team_options
from events.ports import WebhookSink
from events.services.capacity_service import CapacityService
from events.services.common import best_effort, load_event, load_organizer_event
from events.stores.interfaces import AttendanceStore, EventStore, OrderStore, RegistrationStore

logger = structlog.get_logger(__name__)


def _search_score(query: str, text: str) -> int:
    """2 for a substring match, 1 for an in-order subsequence match, 0 otherwise."""
    if not query:
        return 1
    if query in text:
        return 2
    position = 0
    for char in text:
        if position < len(query) and char == query[position]:
            position += 1
    return 1 if position == len(query) else 0


def _as_decimal(value: Any, default: Decimal) -> Decimal | None:
    if value is None or value == "":
        return default
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


class EventService:
    """Service for event creation, lifecycle updates and event read models."""

    def __init__(
        self,
        events: EventStore,
        registrations: RegistrationStore,
        orders: OrderStore,
        attendance: AttendanceStore,
        capacity: CapacityService,
        webhooks: WebhookSink,
    ) -> None:
        self._events = events
        self._registrations = registrations
        self._orders = orders
        self._attendance = attendance
        self._capacity = capacity
        self._webhooks = webhooks

    # -- writes ----------------------------------------------------------------

    def create_event(self, organizer_id: UserId, data: Mapping[str, Any]) -> Event:
        """Create an event as DRAFT or PUBLISHED.

        Raises:
            ValidationFailedError: With every rule the submitted event breaks.
        """
        try:
            status = EventStatus(str(data.get("status") or EventStatus.DRAFT).upper())
        except ValueError:
            status = None
        if status not in CREATABLE_STATUSES:
            raise ValidationFailedError("New events can only be created as DRAFT or PUBLISHED")

        draft = self._build_draft(data, status)
        if status == EventStatus.PUBLISHED:
            self._ensure_publishable(draft)

        event = self._events.create_event(organizer_id, draft)
        logger.info("event_created", event_id=str(event.id), status=event.status, type=event.type)
        if event.status == EventStatus.PUBLISHED:
            self._announce(event)
        return event

    def update_event(self, event_id: str, organizer_id: UserId, changes: Mapping[str, Any]) -> Event:
        """Apply edits and a status move permitted by the lifecycle.

        Raises:
            NotFoundError: If the organizer does not own the event.
            ValidationFailedError: If blocked fields are edited or values break a rule.
            StateViolationError: If the status move is illegal or the form is locked.
        """
        current = load_organizer_event(self._events, event_id, organizer_id)
        try:
            target = requested_target(current.status, changes.get("status"), changes.get("action"))
        except ValueError as exc:
            raise ValidationFailedError(f"Unknown status: {changes.get('status')}") from exc

        check = is_allowed(current.status, target, changes.keys())
        if check.blocked_fields:
            raise ValidationFailedError(
                f"These fields cannot be edited when event is {current.status}: {', '.join(check.blocked_fields)}",
                check.blocked_fields,
            )
        if current.form_locked and "custom_form" in changes:
            raise StateViolationError("Custom form is locked after first registration")
        if not check.transition_allowed:
            raise StateViolationError(f"Invalid status transition from {current.status} to {target}")

        edits = {key: value for key, value in changes.items() if key in EVENT_FIELDS}
        if current.status == EventStatus.DRAFT:
            updated = self._apply_draft_edits(current, edits, target)
            replace_items = True
        else:
            updated = self._apply_live_edits(current, edits, target)
            replace_items = False

        saved = self._events.save_event(updated, replace_items=replace_items)
        logger.info("event_updated", event_id=str(saved.id), status_from=current.status, status_to=saved.status)
        if current.status != EventStatus.PUBLISHED and saved.status == EventStatus.PUBLISHED:
            self._announce(saved)
        return saved

    def _build_draft(self, data: Mapping[str, Any], status: EventStatus) -> EventDraft:
        violations: list[str] = []
        try:
            event_type = EventType(str(data.get("type") or EventType.NORMAL).upper())
        except ValueError:
            violations.append(f"Unsupported event type: {data.get('type')}")
            event_type = EventType.NORMAL

        is_normal = event_type == EventType.NORMAL
        team_based = bool(data.get("team_based", False)) and is_normal
        max_team_size = data.get("max_team_size")
        if not team_based:
            max_team_size = 1
        elif max_team_size is None:
            max_team_size = 2
        violations += validate_team_configuration(event_type, team_based, max_team_size)

        custom_form = ()
        if is_normal:
            try:
                custom_form = normalize_definition(data.get("custom_form") or ())
            except FormValidationError as exc:
                violations += exc.violations

        items = ()
        if event_type == EventType.MERCHANDISE:
            try:
                items = normalize_items(data.get("items") or ())
            except ItemDefinitionError as exc:
                violations += exc.violations

        limit = data.get("registration_limit", 1)
        if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
            violations.append("Registration limit must be an integer of at least 1")
        fee = _as_decimal(data.get("registration_fee"), Decimal("0"))
        if fee is None or fee < 0:
            violations.append("Registration fee must be a non-negative amount")

        deadline = data.get("registration_deadline")
        start_date = data.get("start_date")
        end_date = data.get("end_date")
        if not all(isinstance(value, datetime) for value in (deadline, start_date, end_date)):
            deadline = start_date = end_date = None
        violations += validate_timeline(deadline, start_date, end_date)

        if violations:
            raise ValidationFailedError(violations[0], violations)

        return EventDraft(
            name=str(data.get("name") or "").strip(),
            description=str(data.get("description") or "").strip(),
            type=event_type,
            registration_deadline=deadline,
            start_date=start_date,
            end_date=end_date,
            registration_limit=limit,
            registration_fee=fee,
            eligibility=tuple(str(value).strip() for value in data.get("eligibility") or () if str(value).strip()),
            tags=tuple(str(value).strip() for value in data.get("tags") or () if str(value).strip()),
            team_based=team_based,
            max_team_size=max_team_size,
            status=status,
            custom_form=custom_form,
            items=items,
        )

    def _ensure_publishable(self, candidate: Event | EventDraft) -> None:
        missing = publish_readiness(candidate)
        if missing:
            raise ValidationFailedError(f"Cannot publish. Missing: {', '.join(missing)}", missing)

    def _apply_draft_edits(self, current: Event, edits: Mapping[str, Any], target: EventStatus) -> Event:
        merged: dict[str, Any] = {
            "name": current.name,
            "description": current.description,
            "type": current.type,
            "registration_deadline": current.registration_deadline,
            "start_date": current.start_date,
            "end_date": current.end_date,
            "registration_limit": current.registration_limit,
            "registration_fee": current.registration_fee,
            "eligibility": current.eligibility,
            "tags": current.tags,
            "team_based": current.team_based,
            "max_team_size": current.max_team_size,
            "custom_form": current.custom_form,
            "items": current.items,
        }
        merged.update(edits)
        if "max_team_size" not in edits and current.max_team_size < 2:
            merged["max_team_size"] = None
        draft = self._build_draft(merged, target)
        if target == EventStatus.PUBLISHED:
            self._ensure_publishable(draft)
        return replace(
            current,
            name=draft.name,
            description=draft.description,
            type=draft.type,
            registration_deadline=draft.registration_deadline,
            start_date=draft.start_date,
            end_date=draft.end_date,
            registration_limit=draft.registration_limit,
            registration_fee=draft.registration_fee,
            eligibility=draft.eligibility,
            tags=draft.tags,
            team_based=draft.team_based,
            max_team_size=draft.max_team_size,
            custom_form=draft.custom_form,
            items=draft.items,
            status=target,
        )

    def _apply_live_edits(self, current: Event, edits: Mapping[str, Any], target: EventStatus) -> Event:
        violations = validate_published_changes(current, edits) if current.status == EventStatus.PUBLISHED else []
        if violations:
            raise ValidationFailedError(violations[0], violations)

        updated = replace(current, status=target)
        if "description" in edits:
            updated = replace(updated, description=str(edits["description"]).strip())
        if "registration_deadline" in edits:
            updated = replace(updated, registration_deadline=edits["registration_deadline"])
        if "registration_limit" in edits:
            updated = replace(updated, registration_limit=edits["registration_limit"])

        violations = validate_timeline(updated.registration_deadline, updated.start_date, updated.end_date)
        violations += validate_team_configuration(updated.type, updated.team_based, updated.max_team_size)
        if violations:
            raise ValidationFailedError(violations[0], violations)
        return updated

    def _announce(self, event: Event) -> None:
        url = event.organizer.webhook_url
        if not url:
            return
        content = (
            f"New Event Published: **{event.name}** ({event.type})\n"
            f"Starts: {event.start_date.isoformat()}"
        )
        best_effort(
            "publish_webhook",
            lambda: self._webhooks.post(url, {"content": content}),
            event_id=str(event.id),
        )

    # -- reads -----------------------------------------------------------------

    def get_event(self, event_id: str) -> Event:
        """Return an event by ID.

        Raises:
            InvalidIdError: If the event_id is not a valid UUID.
            NotFoundError: If the event does not exist.
        """
        return load_event(self._events, event_id)

    def get_organizer_event(self, event_id: str, organizer_id: UserId) -> EventAvailability:
        return self._capacity.availability(load_organizer_event(self._events, event_id, organizer_id))

    def list_events(
        self,
        *,
        event_type: str | None = None,
        eligibility: str | None = None,
        organizer_id: UserId | None = None,
        starts_after: datetime | None = None,
        starts_before: datetime | None = None,
        search: str = "",
    ) -> list[EventAvailability]:
        """Return non-draft events matching every filter, each with fresh seat counts."""
        try:
            parsed_type = EventType(event_type.upper()) if event_type else None
        except ValueError as exc:
            raise ValidationFailedError(f"Unsupported event type: {event_type}") from exc

        events = self._events.list_events(
            statuses=[status for status in EventStatus if status != EventStatus.DRAFT],
            event_type=parsed_type,
            organizer_id=organizer_id,
            starts_after=starts_after,
            starts_before=starts_before,
        )
        if eligibility:
            wanted = eligibility.strip().lower()
            events = [
                event
                for event in events
                if not event.eligibility or wanted in (value.lower() for value in event.eligibility)
            ]

        query = search.strip().lower()
        if query:
            scored = [(_search_score(query, f"{event.name} {event.organizer.name}".lower()), event) for event in events]
            events = [event for score, event in sorted(scored, key=lambda pair: -pair[0]) if score > 0]
        return [self._capacity.availability(event) for event in events]

    def list_organizer_events(self, organizer_id: UserId, status: str | None = None) -> list[EventAvailability]:
        try:
            statuses = [EventStatus(status.upper())] if status else None
        except ValueError as exc:
            raise ValidationFailedError(f"Unknown status: {status}") from exc
        events = self._events.list_events(statuses=statuses, organizer_id=organizer_id)
        return [self._capacity.availability(event) for event in events]

    def event_detail(self, event_id: str, viewer_id: UserId | None = None) -> EventDetail:
        """Return the event as a participant sees it.

        Drafts are visible to their organizer only.

        Raises:
            NotFoundError: If the event does not exist or is not visible.
        """
        event = load_event(self._events, event_id)
        if event.status == EventStatus.DRAFT and event.organizer.id != viewer_id:
            raise NotFoundError("Event not found")

        availability = self._capacity.availability(event)
        reason = registration_block_reason(event, timezone.now())
        if reason is None and availability.available_spots == 0:
            reason = "Registration limit reached"

        is_registered = False
        latest_order = None
        if viewer_id is not None:
            is_registered = self._registrations.get_for_participant(event.id, viewer_id) is not None
            if event.type == EventType.MERCHANDISE:
                orders = [order for order in self._orders.list_for_event(event.id) if order.participant.id == viewer_id]
                latest_order = orders[0] if orders else None

        team_options = ()
        if event.team_based:
            team_options = build_team_options(self._registrations.team_names(event.id), event.max_team_size)

        return EventDetail(
            availability=availability,
            registration_open=reason is None,
            blocking_reason=reason,
            is_registered=is_registered,
            latest_order=latest_order,
            team_options=team_options,
        )

    def event_analytics(self, event_id: str, organizer_id: UserId) -> EventAnalytics:
        event = load_organizer_event(self._events, event_id, organizer_id)
        registrations = self._registrations.list_for_event(event.id, seat_holding_only=True)
        approved = self._orders.list_for_event(event.id, status=OrderStatus.APPROVED)
        present = {
            log.participant.id
            for log in self._attendance.list_for_event(event.id, statuses=PRESENCE_STATUSES)
            if log.participant is not None
        }
        teams = build_team_options((registration.team_name for registration in registrations), event.max_team_size)
        revenue = event.registration_fee * len(registrations) + sum(
            (order.amount.amount for order in approved), Decimal("0")
        )
        return EventAnalytics(
            registrations=len(registrations),
            sales=sum(order.quantity for order in approved),
            revenue=revenue,
            attendance=len(present),
            teams=len(teams),
        )

    def event_participants(self, event_id: str, organizer_id: UserId, search: str = "") -> list[ParticipantRow]:
        """One row per registration and per approved order, optionally filtered by text."""
        event = load_organizer_event(self._events, event_id, organizer_id)
        present = {
            log.participant.id
            for log in self._attendance.list_for_event(event.id, statuses=PRESENCE_STATUSES)
            if log.participant is not None
        }

        rows = [
            ParticipantRow(
                participant=registration.participant,
                registered_at=registration.created_at,
                payment=event.registration_fee,
                team_name=registration.team_name,
                attendance="Present" if registration.participant.id in present else "Absent",
                ticket_id=registration.ticket_id,
                kind="registration",
            )
            for registration in self._registrations.list_for_event(event.id)
        ]
        rows += [
            ParticipantRow(
                participant=order.participant,
                registered_at=order.created_at,
                payment=order.amount.amount,
                team_name="",
                attendance="Present" if order.participant.id in present else "Absent",
                ticket_id=order.ticket_id,
                kind="order",
            )
            for order in self._orders.list_for_event(event.id, status=OrderStatus.APPROVED)
        ]

        query = search.strip().lower()
        if query:
            rows = [
                row
                for row in rows
                if query in f"{row.participant.name} {row.participant.email} {row.team_name}".lower()
            ]
        return rows

