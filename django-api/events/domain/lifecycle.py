"""Event lifecycle state machine.

The transition table and the per-status editable field sets are plain data so
the rules can be checked without touching storage. ``status`` and ``action``
are control keys and never count as edited fields.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from events.domain.enums import EventStatus, EventType

CLOSE_REGISTRATIONS = "close_registrations"

CONTROL_KEYS = frozenset({"status", "action"})
IDENTITY_KEYS = frozenset({"id", "_id"})

EVENT_FIELDS = frozenset(
    {
        "name",
        "description",
        "type",
        "eligibility",
        "tags",
        "registration_deadline",
        "start_date",
        "end_date",
        "registration_limit",
        "registration_fee",
        "team_based",
        "max_team_size",
        "custom_form",
        "items",
    }
)

EDITABLE_FIELDS: dict[EventStatus, frozenset[str]] = {
    EventStatus.DRAFT: EVENT_FIELDS,
    EventStatus.PUBLISHED: frozenset({"description", "registration_deadline", "registration_limit"}),
    EventStatus.ONGOING: frozenset(),
    EventStatus.CLOSED: frozenset(),
    EventStatus.COMPLETED: frozenset(),
}

TRANSITIONS: dict[EventStatus, frozenset[EventStatus]] = {
    EventStatus.DRAFT: frozenset({EventStatus.DRAFT, EventStatus.PUBLISHED}),
    EventStatus.PUBLISHED: frozenset({EventStatus.PUBLISHED, EventStatus.ONGOING, EventStatus.CLOSED}),
    EventStatus.ONGOING: frozenset({EventStatus.ONGOING, EventStatus.CLOSED, EventStatus.COMPLETED}),
    EventStatus.CLOSED: frozenset({EventStatus.CLOSED, EventStatus.COMPLETED}),
    EventStatus.COMPLETED: frozenset({EventStatus.COMPLETED}),
}

CREATABLE_STATUSES = frozenset({EventStatus.DRAFT, EventStatus.PUBLISHED})


@dataclass(frozen=True)
class TransitionCheck:
    """Outcome of checking a requested status move plus its field edits."""

    current: EventStatus
    target: EventStatus
    blocked_fields: tuple[str, ...] = ()
    transition_allowed: bool = True

    @property
    def ok(self) -> bool:
        return self.transition_allowed and not self.blocked_fields

    @property
    def violations(self) -> list[str]:
        violations = [f"Field cannot be edited when event is {self.current}: {name}" for name in self.blocked_fields]
        if not self.transition_allowed:
            violations.append(f"Invalid status transition from {self.current} to {self.target}")
        return violations


def is_allowed(current: EventStatus, target: EventStatus, changed_fields: Iterable[str]) -> TransitionCheck:
    """Check a status move and the edited fields.

    Any key outside the editable set counts, including keys that are not event
    fields at all. Drafts accept every key; undeclared ones are ignored later.
    """
    blocked: list[str] = []
    if current != EventStatus.DRAFT:
        editable = EDITABLE_FIELDS[current] | CONTROL_KEYS | IDENTITY_KEYS
        blocked = sorted({str(name) for name in changed_fields if name not in editable})
    return TransitionCheck(
        current=current,
        target=target,
        blocked_fields=tuple(blocked),
        transition_allowed=target in TRANSITIONS[current],
    )


def requested_target(current: EventStatus, status: str | None = None, action: str | None = None) -> EventStatus:
    """Resolve the target status of an update request.

    Raises:
        ValueError: If ``status`` is not a known status.
    """
    if action == CLOSE_REGISTRATIONS:
        return EventStatus.CLOSED
    if status is None or status == "":
        return current
    return EventStatus(str(status).upper())


def validate_timeline(
    registration_deadline: datetime | None,
    start_date: datetime | None,
    end_date: datetime | None,
) -> list[str]:
    if registration_deadline is None or start_date is None or end_date is None:
        return ["Invalid event date-time values."]
    violations = []
    if registration_deadline >= start_date:
        violations.append("Registration deadline must be earlier than event start time.")
    if start_date >= end_date:
        violations.append("Event start time must be earlier than event end time.")
    return violations


def validate_team_configuration(event_type: EventType, team_based: bool, max_team_size: Any) -> list[str]:
    if event_type != EventType.NORMAL or not team_based:
        return []
    if not isinstance(max_team_size, int) or isinstance(max_team_size, bool) or max_team_size < 2:
        return ["For team-based events, max team size must be an integer of at least 2."]
    return []


def publish_readiness(candidate: Any, has_organizer: bool = True) -> list[str]:
    """List everything an event still lacks before it may be PUBLISHED.

    ``candidate`` is an Event or EventDraft.
    """
    missing = []
    if not str(candidate.name or "").strip():
        missing.append("name")
    if not str(candidate.description or "").strip():
        missing.append("description")
    if not candidate.type:
        missing.append("type")
    if not candidate.registration_deadline:
        missing.append("registration_deadline")
    if not candidate.start_date:
        missing.append("start_date")
    if not candidate.end_date:
        missing.append("end_date")
    if not candidate.registration_limit or candidate.registration_limit < 1:
        missing.append("registration_limit")
    if not has_organizer:
        missing.append("organizer")

    if candidate.type == EventType.NORMAL:
        if not candidate.custom_form:
            missing.append("custom_form (at least one field for NORMAL event)")
        if candidate.team_based and candidate.max_team_size < 2:
            missing.append("max_team_size (at least 2 for team-based events)")
    if candidate.type == EventType.MERCHANDISE and not candidate.items:
        missing.append("merchandise.items")
    return missing


def validate_published_changes(current: Any, changes: Mapping[str, Any]) -> list[str]:
    """Check edits to a PUBLISHED event: description kept, deadline extended, limit raised."""
    violations = []
    if "description" in changes and not str(changes["description"] or "").strip():
        violations.append("Description cannot be empty for published event")

    if "registration_deadline" in changes:
        deadline = changes["registration_deadline"]
        if not isinstance(deadline, datetime):
            violations.append("Invalid registration deadline")
        elif deadline < current.registration_deadline:
            violations.append("Published event deadline can only be extended")

    if "registration_limit" in changes:
        limit = changes["registration_limit"]
        if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
            violations.append("Registration limit must be an integer of at least 1")
        elif limit < current.registration_limit:
            violations.append("Published event registration limit can only increase")
    return violations


def registration_block_reason(event: Any, now: datetime) -> str | None:
    """Return why the event does not accept registrations or purchases, or None when open."""
    if now > event.registration_deadline:
        return "Registration deadline has passed"
    if event.status in (EventStatus.CLOSED, EventStatus.COMPLETED):
        return "Event registration is closed"
    if event.status == EventStatus.DRAFT:
        return "Event is not published yet"
    return None
