"""Unit tests for the event lifecycle rules."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from events.domain import EventStatus, EventType
from events.domain.lifecycle import (
    is_allowed,
    publish_readiness,
    registration_block_reason,
    requested_target,
    validate_published_changes,
    validate_team_configuration,
    validate_timeline,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def candidate(**overrides):
    fields = dict(
        name="Hackathon",
        description="24h build",
        type=EventType.NORMAL,
        registration_deadline=NOW,
        start_date=NOW + timedelta(days=1),
        end_date=NOW + timedelta(days=2),
        registration_limit=50,
        team_based=False,
        max_team_size=1,
        custom_form=("field",),
        items=(),
        status=EventStatus.PUBLISHED,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestTransitions:
    """Tests for is_allowed."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (EventStatus.DRAFT, EventStatus.PUBLISHED),
            (EventStatus.PUBLISHED, EventStatus.ONGOING),
            (EventStatus.PUBLISHED, EventStatus.CLOSED),
            (EventStatus.ONGOING, EventStatus.COMPLETED),
            (EventStatus.CLOSED, EventStatus.COMPLETED),
        ],
    )
    def test_legal_moves(self, current, target):
        """Forward moves in the table are permitted."""
        assert is_allowed(current, target, []).ok

    @pytest.mark.parametrize(
        "current,target",
        [
            (EventStatus.DRAFT, EventStatus.ONGOING),
            (EventStatus.PUBLISHED, EventStatus.DRAFT),
            (EventStatus.CLOSED, EventStatus.ONGOING),
            (EventStatus.COMPLETED, EventStatus.CLOSED),
        ],
    )
    def test_illegal_moves(self, current, target):
        """Moves outside the table are refused with a violation."""
        check = is_allowed(current, target, [])
        assert not check.transition_allowed
        assert check.violations == [f"Invalid status transition from {current} to {target}"]

    def test_published_blocks_name_edit(self):
        """Only description, deadline and limit change once published."""
        check = is_allowed(EventStatus.PUBLISHED, EventStatus.PUBLISHED, ["name", "description", "status"])
        assert check.blocked_fields == ("name",)

    def test_unknown_keys_blocked_after_draft(self):
        """Keys that are not event fields count as blocked edits; id does not."""
        check = is_allowed(EventStatus.PUBLISHED, EventStatus.PUBLISHED, ["id", "venue", "organizer", "description"])
        assert check.blocked_fields == ("organizer", "venue")

    def test_draft_blocks_nothing(self):
        assert is_allowed(EventStatus.DRAFT, EventStatus.DRAFT, ["venue", "name"]).blocked_fields == ()

    def test_ongoing_allows_only_status(self):
        """Any field edit on an ONGOING event is blocked."""
        check = is_allowed(EventStatus.ONGOING, EventStatus.COMPLETED, ["description"])
        assert check.blocked_fields == ("description",)
        assert check.transition_allowed


class TestRequestedTarget:
    def test_close_registrations_action(self):
        assert requested_target(EventStatus.PUBLISHED, action="close_registrations") == EventStatus.CLOSED

    def test_missing_status_keeps_current(self):
        assert requested_target(EventStatus.ONGOING) == EventStatus.ONGOING

    def test_status_is_case_insensitive(self):
        assert requested_target(EventStatus.DRAFT, status="published") == EventStatus.PUBLISHED

    def test_unknown_status_raises(self):
        with pytest.raises(ValueError):
            requested_target(EventStatus.DRAFT, status="ARCHIVED")


class TestValidation:
    """Tests for timeline, team and publish readiness rules."""

    def test_timeline_ordering(self):
        """Deadline, start and end must be strictly increasing."""
        assert validate_timeline(NOW, NOW, NOW + timedelta(hours=1)) == [
            "Registration deadline must be earlier than event start time."
        ]
        assert validate_timeline(NOW, NOW + timedelta(hours=2), NOW + timedelta(hours=1)) == [
            "Event start time must be earlier than event end time."
        ]
        assert validate_timeline(None, NOW, NOW) == ["Invalid event date-time values."]

    def test_team_size_at_least_two(self):
        """Team-based NORMAL events need room for two members."""
        assert validate_team_configuration(EventType.NORMAL, True, 1)
        assert validate_team_configuration(EventType.NORMAL, True, 4) == []
        assert validate_team_configuration(EventType.MERCHANDISE, True, 1) == []

    def test_publish_requires_custom_form_for_normal(self):
        """NORMAL events cannot publish without a form field."""
        assert publish_readiness(candidate(custom_form=())) == ["custom_form (at least one field for NORMAL event)"]

    def test_publish_requires_items_for_merchandise(self):
        """MERCHANDISE events cannot publish without items."""
        missing = publish_readiness(candidate(type=EventType.MERCHANDISE, custom_form=(), items=()))
        assert missing == ["merchandise.items"]

    def test_publish_lists_every_missing_piece(self):
        """All missing fields are reported together."""
        missing = publish_readiness(candidate(name="", description=" ", registration_limit=0))
        assert missing == ["name", "description", "registration_limit"]

    def test_published_deadline_only_extends(self):
        """A published deadline may move later, never earlier."""
        current = candidate()
        assert validate_published_changes(current, {"registration_deadline": NOW + timedelta(hours=1)}) == []
        assert validate_published_changes(current, {"registration_deadline": NOW - timedelta(hours=1)}) == [
            "Published event deadline can only be extended"
        ]

    def test_published_limit_only_increases(self):
        """A published registration limit may grow, never shrink."""
        current = candidate()
        assert validate_published_changes(current, {"registration_limit": 60}) == []
        assert validate_published_changes(current, {"registration_limit": 10}) == [
            "Published event registration limit can only increase"
        ]

    def test_published_description_not_blank(self):
        assert validate_published_changes(candidate(), {"description": ""}) == [
            "Description cannot be empty for published event"
        ]


class TestRegistrationBlockReason:
    def test_open_event(self):
        assert registration_block_reason(candidate(), NOW - timedelta(minutes=1)) is None

    def test_deadline_passed(self):
        assert registration_block_reason(candidate(), NOW + timedelta(minutes=1)) == "Registration deadline has passed"

    def test_closed_event(self):
        event = candidate(status=EventStatus.CLOSED)
        assert registration_block_reason(event, NOW - timedelta(minutes=1)) == "Event registration is closed"

    def test_draft_event(self):
        event = candidate(status=EventStatus.DRAFT)
        assert registration_block_reason(event, NOW - timedelta(minutes=1)) == "Event is not published yet"
