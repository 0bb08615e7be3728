"""Integration tests for the attendance ledger, against the Django stores."""

import io
import uuid

import pytest

from events import models as orm
from events.domain import AttendanceStatus, TicketStatus, UserId
from events.domain.errors import DuplicateScanError, NotFoundError, ValidationFailedError
from events.domain.tickets import encode_payload
from events.ports import Upload
from events.stores.django_store import DjangoAttendanceStore

ANSWERS = {"responses": {"college": "IIIT"}}


def uid(user) -> UserId:
    return UserId(user.pk)


@pytest.fixture
def attendance(container):
    return container.attendance_service()


@pytest.fixture
def event(make_event, organizer):
    return make_event(organizer)


@pytest.fixture
def ticket(container, event, participant):
    return container.registration_service().register(str(event.pk), uid(participant), ANSWERS).ticket


def statuses(event) -> list[str]:
    return list(orm.AttendanceLog.objects.filter(event=event).order_by("created_at").values_list("status", flat=True))


@pytest.mark.django_db
class TestScan:
    """Tests for AttendanceService.scan."""

    def test_first_scan_then_duplicate(self, attendance, event, organizer, participant, ticket):
        """The second scan of a ticket is refused with the same participant and logged."""
        result = attendance.scan(str(event.pk), uid(organizer), ticket.payload)
        assert result.participant.id == uid(participant)
        assert result.ticket_id == ticket.ticket_id

        with pytest.raises(DuplicateScanError) as excinfo:
            attendance.scan(str(event.pk), uid(organizer), ticket.payload)
        assert excinfo.value.participant.id == uid(participant)
        assert excinfo.value.ticket_id == ticket.ticket_id

        assert statuses(event) == [AttendanceStatus.SCANNED, AttendanceStatus.DUPLICATE]

    def test_scan_constraint_catches_missed_presence(
        self, attendance, event, organizer, participant, ticket, monkeypatch
    ):
        """A second SCANNED row is refused by the database even if the presence lookup misses."""
        monkeypatch.setattr(DjangoAttendanceStore, "has_presence", lambda self, *args, **kwargs: False)
        attendance.scan(str(event.pk), uid(organizer), ticket.payload)
        with pytest.raises(DuplicateScanError) as excinfo:
            attendance.scan(str(event.pk), uid(organizer), ticket.payload)
        assert excinfo.value.participant.id == uid(participant)
        assert statuses(event) == [AttendanceStatus.SCANNED, AttendanceStatus.DUPLICATE]

    def test_scan_marks_ticket_used(self, attendance, event, organizer, ticket):
        attendance.scan(str(event.pk), uid(organizer), ticket.payload)
        assert orm.Ticket.objects.get(ticket_id=ticket.ticket_id).status == TicketStatus.USED

    def test_unreadable_payload_logged_invalid(self, attendance, event, organizer):
        """A payload that fails signature checks is still recorded."""
        with pytest.raises(ValidationFailedError, match="Invalid QR payload"):
            attendance.scan(str(event.pk), uid(organizer), "garbage")
        assert statuses(event) == [AttendanceStatus.INVALID]

    def test_empty_payload(self, attendance, event, organizer):
        with pytest.raises(ValidationFailedError, match="QR payload is required"):
            attendance.scan(str(event.pk), uid(organizer), "   ")
        assert statuses(event) == []

    def test_ticket_for_another_event(self, attendance, make_event, event, organizer, ticket):
        """A valid ticket scanned at a different event is not found there."""
        elsewhere = make_event(organizer)
        with pytest.raises(NotFoundError, match="Ticket not found for this event"):
            attendance.scan(str(elsewhere.pk), uid(organizer), ticket.payload)
        assert statuses(elsewhere) == [AttendanceStatus.INVALID]

    def test_forged_participant(self, attendance, event, organizer, other_participant, ticket, settings):
        """A correctly signed payload naming someone else is refused."""
        raw = encode_payload(
            ticket.ticket_id, str(event.pk), str(other_participant.pk), salt=settings.TICKET_SIGNING_SALT
        )
        with pytest.raises(NotFoundError):
            attendance.scan(str(event.pk), uid(organizer), raw)

    def test_cancelled_ticket(self, attendance, event, organizer, ticket):
        orm.Ticket.objects.filter(ticket_id=ticket.ticket_id).update(status=TicketStatus.CANCELLED)
        with pytest.raises(ValidationFailedError, match="cancelled"):
            attendance.scan(str(event.pk), uid(organizer), ticket.payload)
        assert statuses(event) == [AttendanceStatus.INVALID]

    def test_other_organizer_cannot_scan(self, attendance, event, other_organizer, ticket):
        with pytest.raises(NotFoundError, match="Event not found for organizer"):
            attendance.scan(str(event.pk), uid(other_organizer), ticket.payload)

    def test_override_then_scan_is_duplicate(self, attendance, event, organizer, participant, ticket):
        """A participant marked present by hand cannot also be scanned in."""
        attendance.manual_override(str(event.pk), uid(organizer), ticket_id=ticket.ticket_id)
        with pytest.raises(DuplicateScanError):
            attendance.scan(str(event.pk), uid(organizer), ticket.payload)


@pytest.mark.django_db
class TestManualOverride:
    """Tests for AttendanceService.manual_override."""

    def test_by_ticket_id(self, attendance, event, organizer, participant, ticket):
        log = attendance.manual_override(str(event.pk), uid(organizer), ticket_id=ticket.ticket_id, note="Phone died")
        assert log.status == AttendanceStatus.MANUAL_OVERRIDE
        assert log.participant.id == uid(participant)
        assert log.ticket_id == ticket.ticket_id
        assert log.note == "Phone died"

    def test_by_email(self, attendance, event, organizer, participant):
        log = attendance.manual_override(str(event.pk), uid(organizer), participant_email=participant.email.upper())
        assert log.participant.id == uid(participant)
        assert log.ticket_id is None
        assert log.note == "Manual override by organizer"

    def test_repeated_override_is_allowed(self, attendance, event, organizer, participant):
        for _ in range(2):
            attendance.manual_override(str(event.pk), uid(organizer), participant_email=participant.email)
        assert statuses(event) == [AttendanceStatus.MANUAL_OVERRIDE, AttendanceStatus.MANUAL_OVERRIDE]

    def test_identifier_required(self, attendance, event, organizer):
        with pytest.raises(ValidationFailedError, match="Provide ticket_id or participant_email"):
            attendance.manual_override(str(event.pk), uid(organizer))

    def test_unknown_participant(self, attendance, event, organizer):
        with pytest.raises(NotFoundError, match="Participant not found"):
            attendance.manual_override(str(event.pk), uid(organizer), participant_email="nobody@example.com")


@pytest.mark.django_db
class TestDashboardAndReport:
    """Tests for the derived attendance views."""

    def test_dashboard_splits_scanned_and_missing(
        self, container, attendance, event, organizer, participant, other_participant, ticket
    ):
        container.registration_service().register(str(event.pk), uid(other_participant), ANSWERS)
        attendance.scan(str(event.pk), uid(organizer), ticket.payload)
        with pytest.raises(ValidationFailedError):
            attendance.scan(str(event.pk), uid(organizer), "garbage")

        dashboard = attendance.dashboard(str(event.pk), uid(organizer))
        assert dashboard.total_participants == 2
        assert [person.id for person in dashboard.scanned] == [uid(participant)]
        assert [person.id for person in dashboard.not_scanned] == [uid(other_participant)]
        assert len(dashboard.recent_logs) == 2

    def test_approved_buyers_join_the_pool(self, container, attendance, merch_event, organizer, participant):
        """Merchandise buyers with an approved order are expected at the door."""
        merch = container.merchandise_service()
        order = merch.purchase(str(merch_event.pk), uid(participant), "TEE-M")
        upload = Upload(name="r.png", content_type="image/png", size=1, file=io.BytesIO(b"x"))
        merch.upload_proof(str(order.id), uid(participant), upload)
        merch.review(str(order.id), uid(organizer), "approve")

        dashboard = attendance.dashboard(str(merch_event.pk), uid(organizer))
        assert [person.id for person in dashboard.not_scanned] == [uid(participant)]

    def test_report_rows(self, container, attendance, event, organizer, participant, other_participant, ticket):
        """Present rows carry the time and method of the latest presence entry."""
        container.registration_service().register(str(event.pk), uid(other_participant), ANSWERS)
        attendance.scan(str(event.pk), uid(organizer), ticket.payload)

        rows = {row.participant.id: row for row in attendance.report(str(event.pk), uid(organizer))}
        present = rows[uid(participant)]
        absent = rows[uid(other_participant)]
        assert present.status_label == "Present"
        assert present.method == AttendanceStatus.SCANNED
        assert present.timestamp is not None
        assert absent.status_label == "Absent"
        assert absent.method is None

    def test_report_for_unknown_event(self, attendance, organizer):
        with pytest.raises(NotFoundError):
            attendance.report(str(uuid.uuid4()), uid(organizer))
