"""Integration tests for registration, against the Django stores."""

import io
import uuid
from datetime import timedelta

import pytest
from django.utils import timezone

from events import models as orm
from events.domain import RegistrationStatus, TicketStatus, UserId
from events.domain.errors import ConflictError, NotFoundError, StateViolationError, ValidationFailedError
from events.domain.tickets import decode_payload
from events.ports import Upload
from events.stores.django_store import DjangoRegistrationStore

ANSWERS = {"responses": {"college": "IIIT"}}


def uid(user) -> UserId:
    return UserId(user.pk)


@pytest.fixture
def registrations(container):
    return container.registration_service()


@pytest.mark.django_db
class TestRegister:
    """Tests for RegistrationService.register."""

    def test_register_issues_ticket_and_emails(self, registrations, make_event, organizer, participant, notifier, settings):
        """A successful registration returns a ticket and mails it."""
        event = make_event(organizer)
        result = registrations.register(str(event.pk), uid(participant), ANSWERS)

        assert result.registration.status == RegistrationStatus.REGISTERED
        assert result.registration.responses == {"college": {"kind": "text", "value": "IIIT"}}
        assert result.ticket.status == TicketStatus.ACTIVE
        assert result.ticket.qr_image.startswith("data:image/png;base64,")
        payload = decode_payload(result.ticket.payload, salt=settings.TICKET_SIGNING_SALT)
        assert payload.ticket_id == result.ticket.ticket_id
        assert payload.participant_id == str(participant.pk)

        (to_address, subject, body) = notifier.sent[0]
        assert to_address == participant.email
        assert subject == f"Felicity Connect Ticket - {event.name}"
        assert result.ticket.ticket_id in body

    def test_first_registration_locks_form(self, registrations, make_event, organizer, participant):
        event = make_event(organizer)
        registrations.register(str(event.pk), uid(participant), ANSWERS)
        event.refresh_from_db()
        assert event.form_locked

    def test_capacity_reached(self, registrations, make_event, organizer, participant, other_participant):
        """The second participant of a one-seat event is refused."""
        event = make_event(organizer, registration_limit=1)
        registrations.register(str(event.pk), uid(participant), ANSWERS)

        with pytest.raises(ConflictError, match="Registration limit reached"):
            registrations.register(str(event.pk), uid(other_participant), ANSWERS)
        assert orm.Registration.objects.filter(event=event).count() == 1

    def test_cannot_register_twice(self, registrations, make_event, organizer, participant):
        event = make_event(organizer)
        registrations.register(str(event.pk), uid(participant), ANSWERS)
        with pytest.raises(ConflictError, match="Already registered for this event"):
            registrations.register(str(event.pk), uid(participant), ANSWERS)

    def test_unique_constraint_catches_missed_duplicate(
        self, registrations, make_event, organizer, participant, monkeypatch
    ):
        """When the lookup misses an existing row, the database constraint still refuses it."""
        monkeypatch.setattr(DjangoRegistrationStore, "get_for_participant", lambda self, *args, **kwargs: None)
        event = make_event(organizer)
        registrations.register(str(event.pk), uid(participant), ANSWERS)
        with pytest.raises(ConflictError, match="Already registered for this event"):
            registrations.register(str(event.pk), uid(participant), ANSWERS)
        assert orm.Registration.objects.filter(event=event).count() == 1
        assert orm.Ticket.objects.filter(event=event).count() == 1

    def test_deadline_passed(self, registrations, make_event, organizer, participant):
        """Registrations after the deadline are a state violation."""
        now = timezone.now()
        event = make_event(
            organizer,
            registration_deadline=now - timedelta(hours=1),
            start_date=now + timedelta(days=1),
            end_date=now + timedelta(days=2),
        )
        with pytest.raises(StateViolationError, match="Registration deadline has passed"):
            registrations.register(str(event.pk), uid(participant), ANSWERS)

    def test_draft_not_open(self, registrations, make_event, organizer, participant):
        event = make_event(organizer, status="DRAFT")
        with pytest.raises(StateViolationError, match="not published"):
            registrations.register(str(event.pk), uid(participant), ANSWERS)

    def test_form_violations_reported(self, registrations, make_event, organizer, participant):
        """Missing required answers fail validation and nothing is stored."""
        event = make_event(organizer)
        with pytest.raises(ValidationFailedError) as excinfo:
            registrations.register(str(event.pk), uid(participant), {"responses": {}})
        assert excinfo.value.violations == ("Field is required: College",)
        assert not orm.Registration.objects.filter(event=event).exists()

    def test_merchandise_event_refused(self, registrations, merch_event, participant):
        with pytest.raises(ValidationFailedError, match="merchandise purchase flow"):
            registrations.register(str(merch_event.pk), uid(participant), {})

    def test_unknown_event(self, registrations, participant):
        with pytest.raises(NotFoundError):
            registrations.register(str(uuid.uuid4()), uid(participant), ANSWERS)

    def test_payload_may_be_json_text(self, registrations, make_event, organizer, participant):
        """Multipart requests send the payload as a JSON string."""
        event = make_event(organizer)
        result = registrations.register(str(event.pk), uid(participant), '{"responses": "{\\"college\\": \\"IIIT\\"}"}')
        assert result.registration.responses["college"]["value"] == "IIIT"

    def test_malformed_payload(self, registrations, make_event, organizer, participant):
        event = make_event(organizer)
        with pytest.raises(ValidationFailedError, match="Invalid registration payload"):
            registrations.register(str(event.pk), uid(participant), "{not json")


@pytest.mark.django_db
class TestFileFields:
    """Tests for FILE form fields."""

    FORM = [{"field_id": "resume", "label": "Resume", "type": "file", "required": True, "options": [], "order": 0}]

    def upload(self, size: int = 4) -> Upload:
        return Upload(name="cv.pdf", content_type="application/pdf", size=size, file=io.BytesIO(b"x" * size))

    def test_file_stored_and_recorded(self, registrations, make_event, organizer, participant, file_storage):
        event = make_event(organizer, custom_form=self.FORM)
        result = registrations.register(str(event.pk), uid(participant), {}, {"file_resume": self.upload()})
        answer = result.registration.responses["resume"]
        assert answer["kind"] == "file"
        assert answer["original_name"] == "cv.pdf"
        assert answer["path"] in file_storage.files

    def test_file_discarded_when_registration_fails(
        self, registrations, make_event, organizer, participant, file_storage
    ):
        """Stored uploads are removed if the registration is refused."""
        event = make_event(organizer, custom_form=self.FORM, registration_limit=1)
        orm.Registration.objects.create(event=event, participant=organizer, status="REGISTERED")

        with pytest.raises(ConflictError):
            registrations.register(str(event.pk), uid(participant), {}, {"file_resume": self.upload()})
        assert file_storage.files == {}
        assert len(file_storage.deleted) == 1

    def test_oversized_file_rejected(self, registrations, make_event, organizer, participant, file_storage, settings):
        event = make_event(organizer, custom_form=self.FORM)
        upload = self.upload(size=settings.REGISTRATION_FILE_MAX_BYTES + 1)
        with pytest.raises(ValidationFailedError, match="File too large for field: Resume"):
            registrations.register(str(event.pk), uid(participant), {}, {"file_resume": upload})
        assert file_storage.files == {}


@pytest.mark.django_db
class TestTeams:
    """Tests for team-based registration."""

    @pytest.fixture
    def team_event(self, make_event, organizer):
        return make_event(organizer, team_based=True, max_team_size=2)

    def register(self, registrations, event, user, action, team):
        return registrations.register(
            str(event.pk), uid(user), {"team_action": action, "team_name": team, **ANSWERS}
        )

    def test_full_team_cannot_be_joined(self, registrations, team_event, make_user):
        """A team of two accepts one joiner, then reports full."""
        p1, p2, p3 = (make_user("participant") for _ in range(3))
        self.register(registrations, team_event, p1, "create", "Alpha")
        joined = self.register(registrations, team_event, p2, "join", "alpha")
        assert joined.registration.team_name == "Alpha"

        with pytest.raises(ValidationFailedError, match="Selected team is full"):
            self.register(registrations, team_event, p3, "join", "Alpha")

    def test_duplicate_team_name(self, registrations, team_event, participant, other_participant):
        self.register(registrations, team_event, participant, "create", "Alpha")
        with pytest.raises(ConflictError, match="Team already exists"):
            self.register(registrations, team_event, other_participant, "create", " ALPHA ")

    def test_join_unknown_team(self, registrations, team_event, participant):
        with pytest.raises(ValidationFailedError, match="Selected team does not exist"):
            self.register(registrations, team_event, participant, "join", "Ghosts")

    def test_team_action_required(self, registrations, team_event, participant):
        with pytest.raises(ValidationFailedError, match="create a team or join"):
            registrations.register(str(team_event.pk), uid(participant), ANSWERS)
