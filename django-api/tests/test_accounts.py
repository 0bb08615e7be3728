"""Tests for admin management of organizer accounts."""

import uuid

import pytest

from accounts.models import User
from accounts.service import PASSWORD_ALPHABET, OrganizerAccountService
from events import models as orm
from events.domain.errors import InvalidIdError, NotFoundError, ValidationFailedError

PROFILE = {
    "organizer_name": "Robotics Club",
    "category": " Robotics ",
    "description": "We build robots",
    "contact_email": "Robo@College.edu",
}


@pytest.fixture
def accounts():
    return OrganizerAccountService(email_domain="clubs.test")


@pytest.mark.django_db
class TestCreateOrganizer:
    """Tests for OrganizerAccountService.create_organizer."""

    def test_credentials_generated(self, accounts):
        """The login e-mail is derived from the name and the password is returned once."""
        credentials = accounts.create_organizer(**PROFILE, contact_number="9876543210")

        assert credentials.email == "robotics.club@clubs.test"
        assert len(credentials.password) == 10
        assert set(credentials.password) <= set(PASSWORD_ALPHABET)

        organizer = User.objects.get(email=credentials.email)
        assert organizer.role == User.Role.ORGANIZER
        assert organizer.category == "Robotics"
        assert organizer.contact_email == "robo@college.edu"
        assert organizer.check_password(credentials.password)

    def test_email_collisions_are_numbered(self, accounts):
        first = accounts.create_organizer(**PROFILE)
        second = accounts.create_organizer(**PROFILE)
        third = accounts.create_organizer(**PROFILE)
        assert [first.email, second.email, third.email] == [
            "robotics.club@clubs.test",
            "robotics.club1@clubs.test",
            "robotics.club2@clubs.test",
        ]

    def test_category_stored_as_given(self, accounts):
        """Any non-blank category is accepted; there is no fixed list."""
        credentials = accounts.create_organizer(**{**PROFILE, "category": "Quizzing"})
        assert credentials.organizer.category == "Quizzing"

    def test_every_violation_reported(self, accounts):
        with pytest.raises(ValidationFailedError) as excinfo:
            accounts.create_organizer(
                organizer_name="",
                category="",
                description="x",
                contact_email="a@b.c",
                contact_number="12345",
            )
        violations = excinfo.value.violations
        assert violations == (
            "Missing required organizer fields",
            "Organizer contact number must be exactly 10 digits",
        )
        assert not User.objects.filter(role=User.Role.ORGANIZER).exists()


@pytest.mark.django_db
class TestOrganizerState:
    """Tests for OrganizerAccountService.set_organizer_state."""

    def test_disable_and_enable(self, accounts, organizer):
        assert accounts.set_organizer_state(str(organizer.pk), "disable") == "Organizer disabled"
        organizer.refresh_from_db()
        assert organizer.disabled

        assert accounts.set_organizer_state(str(organizer.pk), "enable") == "Organizer enabled"
        organizer.refresh_from_db()
        assert not organizer.disabled

    def test_archive_also_disables(self, accounts, organizer):
        assert accounts.set_organizer_state(str(organizer.pk), "Archive") == "Organizer archived"
        organizer.refresh_from_db()
        assert organizer.archived
        assert organizer.disabled

    def test_delete_removes_events(self, accounts, organizer, make_event):
        """Deleting an organizer takes their events with them."""
        make_event(organizer)
        assert accounts.set_organizer_state(str(organizer.pk), "delete") == "Organizer permanently deleted"
        assert not User.objects.filter(pk=organizer.pk).exists()
        assert not orm.Event.objects.exists()

    def test_invalid_action(self, accounts, organizer):
        with pytest.raises(ValidationFailedError, match="disable/enable/archive/delete"):
            accounts.set_organizer_state(str(organizer.pk), "promote")

    def test_invalid_id(self, accounts):
        with pytest.raises(InvalidIdError):
            accounts.set_organizer_state("42", "disable")

    def test_participants_are_not_organizers(self, accounts, participant):
        with pytest.raises(NotFoundError, match="Organizer not found"):
            accounts.set_organizer_state(str(participant.pk), "disable")


@pytest.mark.django_db
class TestOrganizerApi:
    """Tests for the /api/admin/organizers endpoints."""

    def test_create_returns_credentials(self, admin_client, settings):
        response = admin_client.post("/api/admin/organizers", PROFILE, format="json")
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Organizer account created"
        assert body["credentials"]["email"] == f"robotics.club@{settings.ORGANIZER_EMAIL_DOMAIN}"
        assert body["organizer"]["organizer_name"] == "Robotics Club"

    def test_create_reports_violations(self, admin_client):
        response = admin_client.post("/api/admin/organizers", {**PROFILE, "category": ""}, format="json")
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_FAILED"

    def test_list(self, admin_client, organizer, other_organizer):
        response = admin_client.get("/api/admin/organizers")
        assert response.status_code == 200
        assert [row["organizer_name"] for row in response.json()] == ["Drama Club", "Robotics Club"]

    def test_patch_action(self, admin_client, organizer):
        response = admin_client.patch(f"/api/admin/organizers/{organizer.pk}", {"action": "disable"}, format="json")
        assert response.status_code == 200
        assert response.json() == {"message": "Organizer disabled"}

    def test_unknown_organizer(self, admin_client):
        response = admin_client.patch(f"/api/admin/organizers/{uuid.uuid4()}", {"action": "disable"}, format="json")
        assert response.status_code == 404

    def test_organizers_cannot_manage_accounts(self, organizer_client):
        response = organizer_client.get("/api/admin/organizers")
        assert response.status_code == 403
