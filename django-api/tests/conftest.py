"""Pytest configuration and shared fixtures."""

import itertools
from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from events.container import get_container
from events.ports import FileStorage, NotificationSink, WebhookSink

_sequence = itertools.count(1)


class RecordingNotifier(NotificationSink):
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    def send(self, to_address: str, subject: str, body: str) -> None:
        self.sent.append((to_address, subject, body))


class InMemoryFileStorage(FileStorage):
    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}
        self.deleted: list[str] = []

    def store(self, upload, folder: str) -> str:
        path = f"{folder}/{next(_sequence)}-{upload.name}"
        self.files[path] = upload.file.read()
        return path

    def delete(self, path: str) -> None:
        self.deleted.append(path)
        self.files.pop(path, None)


class RecordingWebhooks(WebhookSink):
    def __init__(self) -> None:
        self.posts: list[tuple[str, dict]] = []

    def post(self, url: str, payload: dict) -> None:
        self.posts.append((url, payload))


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def file_storage() -> InMemoryFileStorage:
    return InMemoryFileStorage()


@pytest.fixture
def webhooks() -> RecordingWebhooks:
    return RecordingWebhooks()


@pytest.fixture(autouse=True)
def container(notifier, file_storage, webhooks):
    """The shared container with outbound ports replaced by recorders."""
    container = get_container()
    container.override("notifier", lambda: notifier)
    container.override("file_storage", lambda: file_storage)
    container.override("webhooks", lambda: webhooks)
    yield container
    container.reset_to_defaults()


@pytest.fixture
def make_user(db):
    from accounts.models import User

    def _make(role: str = User.Role.PARTICIPANT, **fields):
        number = next(_sequence)
        username = fields.pop("username", f"{role}{number}")
        fields.setdefault("email", f"{username}@example.com")
        return User.objects.create_user(username=username, password="secret-pass", role=role, **fields)

    return _make


@pytest.fixture
def participant(make_user):
    return make_user("participant", first_name="Asha", last_name="Rao")


@pytest.fixture
def other_participant(make_user):
    return make_user("participant", first_name="Ravi", last_name="Kumar")


@pytest.fixture
def organizer(make_user):
    return make_user("organizer", organizer_name="Robotics Club")


@pytest.fixture
def other_organizer(make_user):
    return make_user("organizer", organizer_name="Drama Club")


@pytest.fixture
def admin_user(make_user):
    return make_user("admin")


DEFAULT_FORM = [
    {"field_id": "college", "label": "College", "type": "text", "required": True, "options": [], "order": 0},
]


@pytest.fixture
def make_event(db):
    """Create an event row directly; defaults give an open NORMAL event with one required field."""
    from events import models as orm

    def _make(organizer, *, items=(), **fields):
        now = timezone.now()
        fields.setdefault("name", f"Event {next(_sequence)}")
        fields.setdefault("description", "An event")
        fields.setdefault("type", "NORMAL")
        fields.setdefault("status", "PUBLISHED")
        fields.setdefault("registration_deadline", now + timedelta(days=1))
        fields.setdefault("start_date", now + timedelta(days=2))
        fields.setdefault("end_date", now + timedelta(days=3))
        fields.setdefault("registration_limit", 10)
        if fields["type"] == "NORMAL":
            fields.setdefault("custom_form", DEFAULT_FORM)
        event = orm.Event.objects.create(organizer=organizer, **fields)
        for position, item in enumerate(items):
            orm.MerchandiseItem.objects.create(event=event, position=position, **item)
        return event

    return _make


@pytest.fixture
def merch_event(make_event, organizer):
    return make_event(
        organizer,
        type="MERCHANDISE",
        registration_limit=100,
        items=[{"sku": "TEE-M", "name": "Fest Tee", "price": "250.00", "stock": 5, "purchase_limit": 2}],
    )


@pytest.fixture
def participant_client(api_client, participant) -> APIClient:
    api_client.force_authenticate(user=participant)
    return api_client


@pytest.fixture
def organizer_client(organizer) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=organizer)
    return client


@pytest.fixture
def admin_client(admin_user) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client
