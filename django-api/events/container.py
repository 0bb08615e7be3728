"""Simple DI container for the events services.

Stores and ports are built from factories that tests may override; services
are assembled on demand with their collaborators injected.
"""

from collections.abc import Callable
from typing import Any

from django.conf import settings

from events.adapters import ConsoleNotificationSink, DjangoFileStorage, EmailNotificationSink, HttpxWebhookSink
from events.services.attendance_service import AttendanceService
from events.services.capacity_service import CapacityService
from events.services.event_service import EventService
from events.services.merchandise_service import MerchandiseService
from events.services.registration_service import RegistrationService
from events.services.ticket_service import TicketService
from events.stores.django_store import (
    DjangoAttendanceStore,
    DjangoEventStore,
    DjangoOrderStore,
    DjangoParticipantDirectory,
    DjangoRegistrationStore,
    DjangoTicketStore,
)


def _notification_sink():
    if settings.NOTIFICATION_BACKEND == "email":
        return EmailNotificationSink()
    return ConsoleNotificationSink()


class Container:
    """Builds services with their stores and ports injected."""

    def __init__(self) -> None:
        self._factories: dict[str, Callable[[], Any]] = {}
        self._setup_default_factories()

    def _setup_default_factories(self) -> None:
        self._factories = {
            "event_store": DjangoEventStore,
            "registration_store": DjangoRegistrationStore,
            "order_store": DjangoOrderStore,
            "ticket_store": DjangoTicketStore,
            "attendance_store": DjangoAttendanceStore,
            "participant_directory": DjangoParticipantDirectory,
            "notifier": _notification_sink,
            "file_storage": DjangoFileStorage,
            "webhooks": HttpxWebhookSink,
        }

    def _build(self, name: str) -> Any:
        return self._factories[name]()

    def override(self, name: str, factory: Callable[[], Any]) -> None:
        """Replace one factory, e.g. with a fake port in tests."""
        if name not in self._factories:
            raise KeyError(f"Unknown dependency: {name}")
        self._factories[name] = factory

    def reset_to_defaults(self) -> None:
        self._setup_default_factories()

    def capacity_service(self) -> CapacityService:
        return CapacityService(
            registrations=self._build("registration_store"),
            orders=self._build("order_store"),
        )

    def ticket_service(self) -> TicketService:
        return TicketService(
            tickets=self._build("ticket_store"),
            events=self._build("event_store"),
            prefix=settings.TICKET_ID_PREFIX,
            signing_salt=settings.TICKET_SIGNING_SALT,
        )

    def event_service(self) -> EventService:
        return EventService(
            events=self._build("event_store"),
            registrations=self._build("registration_store"),
            orders=self._build("order_store"),
            attendance=self._build("attendance_store"),
            capacity=self.capacity_service(),
            webhooks=self._build("webhooks"),
        )

    def registration_service(self) -> RegistrationService:
        return RegistrationService(
            events=self._build("event_store"),
            registrations=self._build("registration_store"),
            capacity=self.capacity_service(),
            tickets=self.ticket_service(),
            files=self._build("file_storage"),
            notifier=self._build("notifier"),
            max_file_bytes=settings.REGISTRATION_FILE_MAX_BYTES,
        )

    def merchandise_service(self) -> MerchandiseService:
        return MerchandiseService(
            events=self._build("event_store"),
            orders=self._build("order_store"),
            tickets=self.ticket_service(),
            files=self._build("file_storage"),
            notifier=self._build("notifier"),
            max_proof_bytes=settings.PAYMENT_PROOF_MAX_BYTES,
        )

    def attendance_service(self) -> AttendanceService:
        return AttendanceService(
            events=self._build("event_store"),
            tickets=self._build("ticket_store"),
            attendance=self._build("attendance_store"),
            registrations=self._build("registration_store"),
            orders=self._build("order_store"),
            directory=self._build("participant_directory"),
            issuer=self.ticket_service(),
        )


_container = Container()


def get_container() -> Container:
    return _container
