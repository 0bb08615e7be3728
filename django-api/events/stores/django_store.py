"""Django ORM implementation of the store interfaces.

Rows are converted to domain models at the boundary; nothing above this
module sees a QuerySet.
"""

from collections.abc import Iterable
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any
from uuid import UUID

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import F, Sum
from django.utils import timezone

from events import models as orm
from events.domain import (
    AttendanceLog,
    AttendanceStatus,
    Capacity,
    Event,
    EventDraft,
    EventId,
    EventStatus,
    EventType,
    FieldType,
    FormField,
    MerchandiseItem,
    MerchandiseOrder,
    Money,
    OrderId,
    OrderStatus,
    OrganizerProfile,
    Person,
    Registration,
    RegistrationStatus,
    Ticket,
    TicketStatus,
    UserId,
)
from events.domain.enums import COMMITTED_ORDER_STATUSES, PRESENCE_STATUSES, SEAT_HOLDING_REGISTRATION_STATUSES
from events.stores.interfaces import (
    AttendanceStore,
    ConstraintViolation,
    EventStore,
    OrderStore,
    ParticipantDirectory,
    RegistrationStore,
    TicketStore,
)


def _person(user) -> Person:
    return Person(id=UserId(user.pk), name=user.display_name, email=user.email)


def _form_field(raw: dict[str, Any]) -> FormField:
    return FormField(
        field_id=raw["field_id"],
        label=raw.get("label", ""),
        type=FieldType(raw.get("type", FieldType.TEXT)),
        required=bool(raw.get("required", False)),
        options=tuple(raw.get("options") or ()),
        order=int(raw.get("order", 0)),
    )


def _item(row: orm.MerchandiseItem) -> MerchandiseItem:
    return MerchandiseItem(
        sku=row.sku,
        name=row.name,
        price=Money(row.price),
        stock=Capacity(row.stock),
        purchase_limit=row.purchase_limit,
        size=row.size,
        color=row.color,
        variant=row.variant,
    )


def _event(row: orm.Event) -> Event:
    organizer = row.organizer
    return Event(
        id=EventId(row.pk),
        organizer=OrganizerProfile(
            id=UserId(organizer.pk),
            name=organizer.display_name,
            webhook_url=organizer.discord_webhook_url,
        ),
        name=row.name,
        description=row.description,
        type=EventType(row.type),
        registration_deadline=row.registration_deadline,
        start_date=row.start_date,
        end_date=row.end_date,
        registration_limit=row.registration_limit,
        registration_fee=row.registration_fee,
        status=EventStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
        eligibility=tuple(row.eligibility or ()),
        tags=tuple(row.tags or ()),
        team_based=row.team_based,
        max_team_size=row.max_team_size,
        form_locked=row.form_locked,
        custom_form=tuple(_form_field(raw) for raw in row.custom_form or ()),
        items=tuple(_item(item) for item in row.items.all()),
    )


def _registration(row: orm.Registration) -> Registration:
    ticket = getattr(row, "ticket", None)
    return Registration(
        id=row.pk,
        event_id=EventId(row.event_id),
        participant=_person(row.participant),
        status=RegistrationStatus(row.status),
        team_name=row.team_name,
        responses=row.responses or {},
        created_at=row.created_at,
        ticket_id=ticket.ticket_id if ticket else None,
    )


def _order(row: orm.MerchandiseOrder) -> MerchandiseOrder:
    ticket = getattr(row, "ticket", None)
    return MerchandiseOrder(
        id=OrderId(row.pk),
        event_id=EventId(row.event_id),
        participant=_person(row.participant),
        item_sku=row.item_sku,
        quantity=row.quantity,
        amount=Money(row.amount),
        status=OrderStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
        payment_proof_path=row.payment_proof_path,
        payment_proof_name=row.payment_proof_name,
        payment_proof_mime_type=row.payment_proof_mime_type,
        review_comment=row.review_comment,
        reviewed_by=UserId(row.reviewed_by_id) if row.reviewed_by_id else None,
        reviewed_at=row.reviewed_at,
        ticket_id=ticket.ticket_id if ticket else None,
    )


def _ticket(row: orm.Ticket) -> Ticket:
    return Ticket(
        ticket_id=row.ticket_id,
        event_id=EventId(row.event_id),
        participant=_person(row.participant),
        payload=row.payload,
        qr_image=row.qr_image,
        status=TicketStatus(row.status),
        issued_at=row.issued_at,
        registration_id=row.registration_id,
        order_id=OrderId(row.order_id) if row.order_id else None,
    )


def _log(row: orm.AttendanceLog) -> AttendanceLog:
    return AttendanceLog(
        id=row.pk,
        event_id=EventId(row.event_id),
        scanned_by=UserId(row.scanned_by_id),
        status=AttendanceStatus(row.status),
        created_at=row.created_at,
        participant=_person(row.participant) if row.participant_id else None,
        ticket_id=row.ticket.ticket_id if row.ticket_id else None,
        payload=row.payload,
        note=row.note,
    )


class DjangoEventStore(EventStore):
    """Relational event store using Django ORM."""

    def atomic(self) -> AbstractContextManager:
        return transaction.atomic()

    def _queryset(self):
        return orm.Event.objects.select_related("organizer").prefetch_related("items")

    def get_event(self, event_id: EventId, *, for_update: bool = False) -> Event | None:
        if for_update:
            locked = orm.Event.objects.select_for_update().filter(pk=event_id.value).values_list("pk", flat=True)
            if not list(locked):
                return None
        row = self._queryset().filter(pk=event_id.value).first()
        return _event(row) if row else None

    def list_events(
        self,
        *,
        statuses: Iterable[EventStatus] | None = None,
        event_type: EventType | None = None,
        organizer_id: UserId | None = None,
        starts_after: datetime | None = None,
        starts_before: datetime | None = None,
    ) -> list[Event]:
        queryset = self._queryset().order_by("start_date")
        if statuses is not None:
            queryset = queryset.filter(status__in=[str(status) for status in statuses])
        if event_type is not None:
            queryset = queryset.filter(type=event_type)
        if organizer_id is not None:
            queryset = queryset.filter(organizer_id=organizer_id.value)
        if starts_after is not None:
            queryset = queryset.filter(start_date__gte=starts_after)
        if starts_before is not None:
            queryset = queryset.filter(start_date__lte=starts_before)
        return [_event(row) for row in queryset]

    def _write_items(self, event_pk: UUID, items: Iterable[MerchandiseItem]) -> None:
        orm.MerchandiseItem.objects.filter(event_id=event_pk).delete()
        orm.MerchandiseItem.objects.bulk_create(
            [
                orm.MerchandiseItem(
                    event_id=event_pk,
                    sku=item.sku,
                    name=item.name,
                    size=item.size,
                    color=item.color,
                    variant=item.variant,
                    price=item.price.amount,
                    stock=item.stock.value,
                    purchase_limit=item.purchase_limit,
                    position=position,
                )
                for position, item in enumerate(items)
            ]
        )

    def create_event(self, organizer_id: UserId, draft: EventDraft) -> Event:
        with transaction.atomic():
            row = orm.Event.objects.create(
                organizer_id=organizer_id.value,
                name=draft.name,
                description=draft.description,
                type=draft.type,
                eligibility=list(draft.eligibility),
                tags=list(draft.tags),
                registration_deadline=draft.registration_deadline,
                start_date=draft.start_date,
                end_date=draft.end_date,
                registration_limit=draft.registration_limit,
                registration_fee=draft.registration_fee,
                team_based=draft.team_based,
                max_team_size=draft.max_team_size,
                custom_form=[field.to_json() for field in draft.custom_form],
                status=draft.status,
            )
            self._write_items(row.pk, draft.items)
        return self.get_event(EventId(row.pk))

    def save_event(self, event: Event, *, replace_items: bool = False) -> Event:
        with transaction.atomic():
            orm.Event.objects.filter(pk=event.id.value).update(
                name=event.name,
                description=event.description,
                type=event.type,
                eligibility=list(event.eligibility),
                tags=list(event.tags),
                registration_deadline=event.registration_deadline,
                start_date=event.start_date,
                end_date=event.end_date,
                registration_limit=event.registration_limit,
                registration_fee=event.registration_fee,
                team_based=event.team_based,
                max_team_size=event.max_team_size,
                custom_form=[field.to_json() for field in event.custom_form],
                status=event.status,
                updated_at=timezone.now(),
            )
            if replace_items:
                self._write_items(event.id.value, event.items)
        return self.get_event(event.id)

    def lock_form(self, event_id: EventId) -> None:
        orm.Event.objects.filter(pk=event_id.value, form_locked=False).update(form_locked=True)

    def get_item(self, event_id: EventId, sku: str, *, for_update: bool = False) -> MerchandiseItem | None:
        queryset = orm.MerchandiseItem.objects.filter(event_id=event_id.value, sku=sku)
        if for_update:
            queryset = queryset.select_for_update()
        row = queryset.first()
        return _item(row) if row else None

    def decrement_stock(self, event_id: EventId, sku: str, quantity: int) -> bool:
        try:
            with transaction.atomic():
                updated = orm.MerchandiseItem.objects.filter(
                    event_id=event_id.value, sku=sku, stock__gte=quantity
                ).update(stock=F("stock") - quantity)
        except IntegrityError:
            return False
        return updated == 1


class DjangoRegistrationStore(RegistrationStore):
    """Relational registration store using Django ORM."""

    def _queryset(self):
        return orm.Registration.objects.select_related("participant", "ticket")

    def count_seat_holding(self, event_id: EventId) -> int:
        return orm.Registration.objects.filter(
            event_id=event_id.value, status__in=SEAT_HOLDING_REGISTRATION_STATUSES
        ).count()

    def get_for_participant(self, event_id: EventId, participant_id: UserId) -> Registration | None:
        row = self._queryset().filter(event_id=event_id.value, participant_id=participant_id.value).first()
        return _registration(row) if row else None

    def team_names(self, event_id: EventId) -> list[str]:
        return list(
            orm.Registration.objects.filter(
                event_id=event_id.value, status__in=SEAT_HOLDING_REGISTRATION_STATUSES
            )
            .exclude(team_name="")
            .order_by("created_at")
            .values_list("team_name", flat=True)
        )

    def create(
        self,
        event_id: EventId,
        participant_id: UserId,
        team_name: str,
        responses: dict[str, dict[str, Any]],
    ) -> Registration:
        try:
            with transaction.atomic():
                row = orm.Registration.objects.create(
                    event_id=event_id.value,
                    participant_id=participant_id.value,
                    team_name=team_name,
                    responses=responses,
                )
        except IntegrityError as exc:
            raise ConstraintViolation("registration_once_per_event") from exc
        return _registration(self._queryset().get(pk=row.pk))

    def list_for_event(self, event_id: EventId, *, seat_holding_only: bool = False) -> list[Registration]:
        queryset = self._queryset().filter(event_id=event_id.value).order_by("created_at")
        if seat_holding_only:
            queryset = queryset.filter(status__in=SEAT_HOLDING_REGISTRATION_STATUSES)
        return [_registration(row) for row in queryset]


class DjangoOrderStore(OrderStore):
    """Relational merchandise order store using Django ORM."""

    def _queryset(self):
        return orm.MerchandiseOrder.objects.select_related("participant", "ticket")

    def approved_quantity(self, event_id: EventId) -> int:
        total = orm.MerchandiseOrder.objects.filter(
            event_id=event_id.value, status=OrderStatus.APPROVED
        ).aggregate(total=Sum("quantity"))["total"]
        return total or 0

    def get_open_order(self, event_id: EventId, participant_id: UserId) -> MerchandiseOrder | None:
        row = (
            self._queryset()
            .filter(
                event_id=event_id.value,
                participant_id=participant_id.value,
                status__in=[OrderStatus.CREATED, OrderStatus.PENDING_APPROVAL],
            )
            .first()
        )
        return _order(row) if row else None

    def committed_quantity(self, event_id: EventId, participant_id: UserId, sku: str) -> int:
        total = orm.MerchandiseOrder.objects.filter(
            event_id=event_id.value,
            participant_id=participant_id.value,
            item_sku=sku,
            status__in=COMMITTED_ORDER_STATUSES,
        ).aggregate(total=Sum("quantity"))["total"]
        return total or 0

    def create(
        self,
        event_id: EventId,
        participant_id: UserId,
        item: MerchandiseItem,
        quantity: int,
    ) -> MerchandiseOrder:
        try:
            with transaction.atomic():
                row = orm.MerchandiseOrder.objects.create(
                    event_id=event_id.value,
                    participant_id=participant_id.value,
                    item_sku=item.sku,
                    quantity=quantity,
                    amount=item.price.times(quantity).amount,
                )
        except IntegrityError as exc:
            raise ConstraintViolation("order_one_open_per_event") from exc
        return _order(self._queryset().get(pk=row.pk))

    def get(self, order_id: OrderId, *, for_update: bool = False) -> MerchandiseOrder | None:
        if for_update:
            locked = orm.MerchandiseOrder.objects.select_for_update().filter(pk=order_id.value)
            if not list(locked.values_list("pk", flat=True)):
                return None
        row = self._queryset().filter(pk=order_id.value).first()
        return _order(row) if row else None

    def save(self, order: MerchandiseOrder) -> MerchandiseOrder:
        row = orm.MerchandiseOrder.objects.get(pk=order.id.value)
        row.status = order.status
        row.payment_proof_path = order.payment_proof_path
        row.payment_proof_name = order.payment_proof_name
        row.payment_proof_mime_type = order.payment_proof_mime_type
        row.review_comment = order.review_comment
        row.reviewed_by_id = order.reviewed_by.value if order.reviewed_by else None
        row.reviewed_at = order.reviewed_at
        try:
            with transaction.atomic():
                row.save()
        except IntegrityError as exc:
            raise ConstraintViolation("order_one_open_per_event") from exc
        return _order(self._queryset().get(pk=row.pk))

    def list_for_event(self, event_id: EventId, *, status: OrderStatus | None = None) -> list[MerchandiseOrder]:
        queryset = self._queryset().filter(event_id=event_id.value).order_by("-created_at")
        if status is not None:
            queryset = queryset.filter(status=status)
        return [_order(row) for row in queryset]

    def list_for_participant(self, participant_id: UserId) -> list[MerchandiseOrder]:
        queryset = self._queryset().filter(participant_id=participant_id.value).order_by("-created_at")
        return [_order(row) for row in queryset]


class DjangoTicketStore(TicketStore):
    """Relational ticket store using Django ORM."""

    def _queryset(self):
        return orm.Ticket.objects.select_related("participant")

    def ticket_id_exists(self, ticket_id: str) -> bool:
        return orm.Ticket.objects.filter(ticket_id=ticket_id).exists()

    def create(
        self,
        *,
        ticket_id: str,
        event_id: EventId,
        participant_id: UserId,
        payload: str,
        qr_image: str,
        registration_id: UUID | None = None,
        order_id: OrderId | None = None,
    ) -> Ticket:
        try:
            with transaction.atomic():
                row = orm.Ticket.objects.create(
                    ticket_id=ticket_id,
                    event_id=event_id.value,
                    participant_id=participant_id.value,
                    payload=payload,
                    qr_image=qr_image,
                    registration_id=registration_id,
                    order_id=order_id.value if order_id else None,
                )
        except IntegrityError as exc:
            raise ConstraintViolation("ticket_unique") from exc
        return _ticket(self._queryset().get(pk=row.pk))

    def get(self, ticket_id: str, *, event_id: EventId | None = None, for_update: bool = False) -> Ticket | None:
        filters: dict[str, Any] = {"ticket_id": ticket_id}
        if event_id is not None:
            filters["event_id"] = event_id.value
        if for_update:
            if not list(orm.Ticket.objects.select_for_update().filter(**filters).values_list("pk", flat=True)):
                return None
        row = self._queryset().filter(**filters).first()
        return _ticket(row) if row else None

    def set_status(self, ticket_id: str, status: TicketStatus) -> None:
        orm.Ticket.objects.filter(ticket_id=ticket_id).update(status=status)


class DjangoAttendanceStore(AttendanceStore):
    """Relational attendance ledger using Django ORM."""

    def append(
        self,
        *,
        event_id: EventId,
        scanned_by: UserId,
        status: AttendanceStatus,
        participant_id: UserId | None = None,
        ticket_id: str | None = None,
        payload: str = "",
        note: str = "",
    ) -> AttendanceLog:
        ticket_pk = None
        if ticket_id:
            ticket_pk = orm.Ticket.objects.filter(ticket_id=ticket_id).values_list("pk", flat=True).first()
        try:
            with transaction.atomic():
                row = orm.AttendanceLog.objects.create(
                    event_id=event_id.value,
                    scanned_by_id=scanned_by.value,
                    status=status,
                    participant_id=participant_id.value if participant_id else None,
                    ticket_id=ticket_pk,
                    payload=payload,
                    note=note,
                )
        except IntegrityError as exc:
            raise ConstraintViolation("attendance_one_scan_per_participant") from exc
        return _log(orm.AttendanceLog.objects.select_related("participant", "ticket").get(pk=row.pk))

    def has_presence(self, event_id: EventId, participant_id: UserId) -> bool:
        return orm.AttendanceLog.objects.filter(
            event_id=event_id.value,
            participant_id=participant_id.value,
            status__in=PRESENCE_STATUSES,
        ).exists()

    def list_for_event(
        self,
        event_id: EventId,
        *,
        statuses: Iterable[AttendanceStatus] | None = None,
        limit: int | None = None,
    ) -> list[AttendanceLog]:
        queryset = (
            orm.AttendanceLog.objects.select_related("participant", "ticket")
            .filter(event_id=event_id.value)
            .order_by("-created_at")
        )
        if statuses is not None:
            queryset = queryset.filter(status__in=[str(status) for status in statuses])
        if limit is not None:
            queryset = queryset[:limit]
        return [_log(row) for row in queryset]


class DjangoParticipantDirectory(ParticipantDirectory):
    """Participant identities read from the account table."""

    def find_participant_by_email(self, email: str) -> Person | None:
        user = (
            get_user_model()
            .objects.filter(email__iexact=email.strip(), role=get_user_model().Role.PARTICIPANT)
            .first()
        )
        return _person(user) if user else None
