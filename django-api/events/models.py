"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/.
Constraints declared here are the final word on every race-prone rule:
a service pre-check may be lost to a concurrent request, the constraint
may not.
"""

import uuid

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from events.domain.enums import (
    AttendanceStatus,
    EventStatus,
    EventType,
    OrderStatus,
    RegistrationStatus,
    TicketStatus,
)


def _choices(enum) -> list[tuple[str, str]]:
    return [(member.value, member.value) for member in enum]


class Event(models.Model):
    """Persistence model for events."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organizer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="events")
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    type = models.CharField(max_length=20, choices=_choices(EventType), default=EventType.NORMAL)
    eligibility = models.JSONField(default=list, blank=True)
    tags = models.JSONField(default=list, blank=True)
    registration_deadline = models.DateTimeField()
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    registration_limit = models.PositiveIntegerField(default=1)
    registration_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    team_based = models.BooleanField(default=False)
    max_team_size = models.PositiveIntegerField(default=1)
    custom_form = models.JSONField(default=list, blank=True)
    form_locked = models.BooleanField(default=False)
    status = models.CharField(max_length=20, choices=_choices(EventStatus), default=EventStatus.DRAFT)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["start_date"]
        indexes = [
            models.Index(fields=["status", "start_date"], name="event_status_start_idx"),
            models.Index(fields=["organizer", "-created_at"], name="event_organizer_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(registration_deadline__lt=F("start_date")) & Q(start_date__lt=F("end_date")),
                name="event_timeline_ordered",
            ),
            models.CheckConstraint(condition=Q(registration_limit__gte=1), name="event_limit_positive"),
        ]

    def __str__(self) -> str:
        return self.name


class MerchandiseItem(models.Model):
    """Persistence model for merchandise stock."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="items")
    sku = models.CharField(max_length=100)
    name = models.CharField(max_length=255)
    size = models.CharField(max_length=50, blank=True)
    color = models.CharField(max_length=50, blank=True)
    variant = models.CharField(max_length=100, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    stock = models.IntegerField(default=0)
    purchase_limit = models.PositiveIntegerField(default=1)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position"]
        constraints = [
            models.UniqueConstraint(fields=["event", "sku"], name="item_unique_sku_per_event"),
            models.CheckConstraint(condition=Q(stock__gte=0), name="item_stock_non_negative"),
            models.CheckConstraint(condition=Q(purchase_limit__gte=1), name="item_purchase_limit_positive"),
        ]

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"


class Registration(models.Model):
    """Persistence model for NORMAL event registrations."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="registrations")
    participant = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="registrations"
    )
    status = models.CharField(
        max_length=20, choices=_choices(RegistrationStatus), default=RegistrationStatus.REGISTERED
    )
    team_name = models.CharField(max_length=255, blank=True)
    responses = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["event", "status"], name="registration_event_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["event", "participant"], name="registration_once_per_event"),
        ]

    def __str__(self) -> str:
        return f"{self.participant_id} @ {self.event_id}"


class MerchandiseOrder(models.Model):
    """Persistence model for merchandise orders."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="orders")
    participant = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="orders")
    item_sku = models.CharField(max_length=100)
    quantity = models.PositiveIntegerField(default=1)
    amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    status = models.CharField(max_length=20, choices=_choices(OrderStatus), default=OrderStatus.CREATED)
    payment_proof_path = models.CharField(max_length=500, blank=True)
    payment_proof_name = models.CharField(max_length=255, blank=True)
    payment_proof_mime_type = models.CharField(max_length=100, blank=True)
    review_comment = models.TextField(blank=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reviewed_orders",
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["event", "status"], name="order_event_status_idx"),
            models.Index(fields=["event", "participant", "item_sku"], name="order_participant_item_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["event", "participant"],
                condition=Q(status__in=[OrderStatus.CREATED, OrderStatus.PENDING_APPROVAL]),
                name="order_one_open_per_event",
            ),
            models.CheckConstraint(condition=Q(quantity__gte=1), name="order_quantity_positive"),
        ]

    def __str__(self) -> str:
        return f"{self.item_sku} x{self.quantity} ({self.status})"


class Ticket(models.Model):
    """Persistence model for issued tickets."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    ticket_id = models.CharField(max_length=32, unique=True)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="tickets")
    participant = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="tickets")
    registration = models.OneToOneField(
        Registration, on_delete=models.CASCADE, null=True, blank=True, related_name="ticket"
    )
    order = models.OneToOneField(
        MerchandiseOrder, on_delete=models.CASCADE, null=True, blank=True, related_name="ticket"
    )
    payload = models.TextField()
    qr_image = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=_choices(TicketStatus), default=TicketStatus.ACTIVE)
    issued_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-issued_at"]
        indexes = [
            models.Index(fields=["event", "participant"], name="ticket_event_participant_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(registration__isnull=False, order__isnull=True)
                    | Q(registration__isnull=True, order__isnull=False)
                ),
                name="ticket_single_source",
            ),
        ]

    def __str__(self) -> str:
        return self.ticket_id


class AttendanceLog(models.Model):
    """Persistence model for the append-only attendance ledger."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="attendance_logs")
    ticket = models.ForeignKey(
        Ticket, on_delete=models.SET_NULL, null=True, blank=True, related_name="attendance_logs"
    )
    participant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="attendance_logs",
    )
    scanned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="scans_performed"
    )
    status = models.CharField(max_length=20, choices=_choices(AttendanceStatus))
    payload = models.TextField(blank=True)
    note = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["event", "-created_at"], name="attendance_event_recent_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["event", "participant"],
                condition=Q(status=AttendanceStatus.SCANNED),
                name="attendance_one_scan_per_participant",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.status} @ {self.event_id}"

    def save(self, *args, **kwargs) -> None:
        if not self._state.adding:
            raise ValueError("Attendance logs are append-only")
        super().save(*args, **kwargs)
