import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


EVENT_TYPES = [("NORMAL", "NORMAL"), ("MERCHANDISE", "MERCHANDISE")]
EVENT_STATUSES = [
    ("DRAFT", "DRAFT"),
    ("PUBLISHED", "PUBLISHED"),
    ("ONGOING", "ONGOING"),
    ("CLOSED", "CLOSED"),
    ("COMPLETED", "COMPLETED"),
]
REGISTRATION_STATUSES = [
    ("REGISTERED", "REGISTERED"),
    ("COMPLETED", "COMPLETED"),
    ("CANCELLED", "CANCELLED"),
    ("REJECTED", "REJECTED"),
]
ORDER_STATUSES = [
    ("CREATED", "CREATED"),
    ("PENDING_APPROVAL", "PENDING_APPROVAL"),
    ("APPROVED", "APPROVED"),
    ("REJECTED", "REJECTED"),
    ("CANCELLED", "CANCELLED"),
]
TICKET_STATUSES = [("ACTIVE", "ACTIVE"), ("USED", "USED"), ("CANCELLED", "CANCELLED")]
ATTENDANCE_STATUSES = [
    ("SCANNED", "SCANNED"),
    ("DUPLICATE", "DUPLICATE"),
    ("INVALID", "INVALID"),
    ("MANUAL_OVERRIDE", "MANUAL_OVERRIDE"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("type", models.CharField(choices=EVENT_TYPES, default="NORMAL", max_length=20)),
                ("eligibility", models.JSONField(blank=True, default=list)),
                ("tags", models.JSONField(blank=True, default=list)),
                ("registration_deadline", models.DateTimeField()),
                ("start_date", models.DateTimeField()),
                ("end_date", models.DateTimeField()),
                ("registration_limit", models.PositiveIntegerField(default=1)),
                ("registration_fee", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("team_based", models.BooleanField(default=False)),
                ("max_team_size", models.PositiveIntegerField(default=1)),
                ("custom_form", models.JSONField(blank=True, default=list)),
                ("form_locked", models.BooleanField(default=False)),
                ("status", models.CharField(choices=EVENT_STATUSES, default="DRAFT", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "organizer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["start_date"],
                "indexes": [
                    models.Index(fields=["status", "start_date"], name="event_status_start_idx"),
                    models.Index(fields=["organizer", "-created_at"], name="event_organizer_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("registration_deadline__lt", models.F("start_date")))
                        & models.Q(("start_date__lt", models.F("end_date"))),
                        name="event_timeline_ordered",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("registration_limit__gte", 1)), name="event_limit_positive"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="MerchandiseItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("sku", models.CharField(max_length=100)),
                ("name", models.CharField(max_length=255)),
                ("size", models.CharField(blank=True, max_length=50)),
                ("color", models.CharField(blank=True, max_length=50)),
                ("variant", models.CharField(blank=True, max_length=100)),
                ("price", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("stock", models.IntegerField(default=0)),
                ("purchase_limit", models.PositiveIntegerField(default=1)),
                ("position", models.PositiveIntegerField(default=0)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="events.event",
                    ),
                ),
            ],
            options={
                "ordering": ["position"],
                "constraints": [
                    models.UniqueConstraint(fields=("event", "sku"), name="item_unique_sku_per_event"),
                    models.CheckConstraint(condition=models.Q(("stock__gte", 0)), name="item_stock_non_negative"),
                    models.CheckConstraint(
                        condition=models.Q(("purchase_limit__gte", 1)), name="item_purchase_limit_positive"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Registration",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "status",
                    models.CharField(choices=REGISTRATION_STATUSES, default="REGISTERED", max_length=20),
                ),
                ("team_name", models.CharField(blank=True, max_length=255)),
                ("responses", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="registrations",
                        to="events.event",
                    ),
                ),
                (
                    "participant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="registrations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["event", "status"], name="registration_event_status_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("event", "participant"), name="registration_once_per_event"),
                ],
            },
        ),
        migrations.CreateModel(
            name="MerchandiseOrder",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("item_sku", models.CharField(max_length=100)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("amount", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("status", models.CharField(choices=ORDER_STATUSES, default="CREATED", max_length=20)),
                ("payment_proof_path", models.CharField(blank=True, max_length=500)),
                ("payment_proof_name", models.CharField(blank=True, max_length=255)),
                ("payment_proof_mime_type", models.CharField(blank=True, max_length=100)),
                ("review_comment", models.TextField(blank=True)),
                ("reviewed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="orders",
                        to="events.event",
                    ),
                ),
                (
                    "participant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "reviewed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="reviewed_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["event", "status"], name="order_event_status_idx"),
                    models.Index(fields=["event", "participant", "item_sku"], name="order_participant_item_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status__in", ["CREATED", "PENDING_APPROVAL"])),
                        fields=("event", "participant"),
                        name="order_one_open_per_event",
                    ),
                    models.CheckConstraint(condition=models.Q(("quantity__gte", 1)), name="order_quantity_positive"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Ticket",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("ticket_id", models.CharField(max_length=32, unique=True)),
                ("payload", models.TextField()),
                ("qr_image", models.TextField(blank=True)),
                ("status", models.CharField(choices=TICKET_STATUSES, default="ACTIVE", max_length=20)),
                ("issued_at", models.DateTimeField(auto_now_add=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tickets",
                        to="events.event",
                    ),
                ),
                (
                    "participant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tickets",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "registration",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="ticket",
                        to="events.registration",
                    ),
                ),
                (
                    "order",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="ticket",
                        to="events.merchandiseorder",
                    ),
                ),
            ],
            options={
                "ordering": ["-issued_at"],
                "indexes": [models.Index(fields=["event", "participant"], name="ticket_event_participant_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("order__isnull", True), ("registration__isnull", False)),
                            models.Q(("order__isnull", False), ("registration__isnull", True)),
                            _connector="OR",
                        ),
                        name="ticket_single_source",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AttendanceLog",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("status", models.CharField(choices=ATTENDANCE_STATUSES, max_length=20)),
                ("payload", models.TextField(blank=True)),
                ("note", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attendance_logs",
                        to="events.event",
                    ),
                ),
                (
                    "participant",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attendance_logs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "scanned_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="scans_performed",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "ticket",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="attendance_logs",
                        to="events.ticket",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["event", "-created_at"], name="attendance_event_recent_idx")],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "SCANNED")),
                        fields=("event", "participant"),
                        name="attendance_one_scan_per_participant",
                    ),
                ],
            },
        ),
    ]
