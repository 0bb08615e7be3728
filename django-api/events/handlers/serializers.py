"""Serializers for transforming domain models to API responses, and for
checking the shape of request bodies before they reach a service.

Output serializers read attributes off the frozen domain dataclasses; they
never touch the ORM.
"""

from rest_framework import serializers


class PersonSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    email = serializers.EmailField()


class OrganizerSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()


class FormFieldSerializer(serializers.Serializer):
    field_id = serializers.CharField()
    label = serializers.CharField()
    type = serializers.CharField()
    required = serializers.BooleanField()
    options = serializers.ListField(child=serializers.CharField())
    order = serializers.IntegerField()


class MerchandiseItemSerializer(serializers.Serializer):
    sku = serializers.CharField()
    name = serializers.CharField()
    price = serializers.CharField()
    stock = serializers.IntegerField(source="stock.value")
    purchase_limit = serializers.IntegerField()
    size = serializers.CharField()
    color = serializers.CharField()
    variant = serializers.CharField()


class EventSerializer(serializers.Serializer):
    """Serializer for Event domain model."""

    id = serializers.CharField()
    organizer = OrganizerSerializer()
    name = serializers.CharField()
    description = serializers.CharField()
    type = serializers.CharField()
    status = serializers.CharField()
    registration_deadline = serializers.DateTimeField()
    start_date = serializers.DateTimeField()
    end_date = serializers.DateTimeField()
    registration_limit = serializers.IntegerField()
    registration_fee = serializers.DecimalField(max_digits=10, decimal_places=2)
    eligibility = serializers.ListField(child=serializers.CharField())
    tags = serializers.ListField(child=serializers.CharField())
    team_based = serializers.BooleanField()
    max_team_size = serializers.IntegerField()
    form_locked = serializers.BooleanField()
    custom_form = FormFieldSerializer(many=True)
    items = MerchandiseItemSerializer(many=True)
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()


class EventAvailabilitySerializer(serializers.Serializer):
    """An event flattened together with its seat counts."""

    def to_representation(self, instance):
        data = EventSerializer(instance.event).data
        data["occupied_spots"] = instance.occupied_spots
        data["available_spots"] = instance.available_spots
        return data


class TeamOptionSerializer(serializers.Serializer):
    team_key = serializers.CharField()
    team_name = serializers.CharField()
    member_count = serializers.IntegerField()
    available_spots = serializers.IntegerField()
    is_full = serializers.BooleanField()


class OrderSerializer(serializers.Serializer):
    id = serializers.CharField()
    event_id = serializers.CharField()
    participant = PersonSerializer()
    item_sku = serializers.CharField()
    quantity = serializers.IntegerField()
    amount = serializers.CharField()
    status = serializers.CharField()
    payment_proof_name = serializers.CharField()
    payment_proof_mime_type = serializers.CharField()
    review_comment = serializers.CharField()
    reviewed_at = serializers.DateTimeField(allow_null=True)
    ticket_id = serializers.CharField(allow_null=True)
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()


class EventDetailSerializer(serializers.Serializer):
    def to_representation(self, instance):
        data = EventAvailabilitySerializer(instance.availability).data
        data["registration_open"] = instance.registration_open
        data["blocking_reason"] = instance.blocking_reason
        data["is_registered"] = instance.is_registered
        data["latest_order"] = OrderSerializer(instance.latest_order).data if instance.latest_order else None
        data["team_options"] = TeamOptionSerializer(instance.team_options, many=True).data
        return data


class TicketSerializer(serializers.Serializer):
    ticket_id = serializers.CharField()
    event_id = serializers.CharField()
    participant = PersonSerializer()
    payload = serializers.CharField()
    qr_image = serializers.CharField()
    status = serializers.CharField()
    issued_at = serializers.DateTimeField()


class RegistrationSerializer(serializers.Serializer):
    id = serializers.CharField()
    event_id = serializers.CharField()
    participant = PersonSerializer()
    status = serializers.CharField()
    team_name = serializers.CharField()
    responses = serializers.DictField()
    created_at = serializers.DateTimeField()


class AnalyticsSerializer(serializers.Serializer):
    registrations = serializers.IntegerField()
    sales = serializers.IntegerField()
    revenue = serializers.DecimalField(max_digits=12, decimal_places=2)
    attendance = serializers.IntegerField()
    teams = serializers.IntegerField()


class ParticipantRowSerializer(serializers.Serializer):
    participant = PersonSerializer()
    registered_at = serializers.DateTimeField()
    payment = serializers.DecimalField(max_digits=12, decimal_places=2)
    team_name = serializers.CharField()
    attendance = serializers.CharField()
    ticket_id = serializers.CharField(allow_null=True)
    kind = serializers.CharField()


class AttendanceLogSerializer(serializers.Serializer):
    id = serializers.CharField()
    status = serializers.CharField()
    participant = PersonSerializer(allow_null=True)
    ticket_id = serializers.CharField(allow_null=True)
    note = serializers.CharField()
    created_at = serializers.DateTimeField()


class ScanResultSerializer(serializers.Serializer):
    participant = PersonSerializer()
    ticket_id = serializers.CharField()
    scanned_at = serializers.DateTimeField()


class AttendanceDashboardSerializer(serializers.Serializer):
    total_participants = serializers.IntegerField()
    scanned = PersonSerializer(many=True)
    not_scanned = PersonSerializer(many=True)
    recent_logs = AttendanceLogSerializer(many=True)


class AttendanceReportRowSerializer(serializers.Serializer):
    participant = PersonSerializer()
    status = serializers.CharField(source="status_label")
    timestamp = serializers.DateTimeField(allow_null=True)
    method = serializers.CharField(allow_null=True)


# -- request bodies ---------------------------------------------------------------


class EventWriteSerializer(serializers.Serializer):
    """Shape of an event create or PATCH body.

    Every field is optional here; which ones are required, and which may
    change in the event's current status, is decided by the service.
    """

    name = serializers.CharField(required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    type = serializers.CharField(required=False)
    status = serializers.CharField(required=False)
    action = serializers.CharField(required=False)
    registration_deadline = serializers.DateTimeField(required=False)
    start_date = serializers.DateTimeField(required=False)
    end_date = serializers.DateTimeField(required=False)
    registration_limit = serializers.IntegerField(required=False)
    registration_fee = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    eligibility = serializers.ListField(child=serializers.CharField(), required=False)
    tags = serializers.ListField(child=serializers.CharField(), required=False)
    team_based = serializers.BooleanField(required=False)
    max_team_size = serializers.IntegerField(required=False)
    custom_form = serializers.ListField(child=serializers.DictField(), required=False)
    items = serializers.ListField(child=serializers.DictField(), required=False)


class PurchaseSerializer(serializers.Serializer):
    item_sku = serializers.CharField()
    quantity = serializers.IntegerField(required=False, default=1)


class ReviewSerializer(serializers.Serializer):
    action = serializers.CharField()
    comment = serializers.CharField(required=False, allow_blank=True, default="")


class ScanSerializer(serializers.Serializer):
    payload = serializers.CharField(required=False, allow_blank=True, default="")


class ManualOverrideSerializer(serializers.Serializer):
    ticket_id = serializers.CharField(required=False, allow_blank=True, default="")
    participant_email = serializers.CharField(required=False, allow_blank=True, default="")
    note = serializers.CharField(required=False, allow_blank=True, default="")
