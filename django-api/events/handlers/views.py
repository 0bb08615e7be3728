"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses (events.handlers.errors)
- Never contain business logic
- Never expose internal error details
"""

from django.utils.dateparse import parse_datetime
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from events.container import get_container
from events.domain import UserId
from events.domain.errors import InvalidIdError, ValidationFailedError
from events.handlers.permissions import IsActiveAccount, IsOrganizer, IsParticipant
from events.handlers.serializers import (
    AnalyticsSerializer,
    AttendanceDashboardSerializer,
    AttendanceLogSerializer,
    AttendanceReportRowSerializer,
    EventAvailabilitySerializer,
    EventDetailSerializer,
    EventWriteSerializer,
    ManualOverrideSerializer,
    OrderSerializer,
    ParticipantRowSerializer,
    PurchaseSerializer,
    RegistrationSerializer,
    ReviewSerializer,
    ScanResultSerializer,
    ScanSerializer,
    TicketSerializer,
)
from events.ports import Upload

REGISTRATION_KEYS = ("team_action", "team_name", "responses")


def _actor(request: Request) -> UserId:
    return UserId(request.user.pk)


def _validated(serializer_class, data, *, partial: bool = False) -> dict:
    """Run an input serializer and report its errors in the domain error shape."""
    serializer = serializer_class(data=data, partial=partial)
    if not serializer.is_valid():
        violations = [
            f"{field}: {message}"
            for field, messages in serializer.errors.items()
            for message in (messages if isinstance(messages, list) else [messages])
        ]
        raise ValidationFailedError(violations[0], violations)
    return dict(serializer.validated_data)


def _undeclared(serializer_class, data) -> dict:
    """Body keys the serializer does not know; the service decides whether they are allowed."""
    declared = serializer_class().fields
    return {key: data[key] for key in data if key not in declared}


def _as_upload(uploaded) -> Upload:
    return Upload(
        name=uploaded.name,
        content_type=uploaded.content_type or "application/octet-stream",
        size=uploaded.size,
        file=uploaded,
    )


def _query_datetime(request: Request, name: str):
    raw = request.query_params.get(name)
    if not raw:
        return None
    value = parse_datetime(raw)
    if value is None:
        raise ValidationFailedError(f"Invalid date-time for {name}")
    return value


def _query_user(request: Request, name: str) -> UserId | None:
    raw = request.query_params.get(name)
    if not raw:
        return None
    try:
        return UserId.from_string(raw)
    except ValueError as exc:
        raise InvalidIdError("organizer ID") from exc


# -- participant facing -------------------------------------------------------------


class EventListView(APIView):
    """Handler for GET /api/events"""

    permission_classes = [IsActiveAccount]

    def get(self, request: Request) -> Response:
        params = request.query_params
        events = get_container().event_service().list_events(
            event_type=params.get("type"),
            eligibility=params.get("eligibility"),
            organizer_id=_query_user(request, "organizer"),
            starts_after=_query_datetime(request, "starts_after"),
            starts_before=_query_datetime(request, "starts_before"),
            search=params.get("search", ""),
        )
        return Response(EventAvailabilitySerializer(events, many=True).data)


class EventDetailView(APIView):
    """Handler for GET /api/events/{event_id}"""

    permission_classes = [IsActiveAccount]

    def get(self, request: Request, event_id: str) -> Response:
        detail = get_container().event_service().event_detail(event_id, viewer_id=_actor(request))
        return Response(EventDetailSerializer(detail).data)


class RegistrationView(APIView):
    """Handler for POST /api/events/{event_id}/register

    Accepts JSON, or multipart with a ``payload`` JSON string and
    ``file_<field_id>`` parts for FILE fields.
    """

    permission_classes = [IsParticipant]

    def post(self, request: Request, event_id: str) -> Response:
        if "payload" in request.data:
            payload = request.data.get("payload")
        else:
            payload = {key: request.data.get(key) for key in REGISTRATION_KEYS if key in request.data}
        uploads = {key: _as_upload(uploaded) for key, uploaded in request.FILES.items()}

        result = get_container().registration_service().register(event_id, _actor(request), payload, uploads)
        return Response(
            {
                "registration": RegistrationSerializer(result.registration).data,
                "ticket": TicketSerializer(result.ticket).data,
            },
            status=status.HTTP_201_CREATED,
        )


class PurchaseView(APIView):
    """Handler for POST /api/events/{event_id}/purchase"""

    permission_classes = [IsParticipant]

    def post(self, request: Request, event_id: str) -> Response:
        data = _validated(PurchaseSerializer, request.data)
        order = get_container().merchandise_service().purchase(
            event_id, _actor(request), data["item_sku"], data["quantity"]
        )
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class PaymentProofView(APIView):
    """Handler for POST /api/orders/{order_id}/proof (multipart field ``proof``)"""

    permission_classes = [IsParticipant]

    def post(self, request: Request, order_id: str) -> Response:
        uploaded = request.FILES.get("proof")
        if uploaded is None:
            raise ValidationFailedError("Payment proof file is required")
        order = get_container().merchandise_service().upload_proof(order_id, _actor(request), _as_upload(uploaded))
        return Response(OrderSerializer(order).data)


class MyOrdersView(APIView):
    """Handler for GET /api/orders/me"""

    permission_classes = [IsParticipant]

    def get(self, request: Request) -> Response:
        orders = get_container().merchandise_service().list_orders_for_participant(_actor(request))
        return Response(OrderSerializer(orders, many=True).data)


class TicketDetailView(APIView):
    """Handler for GET /api/tickets/{ticket_id}"""

    permission_classes = [IsActiveAccount]

    def get(self, request: Request, ticket_id: str) -> Response:
        ticket = get_container().ticket_service().get_ticket(
            ticket_id, _actor(request), viewer_is_admin=request.user.role == "admin"
        )
        return Response(TicketSerializer(ticket).data)


# -- organizer facing ---------------------------------------------------------------


class OrganizerEventListView(APIView):
    """Handler for GET/POST /api/organizer/events"""

    permission_classes = [IsOrganizer]

    def get(self, request: Request) -> Response:
        events = get_container().event_service().list_organizer_events(
            _actor(request), status=request.query_params.get("status")
        )
        return Response(EventAvailabilitySerializer(events, many=True).data)

    def post(self, request: Request) -> Response:
        data = _validated(EventWriteSerializer, request.data)
        service = get_container().event_service()
        event = service.create_event(_actor(request), data)
        availability = service.get_organizer_event(str(event.id), _actor(request))
        return Response(EventAvailabilitySerializer(availability).data, status=status.HTTP_201_CREATED)


class OrganizerEventDetailView(APIView):
    """Handler for GET/PATCH /api/organizer/events/{event_id}"""

    permission_classes = [IsOrganizer]

    def get(self, request: Request, event_id: str) -> Response:
        service = get_container().event_service()
        availability = service.get_organizer_event(event_id, _actor(request))
        data = EventAvailabilitySerializer(availability).data
        data["analytics"] = AnalyticsSerializer(service.event_analytics(event_id, _actor(request))).data
        return Response(data)

    def patch(self, request: Request, event_id: str) -> Response:
        changes = _validated(EventWriteSerializer, request.data, partial=True)
        changes.update(_undeclared(EventWriteSerializer, request.data))
        service = get_container().event_service()
        service.update_event(event_id, _actor(request), changes)
        return Response(EventAvailabilitySerializer(service.get_organizer_event(event_id, _actor(request))).data)


class EventParticipantsView(APIView):
    """Handler for GET /api/organizer/events/{event_id}/participants"""

    permission_classes = [IsOrganizer]

    def get(self, request: Request, event_id: str) -> Response:
        rows = get_container().event_service().event_participants(
            event_id, _actor(request), search=request.query_params.get("search", "")
        )
        return Response(ParticipantRowSerializer(rows, many=True).data)


class EventOrdersView(APIView):
    """Handler for GET /api/organizer/events/{event_id}/orders"""

    permission_classes = [IsOrganizer]

    def get(self, request: Request, event_id: str) -> Response:
        orders = get_container().merchandise_service().list_orders_for_event(
            event_id, _actor(request), status=request.query_params.get("status")
        )
        return Response(OrderSerializer(orders, many=True).data)


class OrderReviewView(APIView):
    """Handler for PATCH /api/organizer/orders/{order_id}/review"""

    permission_classes = [IsOrganizer]

    def patch(self, request: Request, order_id: str) -> Response:
        data = _validated(ReviewSerializer, request.data)
        order = get_container().merchandise_service().review(
            order_id, _actor(request), data["action"], data["comment"]
        )
        return Response(OrderSerializer(order).data)


# -- attendance ---------------------------------------------------------------------


class ScanView(APIView):
    """Handler for POST /api/attendance/scan"""

    permission_classes = [IsOrganizer]

    def post(self, request: Request) -> Response:
        data = _validated(ScanSerializer, request.data)
        event_id = str(request.data.get("event_id") or "")
        result = get_container().attendance_service().scan(event_id, _actor(request), data["payload"])
        return Response(ScanResultSerializer(result).data)


class ManualOverrideView(APIView):
    """Handler for POST /api/attendance/manual-override"""

    permission_classes = [IsOrganizer]

    def post(self, request: Request) -> Response:
        data = _validated(ManualOverrideSerializer, request.data)
        event_id = str(request.data.get("event_id") or "")
        log = get_container().attendance_service().manual_override(
            event_id,
            _actor(request),
            ticket_id=data["ticket_id"],
            participant_email=data["participant_email"],
            note=data["note"],
        )
        return Response(AttendanceLogSerializer(log).data, status=status.HTTP_201_CREATED)


class AttendanceDashboardView(APIView):
    """Handler for GET /api/attendance/{event_id}/dashboard"""

    permission_classes = [IsOrganizer]

    def get(self, request: Request, event_id: str) -> Response:
        dashboard = get_container().attendance_service().dashboard(event_id, _actor(request))
        return Response(AttendanceDashboardSerializer(dashboard).data)


class AttendanceReportView(APIView):
    """Handler for GET /api/attendance/{event_id}/report"""

    permission_classes = [IsOrganizer]

    def get(self, request: Request, event_id: str) -> Response:
        rows = get_container().attendance_service().report(event_id, _actor(request))
        return Response(AttendanceReportRowSerializer(rows, many=True).data)
