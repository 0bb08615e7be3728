"""Admin-only HTTP handlers for organizer accounts."""

from rest_framework import serializers, status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.service import OrganizerAccountService
from events.domain.errors import ValidationFailedError
from events.handlers.permissions import IsAdmin


class OrganizerSerializer(serializers.Serializer):
    id = serializers.CharField()
    email = serializers.EmailField()
    organizer_name = serializers.CharField()
    category = serializers.CharField()
    description = serializers.CharField()
    contact_email = serializers.CharField()
    contact_number = serializers.CharField()
    disabled = serializers.BooleanField()
    archived = serializers.BooleanField()


class OrganizerCreateSerializer(serializers.Serializer):
    organizer_name = serializers.CharField(required=False, allow_blank=True, default="")
    category = serializers.CharField(required=False, allow_blank=True, default="")
    description = serializers.CharField(required=False, allow_blank=True, default="")
    contact_email = serializers.CharField(required=False, allow_blank=True, default="")
    contact_number = serializers.CharField(required=False, allow_blank=True, default="")
    discord_webhook_url = serializers.URLField(required=False, allow_blank=True, default="")


class OrganizerListView(APIView):
    """Handler for GET/POST /api/admin/organizers"""

    permission_classes = [IsAdmin]

    def get(self, request: Request) -> Response:
        organizers = OrganizerAccountService().list_organizers()
        return Response(OrganizerSerializer(organizers, many=True).data)

    def post(self, request: Request) -> Response:
        serializer = OrganizerCreateSerializer(data=request.data)
        if not serializer.is_valid():
            violations = [f"{field}: {messages[0]}" for field, messages in serializer.errors.items()]
            raise ValidationFailedError(violations[0], violations)

        credentials = OrganizerAccountService().create_organizer(**serializer.validated_data)
        return Response(
            {
                "message": "Organizer account created",
                "organizer": OrganizerSerializer(credentials.organizer).data,
                "credentials": {"email": credentials.email, "password": credentials.password},
            },
            status=status.HTTP_201_CREATED,
        )


class OrganizerDetailView(APIView):
    """Handler for PATCH /api/admin/organizers/{organizer_id}"""

    permission_classes = [IsAdmin]

    def patch(self, request: Request, organizer_id: str) -> Response:
        message = OrganizerAccountService().set_organizer_state(organizer_id, request.data.get("action", ""))
        return Response({"message": message})
