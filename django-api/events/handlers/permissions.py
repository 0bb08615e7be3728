"""Role checks for the HTTP handlers. Disabled accounts are refused everywhere."""

from rest_framework.permissions import BasePermission


class IsActiveAccount(BasePermission):
    message = "Account is disabled"

    def has_permission(self, request, view) -> bool:
        user = request.user
        return bool(user and user.is_authenticated and not getattr(user, "disabled", False))


class HasRole(IsActiveAccount):
    role: str = ""

    def has_permission(self, request, view) -> bool:
        if not super().has_permission(request, view):
            return False
        return getattr(request.user, "role", None) == self.role


class IsParticipant(HasRole):
    message = "Participant access required"
    role = "participant"


class IsOrganizer(HasRole):
    message = "Organizer access required"
    role = "organizer"


class IsAdmin(HasRole):
    message = "Admin access required"
    role = "admin"
