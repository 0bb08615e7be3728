"""Admin management of organizer accounts.

Organizers never sign up themselves: an admin creates the account, and the
generated login e-mail and password are handed back exactly once.
"""

import re
import secrets
from dataclasses import dataclass

import structlog
from django.conf import settings
from django.db import transaction

from accounts.models import User
from events.domain import UserId
from events.domain.errors import InvalidIdError, NotFoundError, ValidationFailedError

logger = structlog.get_logger(__name__)

ORGANIZER_ACTIONS = ("disable", "enable", "archive", "delete")
PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz23456789@#$%"
PASSWORD_LENGTH = 10
SLUG_MAX_LENGTH = 30


@dataclass(frozen=True)
class OrganizerCredentials:
    organizer: User
    email: str
    password: str


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def login_email_for(organizer_name: str, domain: str) -> str:
    """Return the first free ``<slug>[n]@domain`` address for an organizer name."""
    base = re.sub(r"[^a-z0-9]+", ".", organizer_name.strip().lower()).strip(".")[:SLUG_MAX_LENGTH] or "organizer"
    candidate = f"{base}@{domain}"
    counter = 1
    while User.objects.filter(email__iexact=candidate).exists():
        candidate = f"{base}{counter}@{domain}"
        counter += 1
    return candidate


class OrganizerAccountService:
    def __init__(self, email_domain: str | None = None) -> None:
        self._email_domain = email_domain or settings.ORGANIZER_EMAIL_DOMAIN

    def list_organizers(self) -> list[User]:
        return list(User.objects.filter(role=User.Role.ORGANIZER).order_by("organizer_name"))

    def create_organizer(
        self,
        *,
        organizer_name: str,
        category: str,
        description: str,
        contact_email: str,
        contact_number: str | None = None,
        discord_webhook_url: str = "",
    ) -> OrganizerCredentials:
        """Create an organizer account with generated credentials.

        Raises:
            ValidationFailedError: With every problem in the submitted profile.
        """
        violations = []
        organizer_name = str(organizer_name or "").strip()
        category = str(category or "").strip()
        required = (organizer_name, category, str(description or "").strip(), str(contact_email or "").strip())
        if not all(required):
            violations.append("Missing required organizer fields")
        contact_number = str(contact_number or "").strip()
        if contact_number and not re.fullmatch(r"\d{10}", contact_number):
            violations.append("Organizer contact number must be exactly 10 digits")
        if violations:
            raise ValidationFailedError(violations[0], violations)

        password = generate_password()
        with transaction.atomic():
            email = login_email_for(organizer_name, self._email_domain)
            organizer = User.objects.create_user(
                username=email,
                email=email,
                password=password,
                role=User.Role.ORGANIZER,
                organizer_name=organizer_name,
                category=category,
                description=str(description).strip(),
                contact_email=str(contact_email).strip().lower(),
                contact_number=contact_number,
                discord_webhook_url=discord_webhook_url or "",
            )
        logger.info("organizer_created", organizer_id=str(organizer.pk), email=email)
        return OrganizerCredentials(organizer=organizer, email=email, password=password)

    def set_organizer_state(self, organizer_id: str, action: str) -> str:
        """Disable, enable, archive or permanently delete an organizer.

        Archiving also disables. Deleting cascades to the organizer's events
        and everything recorded against them.

        Raises:
            ValidationFailedError: Unknown action.
            NotFoundError: No organizer with that id.
        """
        action = str(action or "").strip().lower()
        if action not in ORGANIZER_ACTIONS:
            raise ValidationFailedError("Invalid action. Use disable/enable/archive/delete")

        try:
            organizer_pk = UserId.from_string(organizer_id).value
        except ValueError as exc:
            raise InvalidIdError("organizer ID") from exc
        organizer = User.objects.filter(pk=organizer_pk, role=User.Role.ORGANIZER).first()
        if organizer is None:
            raise NotFoundError("Organizer not found")

        if action == "delete":
            organizer.delete()
            logger.info("organizer_deleted", organizer_id=organizer_id)
            return "Organizer permanently deleted"

        if action == "disable":
            organizer.disabled = True
        elif action == "enable":
            organizer.disabled = False
        else:
            organizer.archived = True
            organizer.disabled = True
        organizer.save(update_fields=["disabled", "archived"])
        logger.info("organizer_state_changed", organizer_id=organizer_id, action=action)
        return f"Organizer {action}d"
