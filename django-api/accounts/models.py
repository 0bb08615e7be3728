"""Account persistence model.

One user table serves participants, organizers and admins; organizer
profile columns stay blank for the other roles.
"""

import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Persistence model for every account."""

    class Role(models.TextChoices):
        PARTICIPANT = "participant", "Participant"
        ORGANIZER = "organizer", "Organizer"
        ADMIN = "admin", "Admin"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.PARTICIPANT)
    disabled = models.BooleanField(default=False)
    archived = models.BooleanField(default=False)
    organizer_name = models.CharField(max_length=255, blank=True)
    category = models.CharField(max_length=100, blank=True)
    description = models.TextField(blank=True)
    contact_email = models.EmailField(blank=True)
    contact_number = models.CharField(max_length=30, blank=True)
    discord_webhook_url = models.URLField(max_length=500, blank=True)

    class Meta:
        ordering = ["username"]
        indexes = [
            models.Index(fields=["role"], name="accounts_user_role_idx"),
        ]

    def __str__(self) -> str:
        return self.email or self.username

    @property
    def display_name(self) -> str:
        if self.role == self.Role.ORGANIZER and self.organizer_name:
            return self.organizer_name
        return self.get_full_name() or self.username
