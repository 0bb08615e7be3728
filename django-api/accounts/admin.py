from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from accounts.models import User


@admin.register(User)
class AccountAdmin(UserAdmin):
    list_display = ["username", "email", "role", "organizer_name", "disabled", "archived"]
    list_filter = ["role", "disabled", "archived"]
    fieldsets = UserAdmin.fieldsets + (
        (
            "Felicity",
            {
                "fields": (
                    "role",
                    "disabled",
                    "archived",
                    "organizer_name",
                    "category",
                    "description",
                    "contact_email",
                    "contact_number",
                    "discord_webhook_url",
                )
            },
        ),
    )
