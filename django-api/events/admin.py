from django.contrib import admin

from events.models import AttendanceLog, Event, MerchandiseItem, MerchandiseOrder, Registration, Ticket


class MerchandiseItemInline(admin.TabularInline):
    model = MerchandiseItem
    extra = 0


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ["name", "type", "status", "organizer", "start_date", "registration_limit"]
    list_filter = ["type", "status"]
    search_fields = ["name", "organizer__organizer_name"]
    inlines = [MerchandiseItemInline]


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    list_display = ["event", "participant", "status", "team_name", "created_at"]
    list_filter = ["status", "event"]


@admin.register(MerchandiseOrder)
class MerchandiseOrderAdmin(admin.ModelAdmin):
    list_display = ["event", "participant", "item_sku", "quantity", "amount", "status"]
    list_filter = ["status", "event"]


@admin.register(Ticket)
class TicketAdmin(admin.ModelAdmin):
    list_display = ["ticket_id", "event", "participant", "status", "issued_at"]
    list_filter = ["status"]
    search_fields = ["ticket_id"]


@admin.register(AttendanceLog)
class AttendanceLogAdmin(admin.ModelAdmin):
    list_display = ["event", "participant", "status", "scanned_by", "created_at"]
    list_filter = ["status", "event"]
    readonly_fields = ["event", "ticket", "participant", "scanned_by", "status", "payload", "note", "created_at"]
