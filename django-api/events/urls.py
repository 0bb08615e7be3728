from django.urls import path

from events.handlers import (
    AttendanceDashboardView,
    AttendanceReportView,
    EventDetailView,
    EventListView,
    EventOrdersView,
    EventParticipantsView,
    ManualOverrideView,
    MyOrdersView,
    OrderReviewView,
    OrganizerEventDetailView,
    OrganizerEventListView,
    PaymentProofView,
    PurchaseView,
    RegistrationView,
    ScanView,
    TicketDetailView,
)

urlpatterns = [
    path("events", EventListView.as_view(), name="event-list"),
    path("events/<str:event_id>", EventDetailView.as_view(), name="event-detail"),
    path("events/<str:event_id>/register", RegistrationView.as_view(), name="event-register"),
    path("events/<str:event_id>/purchase", PurchaseView.as_view(), name="event-purchase"),
    path("orders/me", MyOrdersView.as_view(), name="my-orders"),
    path("orders/<str:order_id>/proof", PaymentProofView.as_view(), name="order-proof"),
    path("tickets/<str:ticket_id>", TicketDetailView.as_view(), name="ticket-detail"),
    path("organizer/events", OrganizerEventListView.as_view(), name="organizer-event-list"),
    path("organizer/events/<str:event_id>", OrganizerEventDetailView.as_view(), name="organizer-event-detail"),
    path(
        "organizer/events/<str:event_id>/participants",
        EventParticipantsView.as_view(),
        name="organizer-event-participants",
    ),
    path("organizer/events/<str:event_id>/orders", EventOrdersView.as_view(), name="organizer-event-orders"),
    path("organizer/orders/<str:order_id>/review", OrderReviewView.as_view(), name="order-review"),
    path("attendance/scan", ScanView.as_view(), name="attendance-scan"),
    path("attendance/manual-override", ManualOverrideView.as_view(), name="attendance-override"),
    path("attendance/<str:event_id>/dashboard", AttendanceDashboardView.as_view(), name="attendance-dashboard"),
    path("attendance/<str:event_id>/report", AttendanceReportView.as_view(), name="attendance-report"),
]
