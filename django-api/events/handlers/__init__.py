from events.handlers.views import (
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

__all__ = [
    "AttendanceDashboardView",
    "AttendanceReportView",
    "EventDetailView",
    "EventListView",
    "EventOrdersView",
    "EventParticipantsView",
    "ManualOverrideView",
    "MyOrdersView",
    "OrderReviewView",
    "OrganizerEventDetailView",
    "OrganizerEventListView",
    "PaymentProofView",
    "PurchaseView",
    "RegistrationView",
    "ScanView",
    "TicketDetailView",
]
