from django.urls import path

from accounts.handlers import OrganizerDetailView, OrganizerListView

urlpatterns = [
    path("organizers", OrganizerListView.as_view(), name="organizer-list"),
    path("organizers/<str:organizer_id>", OrganizerDetailView.as_view(), name="organizer-detail"),
]
