"""
URL routing for the scheduling API.
"""

from django.urls import path
from .views import (
    BookingListCreateView,
    BookingDetailView,
    ClassSessionCreateView,
    ClassSessionDetailView,
    OccurrenceListView,
    PublicBookingCreateView,
    PublicOccurrenceListView,
    SessionExceptionView,
)

urlpatterns = [
    path('studios/<uuid:studio_id>/occurrences/', OccurrenceListView.as_view(), name='occurrence-list'),
    path('studios/<uuid:studio_id>/sessions/', ClassSessionCreateView.as_view(), name='session-create'),
    path('studios/<uuid:studio_id>/sessions/<uuid:pk>/', ClassSessionDetailView.as_view(), name='session-detail'),
    path('studios/<uuid:studio_id>/sessions/<uuid:pk>/exceptions/', SessionExceptionView.as_view(), name='session-exception'),
    path('studios/<uuid:studio_id>/bookings/', BookingListCreateView.as_view(), name='booking-list-create'),
    path('studios/<uuid:studio_id>/bookings/<uuid:pk>/', BookingDetailView.as_view(), name='booking-detail'),
    path('public/studios/<uuid:studio_id>/occurrences/', PublicOccurrenceListView.as_view(), name='public-occurrence-list'),
    path('public/bookings/', PublicBookingCreateView.as_view(), name='public-booking-create'),
]
