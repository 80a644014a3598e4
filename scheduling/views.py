"""Views for the scheduling API.

The studio id in staff URLs is trusted as given; authentication and license
checks happen in front of these views.
"""

from django.shortcuts import get_object_or_404

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .catalog import SessionCatalog
from .models import Booking, ClassSession, StudioClass
from .serializers import (
    BookingCreateSerializer,
    BookingListQuerySerializer,
    BookingReadSerializer,
    BookingUpdateSerializer,
    ClassSessionCreateSerializer,
    ClassSessionReadSerializer,
    OccurrenceQuerySerializer,
    OccurrenceSerializer,
    PublicBookingCreateSerializer,
    PublicOccurrenceQuerySerializer,
    SeriesUpdateSerializer,
    SessionExceptionReadSerializer,
    SessionExceptionWriteSerializer,
)
from .types import ClientIdentity, ContactUpdateData, PaymentDetails, SeriesUpdateData


class OccurrenceListView(APIView):
    """
    List the occurrences of a studio's schedule.

    GET /api/studios/{studio_id}/occurrences/?start=X&end=Y&class_id=Z
    """

    query_serializer_class = OccurrenceQuerySerializer

    def get(self, request, studio_id):
        """List occurrences with live booking counts."""
        query_serializer = self.query_serializer_class(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)
        params = query_serializer.validated_data

        occurrences = SessionCatalog().list_occurrences(
            studio_id,
            params['start'],
            params['end'],
            class_id=params.get('class_id')
        )

        serializer = OccurrenceSerializer(occurrences, many=True)
        return Response(serializer.data)


class PublicOccurrenceListView(OccurrenceListView):
    """
    Availability for the public booking page.

    GET /api/public/studios/{studio_id}/occurrences/?start=X&end=Y
    """

    query_serializer_class = PublicOccurrenceQuerySerializer


class ClassSessionCreateView(APIView):
    """
    Create a one-off session or a recurring series.

    POST /api/studios/{studio_id}/sessions/
    """

    def post(self, request, studio_id):
        serializer = ClassSessionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        studio_class = get_object_or_404(StudioClass, pk=data['class_id'], studio_id=studio_id)
        session = services.create_class_session(
            studio_id=studio_id,
            studio_class=studio_class,
            start_time=data['start_time'],
            is_recurring=data['is_recurring'],
            recurrence_pattern=data.get('recurrence_pattern'),
            recurrence_end_date=data.get('recurrence_end_date'),
            custom_weekdays=data.get('custom_weekdays')
        )

        response_serializer = ClassSessionReadSerializer(session)
        return Response(response_serializer.data, status=status.HTTP_201_CREATED)


class ClassSessionDetailView(APIView):
    """
    Retrieve, edit (entire series) or cancel a session.

    GET /api/studios/{studio_id}/sessions/{id}/
    PATCH /api/studios/{studio_id}/sessions/{id}/ - Edit entire series
    DELETE /api/studios/{studio_id}/sessions/{id}/ - Cancel session or series
    """

    def get(self, request, studio_id, pk):
        session = get_object_or_404(ClassSession, pk=pk, studio_id=studio_id)
        serializer = ClassSessionReadSerializer(session)
        return Response(serializer.data)

    def patch(self, request, studio_id, pk):
        session = get_object_or_404(ClassSession, pk=pk, studio_id=studio_id)
        serializer = SeriesUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        update_data = SeriesUpdateData(
            start_time=data.get('start_time'),
            recurrence_pattern=data.get('recurrence_pattern'),
            recurrence_end_date=data.get('recurrence_end_date'),
            custom_weekdays=data.get('custom_weekdays'),
            clear_end_date='recurrence_end_date' in data and data['recurrence_end_date'] is None
        )
        updated_session = services.update_series(session, update_data)

        response_serializer = ClassSessionReadSerializer(updated_session)
        return Response(response_serializer.data)

    def delete(self, request, studio_id, pk):
        session = get_object_or_404(ClassSession, pk=pk, studio_id=studio_id)
        services.cancel_session(session)

        kind = 'Recurring session' if session.is_recurring else 'Session'
        return Response({
            'message': f'{kind} has been cancelled.'
        }, status=status.HTTP_200_OK)


class SessionExceptionView(APIView):
    """
    Retime or cancel a single occurrence of a series.

    POST /api/studios/{studio_id}/sessions/{id}/exceptions/
    """

    def post(self, request, studio_id, pk):
        series = get_object_or_404(ClassSession, pk=pk, studio_id=studio_id)
        serializer = SessionExceptionWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        exception = services.upsert_exception(
            series,
            original_date=data['original_date'],
            exception_type=data['exception_type'],
            modified_start_time=data.get('modified_start_time')
        )

        response_serializer = SessionExceptionReadSerializer(exception)
        return Response(response_serializer.data, status=status.HTTP_200_OK)


class BookingCreateView(APIView):
    """Book an occurrence; subclasses choose the request serializer."""

    serializer_class = BookingCreateSerializer

    def post(self, request, studio_id=None):
        serializer = self.serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        booking = services.admit_booking(
            studio_id=studio_id or data['studio_id'],
            session_id=data['session_id'],
            session_date=data['session_date'],
            client=ClientIdentity(
                name=data['client_name'],
                email=data['client_email'],
                phone=data.get('client_phone', '')
            ),
            payment=PaymentDetails(
                status=data['status'],
                payment_status=data['payment_status'],
                amount=data['amount']
            )
        )

        response_serializer = BookingReadSerializer(booking)
        return Response(response_serializer.data, status=status.HTTP_201_CREATED)


class BookingListCreateView(BookingCreateView):
    """
    Staff booking roster and booking screen.

    GET /api/studios/{studio_id}/bookings/?status=X&start_date=Y&end_date=Z&class_id=W
    POST /api/studios/{studio_id}/bookings/
    """

    def get(self, request, studio_id):
        """List bookings, newest first."""
        query_serializer = BookingListQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)
        params = query_serializer.validated_data

        bookings = services.list_bookings(
            studio_id,
            status=params.get('status'),
            start_date=params.get('start_date'),
            end_date=params.get('end_date'),
            class_id=params.get('class_id')
        )

        serializer = BookingReadSerializer(bookings, many=True)
        return Response(serializer.data)


class PublicBookingCreateView(BookingCreateView):
    """
    Book an occurrence from the public booking page.

    POST /api/public/bookings/
    """

    serializer_class = PublicBookingCreateSerializer


class BookingDetailView(APIView):
    """
    Retrieve, edit or cancel a booking.

    GET /api/studios/{studio_id}/bookings/{id}/
    PATCH /api/studios/{studio_id}/bookings/{id}/ - Edit contact/payment details
    DELETE /api/studios/{studio_id}/bookings/{id}/ - Cancel booking
    """

    def get(self, request, studio_id, pk):
        booking = get_object_or_404(Booking, pk=pk, studio_id=studio_id)
        serializer = BookingReadSerializer(booking)
        return Response(serializer.data)

    def patch(self, request, studio_id, pk):
        booking = get_object_or_404(Booking, pk=pk, studio_id=studio_id)
        serializer = BookingUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        update_data = ContactUpdateData(
            client_name=data.get('client_name'),
            client_email=data.get('client_email'),
            client_phone=data.get('client_phone'),
            payment_status=data.get('payment_status'),
            amount=data.get('amount')
        )
        updated_booking = services.update_booking_contact(booking, update_data)

        response_serializer = BookingReadSerializer(updated_booking)
        return Response(response_serializer.data)

    def delete(self, request, studio_id, pk):
        booking = get_object_or_404(Booking, pk=pk, studio_id=studio_id)
        services.cancel_booking(booking)

        return Response({
            'message': 'Booking cancelled successfully'
        }, status=status.HTTP_200_OK)
