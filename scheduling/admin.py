"""
Admin configuration for the scheduling app.
"""

from django.contrib import admin
from .models import Booking, ClassSession, Client, SessionException, StudioClass


@admin.register(StudioClass)
class StudioClassAdmin(admin.ModelAdmin):
    list_display = ['name', 'studio_id', 'instructor', 'capacity', 'duration_minutes', 'price']
    search_fields = ['name', 'instructor']


class SessionExceptionInline(admin.TabularInline):
    model = SessionException
    fk_name = 'series'
    extra = 0
    fields = ['original_date', 'exception_type', 'modified_start_time']


@admin.register(ClassSession)
class ClassSessionAdmin(admin.ModelAdmin):
    """Admin interface for ClassSession model."""

    list_display = ['studio_class', 'start_time', 'is_recurring', 'recurrence_pattern', 'recurrence_end_date', 'is_cancelled']
    list_filter = ['is_recurring', 'recurrence_pattern', 'is_cancelled']
    search_fields = ['studio_class__name']
    date_hierarchy = 'start_time'
    inlines = [SessionExceptionInline]

    fieldsets = (
        ('Basic Information', {
            'fields': ('studio_id', 'studio_class', 'start_time', 'is_cancelled')
        }),
        ('Recurrence Rules', {
            'fields': ('is_recurring', 'recurrence_pattern', 'custom_weekdays', 'recurrence_end_date')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    readonly_fields = ['created_at', 'updated_at']


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['name', 'email', 'phone', 'studio_id']
    search_fields = ['name', 'email', 'phone']


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Admin interface for Booking model."""

    list_display = ['client_name', 'session', 'session_date', 'status', 'payment_status', 'amount']
    list_filter = ['status', 'payment_status']
    search_fields = ['client_name', 'client_email']
    date_hierarchy = 'session_date'
    raw_id_fields = ['session', 'client']

    readonly_fields = ['created_at', 'updated_at']

    def has_delete_permission(self, request, obj=None):
        # Bookings are cancelled, never deleted.
        return False
