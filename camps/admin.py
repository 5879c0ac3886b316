"""
Django admin registrations for the camps models.

``Camp.participants`` is shown read-only: the registration coordinator
is its only writer.
"""

from django.contrib import admin

from .models import AuditEvent, Camp, Registration, User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'email', 'role', 'is_staff', 'is_superuser')
    list_filter = ('role',)
    search_fields = ('username', 'email', 'first_name', 'last_name')


@admin.register(Camp)
class CampAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'location', 'fee', 'scheduled_at', 'organizer', 'participants')
    list_filter = ('organizer',)
    search_fields = ('name', 'location', 'healthcare_professional')
    readonly_fields = ('participants', 'created_at', 'updated_at')


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    list_display = ('id', 'camp_id', 'participant', 'payment_status', 'confirmation_status', 'registered_at')
    list_filter = ('payment_status', 'confirmation_status')
    search_fields = ('participant__email', 'participant_name', 'transaction_id')
    # counter-affecting and payment fields only change through RegistrationCoordinator
    readonly_fields = (
        'participant', 'camp', 'confirmation_status', 'payment_status', 'transaction_id', 'fee',
        'registered_at', 'paid_at',
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'object_type', 'object_id', 'user', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('action', 'object_type')
