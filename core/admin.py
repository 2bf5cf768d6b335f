"""
Django admin registrations for the core models.

Consultation ciphertext is excluded from the forms; the admin only shows
who wrote a consultation and where it stands.
"""

from django.contrib import admin

from .models import User, Patient, Appointment, Consultation, AuditEvent


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'is_staff', 'is_superuser')
    list_filter = ('role',)
    search_fields = ('username', 'first_name', 'last_name', 'email')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'first_name', 'last_name', 'cpf', 'phone', 'use_same_address')
    search_fields = ('cpf', 'first_name', 'last_name', 'email')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'date', 'time', 'patient', 'status', 'created_by')
    list_filter = ('status', 'date')
    search_fields = ('patient__first_name', 'patient__last_name', 'patient__cpf')


@admin.register(Consultation)
class ConsultationAdmin(admin.ModelAdmin):
    list_display = ('id', 'appointment', 'professional', 'status', 'created_at')
    list_filter = ('status',)
    exclude = tuple(f'{name}_{suffix}' for name in Consultation.SENSITIVE_FIELDS for suffix in ('encrypted', 'iv'))


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('id', 'action', 'object_type', 'object_id', 'user', 'created_at')
    list_filter = ('action', 'object_type')
    readonly_fields = ('user', 'action', 'object_type', 'object_id', 'detail', 'created_at')
