"""
Django admin registrations for the records models.

The API reads and writes the resource tables through raw SQL; the admin
gives superusers a second, ORM-based view of the same rows at
``/admin/`` for inspection and manual fixes during development.
"""

from django.contrib import admin

from .models import (
    Organization,
    User,
    Patient,
    Appointment,
    Encounter,
    LabOrder,
    Prescription,
    Bill,
)


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'email', 'city', 'created_at')
    search_fields = ('name', 'email')


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'role', 'organization', 'is_active', 'is_staff')
    list_filter = ('role', 'is_active', 'organization')
    search_fields = ('email', 'first_name', 'last_name')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'last_name', 'first_name', 'email', 'status', 'created_at')
    list_filter = ('status', 'organization')
    search_fields = ('first_name', 'last_name', 'email')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'appointment_date', 'appointment_time', 'status')
    list_filter = ('status', 'type')


@admin.register(Encounter)
class EncounterAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'encounter_date', 'type')


@admin.register(LabOrder)
class LabOrderAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'order_date', 'priority', 'status')
    list_filter = ('priority', 'status')


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'prescription_date', 'status')


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'amount', 'billing_date', 'status')
    list_filter = ('status',)
