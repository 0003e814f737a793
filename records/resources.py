"""
Resource descriptors for the tables exposed through the generic CRUD routes.

Each descriptor is built once at import time and shared read-only by the
handlers and routes mounted in :mod:`records.routers`.
"""
from records.services.resources import ResourceDescriptor

PATIENTS = ResourceDescriptor(
    name="patients",
    table="patients",
    allowed_fields=(
        "first_name", "last_name", "email", "phone", "date_of_birth", "gender", "address",
        "emergency_contact_name", "emergency_contact_phone", "medical_history", "allergies",
        "status", "organization_id",
    ),
    search_fields=("first_name", "last_name", "email"),
)

APPOINTMENTS = ResourceDescriptor(
    name="appointments",
    table="appointments",
    allowed_fields=(
        "patient_id", "doctor_id", "appointment_date", "appointment_time", "duration",
        "type", "reason", "notes", "status",
    ),
    search_fields=("reason", "notes"),
)

ENCOUNTERS = ResourceDescriptor(
    name="encounters",
    table="encounters",
    allowed_fields=(
        "patient_id", "doctor_id", "encounter_date", "type", "chief_complaint",
        "history_of_present_illness", "physical_examination", "assessment", "plan", "notes",
    ),
    search_fields=("chief_complaint", "assessment"),
)

PRESCRIPTIONS = ResourceDescriptor(
    name="prescriptions",
    table="prescriptions",
    allowed_fields=(
        "patient_id", "doctor_id", "medications", "prescription_date", "instructions", "notes", "status",
    ),
    json_fields=("medications",),
)

LAB_ORDERS = ResourceDescriptor(
    name="lab-orders",
    table="lab_orders",
    allowed_fields=(
        "patient_id", "doctor_id", "tests", "order_date", "priority", "notes", "status",
        "results", "result_date",
    ),
    json_fields=("tests", "results"),
)

BILLING = ResourceDescriptor(
    name="billing",
    table="billing",
    allowed_fields=(
        "patient_id", "encounter_id", "amount", "description", "billing_date", "due_date",
        "status", "payment_date", "payment_method",
    ),
    search_fields=("description",),
)

ORGANIZATIONS = ResourceDescriptor(
    name="organizations",
    table="organizations",
    allowed_fields=(
        "name", "email", "phone", "address", "city", "state", "zip_code", "country",
        "website", "description", "settings",
    ),
    search_fields=("name", "email"),
    json_fields=("settings",),
)

ALL = (PATIENTS, APPOINTMENTS, ENCOUNTERS, PRESCRIPTIONS, LAB_ORDERS, BILLING, ORGANIZATIONS)
