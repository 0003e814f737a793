"""
Database models for the records backend.

The resource tables below are read and written by the generic CRUD
mechanism in :mod:`records.services.resources` through raw SQL, keyed by
``db_table``; the models exist so that the schema can be migrated,
inspected in the admin and used by the ORM-based account views.  Column
defaults that must hold for rows inserted outside the ORM are declared
with ``db_default`` so they live in the database itself.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models.functions import Now


class Organization(models.Model):
    """A tenant: a clinic, hospital or practice owning users and records."""
    name = models.CharField(max_length=255)
    email = models.EmailField(max_length=255, unique=True)
    phone = models.CharField(max_length=20, null=True, blank=True)
    address = models.TextField(null=True, blank=True)
    city = models.CharField(max_length=100, null=True, blank=True)
    state = models.CharField(max_length=100, null=True, blank=True)
    zip_code = models.CharField(max_length=20, null=True, blank=True)
    country = models.CharField(max_length=100, null=True, blank=True)
    website = models.CharField(max_length=255, null=True, blank=True)
    description = models.TextField(null=True, blank=True)
    settings = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(db_default=Now())
    updated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "organizations"

    def __str__(self) -> str:
        return self.name


class User(AbstractUser):
    """Staff or patient account with a single role and optional capabilities.

    Users sign in with their email address.  ``role`` is checked by the
    per-resource role gates; ``permissions`` holds capability names checked
    by :class:`records.permissions.HasCapability` (``"*"`` grants all).
    """
    ROLE_SUPER_ADMIN = "SuperAdmin"
    ROLE_ADMIN = "Admin"
    ROLE_DOCTOR = "Doctor"
    ROLE_NURSE = "Nurse"
    ROLE_RECEPTIONIST = "Receptionist"
    ROLE_PATIENT = "Patient"
    ROLE_BILLING = "Billing"
    ROLE_CHOICES = [
        (ROLE_SUPER_ADMIN, "Super administrator"),
        (ROLE_ADMIN, "Administrator"),
        (ROLE_DOCTOR, "Doctor"),
        (ROLE_NURSE, "Nurse"),
        (ROLE_RECEPTIONIST, "Receptionist"),
        (ROLE_PATIENT, "Patient"),
        (ROLE_BILLING, "Billing"),
    ]

    email = models.EmailField(max_length=255, unique=True)
    role = models.CharField(max_length=50, choices=ROLE_CHOICES, default=ROLE_PATIENT)
    organization = models.ForeignKey(
        Organization, null=True, blank=True, on_delete=models.SET_NULL, related_name="users"
    )
    job_title = models.CharField(max_length=100, blank=True)
    department = models.CharField(max_length=100, blank=True)
    specialization = models.CharField(max_length=100, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    permissions = models.JSONField(default=list, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    class Meta:
        db_table = "users"

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"


class Patient(models.Model):
    GENDER_CHOICES = [("male", "Male"), ("female", "Female"), ("other", "Other")]
    STATUS_CHOICES = [("active", "Active"), ("inactive", "Inactive"), ("deceased", "Deceased")]

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(max_length=255, unique=True)
    phone = models.CharField(max_length=20, null=True, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, null=True, blank=True)
    address = models.TextField(null=True, blank=True)
    emergency_contact_name = models.CharField(max_length=200, null=True, blank=True)
    emergency_contact_phone = models.CharField(max_length=20, null=True, blank=True)
    medical_history = models.TextField(null=True, blank=True)
    allergies = models.TextField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, db_default="active")
    organization = models.ForeignKey(
        Organization, null=True, blank=True, on_delete=models.SET_NULL, related_name="patients"
    )
    created_at = models.DateTimeField(db_default=Now())
    updated_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")

    class Meta:
        db_table = "patients"
        indexes = [models.Index(fields=["last_name", "first_name"], name="patients_name_idx")]

    def __str__(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Appointment(models.Model):
    STATUS_CHOICES = [
        ("scheduled", "Scheduled"),
        ("confirmed", "Confirmed"),
        ("completed", "Completed"),
        ("cancelled", "Cancelled"),
        ("no-show", "No show"),
    ]

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name="appointments")
    doctor = models.ForeignKey(User, on_delete=models.PROTECT, related_name="appointments")
    appointment_date = models.DateField()
    appointment_time = models.TimeField()
    duration = models.PositiveIntegerField(db_default=30)
    type = models.CharField(max_length=50, db_default="consultation")
    reason = models.TextField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, db_default="scheduled", db_index=True)
    created_at = models.DateTimeField(db_default=Now())
    updated_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")

    class Meta:
        db_table = "appointments"

    def __str__(self) -> str:
        return f"Appointment {self.pk} on {self.appointment_date}"


class Encounter(models.Model):
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name="encounters")
    doctor = models.ForeignKey(User, on_delete=models.PROTECT, related_name="encounters")
    encounter_date = models.DateField()
    type = models.CharField(max_length=50)
    chief_complaint = models.TextField(null=True, blank=True)
    history_of_present_illness = models.TextField(null=True, blank=True)
    physical_examination = models.TextField(null=True, blank=True)
    assessment = models.TextField(null=True, blank=True)
    plan = models.TextField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(db_default=Now())
    updated_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")

    class Meta:
        db_table = "encounters"

    def __str__(self) -> str:
        return f"Encounter {self.pk} ({self.type})"


class LabOrder(models.Model):
    PRIORITY_CHOICES = [("urgent", "Urgent"), ("high", "High"), ("normal", "Normal"), ("low", "Low")]
    STATUS_CHOICES = [
        ("ordered", "Ordered"),
        ("collected", "Collected"),
        ("processing", "Processing"),
        ("completed", "Completed"),
        ("cancelled", "Cancelled"),
    ]

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name="lab_orders")
    doctor = models.ForeignKey(User, on_delete=models.PROTECT, related_name="lab_orders")
    tests = models.JSONField()
    order_date = models.DateField()
    priority = models.CharField(max_length=20, choices=PRIORITY_CHOICES, db_default="normal")
    notes = models.TextField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, db_default="ordered", db_index=True)
    results = models.JSONField(null=True, blank=True)
    result_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(db_default=Now())
    updated_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")

    class Meta:
        db_table = "lab_orders"

    def __str__(self) -> str:
        return f"Lab order {self.pk}"


class Prescription(models.Model):
    STATUS_CHOICES = [("active", "Active"), ("completed", "Completed"), ("cancelled", "Cancelled")]

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name="prescriptions")
    doctor = models.ForeignKey(User, on_delete=models.PROTECT, related_name="prescriptions")
    medications = models.JSONField()
    prescription_date = models.DateField()
    instructions = models.TextField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, db_default="active")
    created_at = models.DateTimeField(db_default=Now())
    updated_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")

    class Meta:
        db_table = "prescriptions"

    def __str__(self) -> str:
        return f"Prescription {self.pk}"


class Bill(models.Model):
    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("paid", "Paid"),
        ("overdue", "Overdue"),
        ("cancelled", "Cancelled"),
    ]

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name="bills")
    encounter = models.ForeignKey(Encounter, null=True, blank=True, on_delete=models.SET_NULL, related_name="bills")
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    description = models.TextField()
    billing_date = models.DateField()
    due_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, db_default="pending", db_index=True)
    payment_date = models.DateField(null=True, blank=True)
    payment_method = models.CharField(max_length=50, null=True, blank=True)
    created_at = models.DateTimeField(db_default=Now())
    updated_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")

    class Meta:
        db_table = "billing"

    def __str__(self) -> str:
        return f"Bill {self.pk}: {self.amount}"
