# records/management/commands/seed_records.py
from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password
from records.models import Organization, User

DEMO_ORG = {"name": "MediFlow Demo Clinic", "email": "clinic@mediflow.local"}

SEED_USERS = [
    ("superadmin@mediflow.local", User.ROLE_SUPER_ADMIN, ["*"]),
    ("admin@mediflow.local", User.ROLE_ADMIN, ["users:write"]),
    ("doctor@mediflow.local", User.ROLE_DOCTOR, []),
    ("nurse@mediflow.local", User.ROLE_NURSE, []),
    ("reception@mediflow.local", User.ROLE_RECEPTIONIST, []),
    ("billing@mediflow.local", User.ROLE_BILLING, []),
    ("patient@mediflow.local", User.ROLE_PATIENT, []),
]


class Command(BaseCommand):
    help = "Ensure a demo organization and one active user per role exist (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="ChangeMe123!", help="Password set on every seeded user.")

    def handle(self, *args, **opts):
        org, _ = Organization.objects.get_or_create(email=DEMO_ORG["email"], defaults={"name": DEMO_ORG["name"]})
        password = make_password(opts["password"])
        for email, role, perms in SEED_USERS:
            u, created = User.objects.get_or_create(
                email=email,
                defaults={
                    "username": email.split("@")[0],
                    "role": role,
                    "permissions": perms,
                    "organization": org,
                    "password": password,
                    "is_active": True,
                },
            )
            if not created:
                u.password = password
                u.role = role
                u.permissions = perms
                u.is_active = True
                u.save(update_fields=["password", "role", "permissions", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {email} ({role})"))
        self.stdout.write(self.style.SUCCESS("All seed users ensured."))
