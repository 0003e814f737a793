"""
Custom permission classes for role and capability based access control.
"""
from __future__ import annotations

from typing import Iterable

from rest_framework.permissions import BasePermission

from records.models import User

ADMIN_ROLES = frozenset({User.ROLE_SUPER_ADMIN, User.ROLE_ADMIN})
CLINICAL_ROLES = ADMIN_ROLES | {User.ROLE_DOCTOR, User.ROLE_NURSE}
FRONT_DESK_ROLES = CLINICAL_ROLES | {User.ROLE_RECEPTIONIST}
BILLING_ROLES = ADMIN_ROLES | {User.ROLE_BILLING}

WILDCARD = "*"


class RolePermission(BasePermission):
    """Allow only authenticated users whose role is in ``roles``."""
    roles: frozenset[str] = frozenset()
    message = "Insufficient permissions"

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) in self.roles)


def role_permission(roles: Iterable[str]) -> type[RolePermission]:
    """Build a :class:`RolePermission` subclass bound to ``roles``."""
    allowed = frozenset(roles)
    return type("RolePermission_" + "_".join(sorted(allowed)), (RolePermission,), {"roles": allowed})


class IsAdminRole(RolePermission):
    """SuperAdmin or Admin."""
    roles = ADMIN_ROLES


class HasCapability(BasePermission):
    """User's ``permissions`` list contains the capability (or ``"*"``).

    The list is read from the principal loaded by authentication, so the
    check costs no extra query.
    """
    capability = ""
    message = "Insufficient permissions"

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        granted = getattr(user, "permissions", None) or ()
        return WILDCARD in granted or self.capability in granted


def capability_permission(capability: str) -> type[HasCapability]:
    return type(f"HasCapability[{capability}]", (HasCapability,), {"capability": capability})


class IsSelfOrAdmin(BasePermission):
    """The ``pk`` in the URL is the caller's own id, or the caller is an admin."""
    message = "Insufficient permissions"

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        if user.role in ADMIN_ROLES:
            return True
        return str(view.kwargs.get("pk")) == str(user.pk)
