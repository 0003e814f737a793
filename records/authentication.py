"""
Bearer token authentication for the API.

This module defines a subclass of simplejwt's ``JWTAuthentication`` so the
project's configuration has a stable import path and the CRUD router can
install it per route group.  The base class already rejects tokens whose
user no longer exists or has been deactivated; on top of that a token is
refused when the role it was issued for no longer matches the account,
so a demoted user cannot keep using an old token.
"""
from __future__ import annotations

from rest_framework import exceptions
from rest_framework_simplejwt.authentication import JWTAuthentication


class BearerAuthentication(JWTAuthentication):
    """``Authorization: Bearer <access token>`` authentication."""

    def get_user(self, validated_token):
        user = super().get_user(validated_token)
        role = validated_token.get("role")
        if role is not None and role != getattr(user, "role", None):
            raise exceptions.AuthenticationFailed("Invalid or expired token", code="role_changed")
        return user
