"""
JSON envelope helpers shared by every endpoint.

Successful responses look like ``{"success": true, "data": ..., "timestamp": ...}``
and failures like ``{"success": false, "message": ..., "timestamp": ...}``.
"""
from __future__ import annotations

from typing import Any

from django.utils import timezone
from rest_framework import status as http_status
from rest_framework.response import Response


def timestamp() -> str:
    return timezone.now().isoformat().replace("+00:00", "Z")


def success_response(data: Any = None, message: str | None = None, status: int = http_status.HTTP_200_OK,
                     **extra: Any) -> Response:
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    body.update(extra)
    if message:
        body["message"] = message
    body["timestamp"] = timestamp()
    return Response(body, status=status)


def error_payload(message: str, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "message": message}
    body.update({k: v for k, v in extra.items() if v is not None})
    body["timestamp"] = timestamp()
    return body


def error_response(message: str, status: int, **extra: Any) -> Response:
    return Response(error_payload(message, **extra), status=status)
