"""
Exception handling for the API.

``api_exception_handler`` is installed as DRF's ``EXCEPTION_HANDLER`` and
turns every error raised by a view into the ``{"success": false, ...}``
envelope.  Database errors are not handled by DRF itself, so they are
classified here by SQLSTATE (PostgreSQL) or by message (SQLite).
"""
from __future__ import annotations

import logging
import traceback

from django.conf import settings
from django.db import DataError, DatabaseError, IntegrityError, InterfaceError, OperationalError
from django.http import JsonResponse
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler, set_rollback

from records.responses import error_payload

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NOT_NULL_VIOLATION = "23502"

_SQLITE_MESSAGES = (
    ("UNIQUE constraint failed", UNIQUE_VIOLATION),
    ("FOREIGN KEY constraint failed", FOREIGN_KEY_VIOLATION),
    ("NOT NULL constraint failed", NOT_NULL_VIOLATION),
)

_CONSTRAINT_ERRORS = {
    UNIQUE_VIOLATION: (status.HTTP_409_CONFLICT, "Duplicate entry"),
    FOREIGN_KEY_VIOLATION: (status.HTTP_400_BAD_REQUEST, "Referenced record not found"),
    NOT_NULL_VIOLATION: (status.HTTP_400_BAD_REQUEST, "Required field missing"),
}


def sqlstate(exc: BaseException) -> str | None:
    cause = exc.__cause__ or exc
    code = getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)
    if code:
        return code
    text = str(cause)
    for fragment, mapped in _SQLITE_MESSAGES:
        if fragment in text:
            return mapped
    return None


def describe_store_error(exc: BaseException) -> tuple[int, str]:
    """Map an exception to ``(status, message)`` without building a response."""
    if isinstance(exc, exceptions.APIException):
        return exc.status_code, _api_message(exc)
    if isinstance(exc, IntegrityError):
        return _CONSTRAINT_ERRORS.get(sqlstate(exc), (status.HTTP_400_BAD_REQUEST, "Invalid data"))
    if isinstance(exc, DataError):
        return status.HTTP_400_BAD_REQUEST, "Invalid data"
    if isinstance(exc, (OperationalError, InterfaceError)):
        return status.HTTP_503_SERVICE_UNAVAILABLE, "Database unavailable"
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error"


def _api_message(exc: exceptions.APIException) -> str:
    if isinstance(exc, exceptions.PermissionDenied):
        return "Insufficient permissions"
    if isinstance(exc, exceptions.ValidationError):
        return "Validation failed"
    detail = exc.detail
    if isinstance(detail, (list, dict)):
        return str(exc.default_detail)
    return str(detail)


def _debug_extras(exc, request) -> dict:
    if not settings.DEBUG:
        return {}
    extras = {"stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))}
    if request is not None:
        extras["request"] = {
            "method": request.method,
            "path": request.path,
            "query": dict(request.GET.items()),
            "body": getattr(request, "data", None),
        }
    return extras


def api_exception_handler(exc, context):
    request = context.get("request") if context else None
    resp = drf_exception_handler(exc, context)
    if resp is not None:
        _, message = describe_store_error(exc)
        details = resp.data if isinstance(exc, exceptions.ValidationError) else None
        resp.data = error_payload(message, details=details, **_debug_extras(exc, request))
        return resp

    if not isinstance(exc, DatabaseError):
        logger.error("Unhandled error on %s", getattr(request, "path", "?"), exc_info=exc)
        resp_status, message = status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error"
    else:
        resp_status, message = describe_store_error(exc)
        if resp_status >= 500:
            logger.error("Database error on %s", getattr(request, "path", "?"), exc_info=exc)
        else:
            logger.warning("Constraint error on %s: %s", getattr(request, "path", "?"), exc)

    set_rollback()
    return Response(error_payload(message, **_debug_extras(exc, request)), status=resp_status)


def not_found_view(request, exception=None):
    return JsonResponse(error_payload("Route not found"), status=status.HTTP_404_NOT_FOUND)


def server_error_view(request):
    return JsonResponse(error_payload("Internal Server Error"), status=status.HTTP_500_INTERNAL_SERVER_ERROR)
