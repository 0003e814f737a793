import time

from django.conf import settings
from django.db import DatabaseError
from django.http import JsonResponse

from records.responses import timestamp
from records.services.store import default_store

STARTED_AT = time.monotonic()


def health(request):
    try:
        db_ok = default_store.ping()
    except DatabaseError:
        db_ok = False
    body = {
        'status': 'OK' if db_ok else 'DEGRADED',
        'database': 'connected' if db_ok else 'unavailable',
        'timestamp': timestamp(),
        'uptime': round(time.monotonic() - STARTED_AT, 3),
        'environment': settings.ENV,
    }
    return JsonResponse(body, status=200 if db_ok else 503)


def root(request):
    return JsonResponse({
        'message': settings.SERVICE_NAME,
        'version': settings.SERVICE_VERSION,
        'status': 'running',
        'timestamp': timestamp(),
    })
