"""
Store handle used by the generic resource mechanism.

A :class:`Store` wraps one Django connection alias and executes
parameterized SQL on it, returning rows as dictionaries.  It is passed
explicitly to :class:`records.services.resources.ResourceService` so that
tests can substitute a double for the real database.
"""
from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, InterfaceError, OperationalError, connections, transaction
from django.utils import timezone

logger = logging.getLogger(__name__)

# Fragments of driver messages that identify a dropped connection.
CONNECTION_RESET_MARKERS = (
    "connection reset",
    "server closed the connection",
    "connection already closed",
    "terminating connection",
)


@dataclass
class QueryResult:
    rows: list[dict[str, Any]] = field(default_factory=list)
    rowcount: int = 0

    def first(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None


def is_connection_reset(exc: BaseException) -> bool:
    """Return True when ``exc`` reports a connection dropped by the peer."""
    if not isinstance(exc, (OperationalError, InterfaceError)):
        return False
    cause = exc.__cause__ or exc
    if isinstance(cause, ConnectionResetError):
        return True
    text = str(cause).lower()
    return any(marker in text for marker in CONNECTION_RESET_MARKERS)


def adapt_param(value: Any) -> Any:
    # dict/list values are stored in JSON columns; drivers do not bind them as-is.
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


class Store:
    """Executes SQL on a Django connection alias.

    ``query`` retries only when the failure is a connection reset and the
    connection is not inside a transaction; every other error propagates
    on the first attempt.
    """

    def __init__(self, alias: str = DEFAULT_DB_ALIAS, *, retries: int | None = None,
                 retry_delay: float | None = None) -> None:
        self.alias = alias
        self.retries = retries if retries is not None else getattr(settings, "STORE_QUERY_RETRIES", 2)
        self.retry_delay = retry_delay if retry_delay is not None else getattr(settings, "STORE_RETRY_DELAY", 2.0)

    @property
    def connection(self):
        return connections[self.alias]

    @property
    def vendor(self) -> str:
        return self.connection.vendor

    def query(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        params = [adapt_param(p) for p in params]
        attempt = 1
        start = time.monotonic()
        while True:
            try:
                result = self._execute(sql, params)
            except (OperationalError, InterfaceError) as exc:
                if attempt < self.retries and is_connection_reset(exc) and not self.connection.in_atomic_block:
                    logger.warning("Query attempt %d failed with connection reset, retrying: %s", attempt, exc)
                    self.connection.close()
                    time.sleep(self.retry_delay)
                    attempt += 1
                    continue
                logger.error("Query failed: %s", exc)
                raise
            logger.debug(
                "Executed query",
                extra={"sql": sql, "duration_ms": round((time.monotonic() - start) * 1000, 2), "rows": result.rowcount},
            )
            return result

    def _execute(self, sql: str, params: list[Any]) -> QueryResult:
        with self.connection.cursor() as cursor:
            cursor.execute(sql, params)
            if cursor.description is None:
                return QueryResult(rows=[], rowcount=cursor.rowcount)
            columns = [col[0] for col in cursor.description]
            rows = [dict(zip(columns, row)) for row in cursor.fetchall()]
            return QueryResult(rows=rows, rowcount=len(rows))

    def now(self):
        """Current time adapted for a datetime column on this backend."""
        return self.connection.ops.adapt_datetimefield_value(timezone.now())

    @contextmanager
    def transaction(self) -> Iterator["Store"]:
        """Run the enclosed queries atomically (a savepoint when nested)."""
        with transaction.atomic(using=self.alias):
            yield self

    def ping(self) -> bool:
        row = self.query("SELECT 1 AS ok").first()
        return bool(row and row["ok"] == 1)

    def check_connection(self, retries: int | None = None, delay: float | None = None) -> bool:
        """Start-up connectivity check with a fixed number of blind retries."""
        retries = retries if retries is not None else getattr(settings, "STORE_CONNECT_RETRIES", 3)
        delay = delay if delay is not None else self.retry_delay
        for attempt in range(1, retries + 1):
            try:
                self.connection.ensure_connection()
                if self.ping():
                    logger.info("Database connected successfully (%s)", self.alias)
                    return True
            except (OperationalError, InterfaceError) as exc:
                logger.error("Database connection attempt %d failed: %s", attempt, exc)
                if attempt < retries:
                    logger.info("Retrying in %ss...", delay)
                    time.sleep(delay)
        logger.error("All database connection attempts failed")
        return False


default_store = Store()
