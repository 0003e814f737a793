"""
Generic resource operations over a single table.

A :class:`ResourceDescriptor` names a table and the columns a client may
write, filter and search on.  :class:`ResourceService` binds a descriptor to
a store handle and implements list/get/create/update/delete plus the
partial-success bulk update used by the bulk routes.  No request objects
appear here; the HTTP layer lives in :mod:`records.views.crud`.
"""
from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from django.db import DatabaseError
from rest_framework.exceptions import APIException, NotFound

from records.exceptions import describe_store_error
from records.serializers.resources import BulkUpdateItemSerializer
from records.services.query import QueryBuilder
from records.services.store import Store, default_store

logger = logging.getLogger(__name__)

IDENTIFIER_RE = re.compile(r"^[a-z_][a-z0-9_]*$")
RESERVED_COLUMNS = frozenset({"id", "created_at", "updated_at"})


def _check_identifier(value: str, what: str) -> None:
    if not IDENTIFIER_RE.match(value):
        raise ValueError(f"invalid {what} identifier: {value!r}")


@dataclass(frozen=True)
class ResourceDescriptor:
    """Immutable description of one CRUD resource."""
    name: str
    table: str
    allowed_fields: tuple[str, ...]
    filter_fields: tuple[str, ...] = ()
    search_fields: tuple[str, ...] = ()
    json_fields: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Coerce to tuples so a list passed by a caller cannot be mutated later.
        object.__setattr__(self, "allowed_fields", tuple(self.allowed_fields))
        object.__setattr__(self, "filter_fields", tuple(self.filter_fields) or ("id",) + self.allowed_fields)
        object.__setattr__(self, "search_fields", tuple(self.search_fields))
        object.__setattr__(self, "json_fields", tuple(self.json_fields))
        _check_identifier(self.table, "table")
        for column in self.allowed_fields + self.filter_fields + self.search_fields + self.json_fields:
            _check_identifier(column, "column")
        clash = RESERVED_COLUMNS.intersection(self.allowed_fields)
        if clash:
            raise ValueError(f"{self.name}: columns {sorted(clash)} are managed by the service")

    def pick(self, data: Mapping[str, Any] | None) -> dict[str, Any]:
        """Keep only writable columns, in descriptor order."""
        data = data or {}
        return {column: data[column] for column in self.allowed_fields if column in data}


@dataclass
class Page:
    rows: list[dict[str, Any]]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> dict[str, int]:
        return {"page": self.page, "limit": self.limit, "total": self.total, "pages": self.pages}


@dataclass
class BulkResult:
    """Outcome of one element of a bulk update."""
    id: Any
    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "success": self.success}
        if self.success:
            out["data"] = self.data
        else:
            out["error"] = self.error
        return out


@dataclass
class ResourceService:
    descriptor: ResourceDescriptor
    store: Store = field(default=default_store)

    @property
    def builder(self) -> QueryBuilder:
        return QueryBuilder(self.descriptor, self.store.vendor)

    def _not_found(self) -> NotFound:
        return NotFound(f"{self.descriptor.table} not found")

    def _decode(self, row: dict[str, Any] | None) -> dict[str, Any] | None:
        if row is None:
            return None
        for column in self.descriptor.json_fields:
            value = row.get(column)
            if isinstance(value, str):
                try:
                    row[column] = json.loads(value)
                except ValueError:
                    pass
        return row

    # -- read ---------------------------------------------------------------

    def list(self, filters: Mapping[str, Any] | None = None, page: int = 1, limit: int = 10,
             search: str | None = None) -> Page:
        builder = self.builder
        where = builder.where(filters, search)
        count = builder.count(where)
        total = int(self.store.query(count.sql, count.params).first()["total"])
        select = builder.select_page(where, limit, (page - 1) * limit)
        rows = self.store.query(select.sql, select.params).rows
        return Page(rows=[self._decode(r) for r in rows], total=total, page=page, limit=limit)

    def get(self, pk: Any) -> dict[str, Any]:
        stmt = self.builder.select_one(pk)
        row = self.store.query(stmt.sql, stmt.params).first()
        if row is None:
            raise self._not_found()
        return self._decode(row)

    # -- write --------------------------------------------------------------

    def create(self, data: Mapping[str, Any] | None, user=None) -> dict[str, Any]:
        values = self.descriptor.pick(data)
        values["created_at"] = self.store.now()
        stmt = self.builder.insert(values)
        row = self.store.query(stmt.sql, stmt.params).first()
        logger.info("Created %s %s by %s", self.descriptor.table, row and row.get("id"), _actor(user))
        return self._decode(row)

    def update(self, pk: Any, data: Mapping[str, Any] | None, user=None) -> dict[str, Any]:
        values = self.descriptor.pick(data)
        # An empty payload still runs the statement and bumps updated_at.
        values["updated_at"] = self.store.now()
        stmt = self.builder.update(pk, values)
        row = self.store.query(stmt.sql, stmt.params).first()
        if row is None:
            raise self._not_found()
        logger.info("Updated %s %s by %s", self.descriptor.table, pk, _actor(user))
        return self._decode(row)

    def delete(self, pk: Any, user=None) -> None:
        stmt = self.builder.delete(pk)
        if self.store.query(stmt.sql, stmt.params).first() is None:
            raise self._not_found()
        logger.info("Deleted %s %s by %s", self.descriptor.table, pk, _actor(user))

    def bulk_update(self, updates: Iterable[Any], user=None) -> list[BulkResult]:
        """Apply each update in its own savepoint; one failure never stops the rest."""
        results: list[BulkResult] = []
        for item in updates:
            element = BulkUpdateItemSerializer(data=item)
            if not element.is_valid():
                pk = item.get("id") if isinstance(item, Mapping) else None
                results.append(BulkResult(id=pk, success=False, error="Each update requires an id and a data object"))
                continue
            pk = element.validated_data["id"]
            data = element.validated_data["data"]
            try:
                with self.store.transaction():
                    row = self.update(pk, data, user=user)
            except (APIException, DatabaseError) as exc:
                status_code, message = describe_store_error(exc)
                logger.warning("Bulk update of %s %s failed (%s): %s", self.descriptor.table, pk, status_code, exc)
                results.append(BulkResult(id=pk, success=False, error=message))
            else:
                results.append(BulkResult(id=pk, success=True, data=row))
        return results


def _actor(user) -> str:
    if user is None or not getattr(user, "is_authenticated", False):
        return "anonymous"
    return f"user {user.pk}"
