"""
SQL text builder for generic resource tables.

Every statement is returned as SQL text plus a parameter list.  Values are
always bound through ``%s`` placeholders; the only identifiers ever placed
into the SQL text are the table and column names held by a
:class:`~records.services.resources.ResourceDescriptor`, which are fixed at
start-up and validated when the descriptor is built.  Keys coming from a
request are used only to *select* descriptor columns, never spliced in.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class Statement:
    sql: str
    params: tuple[Any, ...] = ()


def quote(name: str) -> str:
    return f'"{name}"'


def is_pattern(value: Any) -> bool:
    return isinstance(value, str) and "%" in value


def is_blank(value: Any) -> bool:
    return value is None or value == ""


class QueryBuilder:
    """Builds statements for one descriptor on one database vendor.

    PostgreSQL gets ``ILIKE`` for pattern filters; other backends get the
    portable ``UPPER(col) LIKE UPPER(%s)`` form.
    """

    def __init__(self, descriptor, vendor: str = "postgresql") -> None:
        self.descriptor = descriptor
        self.vendor = vendor
        self.table = quote(descriptor.table)

    # -- predicates ---------------------------------------------------------

    def _like(self, column: str) -> str:
        col = f"CAST({quote(column)} AS TEXT)"
        if self.vendor == "postgresql":
            return f"{col} ILIKE %s"
        return f"UPPER({col}) LIKE UPPER(%s)"

    def where(self, filters: Mapping[str, Any] | None = None, search: str | None = None) -> Statement:
        conditions: list[str] = []
        params: list[Any] = []
        filters = filters or {}
        # Iterate the descriptor, not the request, so column order and names are fixed.
        for column in self.descriptor.filter_fields:
            if column not in filters:
                continue
            value = filters[column]
            if is_blank(value):
                continue
            if is_pattern(value):
                conditions.append(self._like(column))
            else:
                conditions.append(f"{quote(column)} = %s")
            params.append(value)
        if not is_blank(search) and self.descriptor.search_fields:
            pattern = search if is_pattern(search) else f"%{search}%"
            ors = [self._like(column) for column in self.descriptor.search_fields]
            conditions.append("(" + " OR ".join(ors) + ")")
            params.extend([pattern] * len(ors))
        if not conditions:
            return Statement("", ())
        return Statement("WHERE " + " AND ".join(conditions), tuple(params))

    # -- statements ---------------------------------------------------------

    def count(self, where: Statement) -> Statement:
        sql = f"SELECT COUNT(*) AS total FROM {self.table}"
        if where.sql:
            sql += " " + where.sql
        return Statement(sql, where.params)

    def select_page(self, where: Statement, limit: int, offset: int) -> Statement:
        sql = f"SELECT * FROM {self.table}"
        if where.sql:
            sql += " " + where.sql
        sql += ' ORDER BY "created_at" DESC, "id" DESC LIMIT %s OFFSET %s'
        return Statement(sql, where.params + (limit, offset))

    def select_one(self, pk: Any) -> Statement:
        return Statement(f'SELECT * FROM {self.table} WHERE "id" = %s', (pk,))

    def insert(self, values: Mapping[str, Any]) -> Statement:
        columns = list(values)
        cols = ", ".join(quote(c) for c in columns)
        placeholders = ", ".join(["%s"] * len(columns))
        sql = f"INSERT INTO {self.table} ({cols}) VALUES ({placeholders}) RETURNING *"
        return Statement(sql, tuple(values[c] for c in columns))

    def update(self, pk: Any, values: Mapping[str, Any]) -> Statement:
        columns = list(values)
        assignments = ", ".join(f"{quote(c)} = %s" for c in columns)
        sql = f'UPDATE {self.table} SET {assignments} WHERE "id" = %s RETURNING *'
        return Statement(sql, tuple(values[c] for c in columns) + (pk,))

    def delete(self, pk: Any) -> Statement:
        return Statement(f'DELETE FROM {self.table} WHERE "id" = %s RETURNING "id"', (pk,))
