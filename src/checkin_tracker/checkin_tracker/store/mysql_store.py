from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence

import mysql.connector

from ..core.enums import FilterOp
from ..core.exceptions import StoreError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .base import Condition, Filters, RecordStore, check_identifier, to_conditions

logger = logging.getLogger(__name__)

_SQL_OPS = {
    FilterOp.EQ: "=",
    FilterOp.NEQ: "<>",
    FilterOp.GT: ">",
    FilterOp.GTE: ">=",
    FilterOp.LT: "<",
    FilterOp.LTE: "<=",
    FilterOp.LIKE: "LIKE",
}

# Tables whose primary key is a generated UUID.
_UUID_TABLES = {"students", "users", "attendance_logs"}


def _db_value(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, datetime) and value.tzinfo is not None:
        # DATETIME columns hold naive UTC.
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _where(conditions: Sequence[Condition]) -> tuple[str, list[Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    for c in conditions:
        if c.op == FilterOp.IN:
            values = list(c.value)
            if not values:
                clauses.append("1=0")
                continue
            clauses.append(f"`{c.column}` IN ({', '.join(['%s'] * len(values))})")
            params.extend(_db_value(v) for v in values)
        elif c.value is None and c.op in (FilterOp.EQ, FilterOp.NEQ):
            clauses.append(f"`{c.column}` IS {'NOT ' if c.op == FilterOp.NEQ else ''}NULL")
        else:
            clauses.append(f"`{c.column}` {_SQL_OPS[c.op]} %s")
            params.append(_db_value(c.value))

    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params


class MySQLRecordStore(RecordStore):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def select(
        self,
        table: str,
        *,
        fields: Optional[Sequence[str]] = None,
        filters: Optional[Filters] = None,
    ) -> list[dict]:
        check_identifier(table)
        columns = ", ".join(f"`{check_identifier(f, table=table)}`" for f in fields) if fields else "*"
        where, params = _where(to_conditions(filters, table=table))
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"SELECT {columns} FROM `{table}`{where}", tuple(params))
                return fetchall(cur)
        except mysql.connector.Error as exc:
            logger.error("Failed to fetch from %s: %s", table, exc)
            raise StoreError(f"Failed to fetch from {table}", table=table) from exc

    def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> list[dict]:
        check_identifier(table)
        if not rows:
            return []

        prepared: list[dict] = []
        for row in rows:
            item = dict(row)
            if table in _UUID_TABLES and not item.get("id"):
                item["id"] = str(uuid.uuid4())
            prepared.append(item)

        columns = list(prepared[0].keys())
        for c in columns:
            check_identifier(c, table=table)
        placeholders = ", ".join(["%s"] * len(columns))
        sql = f"INSERT INTO `{table}` ({', '.join(f'`{c}`' for c in columns)}) VALUES ({placeholders})"

        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.executemany(sql, [tuple(_db_value(r.get(c)) for c in columns) for r in prepared])
        except mysql.connector.Error as exc:
            logger.error("Failed to insert into %s: %s", table, exc)
            raise StoreError(f"Failed to insert into {table}", table=table) from exc
        return prepared

    def update(self, table: str, patch: Mapping[str, Any], filters: Filters) -> list[dict]:
        check_identifier(table)
        if not patch:
            raise StoreError("Empty update patch", table=table)

        assignments = ", ".join(f"`{check_identifier(c, table=table)}`=%s" for c in patch)
        where, params = _where(to_conditions(filters, table=table))
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"UPDATE `{table}` SET {assignments}{where}",
                    tuple([_db_value(v) for v in patch.values()] + params),
                )
        except mysql.connector.Error as exc:
            logger.error("Failed to update %s: %s", table, exc)
            raise StoreError(f"Failed to update {table}", table=table) from exc
        return self.select(table, filters=filters)

    def delete(self, table: str, filters: Filters) -> int:
        check_identifier(table)
        if not filters:
            raise StoreError("Refusing to delete without filters", table=table)
        where, params = _where(to_conditions(filters, table=table))
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"DELETE FROM `{table}`{where}", tuple(params))
                return int(cur.rowcount or 0)
        except mysql.connector.Error as exc:
            logger.error("Failed to delete from %s: %s", table, exc)
            raise StoreError(f"Failed to delete from {table}", table=table) from exc
