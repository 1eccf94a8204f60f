from __future__ import annotations

import re
import threading
import uuid
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import parse_instant
from ..core.enums import FilterOp
from ..core.exceptions import StoreError
from .base import Condition, Filters, RecordStore, check_identifier, to_conditions


def _like(pattern: str, value: Any) -> bool:
    regex = "".join(".*" if ch == "%" else "." if ch == "_" else re.escape(ch) for ch in str(pattern))
    return re.fullmatch(regex, str(value), flags=re.IGNORECASE | re.DOTALL) is not None


def _matches(row: Mapping[str, Any], condition: Condition) -> bool:
    value = row.get(condition.column)
    op, expected = condition.op, condition.value

    if op == FilterOp.IN:
        return value in list(expected)
    if op == FilterOp.EQ:
        return value == expected
    if op == FilterOp.NEQ:
        return value != expected
    if op == FilterOp.LIKE:
        return value is not None and _like(expected, value)
    if value is None or expected is None:
        return False
    if isinstance(value, datetime) or isinstance(expected, datetime):
        # stored ISO strings and datetimes compare as UTC instants
        value, expected = parse_instant(value), parse_instant(expected)
        if value is None or expected is None:
            return False

    try:
        if op == FilterOp.GT:
            return value > expected
        if op == FilterOp.GTE:
            return value >= expected
        if op == FilterOp.LT:
            return value < expected
        if op == FilterOp.LTE:
            return value <= expected
    except TypeError:
        raise StoreError(f"Cannot compare {condition.column} values with {op.value}") from None
    raise StoreError(f"Unsupported filter operator: {op!r}")


class InMemoryRecordStore(RecordStore):
    """Dict-backed store for development and tests (STORE_BACKEND=memory)."""

    def __init__(self, tables: Optional[Mapping[str, Sequence[Mapping[str, Any]]]] = None):
        self._lock = threading.Lock()
        self._tables: dict[str, list[dict]] = {
            name: [dict(r) for r in rows] for name, rows in (tables or {}).items()
        }

    def _rows(self, table: str) -> list[dict]:
        check_identifier(table)
        return self._tables.setdefault(table, [])

    def select(
        self,
        table: str,
        *,
        fields: Optional[Sequence[str]] = None,
        filters: Optional[Filters] = None,
    ) -> list[dict]:
        conditions = to_conditions(filters, table=table)
        with self._lock:
            hits = [r for r in self._rows(table) if all(_matches(r, c) for c in conditions)]
            if fields:
                return [{f: r.get(f) for f in fields} for r in hits]
            return [dict(r) for r in hits]

    def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> list[dict]:
        inserted: list[dict] = []
        with self._lock:
            target = self._rows(table)
            for row in rows:
                item = dict(row)
                if table != "students_parents" and not item.get("id"):
                    item["id"] = str(uuid.uuid4())
                target.append(item)
                inserted.append(dict(item))
        return inserted

    def update(self, table: str, patch: Mapping[str, Any], filters: Filters) -> list[dict]:
        if not patch:
            raise StoreError("Empty update patch", table=table)
        conditions = to_conditions(filters, table=table)
        with self._lock:
            hits = [r for r in self._rows(table) if all(_matches(r, c) for c in conditions)]
            for r in hits:
                r.update(patch)
            return [dict(r) for r in hits]

    def delete(self, table: str, filters: Filters) -> int:
        if not filters:
            raise StoreError("Refusing to delete without filters", table=table)
        conditions = to_conditions(filters, table=table)
        with self._lock:
            rows = self._rows(table)
            keep = [r for r in rows if not all(_matches(r, c) for c in conditions)]
            removed = len(rows) - len(keep)
            self._tables[table] = keep
            return removed
