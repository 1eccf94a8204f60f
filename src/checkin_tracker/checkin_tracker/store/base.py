"""Generic record store contract.

Repositories talk to tables only through ``select``/``insert``/``update``/``delete``
with a small filter language:

* scalar value -> equality
* list/tuple/set -> membership (``IN``)
* ``{"op": "lt", "value": ...}`` or ``Filter(FilterOp.LT, ...)`` -> operator
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from ..core.enums import FilterOp
from ..core.exceptions import StoreError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class Filter:
    op: FilterOp
    value: Any


@dataclass(frozen=True)
class Condition:
    column: str
    op: FilterOp
    value: Any


Filters = Mapping[str, Any]


class RecordStore(Protocol):
    def select(
        self,
        table: str,
        *,
        fields: Optional[Sequence[str]] = None,
        filters: Optional[Filters] = None,
    ) -> list[dict]:
        raise NotImplementedError

    def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> list[dict]:
        raise NotImplementedError

    def update(self, table: str, patch: Mapping[str, Any], filters: Filters) -> list[dict]:
        raise NotImplementedError

    def delete(self, table: str, filters: Filters) -> int:
        """Delete matching rows and return how many were removed."""

        raise NotImplementedError


def check_identifier(name: str, *, table: Optional[str] = None) -> str:
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise StoreError(f"Invalid identifier: {name!r}", table=table)
    return name


def to_conditions(filters: Optional[Filters], *, table: Optional[str] = None) -> list[Condition]:
    """Expand the filter mapping into one condition per column."""

    conditions: list[Condition] = []
    for column, raw in (filters or {}).items():
        check_identifier(column, table=table)
        if isinstance(raw, Filter):
            op, value = FilterOp(raw.op), raw.value
        elif isinstance(raw, Mapping) and "op" in raw:
            try:
                op = FilterOp(str(raw["op"]).lower())
            except ValueError:
                raise StoreError(f"Unsupported filter operator: {raw['op']!r}", table=table) from None
            value = raw.get("value")
        elif isinstance(raw, (list, tuple, set, frozenset)):
            op, value = FilterOp.IN, list(raw)
        else:
            op, value = FilterOp.EQ, raw

        if op == FilterOp.IN and not isinstance(value, Iterable):
            raise StoreError(f"'in' filter on {column} needs a list", table=table)
        conditions.append(Condition(column=column, op=op, value=value))
    return conditions
