from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for permission checks."""

    ADMIN = "admin"
    TEACHER = "teacher"
    PARENT = "parent"


class Action(str, Enum):
    """Direction of an attendance event."""

    IN = "in"
    OUT = "out"

    @classmethod
    def for_status(cls, checked_in: bool) -> "Action":
        return cls.IN if checked_in else cls.OUT


class SortField(str, Enum):
    TIMESTAMP = "timestamp"
    LAST_NAME = "lastName"
    FIRST_NAME = "firstName"
    PERFORMED_BY = "performedBy"
    ACTION = "action"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class FilterOp(str, Enum):
    """Operators understood by the record store."""

    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    LIKE = "like"
    IN = "in"
