from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from ..core.constants import PIN_LENGTH
from ..core.enums import Action
from ..core.exceptions import ValidationError
from .datetime_utils import parse_iso_date


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"Missing {field_name}")
    return str(value).strip()


def require_pin(value: Optional[str]) -> str:
    pin = (value or "").strip()
    if not pin:
        raise ValidationError("Please enter your PIN.")
    if len(pin) != PIN_LENGTH or not pin.isdigit():
        raise ValidationError(f"PIN must be exactly {PIN_LENGTH} digits.")
    return pin


def require_action(value) -> Action:
    try:
        return Action(str(value).lower())
    except ValueError:
        raise ValidationError(f"Invalid action: {value}") from None


def require_ids(values: Optional[Iterable], field_name: str = "student_ids") -> list[str]:
    ids = [str(v).strip() for v in (values or []) if v is not None and str(v).strip()]
    if not ids:
        raise ValidationError(f"Please select at least one student ({field_name} is empty)")
    # keep first occurrence order
    return list(dict.fromkeys(ids))


def optional_date(value, field_name: str) -> Optional[date]:
    """YYYY-MM-DD text (or a date) to a date; blank means no bound."""

    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD") from None
