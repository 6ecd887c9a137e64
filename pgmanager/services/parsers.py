"""Input parsing utilities for money amounts, enum values and dates.

Every parser raises ValidationError so callers can hand the failure
straight back to the client.

Example:
    >>> parse_amount("2500.50", "rent_amount")
    Decimal('2500.50')

    >>> parse_amount(0, "damages")
    Decimal('0')

    >>> parse_enum("paid", PaymentStatus, "status")
    <PaymentStatus.PAID: 'paid'>
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from pgmanager.services.billing_calendar import parse_month_key
from pgmanager.services.errors import ValidationError

E = TypeVar("E", bound=Enum)


def parse_amount(value: Any, field: str, allow_zero: bool = True) -> Decimal:
    """
    Parse a non-negative money amount.

    Args:
        value: int, float, str or Decimal
        field: Field name used in the error message
        allow_zero: Whether 0 is acceptable (False for rent)

    Returns:
        Decimal amount

    Raises:
        ValidationError: If missing, not numeric, negative (or zero when not allowed)
    """
    if value is None or value == "":
        raise ValidationError(f"{field} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")

    try:
        # str() first so floats do not carry binary noise into Decimal
        amount = Decimal(str(value).strip())
    except (ValueError, InvalidOperation) as e:
        raise ValidationError(f"{field} must be a number, got {value!r}") from e

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount < 0:
        raise ValidationError(f"{field} must not be negative")
    if not allow_zero and amount == 0:
        raise ValidationError(f"{field} must be greater than zero")
    return amount


def parse_optional_amount(value: Any, field: str) -> Decimal:
    """Parse an optional deduction amount; missing means 0."""
    if value is None or value == "":
        return Decimal("0")
    return parse_amount(value, field)


def parse_enum(value: Any, enum_cls: Type[E], field: str) -> E:
    """
    Parse an enum member from its value.

    Raises:
        ValidationError: If value is not one of the enum's values
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as e:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}") from e


def parse_month(value: Optional[str], field: str = "month") -> str:
    """Validate a "YYYY-MM" month key and return it unchanged."""
    try:
        parse_month_key(value or "")
    except ValueError as e:
        raise ValidationError(f"{field} must be formatted as YYYY-MM") from e
    return value


def parse_join_date(value: Any) -> date:
    """Accept a date or an ISO "YYYY-MM-DD" string."""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as e:
        raise ValidationError(f"join_date must be an ISO date, got {value!r}") from e


__all__ = [
    "parse_amount",
    "parse_optional_amount",
    "parse_enum",
    "parse_month",
    "parse_join_date",
]
