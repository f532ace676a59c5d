"""
Serialization helpers shared by models and services.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Union


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime. Naive values are assumed to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """
    Render a timestamp as ISO-8601 UTC with millisecond precision.

    Example: 2024-05-01T12:30:00.123Z
    """
    if value is None:
        return None
    value = as_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def to_number(value: Optional[Union[Decimal, int, float]]) -> Optional[Union[int, float]]:
    """Convert a Numeric column value into a JSON-friendly number."""
    if value is None:
        return None
    number = float(value)
    return int(number) if number.is_integer() else number


def contains_pattern(text: str, escape: str = "\\") -> str:
    """
    LIKE pattern matching text as a literal substring.

    Wildcards typed by users are escaped; pass the same escape character to ilike().
    """
    for char in (escape, "%", "_"):
        text = text.replace(char, escape + char)
    return f"%{text}%"
