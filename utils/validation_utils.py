"""
utils/validation_utils.py

Purpose: Input validation

- Document id parsing
- Window / limit bounds
- Destructive-operation confirmation
"""

from datetime import datetime
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId

from creator_analytics.core.exceptions import ValidationError
from utils.constants import CLEAR_EVENTS_CONFIRMATION, MAX_WINDOW_DAYS


def parse_object_id(value: str, field: str = "id") -> ObjectId:
    """
    Parses a hex document id.

    Args:
        value: 24-character hex string
        field: Name used in the error message

    Returns:
        ObjectId

    Raises:
        ValidationError: If the value is not a valid ObjectId
    """
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid {field}: {value!r}", details={"field": field})


def validate_window_days(days: int) -> int:
    if days < 1 or days > MAX_WINDOW_DAYS:
        raise ValidationError(
            f"days must be between 1 and {MAX_WINDOW_DAYS}",
            details={"days": days}
        )
    return days


def validate_date_range(start: datetime, end: datetime) -> None:
    """
    Ensures a reporting range is not inverted.
    """
    if end < start:
        raise ValidationError(
            "end must not be before start",
            details={"start": start.isoformat(), "end": end.isoformat()}
        )


def validate_clear_confirmation(confirm: Optional[str]) -> None:
    """
    Guards bulk deletion of analytics events behind an explicit confirmation phrase.
    """
    if confirm != CLEAR_EVENTS_CONFIRMATION:
        raise ValidationError(
            "Must confirm deletion",
            details={"expected": CLEAR_EVENTS_CONFIRMATION}
        )
