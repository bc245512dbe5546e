"""Shared utility functions used by services and blueprints.

parse_date:   lenient date parsing (returns None on bad input)
parse_date_input: strict variant, raises ValidationError on bad input
bounded_int:  query-string pagination clamp
"""
import logging
from datetime import date, datetime

from ideabox.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def parse_date(value):
    """Parse a date string (ISO or DD/MM/YYYY) to a date object.

    Returns None for empty/invalid input. Supports:
    - YYYY-MM-DD (ISO format)
    - YYYY-MM-DDTHH:MM:SS (datetime ISO → .date())
    - DD/MM/YYYY (pt-BR format)
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value)).date()
    except (ValueError, TypeError):
        pass
    try:
        return datetime.strptime(str(value), "%d/%m/%Y").date()
    except (ValueError, TypeError):
        return None


def parse_date_input(value, field="date"):
    """Parse a date, raising ValidationError on non-empty unparseable input."""
    if value in (None, ""):
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValidationError(
            f"Invalid {field}. Use YYYY-MM-DD or DD/MM/YYYY.",
            details={field: str(value)},
        )
    return parsed


def bounded_int(value, *, default, minimum, maximum):
    """Coerce a query-string value into [minimum, maximum], else default."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return max(minimum, min(maximum, number))
