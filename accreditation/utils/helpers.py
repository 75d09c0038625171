"""Shared parsing helpers used by entities, services and blueprints.

parse_date:        lenient, returns None on bad input (normalizing rows)
parse_date_input:  strict, raises ValueError on bad input (request bodies)
parse_bool:        query-string / JSON truthiness
clean_text:        stripped string, or "" for non-strings (JSON bodies)
"""
import logging
from datetime import date, datetime

logger = logging.getLogger(__name__)


def parse_date(value):
    """Parse a date string (ISO or DD.MM.YYYY) to a date object.

    Returns None for empty/invalid input. Supports:
    - YYYY-MM-DD (ISO format)
    - YYYY-MM-DDTHH:MM:SS (datetime ISO → .date(), time of day dropped)
    - DD.MM.YYYY
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
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).date()
    except (ValueError, TypeError):
        pass
    try:
        return datetime.strptime(str(value), "%d.%m.%Y").date()
    except (ValueError, TypeError):
        logger.debug("Unparseable date value %r ignored", value)
        return None


def parse_date_input(value):
    """Parse a date string, raising ValueError on bad input.

    Same as parse_date() but raises instead of returning None, so request
    handlers can turn a bad date into a validation error.
    """
    if not value:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError("Invalid date format. Use YYYY-MM-DD or DD.MM.YYYY.")
    return parsed


def parse_bool(value) -> bool:
    """Interpret "true"/"1"/"yes"/True as True; everything else as False."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def clean_text(value) -> str:
    """Stripped text for string input; "" for None and non-string JSON values."""
    return value.strip() if isinstance(value, str) else ""
