"""Shared parsing helpers for loosely-typed payloads (sheet rows, JSON bodies).

parse_datetime:   returns None on bad input (sheet cells are often blank)
parse_int:        returns a default on bad input
parse_bool_arg:   query-string flags ("1", "true", "yes")
"""
from datetime import date, datetime, timezone


def parse_datetime(value):
    """Parse an ISO timestamp, a date or DD/MM/YYYY string into an aware datetime.

    Returns None for empty/invalid input. Naive values are assumed UTC.
    Supports:
    - YYYY-MM-DDTHH:MM:SS[.fff][Z|±HH:MM] (ISO, as written by the sheet API)
    - YYYY-MM-DD
    - DD/MM/YYYY and DD.MM.YYYY (pt-BR spreadsheet formats)
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    except (ValueError, TypeError):
        pass
    for fmt in ("%d/%m/%Y", "%d.%m.%Y", "%d/%m/%Y %H:%M:%S"):
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except (ValueError, TypeError):
            continue
    return None


def parse_int(value, default=None):
    """int() that returns ``default`` instead of raising."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_bool_arg(value) -> bool:
    """Interpret a query-string / JSON flag."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ("1", "true", "yes", "on")
