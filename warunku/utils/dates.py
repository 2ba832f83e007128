"""Date parsing for ledger inputs and query bounds."""
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

from warunku.core.errors import InvalidInputError

DateInput = Union[str, date, datetime, None]


def parse_date(value: DateInput, field: str = "date") -> Optional[datetime]:
    """
    Parse an ISO-8601 date or datetime into an aware UTC datetime.

    ``None`` and empty strings yield ``None``. Naive values are taken as UTC.
    Raises InvalidInputError (code ``invalid-date``) for anything unparseable.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidInputError(f"Invalid {field} format: {value!r}", code="invalid-date")
    else:
        raise InvalidInputError(f"Invalid {field} format: {value!r}", code="invalid-date")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_naive_utc(value: datetime) -> datetime:
    """
    Drop tzinfo after converting to UTC.

    pymongo encodes naive datetimes as UTC, so the bound matches stored dates
    the same way whether or not the client was opened with ``tz_aware``.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def next_day_start(value: datetime) -> datetime:
    """Midnight after ``value``'s calendar day, for inclusive end dates."""
    start = value.replace(hour=0, minute=0, second=0, microsecond=0)
    return start + timedelta(days=1)
