"""
Timestamp helpers.

Every timestamp in the store is an ISO-8601 UTC string (YYYY-MM-DDTHH:MM:SS),
so comparing them as strings gives chronological order.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

ISO_FORMAT = "%Y-%m-%dT%H:%M:%S"


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def to_iso(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime(ISO_FORMAT)


def utcnow_iso() -> str:
    return to_iso(utcnow())


def iso_in(minutes: int) -> str:
    return to_iso(utcnow() + timedelta(minutes=minutes))


def normalize_timestamp(value: Union[str, datetime, date, None], end_of_day: bool = False) -> Optional[str]:
    """
    Normalise user input to the stored ISO-8601 form.

    A bare date becomes midnight, or 23:59:59 when end_of_day is set
    (deadlines stay open for the whole day).
    Raises ValueError on unparseable input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, date):
        return to_iso(datetime(value.year, value.month, value.day, 23, 59, 59) if end_of_day
                      else datetime(value.year, value.month, value.day))

    raw = value.strip()
    if len(raw) == 10:
        parsed_date = date.fromisoformat(raw)
        return normalize_timestamp(parsed_date, end_of_day=end_of_day)
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    return to_iso(datetime.fromisoformat(raw))
