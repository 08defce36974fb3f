"""
Date helpers for rows coming out of the Sheets-backed data API.

Cells arrive as loosely formatted strings: ISO dates, dd/mm/yyyy, Google
Sheets serial day numbers, and form timestamps with or without seconds.
"""
from datetime import date, datetime, timedelta
from typing import Optional, Union

import pytz

from app.core.config import settings

SHEETS_EPOCH = date(1899, 12, 30)

TIMESTAMP_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %I:%M %p",
)


def local_timezone(tz_name: Optional[str] = None):
    return pytz.timezone(tz_name or settings.TIMEZONE)


def today_local(tz_name: Optional[str] = None) -> date:
    return datetime.now(local_timezone(tz_name)).date()


def parse_sheet_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """Parse a date cell; returns None when the cell is empty or unreadable"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    # Google Sheets serial date (days since 1899-12-30)
    try:
        serial = float(text)
        return SHEETS_EPOCH + timedelta(days=int(serial))
    except ValueError:
        pass

    if "/" in text:
        parts = text.split(" ")[0].split("/")
        if len(parts) == 3:
            try:
                day, month, year = (int(p) for p in parts)
                return date(year, month, day)
            except ValueError:
                return None
        return None

    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def parse_sheet_timestamp(
    value: Union[str, datetime, None],
    tz_name: Optional[str] = None,
) -> Optional[datetime]:
    """Parse a timestamp cell into an aware datetime in the local timezone"""
    if value is None:
        return None

    tz = local_timezone(tz_name)
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if not text:
            return None
        parsed = None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            for fmt in TIMESTAMP_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
        if parsed is None:
            return None

    if parsed.tzinfo is None:
        return tz.localize(parsed)
    return parsed.astimezone(tz)


def format_time(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime("%H:%M")


def calculate_days_pending(ticket_date: Optional[date], today: Optional[date] = None) -> int:
    """Whole days elapsed since the ticket date"""
    if ticket_date is None:
        return 0
    today = today or today_local()
    return (today - ticket_date).days
