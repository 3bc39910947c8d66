"""Parsing and formatting for the date and time strings used by the Aplos API"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Annotated

from pydantic import PlainValidator

from aplos.domain.exceptions import DecodeError

_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$", re.ASCII)

# e.g. 2020-03-04T05:06:07.123-0500; fractional seconds are optional
_TIMESTAMP_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,9}))?([+-])(\d{2})(\d{2})$",
    re.ASCII,
)


@dataclass(frozen=True, order=True)
class Date:
    """Calendar date without time or zone, as the API reports transaction dates"""

    year: int
    month: int
    day: int

    @classmethod
    def from_date(cls, value: date) -> "Date":
        return cls(value.year, value.month, value.day)

    def to_date(self) -> date:
        return date(self.year, self.month, self.day)

    def __str__(self) -> str:
        return format_date(self)


def format_date(d: Date) -> str:
    """Format as YYYY-MM-DD, zero-padding the year to four digits"""
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_date(s: str | None) -> Date | None:
    """
    Parse a YYYY-MM-DD string.

    None is the API's absent-value marker and is returned unchanged.

    Raises:
        DecodeError: If the string is not a valid calendar date in that form
    """
    if s is None:
        return None
    if not isinstance(s, str):
        raise DecodeError(f"Expected date string, got {type(s).__name__}")

    match = _DATE_RE.match(s)
    if match is None:
        raise DecodeError(f"Invalid date {s!r}, expected YYYY-MM-DD")

    year, month, day = (int(part) for part in match.groups())
    try:
        date(year, month, day)
    except ValueError as e:
        raise DecodeError(f"Invalid date {s!r}: {e}") from e
    return Date(year, month, day)


def parse_timestamp(s: str | None) -> datetime | None:
    """
    Parse a timestamp like 2020-03-04T05:06:07.123-0500 into an aware datetime.

    The offset has no colon. Fractional seconds beyond microseconds are
    truncated. None is returned unchanged.

    Raises:
        DecodeError: If the string does not match the format
    """
    if s is None:
        return None
    if not isinstance(s, str):
        raise DecodeError(f"Expected timestamp string, got {type(s).__name__}")

    match = _TIMESTAMP_RE.match(s)
    if match is None:
        raise DecodeError(f"Invalid timestamp {s!r}, expected YYYY-MM-DDThh:mm:ss.fff±hhmm")

    year, month, day, hour, minute, second, fraction, sign, off_h, off_m = match.groups()
    microsecond = int((fraction or "0")[:6].ljust(6, "0"))
    offset = timedelta(hours=int(off_h), minutes=int(off_m))
    if sign == "-":
        offset = -offset

    try:
        tz = timezone(offset)
        return datetime(
            int(year),
            int(month),
            int(day),
            int(hour),
            int(minute),
            int(second),
            microsecond,
            tzinfo=tz,
        )
    except ValueError as e:
        raise DecodeError(f"Invalid timestamp {s!r}: {e}") from e


def _validate_date(value: object) -> Date | None:
    if isinstance(value, Date):
        return value
    if isinstance(value, date):
        return Date.from_date(value)
    return parse_date(value)  # type: ignore[arg-type]


def _validate_timestamp(value: object) -> datetime | None:
    if isinstance(value, datetime):
        return value
    return parse_timestamp(value)  # type: ignore[arg-type]


# Field types for response models; DecodeError is a ValueError, so pydantic
# reports failures as ValidationError
AplosDate = Annotated[Date | None, PlainValidator(_validate_date)]
AplosTimestamp = Annotated[datetime | None, PlainValidator(_validate_timestamp)]
