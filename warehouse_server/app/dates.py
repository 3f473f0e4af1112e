# warehouse_server/app/dates.py
"""Date canonicalization for parcel records.

Every incoming date (spreadsheet cell, form field, JSON body) goes through
``normalize_date`` and leaves as ``DD/MM/YYYY`` or ``None``. An unusable date
is never an error: the optional field is simply left empty.
"""
import math
import numbers
import re
from datetime import date, datetime, time, timedelta
from typing import Optional

from dateutil import parser as date_parser

# day before serial 1 in the common spreadsheet convention
SPREADSHEET_EPOCH = date(1899, 12, 30)
MIN_YEAR = 1900  # exclusive
MAX_YEAR = 2100  # exclusive

BLANK_VALUES = ("", "null", "undefined")

# two unrelated fill-ins: a parse that depends on them was missing a part
_FILL_A = datetime(1901, 1, 1)
_FILL_B = datetime(1902, 2, 2)

_CANONICAL_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$", re.ASCII)
_ISO_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}", re.ASCII)
_THREE_PARTS_RE = re.compile(r"^\s*(\d+)\s*[/\-.]\s*(\d+)\s*[/\-.]\s*(\d+)\s*$", re.ASCII)


def format_date(value: date) -> str:
    return f"{value.day:02d}/{value.month:02d}/{value.year:04d}"


def _year_ok(year) -> bool:
    return MIN_YEAR < year < MAX_YEAR


def _build(year: int, month: int, day: int) -> Optional[str]:
    if not (1 <= day <= 31 and 1 <= month <= 12 and _year_ok(year)):
        return None
    try:
        return format_date(date(year, month, day))
    except ValueError:
        return None


def _from_date(value) -> Optional[str]:
    year = value.year
    if not isinstance(year, int) or not _year_ok(year):
        return None
    return format_date(value)


def _from_serial(value) -> Optional[str]:
    if not math.isfinite(value):
        return None
    try:
        result = SPREADSHEET_EPOCH + timedelta(days=math.floor(value - 1))
    except OverflowError:
        return None
    return format_date(result) if _year_ok(result.year) else None


def _from_canonical(text: str) -> Optional[str]:
    m = _CANONICAL_RE.match(text)
    if not m:
        return None
    day, month, year = (int(g) for g in m.groups())
    return _build(year, month, day)


def _from_iso(text: str) -> Optional[str]:
    if not ("T" in text or "Z" in text or _ISO_PREFIX_RE.match(text)):
        return None
    try:
        parsed = date_parser.isoparse(text)
    except (ValueError, OverflowError):
        return None
    # calendar date as written, no timezone shift
    return _from_date(parsed)


def _from_parts(text: str) -> Optional[str]:
    m = _THREE_PARTS_RE.match(text)
    if not m:
        return None
    first, second, year = (int(g) for g in m.groups())
    if first > 12:
        day, month = first, second
    else:
        month, day = first, second
    if year < 100:
        year += 2000
    return _build(year, month, day)


def _from_anything(text: str) -> Optional[str]:
    try:
        parsed = date_parser.parse(text, default=_FILL_A)
        check = date_parser.parse(text, default=_FILL_B)
    except (ValueError, OverflowError):
        return None
    if parsed.date() != check.date():
        # day, month or year was not in the text
        return None
    return _from_date(parsed)


_STRING_PARSERS = (_from_canonical, _from_iso, _from_parts, _from_anything)


def normalize_date(value) -> Optional[str]:
    """Return ``value`` as ``DD/MM/YYYY`` or None when it is not a usable date.

    Attempts, first success wins: date/datetime objects, spreadsheet serial
    numbers, ``D/M/YYYY`` strings, ISO strings, three-part strings (day first
    only when the first part is above 12, two-digit years are 20xx), then a
    general parse that must find day, month and year itself. Only years
    strictly between 1900 and 2100 are kept.
    Feeding the output back in returns it unchanged.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (datetime, date)):
        return _from_date(value)
    if isinstance(value, (time, timedelta)):
        return None
    if isinstance(value, numbers.Real):
        return _from_serial(float(value))
    text = str(value).strip()
    if text in BLANK_VALUES:
        return None
    for parse in _STRING_PARSERS:
        result = parse(text)
        if result is not None:
            return result
    return None
