"""Membership expiry date helpers.

All results are calendar dates rendered as ``YYYY-MM-DD``. Month and year
arithmetic clamps to the last day of the target month, so ``2024-01-31`` plus
one month is ``2024-02-29`` and ``2024-02-29`` plus one year is ``2025-02-28``.
"""

from __future__ import annotations

import calendar
import re
from datetime import MAXYEAR, MINYEAR, date, datetime, timezone

DateLike = date | datetime | str

_ISO_DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")
_LEADING_INT_RE = re.compile(r"^[+-]?\d+")
_WHITESPACE_RE = re.compile(r"\s+")
DEFAULT_MONTHS = 1


def _date_part(value: date | datetime) -> str:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        value = value.date()
    return value.isoformat()


def _coerce_date(value: DateLike | None) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date()


def add_months(start: date, months: int) -> date:
    """Add ``months`` to ``start``, clamping the day and saturating at ``date.min``/``date.max``."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    if year > MAXYEAR:
        return date.max
    if year < MINYEAR:
        return date.min
    last_day = calendar.monthrange(year, month)[1]
    return date(year=year, month=month, day=min(start.day, last_day))


def _months_from_descriptor(duration: str) -> int:
    # the count is the first whitespace-separated token; leading whitespace leaves it empty
    first_token = _WHITESPACE_RE.split(duration, maxsplit=1)[0]
    match = _LEADING_INT_RE.match(first_token)
    if match is None:
        return DEFAULT_MONTHS
    months = int(match.group(0))
    # TODO: reject garbage descriptors like "abc months" once renewal forms validate durations
    return months if months > 0 else DEFAULT_MONTHS


def compute_expiration(reference_date: DateLike, duration: str | None = None) -> str:
    """Return the expiry date for a membership that starts on ``reference_date``.

    ``duration`` is a free-text descriptor such as ``"1 year"`` or
    ``"3 months"``. Anything mentioning a year adds exactly one year, whatever
    number precedes it. Month descriptors use their leading integer, falling
    back to one month when it is missing or not positive. Empty or unrecognised
    descriptors add one month.

    Raises ``ValueError`` when ``reference_date`` cannot be read as a date.
    """
    start = _coerce_date(reference_date)
    if start is None:
        raise ValueError(f"invalid reference date: {reference_date!r}")

    if not duration:
        return _date_part(add_months(start, DEFAULT_MONTHS))

    descriptor = duration.lower()
    if "year" in descriptor:
        expiry = add_months(start, 12)
    elif "month" in descriptor:
        expiry = add_months(start, _months_from_descriptor(descriptor))
    else:
        expiry = add_months(start, DEFAULT_MONTHS)
    return _date_part(expiry)


def normalize_date(value: DateLike | None) -> str:
    """Reduce a date-like value to ``YYYY-MM-DD``, or ``""`` when it is unusable."""
    if value is None:
        return ""
    if isinstance(value, str):
        if not value:
            return ""
        if _ISO_DATE_PREFIX_RE.match(value):
            return value[:10]
    parsed = _coerce_date(value)
    if parsed is None:
        return ""
    return _date_part(parsed)


def days_remaining(expiry_date: DateLike, today: date | None = None) -> int:
    expiry = _coerce_date(expiry_date)
    if expiry is None:
        raise ValueError(f"invalid expiry date: {expiry_date!r}")
    reference = today or date.today()
    return (expiry - reference).days
