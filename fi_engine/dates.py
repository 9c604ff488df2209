"""
Date Coercion and Period Arithmetic

Deal dates arrive in whatever encoding the writing client used: store-native
timestamps, exported {seconds, nanoseconds} objects, native dates, ISO or
free-form strings, and epoch milliseconds. Each raw value is classified into
one of a closed set of variants, then converted to an aware UTC datetime.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

# =============================================================================
# RAW DATE VARIANTS
# =============================================================================


@dataclass(frozen=True)
class NativeTimestamp:
    """Store-native timestamp exposing toDate()."""

    value: Any


@dataclass(frozen=True)
class SecondsObject:
    """Plain {seconds, nanoseconds} object. Nanoseconds are ignored."""

    seconds: Any


@dataclass(frozen=True)
class NativeDate:
    value: date


@dataclass(frozen=True)
class IsoString:
    value: str


@dataclass(frozen=True)
class EpochMillis:
    value: int | float


DateValue = NativeTimestamp | SecondsObject | NativeDate | IsoString | EpochMillis

SECONDS_KEYS = ("seconds", "_seconds")

# Fills date parts missing from a free-form string instead of today's date
PARSE_DEFAULT = datetime(1970, 1, 1)


def classify_date_value(value: Any) -> DateValue | None:
    """
    Identify which encoding a raw date value uses.

    Checked richest representation first: a store timestamp also carries a
    seconds field, and must not be read as a bare number.
    """
    if value is None or isinstance(value, (bool, timedelta)):
        return None

    if callable(getattr(value, "toDate", None)):
        return NativeTimestamp(value)

    if isinstance(value, Mapping):
        for key in SECONDS_KEYS:
            if value.get(key) is not None:
                return SecondsObject(value[key])
        return None

    if getattr(value, "seconds", None) is not None:
        return SecondsObject(value.seconds)

    if isinstance(value, date):
        return NativeDate(value)

    if isinstance(value, str):
        text = value.strip()
        return IsoString(text) if text else None

    if isinstance(value, (int, float)):
        return EpochMillis(value)

    return None


def ensure_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_millis(millis: Any) -> datetime | None:
    try:
        millis = float(millis)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(millis):
        return None
    try:
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _from_string(text: str) -> datetime | None:
    try:
        return ensure_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass
    try:
        return ensure_utc(date_parser.parse(text, default=PARSE_DEFAULT))
    except (ValueError, OverflowError):
        return None


def to_datetime(variant: DateValue | None) -> datetime | None:
    """Convert a classified date value to an aware UTC datetime."""
    if isinstance(variant, NativeTimestamp):
        try:
            converted = variant.value.toDate()
        except (AttributeError, TypeError, ValueError) as e:
            logger.debug(f"toDate() failed on {variant.value!r}: {e}")
            return None
        if callable(getattr(converted, "toDate", None)):
            return None
        return to_datetime(classify_date_value(converted))

    if isinstance(variant, SecondsObject):
        if isinstance(variant.seconds, bool):
            return None
        try:
            seconds = float(variant.seconds)
        except (TypeError, ValueError):
            return None
        return _from_millis(seconds * 1000)

    if isinstance(variant, NativeDate):
        if isinstance(variant.value, datetime):
            return ensure_utc(variant.value)
        return datetime.combine(variant.value, time.min, tzinfo=timezone.utc)

    if isinstance(variant, IsoString):
        return _from_string(variant.value)

    if isinstance(variant, EpochMillis):
        return _from_millis(variant.value)

    return None


def coerce_date(value: Any) -> datetime | None:
    """Coerce any supported raw date encoding; None when unresolvable."""
    return to_datetime(classify_date_value(value))


# =============================================================================
# PERIOD ARITHMETIC
# =============================================================================


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from start to end, floored."""
    return (end - start).days


def as_reference(now: datetime) -> datetime:
    """Reference instant used for calendar boundaries; naive means UTC."""
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def month_start(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def month_end(start: datetime) -> datetime:
    """Last representable instant of the month beginning at start."""
    return start + relativedelta(months=1) - timedelta(microseconds=1)


def month_starts(now: datetime, months_back: int) -> list[datetime]:
    """First instant of each of the last months_back months, oldest first."""
    current = month_start(as_reference(now))
    return [current - relativedelta(months=offset) for offset in range(months_back - 1, -1, -1)]


def month_label(start: datetime) -> str:
    return start.strftime("%b %Y")


def resolve_period(name: str, now: datetime, start=None, end=None) -> tuple[datetime, datetime]:
    """
    Resolve a named reporting period to an inclusive [start, end] range.

    Supported names:
    - "mtd": first of the current month
    - "today": midnight today
    - "last90": ninety days back
    - "monthly": first of the month twelve months back
    - "quarterly": fifteen months back, so four full quarters are covered
    - "yearly": January 1st three years back
    - "custom": the given start and end, as any supported date value;
      end defaults to now
    """
    now = as_reference(now)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

    if name == "mtd":
        start = month_start(now)
    elif name == "today":
        start = midnight
    elif name == "last90":
        start = now - timedelta(days=90)
    elif name == "monthly":
        start = month_start(now - relativedelta(months=12))
    elif name == "quarterly":
        start = now - relativedelta(months=15)
    elif name == "yearly":
        start = midnight.replace(year=now.year - 3, month=1, day=1)
    elif name == "custom":
        return _custom_range(start, end, now)
    else:
        raise ValueError(
            f"Unknown period: {name}. Must be one of mtd, today, last90, monthly, quarterly, yearly, custom"
        )

    return start, now


def _custom_range(start, end, now: datetime) -> tuple[datetime, datetime]:
    range_start = coerce_date(start)
    if range_start is None:
        raise ValueError(f"custom period needs a recognizable start date, got: {start!r}")
    range_end = now if end is None else coerce_date(end)
    if range_end is None:
        raise ValueError(f"custom period end is not a recognizable date: {end!r}")
    if range_end < range_start:
        raise ValueError("custom period end is before its start")
    return range_start, range_end
