"""
Date normalization and calendar arithmetic.

Every date field read from a stored document passes through ``normalize``
before it is compared or used in arithmetic. Stored values arrive in several
shapes (native datetimes, millisecond epochs, ISO strings, server timestamp
objects or their serialized ``{"seconds": ..}`` form); ``classify`` tags each
raw value once and ``resolve`` turns the tag into an instant or an absence
reason. Nothing in this module raises on bad input.

Instants are naive ``datetime`` values in local wall-clock time. Calendar
days are ``date`` values.
"""

import calendar
import enum
import math
import numbers
from collections import namedtuple
from datetime import date, datetime, time, timedelta


class Absent(enum.Enum):
    MISSING = "missing"
    UNSUPPORTED = "unsupported"
    UNPARSEABLE = "unparseable"
    NOT_A_NUMBER = "not_a_number"
    OUT_OF_RANGE = "out_of_range"
    CONVERSION_FAILED = "conversion_failed"


DateResult = namedtuple("DateResult", ["instant", "reason"])

# --- Tagged raw dates ---

NativeDate = namedtuple("NativeDate", ["value"])
EpochDate = namedtuple("EpochDate", ["value"])  # milliseconds since the Unix epoch
IsoDate = namedtuple("IsoDate", ["text"])
WrappedDate = namedtuple("WrappedDate", ["to_instant"])

RAW_DATE_TYPES = (NativeDate, EpochDate, IsoDate, WrappedDate)

_WRAPPER_METHODS = ("to_date", "toDate", "to_datetime")


def classify(raw):
    """Tag an untyped stored value, or return None when it has no date shape."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, RAW_DATE_TYPES):
        return raw
    if isinstance(raw, (datetime, date)):
        return NativeDate(raw)
    if isinstance(raw, numbers.Real):
        return EpochDate(raw)
    if isinstance(raw, str):
        return IsoDate(raw)
    if isinstance(raw, dict):
        seconds = raw.get("seconds", raw.get("_seconds"))
        if isinstance(seconds, numbers.Real) and not isinstance(seconds, bool):
            nanos = raw.get("nanoseconds", raw.get("_nanoseconds")) or 0
            if not isinstance(nanos, numbers.Real):
                nanos = 0
            try:
                return EpochDate(seconds * 1000 + nanos / 1_000_000)
            except OverflowError:
                return EpochDate(float("inf"))
        return None
    for name in _WRAPPER_METHODS:
        method = getattr(raw, name, None)
        if callable(method):
            return WrappedDate(method)
    return None


def _from_native(value):
    if not isinstance(value, date):
        return DateResult(None, Absent.UNSUPPORTED)
    if value != value:  # NaT
        return DateResult(None, Absent.NOT_A_NUMBER)
    if not isinstance(value, datetime):
        return DateResult(datetime.combine(value, time()), None)
    try:
        if value.tzinfo is not None and value.utcoffset() is not None:
            value = value.astimezone().replace(tzinfo=None)
        plain = datetime(value.year, value.month, value.day, value.hour,
                         value.minute, value.second, value.microsecond)
    except (OverflowError, OSError, ValueError, TypeError):
        return DateResult(None, Absent.OUT_OF_RANGE)
    return DateResult(plain, None)


def _from_epoch(value):
    try:
        millis = float(value)
    except (TypeError, ValueError, OverflowError):
        return DateResult(None, Absent.UNPARSEABLE)
    if math.isnan(millis):
        return DateResult(None, Absent.NOT_A_NUMBER)
    try:
        return DateResult(datetime.fromtimestamp(millis / 1000), None)
    except (OverflowError, OSError, ValueError):
        return DateResult(None, Absent.OUT_OF_RANGE)


def _from_iso(text):
    if not isinstance(text, str):
        return DateResult(None, Absent.UNPARSEABLE)
    text = text.strip()
    if not text:
        return DateResult(None, Absent.MISSING)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return DateResult(None, Absent.UNPARSEABLE)
    return _from_native(parsed)


def resolve(raw):
    """Resolve a raw or tagged date into a DateResult."""
    if raw is None:
        return DateResult(None, Absent.MISSING)
    tagged = classify(raw)
    if tagged is None:
        return DateResult(None, Absent.UNSUPPORTED)

    if isinstance(tagged, NativeDate):
        return _from_native(tagged.value)
    if isinstance(tagged, EpochDate):
        return _from_epoch(tagged.value)
    if isinstance(tagged, IsoDate):
        return _from_iso(tagged.text)

    try:
        converted = tagged.to_instant()
    except Exception:
        return DateResult(None, Absent.CONVERSION_FAILED)
    if isinstance(converted, (datetime, date)):
        return _from_native(converted)
    return DateResult(None, Absent.CONVERSION_FAILED)


def normalize(raw):
    """Return the instant for ``raw`` or None. Never raises."""
    return resolve(raw).instant


# --- Calendar arithmetic ---

def day_of(value):
    if isinstance(value, datetime):
        return value.date()
    return value


def same_day(a, b):
    if a is None or b is None:
        return False
    return day_of(a) == day_of(b)


def week_index(d):
    """Day of the week with Sunday as 0 and Saturday as 6."""
    return (d.weekday() + 1) % 7


def is_weekend(d):
    return d.weekday() >= 5


def add_days(d, days):
    return d + timedelta(days=days)


def iter_days(start, end):
    current = day_of(start)
    end = day_of(end)
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_bounds(anchor):
    """First and last day of the month containing ``anchor``."""
    anchor = day_of(anchor)
    last = calendar.monthrange(anchor.year, anchor.month)[1]
    return anchor.replace(day=1), anchor.replace(day=last)


def month_grid_bounds(anchor):
    """Sunday on or before the 1st, Saturday on or after the last day."""
    first, last = month_bounds(anchor)
    start = first - timedelta(days=week_index(first))
    end = last + timedelta(days=6 - week_index(last))
    return start, end


def shift_month(anchor, delta):
    anchor = day_of(anchor)
    index = anchor.year * 12 + (anchor.month - 1) + delta
    return date(index // 12, index % 12 + 1, 1)


def minutes_of_day(instant):
    return instant.hour * 60 + instant.minute


def at_time(day, hour, minute=0):
    return datetime.combine(day_of(day), time(hour, minute))


def parse_hhmm(text):
    """Parse "HH:MM" into minutes since midnight, or None when malformed."""
    if not isinstance(text, str):
        return None
    parts = text.strip().split(":")
    if len(parts) != 2:
        return None
    try:
        hour, minute = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hour <= 24 and 0 <= minute < 60) or hour * 60 + minute > 24 * 60:
        return None
    return hour * 60 + minute


def count_work_days(start_date, end_date):
    """Counts the number of work days (Mon-Fri) between two dates, inclusive."""
    start_date, end_date = day_of(start_date), day_of(end_date)
    if start_date > end_date:
        return 0
    return sum(1 for d in iter_days(start_date, end_date) if not is_weekend(d))


def format_time(hour, minute):
    period = "PM" if hour >= 12 else "AM"
    display_hour = 12 if hour % 12 == 0 else hour % 12
    return f"{display_hour}:{minute:02d} {period}"


def format_time_short(hour, minute):
    period = "PM" if hour >= 12 else "AM"
    display_hour = 12 if hour % 12 == 0 else hour % 12
    if minute == 0:
        return f"{display_hour}{period}"
    return f"{display_hour}:{minute:02d}"


def round_half_up(value):
    return int(math.floor(value + 0.5))
