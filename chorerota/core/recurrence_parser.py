"""Recurrence rule parsing utilities for task scheduling.

Rules use the iCalendar RRULE subset exchanged with the task service:
``FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,TH`` and friends. Anything outside the
subset is rejected here, at task creation, so evaluation can assume validity.
"""

from datetime import UTC, datetime
from enum import StrEnum

from dateutil import rrule as dateutil_rrule
from pydantic import BaseModel, ConfigDict, Field

from chorerota.core.errors import ValidationError


FIELD = "recurrence_rule"

WEEKDAY_CODES = ("MO", "TU", "WE", "TH", "FR", "SA", "SU")
WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
MONTH_NAMES = (
    "",
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

# BYMONTHDAY sentinel for "last day of the month"
LAST_DAY_OF_MONTH = -1

# Longest month length per month, February allowing leap years
_MAX_DAYS_IN_MONTH = {1: 31, 2: 29, 3: 31, 4: 30, 5: 31, 6: 30, 7: 31, 8: 31, 9: 30, 10: 31, 11: 30, 12: 31}

_ALLOWED_KEYS = frozenset({"FREQ", "INTERVAL", "BYDAY", "BYMONTHDAY", "BYMONTH", "UNTIL"})


class Frequency(StrEnum):
    """Supported recurrence frequencies."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


_RRULE_FREQUENCIES = {
    Frequency.DAILY: dateutil_rrule.DAILY,
    Frequency.WEEKLY: dateutil_rrule.WEEKLY,
    Frequency.MONTHLY: dateutil_rrule.MONTHLY,
    Frequency.YEARLY: dateutil_rrule.YEARLY,
}


class RecurrenceRule(BaseModel):
    """Parsed recurrence rule."""

    model_config = ConfigDict(frozen=True)

    frequency: Frequency = Field(..., description="Recurrence frequency")
    interval: int = Field(default=1, description="Multiplier applied to the frequency")
    weekdays: tuple[int, ...] = Field(default=(), description="Weekdays for WEEKLY rules (0=Monday)")
    month_day: int | None = Field(default=None, description="Day of month, or -1 for the last day")
    month: int | None = Field(default=None, description="Month for YEARLY rules (1-12)")
    until: datetime | None = Field(default=None, description="Inclusive end instant (UTC)")


def _fail(reason: str) -> ValidationError:
    return ValidationError(FIELD, reason)


def _split_parts(rule: str) -> dict[str, str]:
    """Split ``KEY=VALUE;KEY=VALUE`` into a dict, rejecting malformed or repeated keys."""
    parts: dict[str, str] = {}
    for raw_part in rule.split(";"):
        if "=" not in raw_part:
            raise _fail(f"Malformed rule part '{raw_part}', expected KEY=VALUE")
        key, value = raw_part.split("=", 1)
        if key not in _ALLOWED_KEYS:
            raise _fail(f"Unsupported key '{key}'")
        if key in parts:
            raise _fail(f"Duplicate key '{key}'")
        if not value:
            raise _fail(f"Empty value for '{key}'")
        parts[key] = value
    return parts


def _parse_int(key: str, value: str) -> int:
    negative = value.startswith("-")
    digits = value[1:] if negative else value
    if not digits.isdigit():
        raise _fail(f"{key} must be an integer, got '{value}'")
    return -int(digits) if negative else int(digits)


def _parse_weekdays(value: str) -> tuple[int, ...]:
    weekdays: list[int] = []
    for code in value.split(","):
        if code not in WEEKDAY_CODES:
            raise _fail(f"Invalid weekday code '{code}'")
        weekday = WEEKDAY_CODES.index(code)
        if weekday in weekdays:
            raise _fail(f"Weekday '{code}' listed twice")
        weekdays.append(weekday)
    return tuple(sorted(weekdays))


def _parse_until(value: str) -> datetime:
    for fmt in ("%Y%m%dT%H%M%SZ", "%Y%m%d"):
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=UTC)
        except ValueError:
            continue
    raise _fail(f"UNTIL must be YYYYMMDD or YYYYMMDDTHHMMSSZ, got '{value}'")


def _parse_month_day(value: str) -> int:
    month_day = _parse_int("BYMONTHDAY", value)
    if month_day != LAST_DAY_OF_MONTH and not 1 <= month_day <= 31:  # noqa: PLR2004
        raise _fail("BYMONTHDAY must be between 1 and 31, or -1 for the last day")
    return month_day


def parse_recurrence_rule(rule: str | None) -> RecurrenceRule:  # noqa: C901
    """Parse and validate a recurrence rule string.

    Args:
        rule: Rule in the supported RRULE subset (e.g. "FREQ=WEEKLY;BYDAY=MO")

    Returns:
        Parsed RecurrenceRule

    Raises:
        ValidationError: With field "recurrence_rule" if the rule is malformed
    """
    if rule is None or not rule.strip():
        raise _fail("Recurring tasks must have a recurrence rule")

    parts = _split_parts(rule.strip())

    if "FREQ" not in parts:
        raise _fail("FREQ is required")
    try:
        frequency = Frequency(parts["FREQ"])
    except ValueError:
        raise _fail(f"Unsupported FREQ '{parts['FREQ']}'") from None

    interval = 1
    if "INTERVAL" in parts:
        interval = _parse_int("INTERVAL", parts["INTERVAL"])
        if interval < 1:
            raise _fail("INTERVAL must be a positive integer")

    weekdays: tuple[int, ...] = ()
    if "BYDAY" in parts:
        if frequency != Frequency.WEEKLY:
            raise _fail("BYDAY is only allowed for WEEKLY rules")
        weekdays = _parse_weekdays(parts["BYDAY"])
    elif frequency == Frequency.WEEKLY:
        raise _fail("WEEKLY rules must list at least one weekday in BYDAY")

    month_day = None
    if "BYMONTHDAY" in parts:
        if frequency not in (Frequency.MONTHLY, Frequency.YEARLY):
            raise _fail("BYMONTHDAY is only allowed for MONTHLY and YEARLY rules")
        month_day = _parse_month_day(parts["BYMONTHDAY"])
    elif frequency in (Frequency.MONTHLY, Frequency.YEARLY):
        raise _fail(f"{frequency} rules must set BYMONTHDAY")

    month = None
    if "BYMONTH" in parts:
        if frequency != Frequency.YEARLY:
            raise _fail("BYMONTH is only allowed for YEARLY rules")
        month = _parse_int("BYMONTH", parts["BYMONTH"])
        if not 1 <= month <= 12:  # noqa: PLR2004
            raise _fail("BYMONTH must be between 1 and 12")
        if month_day is not None and month_day > _MAX_DAYS_IN_MONTH[month]:
            raise _fail(f"{MONTH_NAMES[month]} has no day {month_day}")
    elif frequency == Frequency.YEARLY:
        raise _fail("YEARLY rules must set BYMONTH")

    until = _parse_until(parts["UNTIL"]) if "UNTIL" in parts else None

    return RecurrenceRule(
        frequency=frequency,
        interval=interval,
        weekdays=weekdays,
        month_day=month_day,
        month=month,
        until=until,
    )


def is_valid_rule(rule: str | None) -> bool:
    """Return True if the rule parses."""
    try:
        parse_recurrence_rule(rule)
    except ValidationError:
        return False
    return True


def build_rrule(rule: RecurrenceRule, *, dtstart: datetime) -> dateutil_rrule.rrule:
    """Build a dateutil rrule that expands occurrences of the rule from dtstart."""
    return dateutil_rrule.rrule(
        _RRULE_FREQUENCIES[rule.frequency],
        dtstart=dtstart,
        interval=rule.interval,
        byweekday=rule.weekdays or None,
        bymonthday=rule.month_day,
        bymonth=rule.month,
        until=rule.until,
    )


def _ordinal(day: int) -> str:
    if day == LAST_DAY_OF_MONTH:
        return "last day"
    suffix = "th"
    if day in (1, 21, 31):
        suffix = "st"
    elif day in (2, 22):
        suffix = "nd"
    elif day in (3, 23):
        suffix = "rd"
    return f"{day}{suffix}"


def describe_rule(rule: str) -> str:
    """Convert a recurrence rule to human-readable text.

    Args:
        rule: Rule string (e.g., "FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,FR")

    Returns:
        Human-readable description (e.g., "every 2 weeks on Monday, Friday")
    """
    parsed = parse_recurrence_rule(rule)
    units = {
        Frequency.DAILY: "day",
        Frequency.WEEKLY: "week",
        Frequency.MONTHLY: "month",
        Frequency.YEARLY: "year",
    }
    unit = units[parsed.frequency]
    text = f"every {unit}" if parsed.interval == 1 else f"every {parsed.interval} {unit}s"

    if parsed.frequency == Frequency.DAILY and parsed.interval == 1:
        text = "daily"
    elif parsed.frequency == Frequency.WEEKLY:
        text += " on " + ", ".join(WEEKDAY_NAMES[d] for d in parsed.weekdays)
    elif parsed.frequency == Frequency.MONTHLY and parsed.month_day is not None:
        text += f" on the {_ordinal(parsed.month_day)}"
    elif parsed.frequency == Frequency.YEARLY and parsed.month is not None and parsed.month_day is not None:
        text += f" on the {_ordinal(parsed.month_day)} of {MONTH_NAMES[parsed.month]}"

    if parsed.until is not None:
        text += f" until {parsed.until.date().isoformat()}"
    return text
