"""Recurrence evaluation: week boundaries and task due-ness.

A scheduling week starts Monday 00:00 UTC and ends the following Monday
00:00 UTC (exclusive). A recurring task is due for the whole week in which
its rule has at least one occurrence; a one-time task is due from its due
date until it is completed or deactivated.
"""

from datetime import UTC, date, datetime, timedelta

from chorerota.core.config import constants
from chorerota.core.recurrence_parser import Frequency, RecurrenceRule, build_rrule, parse_recurrence_rule
from chorerota.domain.task import NotDueReason, Task, TaskKind


def ensure_utc(dt: datetime) -> datetime:
    """Return dt as an aware UTC datetime; naive values are taken to be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def utc_now() -> datetime:
    return datetime.now(UTC)


def get_week_start_datetime(dt: datetime | None = None) -> datetime:
    """Get the start of the week (Monday 00:00 UTC) for a given datetime.

    Args:
        dt: Datetime to get week start for. If None, uses current time.

    Returns:
        Datetime representing Monday 00:00 of the week in UTC
    """
    dt = utc_now() if dt is None else ensure_utc(dt)

    # Get days since Monday (0 = Monday, 6 = Sunday)
    monday = dt - timedelta(days=dt.weekday())
    return monday.replace(hour=0, minute=0, second=0, microsecond=0)


def compute_week_start(instant: datetime | None = None) -> date:
    """Canonical week-start date (the Monday, UTC) owning an instant."""
    return get_week_start_datetime(instant).date()


def week_window(instant: datetime | None = None) -> tuple[datetime, datetime]:
    """Return [start, end) of the scheduling week containing instant."""
    start = get_week_start_datetime(instant)
    return start, start + timedelta(days=constants.DAYS_PER_WEEK)


def recurrence_anchor(rule: RecurrenceRule, created_at: datetime) -> datetime:
    """Start of the period the task was created in, used as the rule's DTSTART.

    DAILY and WEEKLY rules count from the creation week's Monday, MONTHLY
    rules from the first of the creation month and YEARLY rules from
    January 1st of the creation year.
    """
    created_at = ensure_utc(created_at)
    if rule.frequency == Frequency.MONTHLY:
        return created_at.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if rule.frequency == Frequency.YEARLY:
        return created_at.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    return get_week_start_datetime(created_at)


def occurrences_in_week(task: Task, as_of: datetime) -> list[datetime]:
    """Occurrences of a recurring task's rule inside the week containing as_of.

    INTERVAL counts periods from the creation period (see recurrence_anchor).
    Nothing falls before the week the task was created in.
    """
    rule = parse_recurrence_rule(task.recurrence_rule)
    start, end = week_window(as_of)
    start = max(start, get_week_start_datetime(task.created_at))
    expanded = build_rrule(rule, dtstart=recurrence_anchor(rule, task.created_at))
    return [occurrence for occurrence in expanded.between(start, end, inc=True) if occurrence < end]


def explain_not_due(task: Task, as_of: datetime | None = None) -> NotDueReason | None:
    """Return why a task is not due at as_of, or None if it is due."""
    as_of = utc_now() if as_of is None else ensure_utc(as_of)

    if not task.is_active:
        return NotDueReason.INACTIVE

    if task.kind == TaskKind.ONE_TIME:
        if task.due_date is None or ensure_utc(task.due_date) > as_of:
            return NotDueReason.NOT_YET_DUE
        return None

    if task.recurrence_end_date is not None and as_of > ensure_utc(task.recurrence_end_date):
        return NotDueReason.RECURRENCE_ENDED

    if not occurrences_in_week(task, as_of):
        return NotDueReason.NO_OCCURRENCE_THIS_WEEK

    return None


def is_due(task: Task, as_of: datetime | None = None) -> bool:
    """Whether the task is due in the scheduling week containing as_of."""
    return explain_not_due(task, as_of) is None


def is_overdue(task: Task, as_of: datetime | None = None) -> bool:
    """Whether an active one-time task has passed its due date."""
    as_of = utc_now() if as_of is None else ensure_utc(as_of)
    return (
        task.is_active
        and task.kind == TaskKind.ONE_TIME
        and task.due_date is not None
        and ensure_utc(task.due_date) < as_of
    )
