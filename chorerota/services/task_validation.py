"""Task creation rules.

Each rule is a pure function of the candidate task and the creation instant
and returns a ValidationResult. Rules run in order and all of them run before
anything is persisted; the first failure is raised.
"""

from collections.abc import Callable
from datetime import datetime

from chorerota.core.config import constants
from chorerota.core.errors import ValidationError
from chorerota.core.recurrence_parser import parse_recurrence_rule
from chorerota.domain.create_models import TaskCreate
from chorerota.domain.task import TaskKind
from chorerota.domain.validation import ValidationResult
from chorerota.services.recurrence_service import ensure_utc


TaskRule = Callable[[TaskCreate, datetime], ValidationResult]


def check_title(data: TaskCreate, now: datetime) -> ValidationResult:
    title = data.title.strip()
    if len(title) < constants.MIN_TITLE_LENGTH:
        return ValidationResult.failed("title", f"must be at least {constants.MIN_TITLE_LENGTH} characters")
    if len(title) > constants.MAX_TITLE_LENGTH:
        return ValidationResult.failed("title", f"must be at most {constants.MAX_TITLE_LENGTH} characters")
    return ValidationResult.passed()


def check_description(data: TaskCreate, now: datetime) -> ValidationResult:
    if len(data.description) > constants.MAX_DESCRIPTION_LENGTH:
        return ValidationResult.failed(
            "description",
            f"must be at most {constants.MAX_DESCRIPTION_LENGTH} characters",
        )
    return ValidationResult.passed()


def check_estimated_minutes(data: TaskCreate, now: datetime) -> ValidationResult:
    low, high = constants.MIN_ESTIMATED_MINUTES, constants.MAX_ESTIMATED_MINUTES
    if not low <= data.estimated_minutes <= high:
        return ValidationResult.failed("estimated_minutes", f"must be between {low} and {high}")
    return ValidationResult.passed()


def check_kind_fields(data: TaskCreate, now: datetime) -> ValidationResult:
    """Recurring tasks carry a rule and no due date; one-time tasks the opposite."""
    if data.kind == TaskKind.RECURRING:
        if data.due_date is not None:
            return ValidationResult.failed("due_date", "recurring tasks cannot have a due date")
        return ValidationResult.passed()

    if data.recurrence_rule is not None:
        return ValidationResult.failed("recurrence_rule", "one-time tasks cannot have a recurrence rule")
    if data.recurrence_end_date is not None:
        return ValidationResult.failed("recurrence_end_date", "one-time tasks cannot have a recurrence end date")
    if data.due_date is None:
        return ValidationResult.failed("due_date", "one-time tasks must have a due date")
    return ValidationResult.passed()


def check_recurrence_rule(data: TaskCreate, now: datetime) -> ValidationResult:
    if data.kind != TaskKind.RECURRING:
        return ValidationResult.passed()
    try:
        parse_recurrence_rule(data.recurrence_rule)
    except ValidationError as e:
        return ValidationResult.failed(e.field, e.reason)
    return ValidationResult.passed()


def check_due_date_in_future(data: TaskCreate, now: datetime) -> ValidationResult:
    if data.kind == TaskKind.ONE_TIME and data.due_date is not None and ensure_utc(data.due_date) <= now:
        return ValidationResult.failed("due_date", "must be in the future")
    return ValidationResult.passed()


def check_recurrence_end_date(data: TaskCreate, now: datetime) -> ValidationResult:
    if data.recurrence_end_date is not None and ensure_utc(data.recurrence_end_date) <= now:
        return ValidationResult.failed("recurrence_end_date", "must be after the task's creation")
    return ValidationResult.passed()


TASK_RULES: tuple[TaskRule, ...] = (
    check_title,
    check_description,
    check_estimated_minutes,
    check_kind_fields,
    check_recurrence_rule,
    check_due_date_in_future,
    check_recurrence_end_date,
)


def run_rules(data: TaskCreate, *, now: datetime) -> list[ValidationResult]:
    """Evaluate every rule and return the failures, in rule order."""
    now = ensure_utc(now)
    results = [rule(data, now) for rule in TASK_RULES]
    return [result for result in results if not result.ok]


def validate_task_create(data: TaskCreate, *, now: datetime) -> None:
    """Raise the first failing rule as a ValidationError.

    Raises:
        ValidationError: Naming the offending field
    """
    failures = run_rules(data, now=now)
    if failures:
        first = failures[0]
        raise ValidationError(first.field or "task", first.reason or "invalid")
