"""Execution ledger: completion records, weekly idempotence and invalidation."""

import logging
from datetime import date, datetime
from typing import Any

from chorerota.core import db_client
from chorerota.core.config import constants
from chorerota.core.db_client import sanitize_param
from chorerota.core.errors import DuplicateCompletionError, ForbiddenError, NotFoundError, ValidationError
from chorerota.core.logging import log_with_household_context, span
from chorerota.domain.execution import Execution
from chorerota.domain.update_models import ExecutionUpdate
from chorerota.services import member_service, recurrence_service, task_service
from chorerota.services.task_service import ReleasePhoto


logger = logging.getLogger(__name__)

# Unset and True both count; only an explicit False is excluded
_COUNTED = '(counts_for_completion = null || counts_for_completion = "true")'


def _week_filter(task_id: str, week_starting: date) -> str:
    return f'task_id = "{sanitize_param(task_id)}" && week_starting = "{week_starting.isoformat()}"'


def _check_notes(notes: str | None) -> None:
    if notes is not None and len(notes) > constants.MAX_NOTES_LENGTH:
        raise ValidationError("notes", f"must be at most {constants.MAX_NOTES_LENGTH} characters")


async def _counted_for_week(*, task_id: str, week_starting: date) -> list[dict[str, Any]]:
    return await db_client.list_all_records(
        collection="executions",
        filter_query=f"{_week_filter(task_id, week_starting)} && {_COUNTED}",
    )


async def get_execution(*, execution_id: str) -> Execution:
    """Get an execution by ID.

    Raises:
        NotFoundError: If the execution does not exist
    """
    try:
        record = await db_client.get_record(collection="executions", record_id=execution_id)
    except db_client.RecordNotFoundError:
        raise NotFoundError("Execution", execution_id) from None
    return Execution.model_validate(record)


async def record_completion(
    *,
    task_id: str,
    member_id: str,
    notes: str | None = None,
    photo_path: str | None = None,
    completed_at: datetime | None = None,
) -> Execution:
    """Record that a member completed a task.

    Recurring tasks accept one counted completion per week. One-time tasks are
    deactivated in the same transaction that stores the completion.

    Args:
        task_id: Completed task
        member_id: Member who completed it
        notes: Optional completion notes
        photo_path: Optional reference to an already stored photo
        completed_at: Completion instant, defaults to now

    Returns:
        The stored execution

    Raises:
        NotFoundError: If the task or member does not exist
        ValidationError: If the task is inactive or the notes are too long
        DuplicateCompletionError: If a recurring task already has a counted completion this week
    """
    with span("execution_service.record_completion"):
        task = await task_service.get_task(task_id=task_id)
        if not task.is_active:
            raise ValidationError("is_active", "inactive tasks cannot be completed")
        await member_service.require_household_member(household_id=task.household_id, member_id=member_id)
        _check_notes(notes)

        if completed_at is None:
            completed_at = recurrence_service.utc_now()
        completed_at = recurrence_service.ensure_utc(completed_at)
        week_starting = recurrence_service.compute_week_start(completed_at)

        execution_data: dict[str, Any] = {
            "task_id": task_id,
            "member_id": member_id,
            "household_id": task.household_id,
            "completed_at": completed_at,
            "week_starting": week_starting,
            "notes": notes,
            "photo_path": photo_path,
            "is_recurring": task.is_recurring,
        }

        if task.is_recurring:
            if await _counted_for_week(task_id=task_id, week_starting=week_starting):
                raise DuplicateCompletionError(task_id, week_starting)
            try:
                record = await db_client.create_record(collection="executions", data=execution_data)
            except db_client.UniqueConstraintError as e:
                # A concurrent completion won the race between the check and the insert
                raise DuplicateCompletionError(task_id, week_starting) from e
        else:
            async with db_client.transaction():
                current = await task_service.get_task(task_id=task_id)
                if not current.is_active:
                    raise ValidationError("is_active", "inactive tasks cannot be completed")
                record = await db_client.create_record(collection="executions", data=execution_data)
                await db_client.update_record(collection="tasks", record_id=task_id, data={"is_active": False})

        execution = Execution.model_validate(record)
        log_with_household_context(
            logger,
            "info",
            "Recorded completion",
            household_id=task.household_id,
            task_id=task_id,
            member_id=member_id,
            week_starting=week_starting.isoformat(),
            deactivated=not task.is_recurring,
        )
        return execution


async def is_completed_this_week(*, task_id: str, as_of: datetime | None = None) -> bool:
    """Whether the task has a counted completion in the week containing as_of."""
    week_starting = recurrence_service.compute_week_start(as_of)
    return bool(await _counted_for_week(task_id=task_id, week_starting=week_starting))


async def invalidate_current_week(
    *,
    task_id: str,
    requesting_member_id: str,
    as_of: datetime | None = None,
) -> None:
    """Mark this week's counted completion(s) of a task as not counting.

    History is kept; the task simply becomes completable again this week.

    Raises:
        NotFoundError: If the task does not exist or has no counted completion this week
        ForbiddenError: If the requester is not an owner
    """
    with span("execution_service.invalidate_current_week"):
        task = await task_service.get_task(task_id=task_id)
        await member_service.require_owner(household_id=task.household_id, member_id=requesting_member_id)

        week_starting = recurrence_service.compute_week_start(as_of)
        async with db_client.transaction():
            counted = await _counted_for_week(task_id=task_id, week_starting=week_starting)
            if not counted:
                raise NotFoundError("Execution", f"task {task_id}, week starting {week_starting.isoformat()}")
            for record in counted:
                await db_client.update_record(
                    collection="executions",
                    record_id=record["id"],
                    data={"counts_for_completion": False},
                )

        logger.info(
            "Invalidated %d completion(s) of task %s for week %s",
            len(counted),
            task_id,
            week_starting.isoformat(),
            extra={"household_id": task.household_id, "requested_by": requesting_member_id},
        )


async def get_latest(*, task_id: str) -> Execution | None:
    """Most recent execution of a task by completed_at, invalidated or not."""
    record = await db_client.get_first_record(
        collection="executions",
        filter_query=f'task_id = "{sanitize_param(task_id)}"',
        sort="-completed_at,-id",
    )
    return Execution.model_validate(record) if record else None


async def get_task_history(*, task_id: str, limit: int | None = None) -> list[Execution]:
    """Executions of a task, newest first."""
    filter_query = f'task_id = "{sanitize_param(task_id)}"'
    if limit is None:
        records = await db_client.list_all_records(
            collection="executions",
            filter_query=filter_query,
            sort="-completed_at,-id",
        )
    else:
        records = await db_client.list_records(
            collection="executions",
            per_page=limit,
            filter_query=filter_query,
            sort="-completed_at,-id",
        )
    return [Execution.model_validate(record) for record in records]


async def get_weekly_executions(
    *,
    household_id: str,
    week_starting: date,
    counted_only: bool = False,
) -> list[Execution]:
    """Executions of a household for one scheduling week, oldest first."""
    filter_query = f'household_id = "{sanitize_param(household_id)}" && week_starting = "{week_starting.isoformat()}"'
    if counted_only:
        filter_query += f" && {_COUNTED}"

    records = await db_client.list_all_records(
        collection="executions",
        filter_query=filter_query,
        sort="completed_at,id",
    )
    return [Execution.model_validate(record) for record in records]


async def get_member_executions_this_week(
    *,
    member_id: str,
    as_of: datetime | None = None,
    counted_only: bool = True,
) -> list[Execution]:
    """Executions credited to a member in the week containing as_of."""
    week_starting = recurrence_service.compute_week_start(as_of)
    filter_query = f'member_id = "{sanitize_param(member_id)}" && week_starting = "{week_starting.isoformat()}"'
    if counted_only:
        filter_query += f" && {_COUNTED}"

    records = await db_client.list_all_records(
        collection="executions",
        filter_query=filter_query,
        sort="completed_at,id",
    )
    return [Execution.model_validate(record) for record in records]


async def _require_creator_or_owner(execution: Execution, member_id: str) -> None:
    if execution.member_id == member_id:
        return
    if await member_service.is_owner(household_id=execution.household_id, member_id=member_id):
        return
    msg = f"Member {member_id} may not modify execution {execution.id}"
    raise ForbiddenError(msg)


async def update_execution(
    *,
    execution_id: str,
    requesting_member_id: str,
    update: ExecutionUpdate,
    release_photo: ReleasePhoto | None = None,
) -> Execution:
    """Edit the notes or photo of an execution (creator or owner).

    A replaced photo is released through release_photo when one is given.
    """
    with span("execution_service.update_execution"):
        execution = await get_execution(execution_id=execution_id)
        await _require_creator_or_owner(execution, requesting_member_id)
        _check_notes(update.notes)

        changes = update.model_dump(exclude_none=True)
        if not changes:
            return execution

        record = await db_client.update_record(collection="executions", record_id=execution_id, data=changes)

        replaced_photo = execution.photo_path
        if release_photo and replaced_photo and "photo_path" in changes and changes["photo_path"] != replaced_photo:
            await release_photo(replaced_photo)

        logger.info("Updated execution %s", execution_id, extra={"fields": sorted(changes)})
        return Execution.model_validate(record)


async def delete_execution(*, execution_id: str, requesting_member_id: str, release_photo: ReleasePhoto) -> None:
    """Delete an execution (creator or owner), releasing its photo.

    Raises:
        NotFoundError: If the execution does not exist
        ForbiddenError: If the requester is neither the creator nor an owner
    """
    with span("execution_service.delete_execution"):
        execution = await get_execution(execution_id=execution_id)
        await _require_creator_or_owner(execution, requesting_member_id)

        await db_client.delete_record(collection="executions", record_id=execution_id)
        if execution.photo_path:
            await release_photo(execution.photo_path)

        logger.info(
            "Deleted execution %s",
            execution_id,
            extra={"task_id": execution.task_id, "requested_by": requesting_member_id},
        )
