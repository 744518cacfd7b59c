"""Task service: creation, lookup, manual assignment and lifecycle."""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from chorerota.core import db_client
from chorerota.core.db_client import id_sort_key, sanitize_param
from chorerota.core.errors import NotFoundError, ValidationError
from chorerota.core.logging import span
from chorerota.domain.create_models import TaskCreate
from chorerota.domain.task import Task, TaskKind
from chorerota.domain.update_models import TaskUpdate
from chorerota.services import member_service, recurrence_service
from chorerota.services.task_validation import validate_task_create


logger = logging.getLogger(__name__)

# Hook into the external photo store; called with the photo reference to release
ReleasePhoto = Callable[[str], Awaitable[None]]


async def get_task(*, task_id: str) -> Task:
    """Get a task by ID.

    Raises:
        NotFoundError: If the task does not exist
    """
    try:
        record = await db_client.get_record(collection="tasks", record_id=task_id)
    except db_client.RecordNotFoundError:
        raise NotFoundError("Task", task_id) from None
    return Task.model_validate(record)


async def list_household_tasks(
    *,
    household_id: str,
    active_only: bool = False,
    unassigned_only: bool = False,
) -> list[Task]:
    """List a household's tasks ordered by task ID."""
    filters = [f'household_id = "{sanitize_param(household_id)}"']
    if active_only:
        filters.append('is_active = "true"')
    if unassigned_only:
        filters.append("assigned_member_id = null")

    records = await db_client.list_all_records(collection="tasks", filter_query=" && ".join(filters))
    tasks = [Task.model_validate(record) for record in records]
    tasks.sort(key=lambda t: id_sort_key(t.id))
    return tasks


async def list_member_tasks(*, member_id: str, active_only: bool = False) -> list[Task]:
    """List the tasks currently assigned to a member, ordered by task ID."""
    filters = [f'assigned_member_id = "{sanitize_param(member_id)}"']
    if active_only:
        filters.append('is_active = "true"')

    records = await db_client.list_all_records(collection="tasks", filter_query=" && ".join(filters))
    tasks = [Task.model_validate(record) for record in records]
    tasks.sort(key=lambda t: id_sort_key(t.id))
    return tasks


async def list_overdue_tasks(*, household_id: str, as_of: datetime | None = None) -> list[Task]:
    """Active one-time tasks past their due date, oldest due date first."""
    tasks = await list_household_tasks(household_id=household_id, active_only=True)
    overdue = [task for task in tasks if recurrence_service.is_overdue(task, as_of)]
    overdue.sort(key=lambda t: (recurrence_service.ensure_utc(t.due_date), id_sort_key(t.id)))
    return overdue


async def list_tasks_for_weekday(
    *,
    household_id: str,
    weekday: int,
    as_of: datetime | None = None,
) -> list[Task]:
    """Recurring tasks with an occurrence on a weekday (0=Monday) of the week containing as_of."""
    as_of = recurrence_service.utc_now() if as_of is None else recurrence_service.ensure_utc(as_of)
    tasks = await list_household_tasks(household_id=household_id, active_only=True)

    matching = []
    for task in tasks:
        if task.kind != TaskKind.RECURRING or not recurrence_service.is_due(task, as_of):
            continue
        if any(occurrence.weekday() == weekday for occurrence in recurrence_service.occurrences_in_week(task, as_of)):
            matching.append(task)
    return matching


async def create_task(
    *,
    data: TaskCreate,
    requesting_member_id: str,
    now: datetime | None = None,
) -> Task:
    """Create a validated task.

    Args:
        data: Task fields
        requesting_member_id: Member creating the task (must be an owner)
        now: Creation instant, defaults to the current time

    Returns:
        The stored task

    Raises:
        ForbiddenError: If the requester is not an owner of the household
        ValidationError: If a field or kind-specific constraint is violated
        NotFoundError: If the initial assignee is not an active household member
    """
    with span("task_service.create_task"):
        now = recurrence_service.utc_now() if now is None else recurrence_service.ensure_utc(now)

        await member_service.require_owner(household_id=data.household_id, member_id=requesting_member_id)
        validate_task_create(data, now=now)

        if data.assigned_member_id is not None:
            await member_service.require_household_member(
                household_id=data.household_id,
                member_id=data.assigned_member_id,
            )

        task_data: dict[str, Any] = {
            "household_id": data.household_id,
            "title": data.title.strip(),
            "description": data.description,
            "kind": data.kind,
            "priority": data.priority,
            "estimated_minutes": data.estimated_minutes,
            "is_active": True,
            "created_at": now,
        }
        # Optional fields are only written when set
        if data.recurrence_rule is not None:
            task_data["recurrence_rule"] = data.recurrence_rule.strip()
        if data.recurrence_end_date is not None:
            task_data["recurrence_end_date"] = recurrence_service.ensure_utc(data.recurrence_end_date)
        if data.due_date is not None:
            task_data["due_date"] = recurrence_service.ensure_utc(data.due_date)
        if data.assigned_member_id is not None:
            task_data["assigned_member_id"] = data.assigned_member_id

        record = await db_client.create_record(collection="tasks", data=task_data)
        task = Task.model_validate(record)

        logger.info(
            "Created %s task '%s' (assigned to: %s)",
            task.kind,
            task.title,
            task.assigned_member_id or "unassigned",
            extra={"household_id": task.household_id, "task_id": task.id},
        )
        return task


async def update_task(
    *,
    task_id: str,
    data: TaskUpdate,
    requesting_member_id: str,
    now: datetime | None = None,
) -> Task:
    """Replace a task's editable fields (owner only).

    The new values go through the same rules as creation, evaluated at now.

    Raises:
        NotFoundError: If the task does not exist
        ForbiddenError: If the requester is not an owner of the household
        ValidationError: If a field or kind-specific constraint is violated
    """
    with span("task_service.update_task"):
        now = recurrence_service.utc_now() if now is None else recurrence_service.ensure_utc(now)

        task = await get_task(task_id=task_id)
        await member_service.require_owner(household_id=task.household_id, member_id=requesting_member_id)
        validate_task_create(
            TaskCreate(
                household_id=task.household_id,
                assigned_member_id=task.assigned_member_id,
                **data.model_dump(),
            ),
            now=now,
        )

        record = await db_client.update_record(
            collection="tasks",
            record_id=task_id,
            data={
                "title": data.title.strip(),
                "description": data.description,
                "kind": data.kind,
                "priority": data.priority,
                "estimated_minutes": data.estimated_minutes,
                "recurrence_rule": data.recurrence_rule.strip() if data.recurrence_rule is not None else None,
                "recurrence_end_date": (
                    recurrence_service.ensure_utc(data.recurrence_end_date)
                    if data.recurrence_end_date is not None
                    else None
                ),
                "due_date": recurrence_service.ensure_utc(data.due_date) if data.due_date is not None else None,
            },
        )
        logger.info("Updated task %s", task_id, extra={"household_id": task.household_id, "kind": data.kind})
        return Task.model_validate(record)


async def set_task_active(
*, task_id: str, is_active: bool, requesting_member_id: str) -> Task:
    """Activate or deactivate a task (owner only)."""
    with span("task_service.set_task_active"):
        task = await get_task(task_id=task_id)
        await member_service.require_owner(household_id=task.household_id, member_id=requesting_member_id)

        if task.is_active == is_active:
            return task

        record = await db_client.update_record(collection="tasks", record_id=task_id, data={"is_active": is_active})
        logger.info("Task %s is_active -> %s", task_id, is_active)
        return Task.model_validate(record)


async def assign_task(*, task_id: str, member_id: str, requesting_member_id: str) -> Task:
    """Manually assign a task to an active household member (owner only).

    Raises:
        NotFoundError: If the task or member does not exist
        ForbiddenError: If the requester is not an owner
        ValidationError: If the task is inactive
    """
    with span("task_service.assign_task"):
        task = await get_task(task_id=task_id)
        await member_service.require_owner(household_id=task.household_id, member_id=requesting_member_id)
        if not task.is_active:
            raise ValidationError("is_active", "inactive tasks cannot be assigned")
        await member_service.require_household_member(household_id=task.household_id, member_id=member_id)

        record = await db_client.update_record(
            collection="tasks",
            record_id=task_id,
            data={"assigned_member_id": member_id},
        )
        logger.info(
            "Assigned task %s to member %s",
            task_id,
            member_id,
            extra={"previous_member_id": task.assigned_member_id},
        )
        return Task.model_validate(record)


async def unassign_task(*, task_id: str, requesting_member_id: str) -> Task:
    """Clear a task's assignee (owner only)."""
    with span("task_service.unassign_task"):
        task = await get_task(task_id=task_id)
        await member_service.require_owner(household_id=task.household_id, member_id=requesting_member_id)
        if task.assigned_member_id is None:
            return task

        record = await db_client.update_record(
            collection="tasks",
            record_id=task_id,
            data={"assigned_member_id": None},
        )
        logger.info("Unassigned task %s (was %s)", task_id, task.assigned_member_id)
        return Task.model_validate(record)


async def delete_task(*, task_id: str, requesting_member_id: str, release_photo: ReleasePhoto) -> None:
    """Delete a task and its executions (owner only).

    Photos attached to the deleted executions are released through
    release_photo once the deletion has committed.

    Raises:
        NotFoundError: If the task does not exist
        ForbiddenError: If the requester is not an owner
    """
    with span("task_service.delete_task"):
        task = await get_task(task_id=task_id)
        await member_service.require_owner(household_id=task.household_id, member_id=requesting_member_id)

        async with db_client.transaction():
            executions = await db_client.list_all_records(
                collection="executions",
                filter_query=f'task_id = "{sanitize_param(task_id)}" && photo_path != null',
            )
            photo_paths = [record["photo_path"] for record in executions]
            # Executions go with the task (ON DELETE CASCADE)
            await db_client.delete_record(collection="tasks", record_id=task_id)

        for photo_path in photo_paths:
            await release_photo(photo_path)

        logger.info(
            "Deleted task %s with %d photo(s) released",
            task_id,
            len(photo_paths),
            extra={"household_id": task.household_id},
        )


async def is_overdue(*, task_id: str, as_of: datetime | None = None) -> bool:
    """Whether an active one-time task is past its due date."""
    task = await get_task(task_id=task_id)
    return recurrence_service.is_overdue(task, as_of)
