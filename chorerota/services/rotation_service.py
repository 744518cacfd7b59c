"""Move one task to the least-loaded member other than its current assignee."""

import logging
from datetime import datetime

from chorerota.core import db_client
from chorerota.core.errors import NotFoundError, ValidationError
from chorerota.core.logging import span
from chorerota.services import member_service, recurrence_service, task_service, workload_service


logger = logging.getLogger(__name__)


async def reassign(*, task_id: str, requesting_member_id: str, as_of: datetime | None = None) -> str:
    """Reassign a task to the least-loaded other active member (owner only).

    Loads are computed fresh. If the current assignee is the only active
    member the task stays with them.

    Args:
        task_id: Task to rotate
        requesting_member_id: Member asking for the rotation (must be an owner)
        as_of: Instant selecting the load week, defaults to now

    Returns:
        ID of the member now assigned to the task

    Raises:
        NotFoundError: If the task does not exist or the household has no active members
        ForbiddenError: If the requester is not an owner
        ValidationError: If the task is inactive
    """
    with span("rotation_service.reassign"):
        task = await task_service.get_task(task_id=task_id)
        await member_service.require_owner(household_id=task.household_id, member_id=requesting_member_id)
        if not task.is_active:
            raise ValidationError("is_active", "inactive tasks cannot be reassigned")

        members = await member_service.get_active_members(household_id=task.household_id)
        if not members:
            raise NotFoundError("Active member", f"household {task.household_id}")

        candidates = [m.id for m in members if m.id != task.assigned_member_id]
        if not candidates:
            logger.info(
                "Task %s stays with %s, the only active member",
                task_id,
                task.assigned_member_id,
                extra={"household_id": task.household_id},
            )
            return members[0].id

        as_of = recurrence_service.utc_now() if as_of is None else recurrence_service.ensure_utc(as_of)
        loads = await workload_service.compute_loads(household_id=task.household_id, member_ids=candidates, as_of=as_of)
        new_member_id = workload_service.least_loaded(loads)

        await db_client.update_record(collection="tasks", record_id=task_id, data={"assigned_member_id": new_member_id})

        logger.info(
            "Reassigned task %s from %s to %s",
            task_id,
            task.assigned_member_id or "unassigned",
            new_member_id,
            extra={"household_id": task.household_id, "load": loads[new_member_id]},
        )
        return new_member_id
