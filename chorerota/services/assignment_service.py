"""Automatic assignment of unassigned due tasks.

The engine takes every active, unassigned task that is due this week, orders
it by priority (high first), estimated effort (long first) and task ID, and
gives each task in turn to the member with the lowest running weighted load
(ties to the lowest member ID). A task's weight is folded into the chosen
member's running load before the next task is placed.
"""

import logging
from datetime import datetime

from chorerota.core import db_client
from chorerota.core.db_client import id_sort_key
from chorerota.core.errors import NotFoundError
from chorerota.core.logging import log_with_household_context, span
from chorerota.domain.assignment import (
    AssignmentCommitResult,
    AssignmentFailure,
    AssignmentPlan,
    ExcludedTask,
    ExclusionReason,
    PlannedAssignment,
)
from chorerota.domain.task import Task
from chorerota.services import member_service, recurrence_service, rotation_service, task_service, workload_service


logger = logging.getLogger(__name__)


def _assignment_order(task: Task) -> tuple[int, int, tuple[int, int, str]]:
    return (-task.priority, -task.estimated_minutes, id_sort_key(task.id))


async def preview_auto_assign(*, household_id: str, as_of: datetime | None = None) -> AssignmentPlan:
    """Compute an assignment plan without writing anything.

    Args:
        household_id: Household to plan for
        as_of: Instant due-ness and load are evaluated at, defaults to now

    Returns:
        The ordered plan. It is empty, not an error, when there is nothing to
        assign or no active member to assign to.
    """
    with span("assignment_service.preview_auto_assign"):
        as_of = recurrence_service.utc_now() if as_of is None else recurrence_service.ensure_utc(as_of)
        week_starting = recurrence_service.compute_week_start(as_of)

        candidates = await task_service.list_household_tasks(
            household_id=household_id,
            active_only=True,
            unassigned_only=True,
        )

        due_tasks: list[Task] = []
        excluded: list[ExcludedTask] = []
        for task in candidates:
            reason = recurrence_service.explain_not_due(task, as_of)
            if reason is None:
                due_tasks.append(task)
            else:
                excluded.append(
                    ExcludedTask(task_id=task.id, task_title=task.title, reason=ExclusionReason(reason.value))
                )
        due_tasks.sort(key=_assignment_order)

        members = await member_service.get_active_members(household_id=household_id)
        if not members:
            excluded.extend(
                ExcludedTask(task_id=task.id, task_title=task.title, reason=ExclusionReason.NO_ELIGIBLE_MEMBERS)
                for task in due_tasks
            )
            logger.info("No active members to assign to", extra={"household_id": household_id})
            return AssignmentPlan(
                household_id=household_id,
                as_of=as_of,
                week_starting=week_starting,
                excluded=excluded,
            )

        names = {member.id: member.name for member in members}
        initial_loads = await workload_service.compute_loads(
            household_id=household_id,
            member_ids=list(names),
            as_of=as_of,
        )

        running = dict(initial_loads)
        assignments: list[PlannedAssignment] = []
        for task in due_tasks:
            member_id = workload_service.least_loaded(running)
            weight = workload_service.task_weight(task)
            assignments.append(
                PlannedAssignment(
                    task_id=task.id,
                    task_title=task.title,
                    priority=task.priority,
                    estimated_minutes=task.estimated_minutes,
                    weight=weight,
                    member_id=member_id,
                    member_name=names[member_id],
                    load_before=running[member_id],
                    load_after=running[member_id] + weight,
                )
            )
            running[member_id] += weight

        log_with_household_context(
            logger,
            "info",
            "Built assignment plan",
            household_id=household_id,
            planned=len(assignments),
            excluded=len(excluded),
        )
        return AssignmentPlan(
            household_id=household_id,
            as_of=as_of,
            week_starting=week_starting,
            assignments=assignments,
            excluded=excluded,
            initial_loads=initial_loads,
            final_loads=running,
        )


async def _apply_assignment(planned: PlannedAssignment) -> bool:
    """Persist one planned pair in its own transaction.

    Returns False, leaving the task untouched, when the task was deleted,
    deactivated or assigned since the plan was built.
    """
    async with db_client.transaction():
        try:
            task = await task_service.get_task(task_id=planned.task_id)
        except NotFoundError:
            return False
        if not task.is_active or task.assigned_member_id is not None:
            return False

        await db_client.update_record(
            collection="tasks",
            record_id=planned.task_id,
            data={"assigned_member_id": planned.member_id},
        )
        return True


async def commit_auto_assign(
    *,
    household_id: str,
    requesting_member_id: str,
    as_of: datetime | None = None,
) -> AssignmentCommitResult:
    """Build a plan and persist it in plan order (owner only).

    Each task is written in its own transaction. A task that fails is
    reported in the result and the remaining tasks are still applied.

    Raises:
        ForbiddenError: If the requester is not an owner of the household
    """
    with span("assignment_service.commit_auto_assign"):
        await member_service.require_owner(household_id=household_id, member_id=requesting_member_id)
        plan = await preview_auto_assign(household_id=household_id, as_of=as_of)
        result = AssignmentCommitResult(plan=plan)

        for planned in plan.assignments:
            try:
                applied = await _apply_assignment(planned)
            except db_client.DatabaseError as e:
                logger.error(
                    "Failed to apply assignment",
                    extra={"task_id": planned.task_id, "member_id": planned.member_id, "error": str(e)},
                )
                result.failures.append(
                    AssignmentFailure(task_id=planned.task_id, member_id=planned.member_id, error=str(e))
                )
                continue

            if applied:
                result.applied.append(planned)
            else:
                logger.info("Skipped task %s, changed since planning", planned.task_id)
                result.skipped.append(planned.task_id)

        log_with_household_context(
            logger,
            "info",
            "Committed assignment plan",
            household_id=household_id,
            applied=len(result.applied),
            skipped=len(result.skipped),
            failed=len(result.failures),
        )
        return result


async def reassign(*, task_id: str, requesting_member_id: str, as_of: datetime | None = None) -> str:
    """Rotate a single task to the least-loaded other member."""
    return await rotation_service.reassign(task_id=task_id, requesting_member_id=requesting_member_id, as_of=as_of)


async def suggest_assignee(*, task_id: str, as_of: datetime | None = None) -> str | None:
    """Least-loaded active member for one task, or None if there is nobody.

    Read only; nothing is assigned.
    """
    task = await task_service.get_task(task_id=task_id)
    members = await member_service.get_active_members(household_id=task.household_id)
    if not members:
        return None

    loads = await workload_service.compute_loads(
        household_id=task.household_id,
        member_ids=[m.id for m in members],
        as_of=as_of,
    )
    return workload_service.least_loaded(loads)
