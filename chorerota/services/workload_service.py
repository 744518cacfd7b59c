"""Per-member weighted workload for the active scheduling week."""

import logging
from collections.abc import Iterable
from datetime import datetime

from chorerota.core.config import constants
from chorerota.core.db_client import id_sort_key
from chorerota.core.logging import span
from chorerota.domain.task import Task, TaskPriority
from chorerota.domain.workload import MemberWorkload
from chorerota.services import execution_service, member_service, recurrence_service, task_service


logger = logging.getLogger(__name__)


def priority_weight(priority: TaskPriority) -> int:
    """Workload multiplier for a priority (strictly increasing Low < Medium < High)."""
    weights = {
        TaskPriority.LOW: constants.PRIORITY_WEIGHT_LOW,
        TaskPriority.MEDIUM: constants.PRIORITY_WEIGHT_MEDIUM,
        TaskPriority.HIGH: constants.PRIORITY_WEIGHT_HIGH,
    }
    return weights[priority]


def task_weight(task: Task) -> int:
    """Weighted cost of one task: priority weight x estimated minutes."""
    return priority_weight(task.priority) * task.estimated_minutes


def least_loaded(loads: dict[str, int]) -> str:
    """Member with the strictly lowest load; ties go to the lowest member ID."""
    return min(loads, key=lambda member_id: (loads[member_id], id_sort_key(member_id)))


async def get_workload_breakdown(
    *,
    household_id: str,
    member_ids: Iterable[str] | None = None,
    as_of: datetime | None = None,
) -> list[MemberWorkload]:
    """Assigned and completed load per member for the week containing as_of.

    Assigned load counts every active task assigned to the member, due or not.
    Completed load counts this week's counted executions credited to the
    member whose task is still active.

    Args:
        household_id: Household to aggregate
        member_ids: Members to report on; defaults to the active members
        as_of: Instant selecting the week, defaults to now

    Returns:
        One MemberWorkload per requested member, in the requested order
    """
    with span("workload_service.get_workload_breakdown"):
        if member_ids is None:
            member_ids = [m.id for m in await member_service.get_active_members(household_id=household_id)]
        breakdown = {member_id: MemberWorkload(member_id=member_id) for member_id in member_ids}

        active_tasks = await task_service.list_household_tasks(household_id=household_id, active_only=True)
        tasks_by_id = {task.id: task for task in active_tasks}

        for task in active_tasks:
            workload = breakdown.get(task.assigned_member_id or "")
            if workload is not None:
                workload.assigned_load += task_weight(task)

        week_starting = recurrence_service.compute_week_start(as_of)
        executions = await execution_service.get_weekly_executions(
            household_id=household_id,
            week_starting=week_starting,
            counted_only=True,
        )
        for execution in executions:
            task = tasks_by_id.get(execution.task_id)
            workload = breakdown.get(execution.member_id)
            # Executions of inactive or deleted tasks add nothing
            if task is not None and workload is not None:
                workload.completed_load += task_weight(task)

        logger.debug(
            "Computed workload for %d member(s)",
            len(breakdown),
            extra={"household_id": household_id, "week_starting": week_starting.isoformat()},
        )
        return list(breakdown.values())


async def compute_loads(
    *,
    household_id: str,
    member_ids: Iterable[str],
    as_of: datetime | None = None,
) -> dict[str, int]:
    """Weighted load per member ID for the week containing as_of."""
    breakdown = await get_workload_breakdown(household_id=household_id, member_ids=member_ids, as_of=as_of)
    return {workload.member_id: workload.weighted_load for workload in breakdown}
