#!/usr/bin/env python3
"""Admin script to preview or commit automatic task assignment.

Usage:
    uv run python scripts/auto_assign.py <household_id>
    uv run python scripts/auto_assign.py <household_id> --commit <owner_member_id>
    uv run python scripts/auto_assign.py <household_id> --as-of 2026-10-12T08:00:00Z
    uv run python scripts/auto_assign.py <household_id> --workload
"""

import asyncio
import logging
import sys
from datetime import datetime

from chorerota.core import db_client
from chorerota.core.errors import SchedulingError, classify_error_with_response
from chorerota.core.logging import configure_logfire
from chorerota.domain.assignment import AssignmentPlan
from chorerota.services import assignment_service, workload_service


logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def print_plan(plan: AssignmentPlan) -> None:
    """Log a plan one line per decision."""
    logger.info(f"Plan for household {plan.household_id}, week starting {plan.week_starting.isoformat()}")
    if plan.is_empty:
        logger.info("  nothing to assign")

    for planned in plan.assignments:
        logger.info(
            f"  {planned.task_title} (#{planned.task_id}, weight {planned.weight}) -> "
            f"{planned.member_name} (#{planned.member_id}, load {planned.load_before} -> {planned.load_after})"
        )

    for excluded in plan.excluded:
        logger.info(f"  skipped {excluded.task_title} (#{excluded.task_id}): {excluded.reason}")


async def print_workload(household_id: str, as_of: datetime | None) -> None:
    """Log the current weighted load of every active member."""
    breakdown = await workload_service.get_workload_breakdown(household_id=household_id, as_of=as_of)
    for workload in breakdown:
        logger.info(
            f"  member #{workload.member_id}: assigned {workload.assigned_load} "
            f"+ completed {workload.completed_load} = {workload.weighted_load}"
        )


def print_usage() -> None:
    """Print usage information."""
    logger.info(__doc__)


def _option(args: list[str], name: str) -> str | None:
    if name not in args:
        return None
    index = args.index(name)
    if index + 1 >= len(args):
        logger.error(f"{name} needs a value")
        sys.exit(1)
    return args[index + 1]


async def main() -> None:
    """Main entry point."""
    args = sys.argv[1:]

    if not args or "--help" in args or "-h" in args:
        print_usage()
        return

    household_id = args[0]
    owner_id = _option(args, "--commit")
    as_of_raw = _option(args, "--as-of")
    as_of = datetime.fromisoformat(as_of_raw) if as_of_raw else None

    configure_logfire()
    await db_client.init_db()
    try:
        if "--workload" in args:
            await print_workload(household_id, as_of)
            return

        if owner_id is None:
            plan = await assignment_service.preview_auto_assign(household_id=household_id, as_of=as_of)
            print_plan(plan)
            return

        result = await assignment_service.commit_auto_assign(
            household_id=household_id,
            requesting_member_id=owner_id,
            as_of=as_of,
        )
        print_plan(result.plan)
        logger.info(f"Applied {len(result.applied)}, skipped {len(result.skipped)}, failed {len(result.failures)}")
        for failure in result.failures:
            logger.info(f"  task #{failure.task_id}: {failure.error}")
    except SchedulingError as e:
        response = classify_error_with_response(e)
        logger.error(f"{response.code}: {response.message} {response.suggestion}")
        sys.exit(1)
    finally:
        await db_client.close_connection()


if __name__ == "__main__":
    asyncio.run(main())
