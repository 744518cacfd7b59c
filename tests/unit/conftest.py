"""Pytest configuration and fixtures for unit tests."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from typing import Any

import pytest

from chorerota.core import db_client
from chorerota.core.config import settings
from chorerota.domain.execution import Execution
from chorerota.domain.member import Member, MemberRole
from chorerota.domain.task import Task, TaskKind, TaskPriority
from chorerota.services.recurrence_service import compute_week_start


# Monday of the reference week used throughout the unit tests
SEED_CREATED_AT = datetime(2026, 10, 12, 9, 0, 0, tzinfo=UTC)


class HouseholdSeed:
    """Writes members, tasks and executions straight to the store.

    Bypasses the services' validation so tests can seed states that the
    public API would refuse (past due dates, inactive members, ...).
    """

    def __init__(self, household_id: str = "1") -> None:
        self.household_id = household_id

    async def add_member(self, name: str, *, role: MemberRole = MemberRole.MEMBER, is_active: bool = True) -> Member:
        record = await db_client.create_record(
            collection="members",
            data={"household_id": self.household_id, "name": name, "role": role, "is_active": is_active},
        )
        return Member.model_validate(record)

    async def add_owner(self, name: str = "Olive") -> Member:
        return await self.add_member(name, role=MemberRole.OWNER)

    async def add_task(
        self,
        title: str,
        *,
        kind: TaskKind = TaskKind.RECURRING,
        priority: TaskPriority = TaskPriority.MEDIUM,
        estimated_minutes: int = 30,
        recurrence_rule: str | None = "FREQ=DAILY",
        recurrence_end_date: datetime | None = None,
        due_date: datetime | None = None,
        assigned_member_id: str | None = None,
        is_active: bool = True,
        created_at: datetime = SEED_CREATED_AT,
    ) -> Task:
        data: dict[str, Any] = {
            "household_id": self.household_id,
            "title": title,
            "kind": kind,
            "priority": priority,
            "estimated_minutes": estimated_minutes,
            "is_active": is_active,
            "created_at": created_at,
        }
        if kind == TaskKind.RECURRING:
            data["recurrence_rule"] = recurrence_rule
            data["recurrence_end_date"] = recurrence_end_date
        else:
            data["due_date"] = due_date or created_at
        if assigned_member_id is not None:
            data["assigned_member_id"] = assigned_member_id

        record = await db_client.create_record(collection="tasks", data=data)
        return Task.model_validate(record)

    async def add_execution(
        self,
        task: Task,
        member: Member,
        *,
        completed_at: datetime,
        counts_for_completion: bool | None = None,
        photo_path: str | None = None,
    ) -> Execution:
        record = await db_client.create_record(
            collection="executions",
            data={
                "task_id": task.id,
                "member_id": member.id,
                "household_id": self.household_id,
                "completed_at": completed_at,
                "week_starting": compute_week_start(completed_at),
                "counts_for_completion": counts_for_completion,
                "photo_path": photo_path,
                "is_recurring": task.is_recurring,
            },
        )
        return Execution.model_validate(record)


@pytest.fixture
async def sqlite_db(monkeypatch, test_settings) -> AsyncGenerator[str]:
    """Fresh SQLite file with the schema applied; closed after the test."""
    monkeypatch.setattr(settings, "sqlite_db_path", test_settings.sqlite_db_path)
    await db_client.init_db()
    yield test_settings.sqlite_db_path
    await db_client.close_connection()


@pytest.fixture
async def household(sqlite_db) -> HouseholdSeed:
    """Seeding helper for household "1" on a fresh database."""
    return HouseholdSeed("1")


@pytest.fixture
async def other_household(sqlite_db) -> HouseholdSeed:
    """Seeding helper for a second household sharing the database."""
    return HouseholdSeed("2")
