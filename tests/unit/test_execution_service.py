"""Unit tests for execution_service module."""

import asyncio
from datetime import UTC, date, datetime, timedelta

import pytest

from chorerota.core import db_client
from chorerota.core.errors import DuplicateCompletionError, ForbiddenError, NotFoundError, ValidationError
from chorerota.domain.task import TaskKind
from chorerota.domain.update_models import ExecutionUpdate
from chorerota.services import execution_service, task_service


NOW = datetime(2026, 10, 14, 12, 0, 0, tzinfo=UTC)  # Wednesday
NEXT_WEEK = NOW + timedelta(days=7)


@pytest.mark.unit
class TestRecordCompletion:
    """Tests for record_completion function."""

    async def test_records_week_start(self, household):
        """Test the execution is stamped with the Monday of its week."""
        member = await household.add_member("Milo")
        task = await household.add_task("Dishes")

        execution = await execution_service.record_completion(
            task_id=task.id,
            member_id=member.id,
            notes="Done before dinner",
            completed_at=NOW,
        )

        assert execution.week_starting == date(2026, 10, 12)
        assert execution.completed_at == NOW
        assert execution.is_recurring is True
        assert execution.counts_for_completion is None
        assert execution.counts is True
        assert execution.notes == "Done before dinner"

    async def test_weekly_idempotence(self, household):
        """Test a second completion in the same week is rejected."""
        member = await household.add_member("Milo")
        other = await household.add_member("Nia")
        task = await household.add_task("Dishes")
        await execution_service.record_completion(task_id=task.id, member_id=member.id, completed_at=NOW)

        with pytest.raises(DuplicateCompletionError):
            await execution_service.record_completion(
                task_id=task.id,
                member_id=other.id,
                completed_at=NOW + timedelta(days=3),  # Saturday, same week
            )

        assert len(await execution_service.get_task_history(task_id=task.id)) == 1

    async def test_next_week_is_allowed(self, household):
        member = await household.add_member("Milo")
        task = await household.add_task("Dishes")
        await execution_service.record_completion(task_id=task.id, member_id=member.id, completed_at=NOW)

        execution = await execution_service.record_completion(
            task_id=task.id,
            member_id=member.id,
            completed_at=NEXT_WEEK,
        )

        assert execution.week_starting == date(2026, 10, 19)

    async def test_concurrent_completions_one_wins(self, household):
        """Test two racing completions for the same week leave exactly one record."""
        member = await household.add_member("Milo")
        task = await household.add_task("Dishes")

        results = await asyncio.gather(
            execution_service.record_completion(task_id=task.id, member_id=member.id, completed_at=NOW),
            execution_service.record_completion(
                task_id=task.id,
                member_id=member.id,
                completed_at=NOW + timedelta(hours=1),
            ),
            return_exceptions=True,
        )

        assert sum(isinstance(r, DuplicateCompletionError) for r in results) == 1
        assert len(await execution_service.get_task_history(task_id=task.id)) == 1

    async def test_storage_rejects_duplicate_counted_rows(self, household):
        """Test the unique index holds even when the service check is bypassed."""
        member = await household.add_member("Milo")
        task = await household.add_task("Dishes")
        await household.add_execution(task, member, completed_at=NOW)

        with pytest.raises(db_client.UniqueConstraintError):
            await household.add_execution(task, member, completed_at=NOW + timedelta(hours=1))

    async def test_storage_allows_rows_after_invalidation(self, household):
        member = await household.add_member("Milo")
        task = await household.add_task("Dishes")
        await household.add_execution(task, member, completed_at=NOW, counts_for_completion=False)

        execution = await household.add_execution(task, member, completed_at=NOW + timedelta(hours=1))

        assert execution.counts is True

    async def test_one_time_completion_deactivates_task(self, household):
        """Test the one-time lifecycle: completion stores the record and deactivates."""
        member = await household.add_member("Milo")
        task = await household.add_task("Fix gate", kind=TaskKind.ONE_TIME, due_date=NOW - timedelta(days=1))

        execution = await execution_service.record_completion(task_id=task.id, member_id=member.id, completed_at=NOW)

        assert execution.is_recurring is False
        assert (await task_service.get_task(task_id=task.id)).is_active is False

        with pytest.raises(ValidationError) as exc_info:
            await execution_service.record_completion(task_id=task.id, member_id=member.id, completed_at=NOW)
        assert exc_info.value.field == "is_active"

    async def test_inactive_recurring_task_rejected(self, household):
        member = await household.add_member("Milo")
        task = await household.add_task("Dishes", is_active=False)

        with pytest.raises(ValidationError):
            await execution_service.record_completion(task_id=task.id, member_id=member.id, completed_at=NOW)

    async def test_unknown_task_and_member(self, household):
        member = await household.add_member("Milo")
        task = await household.add_task("Dishes")

        with pytest.raises(NotFoundError):
            await execution_service.record_completion(task_id="404", member_id=member.id)
        with pytest.raises(NotFoundError):
            await execution_service.record_completion(task_id=task.id, member_id="404")

    async def test_notes_too_long(self, household):
        member = await household.add_member("Milo")
        task = await household.add_task("Dishes")

        with pytest.raises(ValidationError) as exc_info:
            await execution_service.record_completion(task_id=task.id, member_id=member.id, notes="n" * 1001)

        assert exc_info.value.field == "notes"


@pytest.mark.unit
class TestInvalidation:
    """Tests for invalidate_current_week function."""

    async def test_invalidation_reopens_task(self, household):
        """Test invalidating reopens the week while keeping history."""
        owner = await household.add_owner()
        member = await household.add_member("Milo")
        task = await household.add_task("Dishes")
        first = await execution_service.record_completion(task_id=task.id, member_id=member.id, completed_at=NOW)

        await execution_service.invalidate_current_week(task_id=task.id, requesting_member_id=owner.id, as_of=NOW)

        assert await execution_service.is_completed_this_week(task_id=task.id, as_of=NOW) is False
        again = await execution_service.record_completion(
            task_id=task.id,
            member_id=member.id,
            completed_at=NOW + timedelta(hours=2),
        )
        history = await execution_service.get_task_history(task_id=task.id)

        assert [e.id for e in history] == [again.id, first.id]
        assert history[1].counts_for_completion is False
        assert await execution_service.is_completed_this_week(task_id=task.id, as_of=NOW) is True

    async def test_requires_owner(self, household):
        member = await household.add_member("Milo")
        task = await household.add_task("Dishes")
        await execution_service.record_completion(task_id=task.id, member_id=member.id, completed_at=NOW)

        with pytest.raises(ForbiddenError):
            await execution_service.invalidate_current_week(task_id=task.id, requesting_member_id=member.id, as_of=NOW)

        assert await execution_service.is_completed_this_week(task_id=task.id, as_of=NOW) is True

    async def test_missing_task_or_execution(self, household):
        owner = await household.add_owner()
        task = await household.add_task("Dishes")

        with pytest.raises(NotFoundError):
            await execution_service.invalidate_current_week(task_id="404", requesting_member_id=owner.id, as_of=NOW)
        with pytest.raises(NotFoundError):
            await execution_service.invalidate_current_week(task_id=task.id, requesting_member_id=owner.id, as_of=NOW)

    async def test_only_current_week_is_touched(self, household):
        owner = await household.add_owner()
        task = await household.add_task("Dishes")
        await household.add_execution(task, owner, completed_at=NOW - timedelta(days=7))
        await household.add_execution(task, owner, completed_at=NOW)

        await execution_service.invalidate_current_week(task_id=task.id, requesting_member_id=owner.id, as_of=NOW)

        assert await execution_service.is_completed_this_week(task_id=task.id, as_of=NOW - timedelta(days=7)) is True


@pytest.mark.unit
class TestLedgerQueries:
    """Tests for read helpers of the ledger."""

    async def test_get_latest_ignores_invalidation(self, household):
        """Test get_latest returns the newest record even if it no longer counts."""
        member = await household.add_member("Milo")
        task = await household.add_task("Dishes")
        await household.add_execution(task, member, completed_at=NOW - timedelta(days=7))
        newest = await household.add_execution(task, member, completed_at=NOW, counts_for_completion=False)

        latest = await execution_service.get_latest(task_id=task.id)

        assert latest is not None
        assert latest.id == newest.id

    async def test_get_latest_none(self, household):
        task = await household.add_task("Dishes")

        assert await execution_service.get_latest(task_id=task.id) is None

    async def test_weekly_and_member_views(self, household):
        milo = await household.add_member("Milo")
        nia = await household.add_member("Nia")
        dishes = await household.add_task("Dishes")
        laundry = await household.add_task("Laundry")
        await household.add_execution(dishes, milo, completed_at=NOW)
        await household.add_execution(laundry, nia, completed_at=NOW + timedelta(hours=1), counts_for_completion=False)
        await household.add_execution(laundry, nia, completed_at=NOW - timedelta(days=7))

        weekly = await execution_service.get_weekly_executions(household_id="1", week_starting=date(2026, 10, 12))
        counted = await execution_service.get_weekly_executions(
            household_id="1",
            week_starting=date(2026, 10, 12),
            counted_only=True,
        )
        nia_this_week = await execution_service.get_member_executions_this_week(member_id=nia.id, as_of=NOW)

        assert [e.task_id for e in weekly] == [dishes.id, laundry.id]
        assert [e.task_id for e in counted] == [dishes.id]
        assert nia_this_week == []


@pytest.mark.unit
class TestEditAndDelete:
    """Tests for update_execution and delete_execution."""

    async def test_creator_updates_notes_and_photo(self, household, release_photo, released_photos):
        member = await household.add_member("Milo")
        task = await household.add_task("Dishes")
        execution = await household.add_execution(task, member, completed_at=NOW, photo_path="photos/old.jpg")

        updated = await execution_service.update_execution(
            execution_id=execution.id,
            requesting_member_id=member.id,
            update=ExecutionUpdate(notes="Sparkling", photo_path="photos/new.jpg"),
            release_photo=release_photo,
        )

        assert updated.notes == "Sparkling"
        assert updated.photo_path == "photos/new.jpg"
        assert updated.counts_for_completion is None
        assert released_photos == ["photos/old.jpg"]

    async def test_other_member_cannot_update(self, household):
        milo = await household.add_member("Milo")
        nia = await household.add_member("Nia")
        task = await household.add_task("Dishes")
        execution = await household.add_execution(task, milo, completed_at=NOW)

        with pytest.raises(ForbiddenError):
            await execution_service.update_execution(
                execution_id=execution.id,
                requesting_member_id=nia.id,
                update=ExecutionUpdate(notes="Not mine"),
            )

    async def test_owner_deletes_and_releases_photo(self, household, release_photo, released_photos):
        owner = await household.add_owner()
        member = await household.add_member("Milo")
        task = await household.add_task("Dishes")
        execution = await household.add_execution(task, member, completed_at=NOW, photo_path="photos/a.jpg")

        await execution_service.delete_execution(
            execution_id=execution.id,
            requesting_member_id=owner.id,
            release_photo=release_photo,
        )

        assert released_photos == ["photos/a.jpg"]
        with pytest.raises(NotFoundError):
            await execution_service.get_execution(execution_id=execution.id)
        # The week is open again
        assert await execution_service.is_completed_this_week(task_id=task.id, as_of=NOW) is False
