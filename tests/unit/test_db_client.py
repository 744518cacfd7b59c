"""Unit tests for the SQLite db_client module."""

import aiosqlite
import pytest

from chorerota.core import db_client


@pytest.mark.unit
class TestParseFilter:
    """Tests for parse_filter function."""

    def test_simple_equality(self):
        clause, params = db_client.parse_filter('household_id = "1"')

        assert clause == "household_id = ?"
        assert params == [1]

    def test_and_with_booleans_and_null(self):
        clause, params = db_client.parse_filter('is_active = "true" && assigned_member_id = null')

        assert clause == "is_active = ? AND assigned_member_id IS NULL"
        assert params == [True]

    def test_or_group(self):
        clause, params = db_client.parse_filter(
            'task_id = "3" && (counts_for_completion = null || counts_for_completion = "true")'
        )

        assert clause == "task_id = ? AND (counts_for_completion IS NULL OR counts_for_completion = ?)"
        assert params == [3, True]

    def test_dates_stay_strings(self):
        _, params = db_client.parse_filter('week_starting = "2026-10-12"')

        assert params == ["2026-10-12"]

    def test_like_is_escaped(self):
        clause, params = db_client.parse_filter('title ~ "50%_off"')

        assert clause == "title LIKE ? ESCAPE '\\'"
        assert params == ["%50\\%\\_off%"]

    def test_invalid_syntax(self):
        with pytest.raises(ValueError, match="Invalid filter syntax"):
            db_client.parse_filter("title == dishes")


@pytest.mark.unit
class TestParseSort:
    """Tests for parse_sort function."""

    def test_prefixed_fields(self):
        assert db_client.parse_sort("-completed_at,+id") == "completed_at DESC, id ASC"

    def test_plain_fields(self):
        assert db_client.parse_sort("completed_at,id DESC") == "completed_at, id DESC"

    def test_default_and_invalid(self):
        assert db_client.parse_sort("") == "id ASC"
        assert db_client.parse_sort("id; DROP TABLE tasks") == "id ASC"


@pytest.mark.unit
class TestHelpers:
    """Tests for small helpers."""

    def test_id_sort_key_orders_numbers_numerically(self):
        assert sorted(["10", "2", "abc", "1"], key=db_client.id_sort_key) == ["1", "2", "10", "abc"]

    def test_sanitize_param_escapes_quotes(self):
        assert db_client.sanitize_param('say "hi"') == 'say \\"hi\\"'


@pytest.mark.unit
class TestRecords:
    """Tests for CRUD operations against a real SQLite file."""

    async def test_create_get_update_delete(self, sqlite_db):
        created = await db_client.create_record(
            collection="members",
            data={"household_id": "1", "name": "Ana", "role": "owner", "is_active": True},
        )

        assert created["id"] == "1"
        assert created["household_id"] == "1"

        updated = await db_client.update_record(collection="members", record_id="1", data={"name": "Ana B"})
        assert updated["name"] == "Ana B"

        await db_client.delete_record(collection="members", record_id="1")
        with pytest.raises(db_client.RecordNotFoundError):
            await db_client.get_record(collection="members", record_id="1")

    async def test_missing_records(self, sqlite_db):
        with pytest.raises(db_client.RecordNotFoundError):
            await db_client.update_record(collection="members", record_id="42", data={"name": "x"})
        with pytest.raises(db_client.RecordNotFoundError):
            await db_client.delete_record(collection="members", record_id="not-a-number")

    async def test_list_and_first(self, sqlite_db):
        for name in ("Ana", "Ben", "Cy"):
            await db_client.create_record(collection="members", data={"household_id": "1", "name": name})

        page = await db_client.list_records(collection="members", per_page=2, sort="-id")
        everyone = await db_client.list_all_records(collection="members", filter_query='household_id = "1"')
        first = await db_client.get_first_record(collection="members", filter_query='name = "Ben"')
        nobody = await db_client.get_first_record(collection="members", filter_query='name = "Zed"')

        assert [r["name"] for r in page] == ["Cy", "Ben"]
        assert len(everyone) == 3
        assert first is not None
        assert first["name"] == "Ben"
        assert nobody is None

    async def test_invalid_collection_name(self, sqlite_db):
        with pytest.raises(db_client.DatabaseError):
            await db_client.list_records(collection="members; DROP TABLE tasks")


@pytest.mark.unit
class TestTransaction:
    """Tests for the transaction context manager."""

    async def test_commit(self, sqlite_db):
        async with db_client.transaction():
            await db_client.create_record(collection="members", data={"household_id": "1", "name": "Ana"})
            await db_client.create_record(collection="members", data={"household_id": "1", "name": "Ben"})

        assert len(await db_client.list_all_records(collection="members")) == 2

    async def test_rollback_on_error(self, sqlite_db):
        """Test nothing from a failed block is kept."""
        with pytest.raises(RuntimeError, match="abort"):
            async with db_client.transaction():
                await db_client.create_record(collection="members", data={"household_id": "1", "name": "Ana"})
                raise RuntimeError("abort")

        assert await db_client.list_all_records(collection="members") == []

    async def test_nested_blocks_join_outer(self, sqlite_db):
        with pytest.raises(RuntimeError):
            async with db_client.transaction():
                async with db_client.transaction():
                    await db_client.create_record(collection="members", data={"household_id": "1", "name": "Ana"})
                raise RuntimeError("outer fails")

        assert await db_client.list_all_records(collection="members") == []

    async def test_failed_commit_raises_database_error(self, sqlite_db, monkeypatch):
        """Test a commit rejected by the driver is translated and rolled back."""
        conn = await db_client.get_connection()
        real_commit = conn.commit

        async def locked_commit():
            raise aiosqlite.OperationalError("database is locked")

        monkeypatch.setattr(conn, "commit", locked_commit)

        with pytest.raises(db_client.DatabaseError, match="Failed to commit transaction: database is locked"):
            async with db_client.transaction():
                await db_client.create_record(collection="members", data={"household_id": "1", "name": "Ana"})

        monkeypatch.setattr(conn, "commit", real_commit)
        assert await db_client.list_all_records(collection="members") == []

    async def test_failed_autocommit_raises_database_error(self, sqlite_db, monkeypatch):
        conn = await db_client.get_connection()

        async def locked_commit():
            raise aiosqlite.OperationalError("database is locked")

        monkeypatch.setattr(conn, "commit", locked_commit)

        with pytest.raises(db_client.DatabaseError, match="database is locked"):
            await db_client.create_record(collection="members", data={"household_id": "1", "name": "Ana"})
