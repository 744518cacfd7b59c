"""SQLite schema management (code-first approach)."""

import logging
from typing import Any

from chorerota.core import db_client


logger = logging.getLogger(__name__)


# Central list of all collections in the schema, in creation order
COLLECTIONS = [
    "members",
    "tasks",
    "executions",
]


def _get_collection_schema(*, collection_name: str) -> dict[str, Any]:
    """Get the expected schema for a collection.

    Members are owned by the external household service; the engine only
    reads them. Tasks and executions are the engine's own state.
    """
    schemas = {
        "members": {
            "name": "members",
            "ddl": """
                CREATE TABLE IF NOT EXISTS members (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    household_id INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    role TEXT NOT NULL DEFAULT 'member' CHECK (role IN ('owner', 'member')),
                    is_active INTEGER NOT NULL DEFAULT 1
                )
            """,
            "indexes": [
                "CREATE INDEX IF NOT EXISTS idx_members_household ON members (household_id)",
            ],
        },
        "tasks": {
            "name": "tasks",
            "ddl": """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    household_id INTEGER NOT NULL,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    kind TEXT NOT NULL CHECK (kind IN ('recurring', 'one_time')),
                    priority INTEGER NOT NULL DEFAULT 1 CHECK (priority BETWEEN 0 AND 2),
                    estimated_minutes INTEGER NOT NULL DEFAULT 30 CHECK (estimated_minutes BETWEEN 5 AND 480),
                    recurrence_rule TEXT,
                    recurrence_end_date TEXT,
                    due_date TEXT,
                    assigned_member_id INTEGER REFERENCES members (id) ON DELETE SET NULL,
                    is_active INTEGER NOT NULL DEFAULT 1,
                    created_at TEXT NOT NULL,
                    CHECK (
                        (kind = 'recurring' AND recurrence_rule IS NOT NULL AND due_date IS NULL)
                        OR (kind = 'one_time' AND due_date IS NOT NULL
                            AND recurrence_rule IS NULL AND recurrence_end_date IS NULL)
                    )
                )
            """,
            "indexes": [
                "CREATE INDEX IF NOT EXISTS idx_tasks_household ON tasks (household_id, is_active)",
                "CREATE INDEX IF NOT EXISTS idx_tasks_assignee ON tasks (assigned_member_id)",
            ],
        },
        "executions": {
            "name": "executions",
            "ddl": """
                CREATE TABLE IF NOT EXISTS executions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    task_id INTEGER NOT NULL REFERENCES tasks (id) ON DELETE CASCADE,
                    member_id INTEGER NOT NULL REFERENCES members (id),
                    household_id INTEGER NOT NULL,
                    completed_at TEXT NOT NULL,
                    week_starting TEXT NOT NULL,
                    notes TEXT,
                    photo_path TEXT,
                    counts_for_completion INTEGER,
                    is_recurring INTEGER NOT NULL
                )
            """,
            "indexes": [
                # At most one counted completion per recurring task and week.
                # NULL (unset) counts; only an explicit 0 is excluded.
                """
                CREATE UNIQUE INDEX IF NOT EXISTS idx_executions_task_week_counted
                ON executions (task_id, week_starting)
                WHERE is_recurring = 1 AND counts_for_completion IS NOT 0
                """,
                "CREATE INDEX IF NOT EXISTS idx_executions_household_week ON executions (household_id, week_starting)",
                "CREATE INDEX IF NOT EXISTS idx_executions_member ON executions (member_id, week_starting)",
            ],
        },
    }
    return schemas[collection_name]


async def init_db(*, db_path: str | None = None) -> None:
    """Create all tables and indexes that do not exist yet."""
    conn = await db_client.get_connection(db_path=db_path)

    for collection_name in COLLECTIONS:
        schema = _get_collection_schema(collection_name=collection_name)
        await conn.execute(schema["ddl"])
        for index_sql in schema["indexes"]:
            await conn.execute(index_sql)
        logger.info("Ensured collection: %s", collection_name)

    await conn.commit()
    logger.info("Schema initialized", extra={"collections": len(COLLECTIONS)})
