"""SQLite database client wrapper with CRUD operations and transactions."""

import asyncio
import json
import logging
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any

import aiosqlite

from chorerota.core.config import constants, settings


logger = logging.getLogger(__name__)


class DatabaseError(RuntimeError):
    """Raised when a database operation fails."""


class RecordNotFoundError(KeyError):
    """Raised when a record lookup by ID finds nothing."""


class UniqueConstraintError(DatabaseError):
    """Raised when a write violates a UNIQUE index."""


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding in filter queries via json.dumps."""
    return json.dumps(str(value))[1:-1]


def id_sort_key(record_id: str) -> tuple[int, int, str]:
    """Stable ordering for record IDs: numeric IDs numerically, others lexically."""
    if record_id.isdigit():
        return (0, int(record_id), "")
    return (1, 0, record_id)


def _convert_record_ids(record: dict[str, Any]) -> dict[str, Any]:
    """Convert integer ID and foreign key fields to strings for Pydantic compatibility."""
    converted = record.copy()
    for key, value in converted.items():
        if isinstance(value, int) and (key == "id" or key.endswith("_id")):
            converted[key] = str(value)
    return converted


def _to_db_value(value: Any) -> Any:
    """Serialize a Python value into something SQLite can store."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, dict | list):
        return json.dumps(value)
    return value


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


def _parse_value(value: str, *, is_like: bool = False) -> str | int | float | bool | None:
    """Parse a string value to the appropriate Python type for SQLite."""
    if is_like:
        escaped = value.replace("%", "\\%").replace("_", "\\_")
        return f"%{escaped}%"

    if value.isdigit():
        return int(value)
    if value.replace(".", "", 1).isdigit():
        return float(value)

    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False

    return value


def _get_sql_operator(op: str) -> str:
    """Map filter operator to SQL operator."""
    op_map = {
        "=": "=",
        "!=": "!=",
        ">": ">",
        "<": "<",
        ">=": ">=",
        "<=": "<=",
        "~": "LIKE",
    }
    sql_op = op_map.get(op)
    if not sql_op:
        msg = f"Unsupported operator: {op}"
        raise ValueError(msg)
    return sql_op


def _parse_single_comparison(comparison: str) -> tuple[str, list[str | int | float | None]]:
    """Parse a single comparison expression into a SQL condition and its parameters."""
    null_match = re.match(r"^(\w+)\s*(=|!=)\s*null$", comparison)
    if null_match:
        field = null_match.group(1)
        keyword = "IS NULL" if null_match.group(2) == "=" else "IS NOT NULL"
        return f"{field} {keyword}", []

    match = re.match(
        r"""^(\w+)\s*(>=|<=|!=|=|>|<|~)\s*(['"])([^'"]*)\3$""",
        comparison,
    )
    if not match:
        msg = f"Invalid filter syntax: {comparison}"
        raise ValueError(msg)

    field = match.group(1)
    op = match.group(2)
    raw_value = match.group(4)

    sql_op = _get_sql_operator(op)
    is_like = sql_op == "LIKE"
    value = _parse_value(raw_value, is_like=is_like)
    if is_like:
        return f"{field} LIKE ? ESCAPE '\\'", [value]

    return f"{field} {sql_op} ?", [value]


def _parse_or_group(or_group: str) -> tuple[str, list[str | int | float | None]]:
    """Parse a parenthesized OR group into a SQL condition and parameters."""
    inner = or_group[1:-1]  # Remove parentheses
    or_parts = [p.strip() for p in inner.split("||")]
    or_conditions = []
    or_params: list[str | int | float | None] = []

    for part in or_parts:
        cond, values = _parse_single_comparison(part)
        or_conditions.append(cond)
        or_params.extend(values)

    return f"({' OR '.join(or_conditions)})", or_params


def _split_and_conditions(filter_query: str) -> list[str]:
    """Split filter query by && while preserving parenthesized groups."""
    parts = []
    current = ""
    paren_depth = 0

    for char in filter_query:
        if char == "(":
            paren_depth += 1
        elif char == ")":
            paren_depth -= 1

        current += char

        if paren_depth == 0 and current.endswith("&&"):
            parts.append(current[:-2].strip())
            current = ""

    if current.strip():
        parts.append(current.strip())

    return parts


def parse_filter(filter_query: str) -> tuple[str, list[str | int | float | None]]:
    """Parse filter syntax into a SQL WHERE clause and parameter list.

    Supports `field = "value"`, the other comparison operators, `field = null`,
    `&&` conjunctions and parenthesized `||` groups.
    """
    if not filter_query:
        return "", []

    parts = _split_and_conditions(filter_query)
    conditions = []
    params: list[str | int | float | None] = []

    for raw_part in parts:
        part = raw_part.strip()

        if part.startswith("(") and part.endswith(")"):
            cond, cond_params = _parse_or_group(part)
        else:
            cond, cond_params = _parse_single_comparison(part)
        conditions.append(cond)
        params.extend(cond_params)

    return " AND ".join(conditions), params


def parse_sort(sort: str) -> str:
    """Translate a sort string ("-completed_at", "+title", "id ASC") into an ORDER BY clause."""
    default = "id ASC"
    if not sort:
        return default

    clauses = []
    for raw_part in sort.split(","):
        part = raw_part.strip()
        prefixed = re.match(r"^([+-])([A-Za-z_][A-Za-z0-9_]*)$", part)
        if prefixed:
            direction = "DESC" if prefixed.group(1) == "-" else "ASC"
            clauses.append(f"{prefixed.group(2)} {direction}")
            continue
        plain = re.match(r"^([A-Za-z_][A-Za-z0-9_]*)(\s+(ASC|DESC))?$", part, re.IGNORECASE)
        if plain:
            clauses.append(part)
            continue
        logger.warning("Invalid sort parameter, using default", extra={"sort": sort})
        return default

    return ", ".join(clauses)


_db_connections: dict[tuple[int, str], aiosqlite.Connection] = {}
_write_locks: dict[tuple[int, str], asyncio.Lock] = {}
_db_lock = asyncio.Lock()
_active_transaction: ContextVar[aiosqlite.Connection | None] = ContextVar("_active_transaction", default=None)


def _cache_key(db_path: str | None) -> tuple[int, str]:
    """Connections are cached per event loop and database file."""
    loop_id = id(asyncio.get_running_loop())
    return loop_id, str(get_db_path(db_path))


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Get or create a cached connection for the current event loop and db path."""
    active = _active_transaction.get()
    if active is not None:
        return active

    cache_key = _cache_key(db_path)
    if cache_key in _db_connections:
        return _db_connections[cache_key]

    # Create new connection with async lock to prevent races
    async with _db_lock:
        # Double-check after acquiring lock
        if cache_key in _db_connections:
            return _db_connections[cache_key]

        path = get_db_path(db_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(str(path))
        await conn.execute("PRAGMA foreign_keys = ON")
        await conn.execute("PRAGMA journal_mode = WAL")

        _db_connections[cache_key] = conn
        _write_locks[cache_key] = asyncio.Lock()

        logger.info("Created new SQLite connection", extra={"db_path": str(path), "loop_id": cache_key[0]})
        return conn


async def close_connection(*, db_path: str | None = None) -> None:
    """Close the cached SQLite connection for the current event loop and db path."""
    cache_key = _cache_key(db_path)
    if cache_key not in _db_connections:
        return

    try:
        async with _db_lock:
            conn = _db_connections.pop(cache_key, None)
            _write_locks.pop(cache_key, None)
            if conn is not None:
                await conn.close()
                logger.info("Closed SQLite connection", extra={"db_path": cache_key[1]})
    except Exception as e:
        logger.warning("Error closing SQLite connection", extra={"error": str(e), "db_path": cache_key[1]})


async def _write_lock(db_path: str | None = None) -> asyncio.Lock:
    await get_connection(db_path=db_path)
    return _write_locks[_cache_key(db_path)]


@asynccontextmanager
async def transaction(*, db_path: str | None = None) -> AsyncIterator[aiosqlite.Connection]:
    """Run the enclosed record operations atomically.

    Every create/update/delete issued inside the block joins the same
    transaction; the block commits on normal exit and rolls back on any
    exception, including cancellation. Nested blocks join the outer one.
    """
    active = _active_transaction.get()
    if active is not None:
        yield active
        return

    conn = await get_connection(db_path=db_path)
    lock = await _write_lock(db_path)
    async with lock:
        try:
            await conn.execute("BEGIN IMMEDIATE")
        except aiosqlite.Error as e:
            logger.error("begin_transaction_failed", extra={"error": str(e)})
            raise _translate_error(e, collection="transaction", action="begin") from e

        token = _active_transaction.set(conn)
        try:
            yield conn
        except BaseException:
            await conn.rollback()
            logger.info("Rolled back transaction")
            raise
        else:
            try:
                await conn.commit()
            except aiosqlite.Error as e:
                await conn.rollback()
                logger.error("commit_transaction_failed", extra={"error": str(e)})
                raise _translate_error(e, collection="transaction", action="commit") from e
        finally:
            _active_transaction.reset(token)


async def _execute_write(query: str, values: list[Any] | tuple[Any, ...]) -> aiosqlite.Cursor:
    """Execute a write statement, committing it unless a transaction is open."""
    if _active_transaction.get() is not None:
        conn = await get_connection()
        return await conn.execute(query, values)

    conn = await get_connection()
    lock = await _write_lock()
    async with lock:
        try:
            cursor = await conn.execute(query, values)
            await conn.commit()
        except BaseException:
            await conn.rollback()
            raise
        return cursor


def _translate_error(e: Exception, *, collection: str, action: str) -> DatabaseError:
    if isinstance(e, aiosqlite.IntegrityError) and "UNIQUE" in str(e):
        return UniqueConstraintError(f"Unique constraint violated in {collection}: {e}")
    if isinstance(e, aiosqlite.OperationalError) and "no such table" in str(e):
        return DatabaseError(f"Table '{collection}' does not exist. Call init_db() first.")
    return DatabaseError(f"Failed to {action} {collection}: {e}")


def _parse_record_id(collection: str, record_id: str) -> int:
    if not str(record_id).isdigit():
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)
    return int(record_id)


async def init_db(*, db_path: str | None = None) -> None:
    """Initialize the database schema by delegating to schema.init_db()."""
    from chorerota.core import schema  # noqa: PLC0415 - schema imports this module

    await schema.init_db(db_path=db_path)


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a new record and return it with its assigned id."""
    try:
        _validate_collection_name(collection)

        columns = list(data.keys())
        columns_str = ", ".join(columns)
        placeholders_str = ", ".join("?" for _ in columns)
        values = [_to_db_value(data[key]) for key in columns]

        query = f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - collection is validated
        cursor = await _execute_write(query, values)

        record_id = cursor.lastrowid
        result = await get_record(collection=collection, record_id=str(record_id))

        logger.info("Created record", extra={"collection": collection, "record_id": record_id})
        return result
    except DatabaseError:
        raise
    except Exception as e:
        logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
        raise _translate_error(e, collection=collection, action="create record in") from e


async def get_record(*, collection: str, record_id: str) -> dict[str, Any]:
    """Fetch a single record by ID, raising RecordNotFoundError if not found."""
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        query = f"SELECT * FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (_parse_record_id(collection, record_id),))
        row = await cursor.fetchone()

        if row is None:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        columns = [description[0] for description in cursor.description]
        record = dict(zip(columns, row, strict=True))

        logger.debug("Retrieved record", extra={"collection": collection, "record_id": record_id})
        return _convert_record_ids(record)
    except RecordNotFoundError:
        raise
    except Exception as e:
        logger.error("get_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        raise _translate_error(e, collection=collection, action="get record from") from e


async def update_record(*, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """Update a record by ID and return the updated record."""
    if not data:
        msg = "Empty update payload"
        raise ValueError(msg)

    try:
        _validate_collection_name(collection)

        set_clause = ", ".join(f"{key} = ?" for key in data)
        values = [_to_db_value(val) for val in data.values()]
        values.append(_parse_record_id(collection, record_id))

        query = f"UPDATE {collection} SET {set_clause} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await _execute_write(query, values)

        if cursor.rowcount == 0:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
        return await get_record(collection=collection, record_id=record_id)
    except (RecordNotFoundError, DatabaseError):
        raise
    except Exception as e:
        logger.error("update_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        raise _translate_error(e, collection=collection, action="update record in") from e


async def delete_record(*, collection: str, record_id: str) -> None:
    """Delete a record by ID, raising RecordNotFoundError if not found."""
    try:
        _validate_collection_name(collection)

        query = f"DELETE FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await _execute_write(query, (_parse_record_id(collection, record_id),))

        if cursor.rowcount == 0:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})
    except RecordNotFoundError:
        raise
    except Exception as e:
        logger.error("delete_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        raise _translate_error(e, collection=collection, action="delete record from") from e


async def list_records(
    *,
    collection: str,
    page: int = 1,
    per_page: int = 50,
    filter_query: str = "",
    sort: str = "",
) -> list[dict[str, Any]]:
    """List records with optional filtering, sorting, and pagination."""
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        where_clause = ""
        params: list[Any] = []
        if filter_query:
            where_clause, params = parse_filter(filter_query)
            where_clause = f"WHERE {where_clause}"

        order_by = parse_sort(sort)
        offset = (page - 1) * per_page

        query = f"SELECT * FROM {collection} {where_clause} ORDER BY {order_by} LIMIT ? OFFSET ?"  # noqa: S608 - collection is validated
        params.extend([per_page, offset])

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()

        columns = [description[0] for description in cursor.description]
        records = [_convert_record_ids(dict(zip(columns, row, strict=True))) for row in rows]

        logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
        return records
    except Exception as e:
        logger.error("list_records_failed", extra={"collection": collection, "error": str(e)})
        raise _translate_error(e, collection=collection, action="list records from") from e


async def list_all_records(*, collection: str, filter_query: str = "", sort: str = "") -> list[dict[str, Any]]:
    """List every record matching the filter, fetching page by page."""
    per_page = constants.DEFAULT_PER_PAGE_LIMIT
    page = 1
    records: list[dict[str, Any]] = []

    while True:
        batch = await list_records(
            collection=collection,
            page=page,
            per_page=per_page,
            filter_query=filter_query,
            sort=sort,
        )
        records.extend(batch)
        if len(batch) < per_page:
            return records
        page += 1


async def get_first_record(*, collection: str, filter_query: str, sort: str = "") -> dict[str, Any] | None:
    """Return the first record matching the filter, or None."""
    records = await list_records(collection=collection, per_page=1, filter_query=filter_query, sort=sort)
    return records[0] if records else None
