"""
Async database access helpers (raw SQL) using asyncpg.

`create_pool()` builds the connection pool; FastAPI opens it on startup and
closes it on shutdown (see `api/main.py`). Services never reach for a global
pool: they receive a `Database` handle at construction time.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Sequence
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

DEFAULT_POOL_MIN_SIZE = 1
DEFAULT_POOL_MAX_SIZE = 5
DEFAULT_COMMAND_TIMEOUT = 30.0


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def _env_number(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


def pool_min_size() -> int:
    return max(1, int(_env_number("DB_POOL_MIN_SIZE", DEFAULT_POOL_MIN_SIZE)))


def pool_max_size() -> int:
    return max(pool_min_size(), int(_env_number("DB_POOL_MAX_SIZE", DEFAULT_POOL_MAX_SIZE)))


def command_timeout() -> float:
    return _env_number("DB_COMMAND_TIMEOUT", DEFAULT_COMMAND_TIMEOUT)


async def create_pool(dsn: str | None = None) -> asyncpg.Pool:
    return await asyncpg.create_pool(
        dsn=dsn or database_url(),
        min_size=pool_min_size(),
        max_size=pool_max_size(),
        command_timeout=command_timeout(),
    )


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


class Database:
    """
    Thin query interface over an asyncpg pool or a single connection.

    Both `asyncpg.Pool` and `asyncpg.Connection` expose fetch/fetchrow/execute,
    so the same handle works inside and outside a transaction.
    """

    def __init__(self, executor: asyncpg.Pool | asyncpg.Connection) -> None:
        self._executor = executor

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        row = await self._executor.fetchrow(sql, *args)
        return _record_to_dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        """
        Run a query and return all rows as a list of dicts.
        """
        rows = await self._executor.fetch(sql, *args)
        return [_record_to_dict(r) for r in rows]

    async def execute(self, sql: str, *args: Any) -> str:
        """
        Run a statement (INSERT/UPDATE/DELETE/DDL).

        Returns the command status reported by the server, e.g. "DELETE 1".
        """
        return await self._executor.execute(sql, *args)

    async def execute_many(self, sql: str, args: Iterable[Sequence[Any]]) -> None:
        await self._executor.executemany(sql, args)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Database]:
        """
        Yield a `Database` bound to one connection inside a transaction.

        Nested calls on an already connection-bound handle open a savepoint.
        """
        if isinstance(self._executor, asyncpg.Pool):
            async with self._executor.acquire() as conn:  # type: asyncpg.Connection
                async with conn.transaction():
                    yield Database(conn)
        else:
            async with self._executor.transaction():
                yield self


def affected_rows(status: str) -> int:
    """
    Parse the row count out of a command status ("DELETE 3" -> 3).
    """
    tail = (status or "").rsplit(" ", 1)[-1]
    return int(tail) if tail.isdigit() else 0
