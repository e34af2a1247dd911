"""Tests for the Database handle and its environment configuration."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import pytest

from core import db


class StubConnection:
    """Mimics the asyncpg.Connection methods Database relies on."""

    def __init__(self, rows: list[dict[str, Any]] | None = None) -> None:
        self.rows = rows or []
        self.calls: list[tuple[str, Any]] = []
        self.in_transaction = False

    async def fetchrow(self, sql: str, *args: Any) -> dict[str, Any] | None:
        self.calls.append(("fetchrow", args))
        return self.rows[0] if self.rows else None

    async def fetch(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        self.calls.append(("fetch", args))
        return self.rows

    async def execute(self, sql: str, *args: Any) -> str:
        self.calls.append(("execute", args))
        return "DELETE 2"

    async def executemany(self, sql: str, args: Any) -> None:
        self.calls.append(("executemany", list(args)))

    @asynccontextmanager
    async def transaction(self):
        self.in_transaction = True
        try:
            yield
        finally:
            self.in_transaction = False


@pytest.mark.asyncio
async def test_fetch_helpers_return_dicts():
    conn = StubConnection([{"id": 1, "name": "ops"}])
    database = db.Database(conn)

    assert await database.fetch_one("SELECT 1") == {"id": 1, "name": "ops"}
    assert await database.fetch_all("SELECT 1") == [{"id": 1, "name": "ops"}]
    assert await db.Database(StubConnection()).fetch_one("SELECT 1") is None


@pytest.mark.asyncio
async def test_execute_returns_status_and_execute_many_forwards_args():
    conn = StubConnection()
    database = db.Database(conn)

    status = await database.execute("DELETE FROM workflows_tags WHERE workflow_id = $1", 5)
    await database.execute_many("INSERT INTO workflows_tags VALUES ($1, $2)", [(5, 1), (5, 2)])

    assert status == "DELETE 2"
    assert db.affected_rows(status) == 2
    assert conn.calls[-1] == ("executemany", [(5, 1), (5, 2)])


@pytest.mark.asyncio
async def test_transaction_on_connection_reuses_handle():
    conn = StubConnection()
    database = db.Database(conn)

    async with database.transaction() as tx:
        assert tx is database
        assert conn.in_transaction is True

    assert conn.in_transaction is False


@pytest.mark.parametrize(
    ("status", "expected"),
    [("DELETE 0", 0), ("DELETE 3", 3), ("INSERT 0 1", 1), ("CREATE TABLE", 0), ("", 0)],
)
def test_affected_rows(status, expected):
    assert db.affected_rows(status) == expected


def test_database_url_strips_sslmode(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://app:secret@db:5432/app?sslmode=require&application_name=api")

    assert db.database_url() == "postgresql://app:secret@db:5432/app?application_name=api"


def test_database_url_is_required(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)

    with pytest.raises(RuntimeError, match="DATABASE_URL is not set"):
        db.database_url()


def test_pool_settings_from_env(monkeypatch):
    monkeypatch.setenv("DB_POOL_MIN_SIZE", "2")
    monkeypatch.setenv("DB_POOL_MAX_SIZE", "1")
    monkeypatch.setenv("DB_COMMAND_TIMEOUT", "not-a-number")

    assert db.pool_min_size() == 2
    assert db.pool_max_size() == 2
    assert db.command_timeout() == db.DEFAULT_COMMAND_TIMEOUT
