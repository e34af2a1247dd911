"""Test fixtures for the sharing and tag services.

Provides a FakeDatabase that mimics `core.db.Database`: it records every
statement it is asked to run and answers with canned rows queued by the test.
Services receive it through their constructor, the same way they receive the
real pool-backed handle.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any, AsyncIterator, Iterable, Sequence

import pytest

from credentials.schemas import Credential, User
from roles.schemas import Role

# ============================================================================
# Fake database handle
# ============================================================================


class FakeDatabase:
    """Records SQL calls and returns queued results in FIFO order."""

    def __init__(self) -> None:
        self.executed: list[tuple[str, tuple[Any, ...]]] = []
        self.transactions: list[str] = []
        self._rows: list[list[dict[str, Any]]] = []
        self._statuses: list[str] = []

    def queue_rows(self, rows: list[dict[str, Any]]) -> None:
        """Queue the result of the next fetch_one/fetch_all call."""
        self._rows.append(rows)

    def queue_status(self, status: str) -> None:
        """Queue the command status of the next execute call."""
        self._statuses.append(status)

    def statements(self, keyword: str) -> list[tuple[str, tuple[Any, ...]]]:
        return [(sql, args) for (sql, args) in self.executed if keyword in sql]

    def _next_rows(self) -> list[dict[str, Any]]:
        return self._rows.pop(0) if self._rows else []

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        self.executed.append((sql, args))
        rows = self._next_rows()
        return dict(rows[0]) if rows else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        self.executed.append((sql, args))
        return [dict(r) for r in self._next_rows()]

    async def execute(self, sql: str, *args: Any) -> str:
        self.executed.append((sql, args))
        return self._statuses.pop(0) if self._statuses else "DELETE 0"

    async def execute_many(self, sql: str, args: Iterable[Sequence[Any]]) -> None:
        self.executed.append((sql, tuple(tuple(a) for a in args)))

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[FakeDatabase]:
        self.transactions.append("begin")
        try:
            yield self
        except BaseException:
            self.transactions.append("rollback")
            raise
        self.transactions.append("commit")


# ============================================================================
# Fixtures
# ============================================================================

NOW = datetime(2026, 3, 2, 9, 30, tzinfo=UTC)

OWNER_ROLE = Role(id=3, scope="credential", name="owner")
EDITOR_ROLE = Role(id=4, scope="credential", name="editor")
GLOBAL_OWNER_ROLE = Role(id=1, scope="global", name="owner")
GLOBAL_MEMBER_ROLE = Role(id=2, scope="global", name="member")


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def owner() -> User:
    return User(id=10, email="ada@example.com", global_role=GLOBAL_MEMBER_ROLE)


@pytest.fixture
def member() -> User:
    return User(id=11, email="grace@example.com", global_role=GLOBAL_MEMBER_ROLE)


@pytest.fixture
def instance_owner() -> User:
    return User(id=1, email="admin@example.com", global_role=GLOBAL_OWNER_ROLE)


@pytest.fixture
def credential() -> Credential:
    return Credential(
        id=42,
        name="Slack bot token",
        type="slackApi",
        data="encrypted-payload",
        created_at=NOW,
        updated_at=NOW,
    )


def sharing_row(credential: Credential, user: User, role: Role) -> dict[str, Any]:
    """A shared_credentials row joined with its credential and role."""
    return {
        "credentials_id": credential.id,
        "user_id": user.id,
        "role_id": role.id,
        "role_name": role.name,
        "created_at": NOW,
        "updated_at": NOW,
        "credential_name": credential.name,
        "credential_type": credential.type,
        "credential_data": credential.data,
        "credential_created_at": credential.created_at,
        "credential_updated_at": credential.updated_at,
    }


def role_row(role: Role) -> dict[str, Any]:
    return {"id": role.id, "scope": role.scope, "name": role.name}
