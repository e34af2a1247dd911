"""
Role lookup.

Roles are reference data identified by (scope, name); they are resolved here,
never created.
"""

from __future__ import annotations

from core.db import Database

from . import repository, schemas


class RoleNotFoundError(RuntimeError):
    pass


class RoleService:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def get(self, *, scope: str, name: str) -> schemas.Role:
        row = await repository.get_role(self._db, scope=scope, name=name)
        if row is None:
            raise RoleNotFoundError(f"Role '{name}' with scope '{scope}' does not exist.")
        return schemas.Role(id=int(row["id"]), scope=str(row["scope"]), name=str(row["name"]))
