"""
Role persistence helpers.
"""

from __future__ import annotations

from core.db import Database


async def get_role(db: Database, *, scope: str, name: str) -> dict | None:
    return await db.fetch_one(
        """
        SELECT id, scope, name
        FROM role
        WHERE scope = $1
          AND name = $2
        LIMIT 1
        """,
        scope,
        name,
    )
