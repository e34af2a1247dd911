"""
Tag and workflow-tag persistence (raw SQL).

Tables:
- tag_entity(id, name, created_at, updated_at)
- workflows_tags(workflow_id, tag_id), primary key on the pair
"""

from __future__ import annotations

from core.db import Database


async def get_tag(db: Database, tag_id: int) -> dict | None:
    return await db.fetch_one(
        """
        SELECT id, name, created_at, updated_at
        FROM tag_entity
        WHERE id = $1
        """,
        tag_id,
    )


async def get_tag_by_name(db: Database, name: str) -> dict | None:
    return await db.fetch_one(
        """
        SELECT id, name, created_at, updated_at
        FROM tag_entity
        WHERE name = $1
        LIMIT 1
        """,
        name,
    )


async def list_tags(db: Database) -> list[dict]:
    return await db.fetch_all(
        """
        SELECT id, name, created_at, updated_at
        FROM tag_entity
        ORDER BY id ASC
        """
    )


async def insert_tag(db: Database, name: str) -> dict:
    row = await db.fetch_one(
        """
        INSERT INTO tag_entity (name)
        VALUES ($1)
        RETURNING id, name, created_at, updated_at
        """,
        name,
    )
    if row is None:
        raise RuntimeError("Failed to create tag.")
    return row


async def update_tag_name(db: Database, tag_id: int, name: str) -> dict | None:
    return await db.fetch_one(
        """
        UPDATE tag_entity
        SET name = $2,
            updated_at = now()
        WHERE id = $1
        RETURNING id, name, created_at, updated_at
        """,
        tag_id,
        name,
    )


async def delete_tag(db: Database, tag_id: int) -> str:
    # workflows_tags rows go with it (ON DELETE CASCADE).
    return await db.execute("DELETE FROM tag_entity WHERE id = $1", tag_id)


async def is_related(db: Database, workflow_id: int, tag_id: int) -> bool:
    row = await db.fetch_one(
        """
        SELECT 1 AS ok
        FROM workflows_tags
        WHERE workflow_id = $1
          AND tag_id = $2
        LIMIT 1
        """,
        workflow_id,
        tag_id,
    )
    return row is not None


async def insert_relations(db: Database, workflow_id: int, tag_ids: list[int]) -> None:
    await db.execute_many(
        "INSERT INTO workflows_tags (workflow_id, tag_id) VALUES ($1, $2)",
        [(workflow_id, tag_id) for tag_id in tag_ids],
    )


async def delete_relations(db: Database, workflow_id: int) -> str:
    return await db.execute("DELETE FROM workflows_tags WHERE workflow_id = $1", workflow_id)


async def list_tags_with_usage_count(db: Database) -> list[dict]:
    """
    Every tag, linked or not, with the number of workflows it is linked to.
    """
    return await db.fetch_all(
        """
        SELECT t.id, t.name, COUNT(DISTINCT w.id) AS usage_count
        FROM tag_entity t
        LEFT JOIN workflows_tags wt ON wt.tag_id = t.id
        LEFT JOIN workflow_entity w ON w.id = wt.workflow_id
        GROUP BY t.id, t.name
        """
    )


async def list_workflow_tags(db: Database, workflow_id: int) -> list[dict]:
    return await db.fetch_all(
        """
        SELECT t.id, t.name
        FROM tag_entity t
        JOIN workflows_tags wt ON wt.tag_id = t.id
        WHERE wt.workflow_id = $1
        """,
        workflow_id,
    )
