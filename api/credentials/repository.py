"""
Credential sharing persistence (raw SQL).

Ownership and sharing live in the same `shared_credentials` table; they differ
only by the credential-scoped role attached to the row.
"""

from __future__ import annotations

from core.db import Database

OWNER_ROLE_NAME = "owner"

_SHARING_COLUMNS = """
    sc.credentials_id, sc.user_id, sc.role_id, r.name AS role_name,
    sc.created_at, sc.updated_at,
    c.name AS credential_name, c.type AS credential_type, c.data AS credential_data,
    c.created_at AS credential_created_at, c.updated_at AS credential_updated_at
"""


async def get_sharing(
    db: Database,
    *,
    credential_id: int,
    user_id: int | None = None,
    role_name: str | None = None,
) -> dict | None:
    """
    Return one sharing row (joined with its credential), or None.

    `user_id=None` matches any user; `role_name=None` matches any role.
    """
    return await db.fetch_one(
        f"""
        SELECT {_SHARING_COLUMNS}
        FROM shared_credentials sc
        JOIN credentials_entity c ON c.id = sc.credentials_id
        JOIN role r ON r.id = sc.role_id
        WHERE sc.credentials_id = $1
          AND ($2::int IS NULL OR sc.user_id = $2)
          AND ($3::text IS NULL OR (r.scope = 'credential' AND r.name = $3))
        ORDER BY sc.created_at ASC
        LIMIT 1
        """,
        credential_id,
        user_id,
        role_name,
    )


async def list_sharings(db: Database, *, credential_id: int) -> list[dict]:
    return await db.fetch_all(
        f"""
        SELECT {_SHARING_COLUMNS}
        FROM shared_credentials sc
        JOIN credentials_entity c ON c.id = sc.credentials_id
        JOIN role r ON r.id = sc.role_id
        WHERE sc.credentials_id = $1
        ORDER BY sc.created_at ASC
        """,
        credential_id,
    )


async def upsert_sharing(db: Database, *, credential_id: int, user_id: int, role_id: int) -> dict:
    row = await db.fetch_one(
        """
        INSERT INTO shared_credentials (credentials_id, user_id, role_id)
        VALUES ($1, $2, $3)
        ON CONFLICT (credentials_id, user_id) DO UPDATE
        SET role_id = EXCLUDED.role_id,
            updated_at = now()
        RETURNING credentials_id, user_id, role_id, created_at, updated_at
        """,
        credential_id,
        user_id,
        role_id,
    )
    if row is None:
        raise RuntimeError("Failed to save credential sharing.")
    return row


async def delete_sharing(db: Database, *, credential_id: int, user_id: int) -> str:
    """
    Delete a non-owner share for the exact (credential, user) pair.

    Returns the command status; "DELETE 0" when nothing matched.
    """
    return await db.execute(
        """
        DELETE FROM shared_credentials sc
        USING role r
        WHERE r.id = sc.role_id
          AND sc.credentials_id = $1
          AND sc.user_id = $2
          AND NOT (r.scope = 'credential' AND r.name = $3)
        """,
        credential_id,
        user_id,
        OWNER_ROLE_NAME,
    )
