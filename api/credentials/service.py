"""
Credential ownership and sharing.

A user either owns a credential (share row with the `owner` role) or has been
granted access to it (share row with the `editor` role). Callers are expected
to gate on `is_owned` before calling `share`/`unshare`.
"""

from __future__ import annotations

import logging

from core.db import Database, affected_rows
from core.errors import InvalidRequestError
from roles.service import RoleService

from . import repository, schemas

CREDENTIAL_ROLE_SCOPE = "credential"
SHAREE_ROLE_NAME = "editor"

logger = logging.getLogger(__name__)


def _to_credential(row: dict) -> schemas.Credential:
    return schemas.Credential(
        id=int(row["credentials_id"]),
        name=str(row["credential_name"]),
        type=str(row["credential_type"]),
        data=row.get("credential_data"),
        created_at=row.get("credential_created_at"),
        updated_at=row.get("credential_updated_at"),
    )


def _to_shared_credential(row: dict) -> schemas.SharedCredential:
    credential = _to_credential(row) if row.get("credential_name") is not None else None
    return schemas.SharedCredential(
        credentials_id=int(row["credentials_id"]),
        user_id=int(row["user_id"]),
        role_id=int(row["role_id"]),
        role_name=row.get("role_name"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
        credential=credential,
    )


class CredentialsService:
    def __init__(self, db: Database, roles: RoleService | None = None) -> None:
        self._db = db
        self._roles = roles or RoleService(db)

    async def get_sharing(
        self,
        user: schemas.User,
        credential_id: int,
        *,
        allow_global_owner: bool = True,
        role_name: str | None = None,
    ) -> schemas.SharedCredential | None:
        """
        Find the sharing row linking `user` to a credential.

        With `allow_global_owner`, a global owner matches any sharing row of
        the credential, which lets instance owners reach credentials they do
        not own themselves.
        """
        user_id: int | None = user.id
        if allow_global_owner and user.is_global_owner:
            user_id = None

        row = await repository.get_sharing(
            self._db,
            credential_id=credential_id,
            user_id=user_id,
            role_name=role_name,
        )
        return _to_shared_credential(row) if row is not None else None

    async def get_sharings(self, credential_id: int) -> list[schemas.SharedCredential]:
        rows = await repository.list_sharings(self._db, credential_id=credential_id)
        return [_to_shared_credential(row) for row in rows]

    async def is_owned(self, user: schemas.User, credential_id: int) -> schemas.OwnershipCheck:
        sharing = await self.get_sharing(
            user,
            credential_id,
            allow_global_owner=False,
            role_name=repository.OWNER_ROLE_NAME,
        )
        if sharing is None:
            logger.debug("credential_not_owned credential_id=%s user_id=%s", credential_id, user.id)
            return schemas.OwnershipCheck(owns_credential=False)

        return schemas.OwnershipCheck(owns_credential=True, credential=sharing.credential)

    async def share(
        self,
        credential: schemas.Credential,
        sharee: schemas.User,
    ) -> schemas.SharedCredential:
        """
        Grant `sharee` editor access to `credential`.

        Sharing the same pair twice refreshes the existing row.
        """
        ownership = await self.is_owned(sharee, credential.id)
        if ownership.owns_credential:
            raise InvalidRequestError(
                f"User {sharee.id} already owns credential {credential.id}."
            )

        role = await self._roles.get(scope=CREDENTIAL_ROLE_SCOPE, name=SHAREE_ROLE_NAME)
        row = await repository.upsert_sharing(
            self._db,
            credential_id=credential.id,
            user_id=sharee.id,
            role_id=role.id,
        )
        logger.info("credential_shared credential_id=%s sharee_id=%s", credential.id, sharee.id)

        shared = _to_shared_credential(row)
        return shared.model_copy(update={"role_name": role.name, "credential": credential})

    async def unshare(self, credential_id: int, sharee_id: int) -> None:
        """
        Remove the share between a credential and a sharee.

        Nothing to delete is a no-op. An owner row is never deleted; asking for
        it is rejected.
        """
        status = await repository.delete_sharing(
            self._db,
            credential_id=credential_id,
            user_id=sharee_id,
        )
        deleted = affected_rows(status)
        if deleted == 0:
            ownership = await self.is_owned(schemas.User(id=sharee_id), credential_id)
            if ownership.owns_credential:
                raise InvalidRequestError(
                    f"User {sharee_id} owns credential {credential_id}; ownership cannot be unshared."
                )

        logger.info(
            "credential_unshared credential_id=%s sharee_id=%s deleted=%s",
            credential_id,
            sharee_id,
            deleted,
        )
