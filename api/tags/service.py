"""
Tag business logic.

Scope:
- tag name validation and tag CRUD
- workflow <-> tag relations, including replace-all-tags
- response shaping (stringified IDs, request ordering)
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence, TypeVar

from core.db import Database, affected_rows
from core.errors import ConflictError, InvalidRequestError, NotFoundError

from . import repository, schemas

TAG_NAME_LENGTH_LIMIT = 24
# Upper bound of a PostgreSQL `integer` column.
MAX_ID = 2_147_483_647

logger = logging.getLogger(__name__)


T = TypeVar("T", schemas.Tag, schemas.TagResponseItem, schemas.TagWithUsageCount)


# ----------------------------------
#              utils
# ----------------------------------


def _to_id(value: int | str, *, label: str = "Tag") -> int:
    if isinstance(value, bool):
        raise InvalidRequestError(f"{label} ID '{value}' is not a valid ID.")
    if isinstance(value, int):
        parsed = value
    else:
        raw = str(value).strip()
        if not (raw.isascii() and raw.isdigit()):
            raise InvalidRequestError(f"{label} ID '{value}' is not a valid ID.")
        parsed = int(raw)
    if parsed < 0 or parsed > MAX_ID:
        raise InvalidRequestError(f"{label} ID '{value}' is out of range.")
    return parsed


def _to_tag(row: dict) -> schemas.Tag:
    return schemas.Tag(
        id=int(row["id"]),
        name=str(row["name"]),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def format_tags_response(tags: Iterable[schemas.Tag]) -> list[schemas.TagResponseItem]:
    """
    Stringify every tag ID and drop everything except `id` and `name`.
    """
    return [schemas.TagResponseItem(id=str(tag.id), name=tag.name) for tag in tags]


def sort_by_request_order(tags_response: Sequence[T], tag_ids: Sequence[str]) -> list[T]:
    """
    Sort tags by the order of the tag IDs in the incoming request.

    IDs without a matching tag are left out of the result.
    """
    tag_map = {str(tag.id): tag for tag in tags_response}
    ordered: list[T] = []
    for tag_id in tag_ids:
        tag = tag_map.get(str(tag_id))
        if tag is None:
            logger.debug("tag_missing_from_response tag_id=%s", tag_id)
            continue
        ordered.append(tag)
    return ordered


# ----------------------------------
#           validators
# ----------------------------------


def validate_name(name: object) -> str:
    """
    Validate whether a tag name
    - is present in the request body,
    - is a string, and
    - is 1 to 24 characters long.
    """
    if name is None:
        raise InvalidRequestError("Property 'name' missing from request body.")

    if not isinstance(name, str):
        raise InvalidRequestError("Property 'name' must be a string.")

    if len(name) <= 0 or len(name) > TAG_NAME_LENGTH_LIMIT:
        raise InvalidRequestError(f"Tag name must be 1 to {TAG_NAME_LENGTH_LIMIT} characters long.")

    return name


class TagService:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def exists(self, tag_id: int | str) -> None:
        """
        Check that a tag ID exists in `tag_entity`.

        Used before creating a workflow relation or updating a tag.
        """
        row = await repository.get_tag(self._db, _to_id(tag_id))
        if row is None:
            raise NotFoundError(f"Tag with ID {tag_id} does not exist.")

    async def validate_unique_name(self, name: str, *, exclude_id: int | None = None) -> None:
        row = await repository.get_tag_by_name(self._db, name)
        if row is not None and int(row["id"]) != exclude_id:
            raise ConflictError(f"Tag '{name}' already exists.")

    async def validate_relations(self, workflow_id: int | str, tag_ids: Sequence[int | str]) -> None:
        """
        Validate that none of the tags is related to the workflow yet.

        Stops at the first related tag.
        """
        wid = _to_id(workflow_id, label="Workflow")
        for tag_id in tag_ids:
            if await repository.is_related(self._db, wid, _to_id(tag_id)):
                raise ConflictError(
                    f"Workflow ID {workflow_id} and tag ID {tag_id} are already related."
                )

    # ----------------------------------
    #             queries
    # ----------------------------------

    async def get_all_tags(self) -> list[schemas.Tag]:
        rows = await repository.list_tags(self._db)
        return [_to_tag(row) for row in rows]

    async def get_all_tags_with_usage_count(self) -> list[schemas.TagWithUsageCount]:
        rows = await repository.list_tags_with_usage_count(self._db)
        return [
            schemas.TagWithUsageCount(
                id=int(row["id"]),
                name=str(row["name"]),
                usage_count=int(row["usage_count"] or 0),
            )
            for row in rows
        ]

    async def get_workflow_tags(self, workflow_id: int | str) -> list[schemas.Tag]:
        rows = await repository.list_workflow_tags(self._db, _to_id(workflow_id, label="Workflow"))
        return [_to_tag(row) for row in rows]

    # ----------------------------------
    #             mutations
    # ----------------------------------

    async def create_tag(self, name: object) -> schemas.Tag:
        valid_name = validate_name(name)
        await self.validate_unique_name(valid_name)
        row = await repository.insert_tag(self._db, valid_name)
        logger.info("tag_created tag_id=%s", row["id"])
        return _to_tag(row)

    async def update_tag(self, tag_id: int | str, name: object) -> schemas.Tag:
        valid_name = validate_name(name)
        await self.exists(tag_id)
        tid = _to_id(tag_id)
        await self.validate_unique_name(valid_name, exclude_id=tid)

        row = await repository.update_tag_name(self._db, tid, valid_name)
        if row is None:
            raise NotFoundError(f"Tag with ID {tag_id} does not exist.")
        logger.info("tag_updated tag_id=%s", tid)
        return _to_tag(row)

    async def delete_tag(self, tag_id: int | str) -> None:
        await self.exists(tag_id)
        status = await repository.delete_tag(self._db, _to_id(tag_id))
        logger.info("tag_deleted tag_id=%s deleted=%s", tag_id, affected_rows(status))

    async def create_relations(self, workflow_id: int | str, tag_ids: Sequence[int | str]) -> None:
        """
        Relate a workflow to one or more tags in one batch.

        No duplicate check here; run `validate_relations` first.
        """
        if not tag_ids:
            return None
        await repository.insert_relations(
            self._db,
            _to_id(workflow_id, label="Workflow"),
            [_to_id(tag_id) for tag_id in tag_ids],
        )

    async def remove_relations(self, workflow_id: int | str) -> None:
        """
        Remove all tags for a workflow during a tag update operation.
        """
        await repository.delete_relations(self._db, _to_id(workflow_id, label="Workflow"))

    async def replace_relations(self, workflow_id: int | str, tag_ids: Sequence[int | str]) -> None:
        """
        Replace every tag of a workflow with `tag_ids`.

        Delete and insert run in one transaction, so readers never see the
        workflow without tags in between.
        """
        for tag_id in tag_ids:
            await self.exists(tag_id)

        async with self._db.transaction() as tx:
            scoped = TagService(tx)
            await scoped.remove_relations(workflow_id)
            await scoped.create_relations(workflow_id, tag_ids)

        logger.info("workflow_tags_replaced workflow_id=%s tags=%s", workflow_id, len(tag_ids))
