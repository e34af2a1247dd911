"""
Credential sharing schemas.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from roles.schemas import Role


class User(BaseModel):
    id: int
    email: str | None = None
    global_role: Role | None = None

    @property
    def is_global_owner(self) -> bool:
        return self.global_role is not None and self.global_role.name == "owner"


class Credential(BaseModel):
    id: int
    name: str
    type: str
    # Opaque to sharing logic.
    data: Any = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SharedCredential(BaseModel):
    credentials_id: int
    user_id: int
    role_id: int
    role_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    credential: Credential | None = None


class OwnershipCheck(BaseModel):
    owns_credential: bool
    credential: Credential | None = None
