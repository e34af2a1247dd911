"""
Role schemas.
"""

from __future__ import annotations

from pydantic import BaseModel


class Role(BaseModel):
    id: int
    scope: str
    name: str
