"""
Tag schemas.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class Tag(BaseModel):
    id: int
    name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TagWithUsageCount(BaseModel):
    id: int
    name: str
    usage_count: int = 0


class TagResponseItem(BaseModel):
    id: str
    name: str
