from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class NoteCreatePayload(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None


class NoteUpdatePayload(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None


class NoteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    author_id: int
    author_email: Optional[str] = None
    tenant_id: int
    created_at: datetime
    updated_at: datetime


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_count: int
    has_more: bool


class NoteListRead(BaseModel):
    notes: list[NoteRead]
    pagination: Pagination
