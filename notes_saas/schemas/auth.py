from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class LoginPayload(BaseModel):
    # optional so a missing field yields the login-specific 400 message
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshPayload(BaseModel):
    refreshToken: Optional[str] = None


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: str
    tenant_id: int


class TenantRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    plan: str
    max_notes: int
    note_count: int


class SessionRead(BaseModel):
    user: UserRead
    tenant: TenantRead
