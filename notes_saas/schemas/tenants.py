from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field

from notes_saas.models.user import ROLE_MEMBER


class UserInvitePayload(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    role: str = ROLE_MEMBER
