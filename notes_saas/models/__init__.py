from notes_saas.models.tenant import Tenant
from notes_saas.models.user import User
from notes_saas.models.note import Note
from notes_saas.models.refresh_token import RefreshToken

__all__ = ["Tenant", "User", "Note", "RefreshToken"]
