from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from notes_saas.core.database import Base
from notes_saas.utils.clock import utcnow

ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"
ROLES = (ROLE_ADMIN, ROLE_MEMBER)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)

    email = Column(String(254), unique=True, index=True, nullable=False)  # always lower-cased
    password_hash = Column(String, nullable=False)
    role = Column(String(16), nullable=False, default=ROLE_MEMBER)  # admin | member

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
