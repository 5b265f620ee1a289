from sqlalchemy import Column, DateTime, Integer, String

from notes_saas.core.config import FREE_PLAN_MAX_NOTES
from notes_saas.core.database import Base
from notes_saas.utils.clock import utcnow

PLAN_FREE = "free"
PLAN_PRO = "pro"
PLANS = (PLAN_FREE, PLAN_PRO)
UNLIMITED_NOTES = -1


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False)
    slug = Column(String(64), unique=True, index=True, nullable=False)

    plan = Column(String(16), nullable=False, default=PLAN_FREE)
    max_notes = Column(Integer, nullable=False, default=FREE_PLAN_MAX_NOTES)  # -1 = unlimited
    # kept in step with the notes table by the notes service
    note_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def is_unlimited(self) -> bool:
        return self.plan == PLAN_PRO or self.max_notes == UNLIMITED_NOTES
