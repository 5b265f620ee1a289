from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from notes_saas.core.database import Base
from notes_saas.utils.clock import utcnow

TITLE_MAX_LENGTH = 200
CONTENT_MAX_LENGTH = 10000


class Note(Base):
    __tablename__ = "notes"
    __table_args__ = (
        Index("ix_notes_tenant_author", "tenant_id", "author_id"),
        Index("ix_notes_tenant_created", "tenant_id", "created_at"),
    )

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    content = Column(Text, nullable=False)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    author = relationship("User", lazy="joined")

    @property
    def author_email(self) -> str | None:
        return self.author.email if self.author is not None else None
