from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from notes_saas.core.errors import NotFoundError, QuotaExceededError, ValidationError
from notes_saas.models.note import CONTENT_MAX_LENGTH, TITLE_MAX_LENGTH, Note
from notes_saas.models.tenant import PLAN_PRO, UNLIMITED_NOTES, Tenant
from notes_saas.services.tenant_guard import TenantScope
from notes_saas.utils.clock import utcnow

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 6
MAX_PAGE_SIZE = 100
NOTE_NOT_FOUND = "NOTE_NOT_FOUND"

SORT_FIELDS = {
    "created_at": Note.created_at,
    "updated_at": Note.updated_at,
    "title": Note.title,
}
DEFAULT_SORT = "-created_at"


@dataclass
class NotePage:
    notes: list[Note]
    current_page: int
    total_pages: int
    total_count: int
    has_more: bool


def _clean_field(name: str, value: Optional[str], max_length: int) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{name.capitalize()} cannot be empty")
    if len(cleaned) > max_length:
        raise ValidationError(f"{name.capitalize()} cannot exceed {max_length} characters")
    return cleaned


def _claim_quota_slot(db: Session, tenant_id: int) -> bool:
    """Atomically bump the tenant's note counter if the plan allows another note."""
    claimed = (
        db.query(Tenant)
        .filter(
            Tenant.id == tenant_id,
            or_(
                Tenant.plan == PLAN_PRO,
                Tenant.max_notes == UNLIMITED_NOTES,
                Tenant.note_count < Tenant.max_notes,
            ),
        )
        .update({Tenant.note_count: Tenant.note_count + 1}, synchronize_session=False)
    )
    return claimed == 1


def _release_quota_slot(db: Session, tenant_id: int) -> None:
    db.query(Tenant).filter(Tenant.id == tenant_id, Tenant.note_count > 0).update(
        {Tenant.note_count: Tenant.note_count - 1},
        synchronize_session=False,
    )


def create_note(db: Session, scope: TenantScope, *, title: Optional[str], content: Optional[str]) -> Note:
    if not (title or "").strip() or not (content or "").strip():
        raise ValidationError("Title and content are required")
    title = _clean_field("title", title, TITLE_MAX_LENGTH)
    content = _clean_field("content", content, CONTENT_MAX_LENGTH)

    if not _claim_quota_slot(db, scope.tenant_id):
        db.rollback()
        logger.info("note quota reached tenant_id=%s", scope.tenant_id)
        raise QuotaExceededError()

    note = Note(
        title=title,
        content=content,
        tenant_id=scope.tenant_id,
        author_id=scope.user_id,
    )
    db.add(note)
    db.commit()
    db.refresh(note)
    db.refresh(scope.tenant)
    return note


def parse_sort(sort: Optional[str]) -> tuple[str, bool]:
    """``title`` / ``-created_at`` style sort keys; returns (field, descending)."""
    raw = (sort or DEFAULT_SORT).strip()
    descending = raw.startswith("-")
    field = raw.lstrip("-+")
    if field not in SORT_FIELDS:
        allowed = ", ".join(sorted(SORT_FIELDS))
        raise ValidationError(f"Invalid sort field '{field}'. Allowed: {allowed}")
    return field, descending


def list_notes(
    db: Session,
    scope: TenantScope,
    *,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    sort: Optional[str] = None,
) -> NotePage:
    if page < 1:
        raise ValidationError("page must be >= 1")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    field, descending = parse_sort(sort)

    column = SORT_FIELDS[field]
    order = [column.desc() if descending else column.asc(), Note.id.desc() if descending else Note.id.asc()]

    total_count = db.query(func.count(Note.id)).filter(Note.tenant_id == scope.tenant_id).scalar() or 0
    offset = (page - 1) * limit
    notes = (
        db.query(Note)
        .filter(Note.tenant_id == scope.tenant_id)
        .order_by(*order)
        .offset(offset)
        .limit(limit)
        .all()
    )
    return NotePage(
        notes=notes,
        current_page=page,
        total_pages=math.ceil(total_count / limit) if total_count else 0,
        total_count=total_count,
        has_more=offset + len(notes) < total_count,
    )


def parse_note_id(raw: str) -> int:
    value = (raw or "").strip()
    if not value.isdigit():
        raise NotFoundError("Note not found", code=NOTE_NOT_FOUND)
    return int(value)


def get_note(db: Session, scope: TenantScope, note_id: int) -> Note:
    note = db.query(Note).filter(Note.id == note_id, Note.tenant_id == scope.tenant_id).first()
    if note is None:
        raise NotFoundError("Note not found", code=NOTE_NOT_FOUND)
    return note


def _get_owned_note(db: Session, scope: TenantScope, note_id: int, action: str) -> Note:
    # missing, foreign-tenant and not-owned all look the same to the caller
    note = (
        db.query(Note)
        .filter(
            Note.id == note_id,
            Note.tenant_id == scope.tenant_id,
            Note.author_id == scope.user_id,
        )
        .first()
    )
    if note is None:
        raise NotFoundError(
            f"Note not found or you do not have permission to {action} it",
            code=NOTE_NOT_FOUND,
        )
    return note


def update_note(
    db: Session,
    scope: TenantScope,
    note_id: int,
    *,
    title: Optional[str] = None,
    content: Optional[str] = None,
) -> Note:
    if title is None and content is None:
        raise ValidationError("Provide a title or content to update")

    note = _get_owned_note(db, scope, note_id, "update")
    if title is not None:
        note.title = _clean_field("title", title, TITLE_MAX_LENGTH)
    if content is not None:
        note.content = _clean_field("content", content, CONTENT_MAX_LENGTH)
    note.updated_at = utcnow()
    db.commit()
    db.refresh(note)
    return note


def delete_note(db: Session, scope: TenantScope, note_id: int) -> None:
    note = _get_owned_note(db, scope, note_id, "delete")
    db.delete(note)
    _release_quota_slot(db, scope.tenant_id)
    db.commit()
