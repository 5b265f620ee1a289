from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from notes_saas.core.database import get_db
from notes_saas.core.responses import ok
from notes_saas.deps import ANY_ROLE, require_role
from notes_saas.schemas.notes import NoteCreatePayload, NoteListRead, NoteRead, NoteUpdatePayload, Pagination
from notes_saas.services import notes as notes_service
from notes_saas.services.tenant_guard import TenantScope

router = APIRouter(prefix="/notes", tags=["notes"])


def _note_payload(note) -> dict:
    return NoteRead.model_validate(note).model_dump(mode="json")


@router.get("")
def list_notes(
    page: int = Query(1),
    limit: int = Query(notes_service.DEFAULT_PAGE_SIZE),
    sort: Optional[str] = Query(None),
    scope: TenantScope = Depends(require_role(ANY_ROLE)),
    db: Session = Depends(get_db),
):
    result = notes_service.list_notes(db, scope, page=page, limit=limit, sort=sort)
    body = NoteListRead(
        notes=[NoteRead.model_validate(note) for note in result.notes],
        pagination=Pagination(
            current_page=result.current_page,
            total_pages=result.total_pages,
            total_count=result.total_count,
            has_more=result.has_more,
        ),
    )
    return ok("Notes retrieved successfully", body.model_dump(mode="json"))


@router.post("")
def create_note(
    payload: NoteCreatePayload,
    scope: TenantScope = Depends(require_role(ANY_ROLE)),
    db: Session = Depends(get_db),
):
    note = notes_service.create_note(db, scope, title=payload.title, content=payload.content)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=ok("Note created successfully", {"note": _note_payload(note)}),
    )


@router.get("/{note_id}")
def get_note(
    note_id: str,
    scope: TenantScope = Depends(require_role(ANY_ROLE)),
    db: Session = Depends(get_db),
):
    note = notes_service.get_note(db, scope, notes_service.parse_note_id(note_id))
    return ok("Note retrieved successfully", {"note": _note_payload(note)})


@router.put("/{note_id}")
def update_note(
    note_id: str,
    payload: NoteUpdatePayload,
    scope: TenantScope = Depends(require_role(ANY_ROLE)),
    db: Session = Depends(get_db),
):
    note = notes_service.update_note(
        db,
        scope,
        notes_service.parse_note_id(note_id),
        title=payload.title,
        content=payload.content,
    )
    return ok("Note updated successfully", {"note": _note_payload(note)})


@router.delete("/{note_id}")
def delete_note(
    note_id: str,
    scope: TenantScope = Depends(require_role(ANY_ROLE)),
    db: Session = Depends(get_db),
):
    notes_service.delete_note(db, scope, notes_service.parse_note_id(note_id))
    return ok("Note deleted successfully")
