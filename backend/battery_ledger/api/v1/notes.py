"""
Notes API Routes - Sticky notes and checklists
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from battery_ledger.core.database import get_db
from battery_ledger.core.messages import get_language, get_message
from battery_ledger.schemas import (
    NoteCreate, NoteUpdate, NoteResponse, ChecklistItemResponse, MessageResponse
)
from battery_ledger.services.notes_service import NoteService

router = APIRouter(prefix="/notes", tags=["Notes"])


@router.get("", response_model=List[NoteResponse])
async def list_notes(
    day: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db)
):
    """Notes for a day (today by default), newest first"""
    return NoteService(db).get_by_date(day or date.today())


@router.post("", response_model=NoteResponse, status_code=201)
async def create_note(
    note_data: NoteCreate,
    db: Session = Depends(get_db)
):
    """Create a note or checklist"""
    note_service = NoteService(db)
    note = note_service.create(note_data)
    db.commit()
    return note_service.get_by_id(note.id)


@router.put("/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: int,
    note_data: NoteUpdate,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Update a note; checklist items are replaced when given"""
    note_service = NoteService(db)
    if not note_service.update(note_id, note_data):
        raise HTTPException(status_code=404, detail=get_message("note_not_found", lang))
    db.commit()
    return note_service.get_by_id(note_id)


@router.post("/checklist-items/{item_id}/toggle", response_model=ChecklistItemResponse)
async def toggle_checklist_item(
    item_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Flip a checklist item between done and not done"""
    item = NoteService(db).toggle_checklist_item(item_id)
    if not item:
        raise HTTPException(status_code=404, detail=get_message("checklist_item_not_found", lang))
    db.commit()
    return item


@router.delete("/{note_id}", response_model=MessageResponse)
async def delete_note(
    note_id: int,
    db: Session = Depends(get_db),
    lang: str = Depends(get_language)
):
    """Delete a note with its checklist"""
    if not NoteService(db).delete(note_id):
        raise HTTPException(status_code=404, detail=get_message("note_not_found", lang))
    db.commit()
    return {"message": get_message("deleted", lang)}
