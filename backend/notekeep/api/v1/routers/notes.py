# notekeep/api/v1/routers/notes.py
import uuid

from fastapi import APIRouter, Depends, status

from notekeep.api.v1.deps import get_current_user, get_note_service, raise_for_error
from notekeep.models.user import User
from notekeep.schemas.note import NoteIn
from notekeep.services.notes import NoteService

router = APIRouter(prefix="/notes", tags=["notes"])


@router.get("", response_model=dict)
async def list_notes(user: User = Depends(get_current_user), notes: NoteService = Depends(get_note_service)):
    """
    List the authenticated user's notes (newest first), each with its attachment metadata.
    """
    result = await notes.list(user.username)
    if not result.ok:
        raise_for_error(result.error)
    return {"success": True, "data": {"items": [n.to_dict() for n in result.value]}}

@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_note(body: NoteIn, user: User = Depends(get_current_user), notes: NoteService = Depends(get_note_service)):
    result = await notes.create(user.username, body.title, body.content)
    if not result.ok:
        raise_for_error(result.error)
    return {"success": True, "data": result.value.to_dict()}

@router.get("/{note_id}", response_model=dict)
async def get_note(note_id: uuid.UUID, user: User = Depends(get_current_user), notes: NoteService = Depends(get_note_service)):
    """
    Get one note.

    Raises:
        HTTPException (404): If the note does not exist or belongs to another user
    """
    result = await notes.get(note_id, user.username)
    if not result.ok:
        raise_for_error(result.error)
    return {"success": True, "data": result.value.to_dict()}

@router.put("/{note_id}", response_model=dict)
async def update_note(
    note_id: uuid.UUID,
    body: NoteIn,
    user: User = Depends(get_current_user),
    notes: NoteService = Depends(get_note_service),
):
    result = await notes.update(note_id, user.username, body.title, body.content)
    if not result.ok:
        raise_for_error(result.error)
    return {"success": True, "data": result.value.to_dict()}

@router.delete("/{note_id}", response_model=dict)
async def delete_note(note_id: uuid.UUID, user: User = Depends(get_current_user), notes: NoteService = Depends(get_note_service)):
    """
    Delete a note together with its attachments (stored bytes and metadata).
    """
    result = await notes.delete(note_id, user.username)
    if not result.ok:
        raise_for_error(result.error)
    return {"success": True, "data": {"id": str(note_id), "deleted": True}}
