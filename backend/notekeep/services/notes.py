# notekeep/services/notes.py
"""
Note service: owner-scoped create/read/update/delete of notes.
"""
import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from tortoise.transactions import in_transaction

from notekeep.core.result import Result
from notekeep.models.note import Note
from notekeep.services import repository
from notekeep.services.attachments import AttachmentMetadata, AttachmentStore
from notekeep.services.ownership import resolve_owned_note, resolve_user

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class NoteView:
    """A note as returned to its owner, including attachment metadata."""
    id: str
    title: str
    content: Optional[str]
    created_at: Optional[dt.datetime]
    updated_at: Optional[dt.datetime]
    attachments: List[AttachmentMetadata] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "fileAttachments": [a.to_dict() for a in self.attachments],
        }


async def _view(note: Note) -> NoteView:
    rows = await repository.find_attachments_by_note_id(note.id)
    return NoteView(
        id=str(note.id),
        title=note.title,
        content=note.content,
        created_at=note.created_at,
        updated_at=note.updated_at,
        attachments=[AttachmentMetadata.from_model(a) for a in rows],
    )


class NoteService:
    """
    Args:
        attachments: AttachmentStore used to remove stored bytes on note deletion
    """

    def __init__(self, attachments: AttachmentStore):
        self.attachments = attachments

    async def create(self, username: str, title: str, content: Optional[str] = None) -> Result[NoteView]:
        user_result = await resolve_user(username)
        if not user_result.ok:
            return Result.from_error(user_result.error)
        note = await repository.save_note(Note(user=user_result.value, title=title, content=content))
        return Result.success(await _view(note))

    async def list(self, username: str) -> Result[List[NoteView]]:
        """All notes of `username`, newest first."""
        user_result = await resolve_user(username)
        if not user_result.ok:
            return Result.from_error(user_result.error)
        notes = await repository.find_notes_by_user_id(user_result.value.id)
        return Result.success([await _view(n) for n in notes])

    async def get(self, note_id, username: str) -> Result[NoteView]:
        note_result = await resolve_owned_note(note_id, username)
        if not note_result.ok:
            return Result.from_error(note_result.error)
        return Result.success(await _view(note_result.value))

    async def update(self, note_id, username: str, title: str, content: Optional[str] = None) -> Result[NoteView]:
        note_result = await resolve_owned_note(note_id, username)
        if not note_result.ok:
            return Result.from_error(note_result.error)
        note = note_result.value
        note.title = title
        note.content = content
        await repository.save_note(note)
        return Result.success(await _view(note))

    async def delete(self, note_id, username: str) -> Result[None]:
        """
        Delete an owned note. Attachment bytes are removed first; the attachment
        rows and the note row only after that succeeded.
        """
        note_result = await resolve_owned_note(note_id, username)
        if not note_result.ok:
            return Result.from_error(note_result.error)
        note = note_result.value

        purged = await self.attachments.purge_note(note)
        if not purged.ok:
            return Result.from_error(purged.error)
        async with in_transaction():
            await repository.delete_attachments_by_note_id(note.id)
            await repository.delete_note(note)
        logger.info("[notes] deleted note=%s", note.id)
        return Result.success(None)
