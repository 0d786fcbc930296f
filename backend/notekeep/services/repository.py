# notekeep/services/repository.py
"""
Persistence helpers used by the services.

Thin async wrappers around the Tortoise models so the services read like the
operations they perform. Identifiers that are not valid UUIDs simply match
nothing.
"""
import uuid
from typing import List, Optional

from notekeep.models.user import User
from notekeep.models.note import Note
from notekeep.models.attachment import FileAttachment


def _as_uuid(value) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


# ----- users -----
async def find_user_by_username(username: str) -> Optional[User]:
    return await User.get_or_none(username=username)

async def find_user_by_email(email: str) -> Optional[User]:
    return await User.get_or_none(email=email)

async def exists_by_username(username: str) -> bool:
    return await User.filter(username=username).exists()

async def exists_by_email(email: str) -> bool:
    return await User.filter(email=email).exists()

async def save_user(user: User) -> User:
    await user.save()
    return user


# ----- notes -----
async def find_note_by_id_and_user_id(note_id, user_id) -> Optional[Note]:
    nid = _as_uuid(note_id)
    if nid is None:
        return None
    return await Note.get_or_none(id=nid, user_id=user_id)

async def find_notes_by_user_id(user_id) -> List[Note]:
    return await Note.filter(user_id=user_id).order_by("-created_at")

async def save_note(note: Note) -> Note:
    await note.save()
    return note

async def delete_note(note: Note) -> None:
    await note.delete()


# ----- attachments -----
async def find_attachment_by_id(attachment_id) -> Optional[FileAttachment]:
    """Fetch an attachment together with its note (needed for the ownership check)."""
    aid = _as_uuid(attachment_id)
    if aid is None:
        return None
    return await FileAttachment.get_or_none(id=aid).prefetch_related("note")

async def find_attachments_by_note_id(note_id) -> List[FileAttachment]:
    return await FileAttachment.filter(note_id=note_id).order_by("uploaded_at")

async def save_attachment(attachment: FileAttachment) -> FileAttachment:
    await attachment.save()
    return attachment

async def delete_attachment(attachment: FileAttachment) -> None:
    await attachment.delete()

async def delete_attachments_by_note_id(note_id) -> None:
    await FileAttachment.filter(note_id=note_id).delete()
