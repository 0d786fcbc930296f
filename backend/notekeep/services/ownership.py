# notekeep/services/ownership.py
"""
Ownership checks along the User -> Note -> FileAttachment chain.
"""
import logging

from notekeep.core.result import ErrorCode, Result
from notekeep.models.note import Note
from notekeep.models.user import User
from notekeep.services import repository

logger = logging.getLogger("uvicorn.error")

NOTE_DENIED_MESSAGE = "Note not found or access denied"


async def resolve_user(username: str) -> Result[User]:
    user = await repository.find_user_by_username(username)
    if user is None:
        return Result.failure(ErrorCode.USER_NOT_FOUND, "User not found")
    return Result.success(user)


async def resolve_owned_note(note_id, username: str) -> Result[Note]:
    """
    Load a note only if it belongs to `username`.

    A note that does not exist and a note owned by somebody else give the same
    NOTE_NOT_FOUND error so callers cannot probe for other users' notes.
    """
    user_result = await resolve_user(username)
    if not user_result.ok:
        return Result.failure(ErrorCode.USER_NOT_FOUND, NOTE_DENIED_MESSAGE)
    note = await repository.find_note_by_id_and_user_id(note_id, user_result.value.id)
    if note is None:
        logger.info("[notes] note=%s not visible to username=%s", note_id, username)
        return Result.failure(ErrorCode.NOTE_NOT_FOUND, NOTE_DENIED_MESSAGE)
    return Result.success(note)
