# notekeep/services/attachments.py
"""
File attachment service.

Validates, stores, retrieves and deletes the binary content attached to notes.
Every operation first walks the ownership chain User -> Note -> FileAttachment
for the requesting username.

Attachment lifecycle: requested -> validated -> stored -> retrievable, until
deleted (terminal).
"""
import asyncio
import datetime as dt
import functools
import io
import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import BinaryIO, Iterable, List, Optional

from tortoise.exceptions import BaseORMException

from notekeep.core.result import ErrorCode, Result, ServiceError
from notekeep.core.storage import LocalFileStorage, ObjectTooLarge
from notekeep.models.attachment import FileAttachment
from notekeep.models.note import Note
from notekeep.services import repository
from notekeep.services.ownership import resolve_owned_note, resolve_user

logger = logging.getLogger("uvicorn.error")

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MiB

ALLOWED_FILE_TYPES = (
    "application/pdf",
    "image/png",
    "image/jpeg",
    "image/gif",
    "text/plain",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)

FILE_DENIED_MESSAGE = "File not found or access denied"
STORE_FAILED_MESSAGE = "Could not store file. Please try again!"
READ_FAILED_MESSAGE = "Could not read file. Please try again!"
DELETE_FAILED_MESSAGE = "Could not delete file. Please try again!"

_EXTENSION_RE = re.compile(r"^\.[a-z0-9]{1,10}$")


def clean_file_name(name: Optional[str]) -> str:
    """Keep only the last path component of a client-supplied file name."""
    base = (name or "").replace("\\", "/").rsplit("/", 1)[-1]
    base = base.replace("\x00", "").strip()
    return base[:255] or "file"


def storage_name_for(declared_name: Optional[str]) -> str:
    """
    Generate a fresh storage name: a random uuid plus the original extension.
    Nothing else of the declared name survives, so it cannot steer the path.
    """
    suffix = PurePosixPath(clean_file_name(declared_name)).suffix.lower()
    if not _EXTENSION_RE.match(suffix):
        suffix = ""
    return uuid.uuid4().hex + suffix


def normalize_content_type(content_type: Optional[str]) -> str:
    # "text/plain; charset=utf-8" -> "text/plain"
    return (content_type or "").split(";", 1)[0].strip().lower()


@dataclass
class UploadedFile:
    """A file as received from the client, before validation."""
    file_name: Optional[str]
    content_type: Optional[str]
    size: int
    stream: BinaryIO

    @classmethod
    def from_bytes(cls, file_name: str, content_type: str, data: bytes) -> "UploadedFile":
        return cls(file_name=file_name, content_type=content_type, size=len(data), stream=io.BytesIO(data))


@dataclass(frozen=True)
class AttachmentMetadata:
    """Client-facing attachment description (never includes the storage name)."""
    id: str
    file_name: str
    file_type: str
    file_size: int
    uploaded_at: Optional[dt.datetime]

    @classmethod
    def from_model(cls, attachment: FileAttachment) -> "AttachmentMetadata":
        return cls(
            id=str(attachment.id),
            file_name=attachment.file_name,
            file_type=attachment.file_type,
            file_size=attachment.file_size,
            uploaded_at=attachment.uploaded_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "fileName": self.file_name,
            "fileType": self.file_type,
            "fileSize": self.file_size,
            "uploadedAt": self.uploaded_at.isoformat() if self.uploaded_at else None,
        }


@dataclass
class AttachmentDownload:
    """Metadata plus an open binary stream; the receiver must close the stream."""
    metadata: AttachmentMetadata
    stream: BinaryIO


class AttachmentStore:
    """
    Ownership-checked access to attachment bytes.

    Args:
        storage: Durable byte storage (LocalFileStorage)
        max_file_size: Upper bound for a single upload, in bytes
        allowed_types: Accepted declared MIME types
    """

    def __init__(
        self,
        storage: LocalFileStorage,
        max_file_size: int = MAX_FILE_SIZE,
        allowed_types: Iterable[str] = ALLOWED_FILE_TYPES,
    ):
        self.storage = storage
        self.max_file_size = max_file_size
        self.allowed_types = frozenset(normalize_content_type(t) for t in allowed_types)

    async def _run(self, fn, *args):
        """Run blocking storage I/O in the default thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(fn, *args))

    # -------- validation --------
    def _too_large(self) -> ServiceError:
        limit_mb = self.max_file_size / (1024 * 1024)
        return ServiceError(ErrorCode.FILE_TOO_LARGE, f"File size exceeds maximum limit of {limit_mb:g}MB")

    def validate(self, file: UploadedFile) -> Optional[ServiceError]:
        """
        Check an upload before any byte is written.

        Returns:
            None if acceptable, otherwise FILE_EMPTY / FILE_TOO_LARGE / FILE_TYPE_NOT_ALLOWED
        """
        if file.size <= 0:
            return ServiceError(ErrorCode.FILE_EMPTY, "File is empty")
        if file.size > self.max_file_size:
            return self._too_large()
        if normalize_content_type(file.content_type) not in self.allowed_types:
            return ServiceError(
                ErrorCode.FILE_TYPE_NOT_ALLOWED,
                "File type not allowed. Allowed types: PDF, images, text files, Word documents",
            )
        return None

    # -------- write path --------
    async def _discard(self, storage_name: str) -> None:
        try:
            await self._run(self.storage.delete_bytes, storage_name)
        except (OSError, ValueError):
            logger.exception("[attachments] could not discard stored object")

    async def _persist(self, file: UploadedFile, note: Note) -> Result[FileAttachment]:
        """Write the bytes, then (and only then) the metadata row."""
        storage_name = storage_name_for(file.file_name)
        try:
            written = await self._run(self.storage.write_bytes, storage_name, file.stream, self.max_file_size)
        except ObjectTooLarge:
            logger.warning("[attachments] upload for note=%s exceeded %d bytes while writing", note.id, self.max_file_size)
            return Result.from_error(self._too_large())
        except (OSError, ValueError):
            logger.exception("[attachments] byte write failed for note=%s", note.id)
            return Result.failure(ErrorCode.STORAGE_FAILURE, STORE_FAILED_MESSAGE)

        if written != file.size:
            logger.warning("[attachments] declared size %d but wrote %d bytes", file.size, written)

        attachment = FileAttachment(
            note=note,
            file_name=clean_file_name(file.file_name),
            file_type=normalize_content_type(file.content_type),
            file_size=written,
            file_path=storage_name,
        )
        try:
            await repository.save_attachment(attachment)
        except BaseORMException:
            logger.exception("[attachments] metadata write failed for note=%s", note.id)
            await self._discard(storage_name)
            return Result.failure(ErrorCode.STORAGE_FAILURE, STORE_FAILED_MESSAGE)
        return Result.success(attachment)

    async def _rollback(self, attachments: List[FileAttachment]) -> None:
        for attachment in attachments:
            await self._discard(attachment.file_path)
            try:
                await repository.delete_attachment(attachment)
            except BaseORMException:
                logger.exception("[attachments] rollback could not remove attachment=%s", attachment.id)

    async def store(self, file: UploadedFile, note_id, username: str) -> Result[AttachmentMetadata]:
        """
        Validate and store one file on a note owned by `username`.

        Returns:
            Result[AttachmentMetadata], or USER_NOT_FOUND / NOTE_NOT_FOUND /
            FILE_EMPTY / FILE_TOO_LARGE / FILE_TYPE_NOT_ALLOWED / STORAGE_FAILURE
        """
        note_result = await resolve_owned_note(note_id, username)
        if not note_result.ok:
            return Result.from_error(note_result.error)

        error = self.validate(file)
        if error is not None:
            return Result.from_error(error)

        persisted = await self._persist(file, note_result.value)
        if not persisted.ok:
            return Result.from_error(persisted.error)
        logger.info("[attachments] stored attachment=%s on note=%s", persisted.value.id, note_id)
        return Result.success(AttachmentMetadata.from_model(persisted.value))

    async def store_many(self, files: List[UploadedFile], note_id, username: str) -> Result[List[AttachmentMetadata]]:
        """
        Store several files on one note, all or nothing.

        Empty entries are skipped. Every remaining file is validated before
        anything is written; if a write fails mid-batch, the files already
        stored by this call are removed again.

        Returns:
            Result with metadata in input order, NO_VALID_FILES if nothing but
            empty entries was given, or the first failure encountered
        """
        note_result = await resolve_owned_note(note_id, username)
        if not note_result.ok:
            return Result.from_error(note_result.error)
        note = note_result.value

        candidates = [f for f in files if f is not None and f.size > 0]
        if not candidates:
            return Result.failure(ErrorCode.NO_VALID_FILES, "No valid files were uploaded")

        for file in candidates:
            error = self.validate(file)
            if error is not None:
                return Result.from_error(error)

        stored: List[FileAttachment] = []
        for file in candidates:
            persisted = await self._persist(file, note)
            if not persisted.ok:
                logger.warning("[attachments] batch upload aborted, rolling back %d file(s)", len(stored))
                await self._rollback(stored)
                return Result.from_error(persisted.error)
            stored.append(persisted.value)

        logger.info("[attachments] stored %d attachment(s) on note=%s", len(stored), note_id)
        return Result.success([AttachmentMetadata.from_model(a) for a in stored])

    # -------- read / delete path --------
    async def _authorize(self, attachment_id, username: str) -> Result[FileAttachment]:
        """
        Resolve an attachment and confirm the requester owns its note.

        Missing user, missing attachment and foreign attachment share one
        caller-visible message; the distinct code is kept for logging.
        """
        user_result = await resolve_user(username)
        if not user_result.ok:
            return Result.failure(ErrorCode.USER_NOT_FOUND, FILE_DENIED_MESSAGE)
        user = user_result.value

        attachment = await repository.find_attachment_by_id(attachment_id)
        if attachment is None:
            logger.info("[attachments] attachment=%s not found (username=%s)", attachment_id, username)
            return Result.failure(ErrorCode.FILE_NOT_FOUND, FILE_DENIED_MESSAGE)

        if str(attachment.note.user_id) != str(user.id):
            logger.warning("[attachments] access denied: attachment=%s username=%s", attachment_id, username)
            return Result.failure(ErrorCode.ACCESS_DENIED, FILE_DENIED_MESSAGE)
        return Result.success(attachment)

    async def retrieve(self, attachment_id, username: str) -> Result[AttachmentDownload]:
        """
        Open an owned attachment for reading.

        Returns:
            Result[AttachmentDownload], FILE_NOT_FOUND when the bytes are missing
            although the metadata exists, or any _authorize failure
        """
        authorized = await self._authorize(attachment_id, username)
        if not authorized.ok:
            return Result.from_error(authorized.error)
        attachment = authorized.value

        try:
            if not await self._run(self.storage.exists, attachment.file_path):
                logger.error("[attachments] metadata without stored object: attachment=%s", attachment.id)
                return Result.failure(ErrorCode.FILE_NOT_FOUND, FILE_DENIED_MESSAGE)
            stream = await self._run(self.storage.read_bytes, attachment.file_path)
        except FileNotFoundError:
            logger.error("[attachments] stored object vanished: attachment=%s", attachment.id)
            return Result.failure(ErrorCode.FILE_NOT_FOUND, FILE_DENIED_MESSAGE)
        except (OSError, ValueError):
            logger.exception("[attachments] read failed: attachment=%s", attachment.id)
            return Result.failure(ErrorCode.STORAGE_FAILURE, READ_FAILED_MESSAGE)

        return Result.success(AttachmentDownload(AttachmentMetadata.from_model(attachment), stream))

    async def get_file_name(self, attachment_id, username: str) -> Result[str]:
        """Original file name of an owned attachment."""
        authorized = await self._authorize(attachment_id, username)
        if not authorized.ok:
            return Result.from_error(authorized.error)
        return Result.success(authorized.value.file_name)

    async def delete(self, attachment_id, username: str) -> Result[None]:
        """
        Delete an owned attachment: stored object first, then the metadata row.

        An already missing object is tolerated, so a delete that failed on the
        metadata row can simply be retried. If the object cannot be removed the
        row is kept and STORAGE_FAILURE is returned.
        """
        authorized = await self._authorize(attachment_id, username)
        if not authorized.ok:
            return Result.from_error(authorized.error)
        attachment = authorized.value

        try:
            removed = await self._run(self.storage.delete_bytes, attachment.file_path)
        except (OSError, ValueError):
            logger.exception("[attachments] delete failed: attachment=%s", attachment.id)
            return Result.failure(ErrorCode.STORAGE_FAILURE, DELETE_FAILED_MESSAGE)
        if not removed:
            logger.warning("[attachments] stored object already gone: attachment=%s", attachment.id)

        try:
            await repository.delete_attachment(attachment)
        except BaseORMException:
            logger.exception("[attachments] metadata delete failed: attachment=%s", attachment.id)
            return Result.failure(ErrorCode.STORAGE_FAILURE, DELETE_FAILED_MESSAGE)
        logger.info("[attachments] deleted attachment=%s", attachment.id)
        return Result.success(None)

    # -------- note-level helpers --------
    async def list_for_note(self, note_id, username: str) -> Result[List[AttachmentMetadata]]:
        """Metadata of all attachments on an owned note, oldest first."""
        note_result = await resolve_owned_note(note_id, username)
        if not note_result.ok:
            return Result.from_error(note_result.error)
        rows = await repository.find_attachments_by_note_id(note_result.value.id)
        return Result.success([AttachmentMetadata.from_model(a) for a in rows])

    async def purge_note(self, note: Note) -> Result[None]:
        """
        Remove the stored objects of every attachment on `note`.
        The caller removes the rows and the note afterwards.
        """
        for attachment in await repository.find_attachments_by_note_id(note.id):
            try:
                await self._run(self.storage.delete_bytes, attachment.file_path)
            except (OSError, ValueError):
                logger.exception("[attachments] purge failed: attachment=%s", attachment.id)
                return Result.failure(ErrorCode.STORAGE_FAILURE, DELETE_FAILED_MESSAGE)
        return Result.success(None)
