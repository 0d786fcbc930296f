# notekeep/api/v1/routers/files.py
import os
import uuid
from typing import BinaryIO, Iterator, List
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import StreamingResponse

from notekeep.api.v1.deps import get_attachment_store, get_current_user, raise_for_error
from notekeep.models.user import User
from notekeep.services.attachments import AttachmentStore, UploadedFile

router = APIRouter(prefix="/files", tags=["files"])

DOWNLOAD_CHUNK_SIZE = 64 * 1024


def _to_uploaded(upload: UploadFile) -> UploadedFile:
    # Measure the spooled body instead of trusting client headers
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(0)
    return UploadedFile(file_name=upload.filename, content_type=upload.content_type, size=size, stream=upload.file)

def _iter_stream(stream: BinaryIO) -> Iterator[bytes]:
    """Yield the stream in chunks; the handle is closed however iteration ends."""
    with stream:
        while True:
            chunk = stream.read(DOWNLOAD_CHUNK_SIZE)
            if not chunk:
                break
            yield chunk

def _content_disposition(file_name: str) -> str:
    quoted = quote(file_name)
    if quoted != file_name:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{file_name}"'


@router.post("/upload/{note_id}", status_code=status.HTTP_201_CREATED)
async def upload_files(
    note_id: uuid.UUID,
    files: List[UploadFile] = File(...),
    user: User = Depends(get_current_user),
    store: AttachmentStore = Depends(get_attachment_store),
):
    """
    Upload one or more files (multipart field "files") to a note.

    Empty parts are skipped. The batch is all-or-nothing: if any non-empty file
    is rejected or cannot be stored, nothing from this request is kept.

    Returns:
        dict: success flag and the metadata of each stored file, in upload order

    Raises:
        HTTPException (400): FILE_EMPTY / FILE_TOO_LARGE / FILE_TYPE_NOT_ALLOWED / NO_VALID_FILES
        HTTPException (404): If the note does not exist or belongs to another user
        HTTPException (500): STORAGE_FAILURE
    """
    result = await store.store_many([_to_uploaded(f) for f in files], note_id, user.username)
    if not result.ok:
        raise_for_error(result.error)
    return {"success": True, "data": [m.to_dict() for m in result.value]}

@router.get("/{file_id}")
async def download_file(
    file_id: uuid.UUID,
    user: User = Depends(get_current_user),
    store: AttachmentStore = Depends(get_attachment_store),
):
    """
    Download an attachment under its original file name.

    Raises:
        HTTPException (404): If the file does not exist, its bytes are missing,
            or it belongs to another user (indistinguishable)
    """
    result = await store.retrieve(file_id, user.username)
    if not result.ok:
        raise_for_error(result.error)
    download = result.value
    return StreamingResponse(
        _iter_stream(download.stream),
        media_type="application/octet-stream",
        headers={
            "Content-Disposition": _content_disposition(download.metadata.file_name),
        },
    )

@router.delete("/{file_id}")
async def delete_file(
    file_id: uuid.UUID,
    user: User = Depends(get_current_user),
    store: AttachmentStore = Depends(get_attachment_store),
):
    result = await store.delete(file_id, user.username)
    if not result.ok:
        raise_for_error(result.error)
    return {"success": True, "data": {"id": str(file_id), "deleted": True, "message": "File deleted successfully"}}
