# notekeep/api/v1/deps.py
import datetime as dt

from fastapi import Depends, Header, HTTPException, Request, status

from notekeep.config import settings
from notekeep.core.result import (
    CONFLICT_CODES,
    TOKEN_CODES,
    VALIDATION_CODES,
    ErrorCode,
    ServiceError,
)
from notekeep.core.security import token_codec
from notekeep.core.storage import LocalFileStorage
from notekeep.models.user import User
from notekeep.services.attachments import AttachmentStore
from notekeep.services.auth import Authenticator
from notekeep.services.notes import NoteService


def get_authenticator() -> Authenticator:
    """FastAPI dependency providing the Authenticator built from settings."""
    return Authenticator(token_codec, dt.timedelta(minutes=settings.access_token_expire_minutes))

def get_attachment_store() -> AttachmentStore:
    """FastAPI dependency providing the AttachmentStore rooted at UPLOAD_DIR."""
    return AttachmentStore(
        LocalFileStorage(settings.upload_dir),
        max_file_size=settings.max_file_size,
        allowed_types=settings.allowed_file_types,
    )

def get_note_service(attachments: AttachmentStore = Depends(get_attachment_store)) -> NoteService:
    return NoteService(attachments)


def raise_for_error(error: ServiceError) -> None:
    """
    Translate a service failure into an HTTPException.

    Status mapping:
        - not found / not owned -> 404 with the public code NOT_FOUND
          (which of the two applied is never revealed)
        - credential / token failures -> 401
        - upload validation -> 400
        - duplicate registration -> 409
        - storage failures -> 500 (generic message, no paths)
    """
    if error.is_denial:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail={"code": "NOT_FOUND", "message": error.message})
    if error.code in TOKEN_CODES:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=error.to_dict())
    if error.code in VALIDATION_CODES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.to_dict())
    if error.code in CONFLICT_CODES:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=error.to_dict())
    if error.code == ErrorCode.STORAGE_FAILURE:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error.to_dict())
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.to_dict())


async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
    auth: Authenticator = Depends(get_authenticator),
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    This dependency extracts and validates the bearer token from either:
    1. Authorization header (Bearer token) - preferred method
    2. HttpOnly cookie (accessToken) - fallback method

    The resolved user is handed to the route explicitly; routes pass the
    username on to the services.

    Raises:
        HTTPException (401): If no token is provided (AUTH_REQUIRED)
        HTTPException (401): If token is invalid, expired, or names no user (AUTH_INVALID_TOKEN)
    """
    token = None
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    # 2) Secondly HttpOnly Cookie: accessToken
    if not token:
        token = request.cookies.get("accessToken")

    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_REQUIRED")

    result = await auth.current_user(token)
    if not result.ok:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_INVALID_TOKEN")
    return result.value
