"""
Services Module

Business logic behind the HTTP routes:
- auth: registration, login, bearer token resolution
- attachments: ownership-checked storage of note attachments
- notes: owner-scoped note CRUD
- repository / ownership: persistence helpers and the User -> Note chain checks
"""

from .auth import Authenticator, AuthSession, UserIdentity
from .attachments import (
    AttachmentStore,
    AttachmentMetadata,
    AttachmentDownload,
    UploadedFile,
)
from .notes import NoteService, NoteView

__all__ = [
    "Authenticator",
    "AuthSession",
    "UserIdentity",
    "AttachmentStore",
    "AttachmentMetadata",
    "AttachmentDownload",
    "UploadedFile",
    "NoteService",
    "NoteView",
]
