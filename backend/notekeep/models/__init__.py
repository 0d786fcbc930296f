# notekeep/models/__init__.py
"""
Database models module initialization.
Exports all Tortoise ORM models for convenient imports.

Models exported:
- User: User account and authentication model
- Note: Note owned by a user
- FileAttachment: Uploaded file metadata (belongs to Note)
"""
from .user import User
from .note import Note
from .attachment import FileAttachment
