# notekeep/models/note.py
"""
Database model for notes.
A note is a titled piece of free text owned by exactly one user; it may carry
file attachments.
"""
import uuid
from tortoise import fields, models

class Note(models.Model):
    """
    Note database model.

    Relationships:
    - Belongs to a User (many-to-one)
    - Has many FileAttachments (one-to-many, via related_name="attachments")

    A note is only visible or mutable through its owner's identity; every
    lookup goes through (id, user_id).
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.ForeignKeyField(
        "models.User",
        related_name="notes",
        on_delete=fields.CASCADE
    )  # Owner; cascade delete (if user is deleted, notes are deleted)
    title = fields.CharField(max_length=200)
    content = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "notes"
