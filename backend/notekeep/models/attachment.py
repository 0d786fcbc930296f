# notekeep/models/attachment.py
import uuid
from tortoise import fields, models

class FileAttachment(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    note = fields.ForeignKeyField(
        "models.Note",
        related_name="attachments",
        on_delete=fields.CASCADE
    )

    file_name = fields.CharField(max_length=255)  # Original name as uploaded (basename only)
    file_type = fields.CharField(max_length=127)  # Declared MIME type
    file_size = fields.BigIntField()              # Bytes

    # Generated storage name (uuid + extension); never derived from user input
    file_path = fields.CharField(max_length=64, unique=True)

    uploaded_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "file_attachments"
