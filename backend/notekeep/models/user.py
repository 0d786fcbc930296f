# notekeep/models/user.py
"""
Database model for users.
Represents a user account: login credentials and contact email.
"""
import uuid
from tortoise import fields, models

class User(models.Model):
    """
    User database model.

    Relationships:
    - Has many Notes (one-to-many, via related_name="notes")

    Security:
    - Password is stored as an Argon2 hash (never store plain text passwords)
    - Username and email are unique; the constraints are the source of truth
      for duplicate detection under concurrent registrations
    - id never changes once created
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique user identifier
    username = fields.CharField(
        max_length=50,
        unique=True,
        index=True
    )  # Login name (must be unique, indexed for fast lookups)
    email = fields.CharField(max_length=255, unique=True)  # Contact email (must be unique)
    password_hash = fields.CharField(max_length=255)  # Argon2 hash, never plain text
    role = fields.CharField(max_length=16, default="user")  # Role tag; only "user" is issued
    created_at = fields.DatetimeField(auto_now_add=True)  # Timestamp when account was created

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"  # Database table name
