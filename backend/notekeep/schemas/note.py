# notekeep/schemas/note.py
"""
Pydantic schemas for note endpoints.
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

class NoteIn(BaseModel):
    """
    Request model for creating or updating a note.
    Title is trimmed before the length check, so a blank title is rejected.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)  # Required, at most 200 characters
    content: Optional[str] = None  # Free text
