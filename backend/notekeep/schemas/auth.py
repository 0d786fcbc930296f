# notekeep/schemas/auth.py
"""
Pydantic schemas for authentication endpoints.
Defines request models for registration and login.
"""
from pydantic import BaseModel, Field

class RegisterRequest(BaseModel):
    """
    Request model for user registration.
    """
    username: str = Field(min_length=3, max_length=50)  # Unique login name
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")  # Unique email
    password: str = Field(min_length=6, max_length=128)  # Plain text, hashed server-side

class LoginRequest(BaseModel):
    """
    Request model for user login endpoint.
    Contains credentials for authentication.
    """
    username: str = Field(min_length=1)  # User login name
    password: str = Field(min_length=1)  # User password (plain text, verified against stored hash)
