"""
Pydantic schemas for User model.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr

from app.schemas.common import CamelModel


class User(CamelModel):
    """Schema for user response."""

    id: int
    email: str
    full_name: Optional[str] = None
    is_admin: bool = False
    is_active: bool = True
    company_id: Optional[str] = None
    created_at: Optional[datetime] = None


class Token(BaseModel):
    """Schema for JWT token."""

    access_token: str
    expires_in: int
    token_type: str


class CheckEmailRequest(CamelModel):
    email: EmailStr


class CheckEmailResponse(CamelModel):
    exists: bool
    user_id: Optional[int] = None
