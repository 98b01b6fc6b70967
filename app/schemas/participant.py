"""
Pydantic schemas for quiz participants.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.common import CamelModel


class ParticipantBase(CamelModel):
    """Contact fields; all optional free text."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[str] = None
    address: Optional[str] = None
    postal_code: Optional[str] = None


class ParticipantUpdate(ParticipantBase):
    """Schema for creating or editing a participant."""

    allowed_attempts: Optional[int] = Field(default=None, ge=1)


class ParticipantImportItem(ParticipantBase):
    email: Optional[str] = None
    allowed_attempts: Optional[int] = Field(default=None, ge=1)


class Participant(ParticipantBase):
    """Schema for participant response."""

    email: str
    allowed_attempts: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ImportParticipantsRequest(CamelModel):
    """Either structured rows or CSV text (``email,firstName,lastName,phone,birthDate,address,postalCode``)."""

    participants: Optional[List[ParticipantImportItem]] = None
    csv: Optional[str] = None
