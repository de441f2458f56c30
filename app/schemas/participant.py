"""
Participant-related Pydantic schemas
"""

from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.common import blank_to_none

class ParticipantCreate(BaseModel):
    """Schema for registering a participant"""
    name: str = Field(..., min_length=1, max_length=255)
    surname: str = Field(..., min_length=1, max_length=255)
    gender: Optional[str] = Field(None, max_length=20)
    age: int = Field(..., ge=1, le=150)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    race_role: Optional[str] = Field(None, alias="raceRole", max_length=100)

    class Config:
        populate_by_name = True

    @field_validator("name", "surname", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("gender", "email", "phone", "race_role", mode="before")
    @classmethod
    def empty_as_none(cls, value):
        return blank_to_none(value)

class ParticipantUpdate(ParticipantCreate):
    """Schema for updating a participant (full replace)"""

class ParticipantResponse(BaseModel):
    """Participant response schema"""
    id: str
    event_key: str = Field(alias="eventKey")
    name: str
    surname: str
    gender: Optional[str] = None
    age: int
    email: Optional[str] = None
    phone: Optional[str] = None
    race_role: Optional[str] = Field(None, alias="raceRole")

    class Config:
        from_attributes = True
        populate_by_name = True
