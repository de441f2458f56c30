"""
Event-related Pydantic schemas
"""

from datetime import date as Date
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from app.schemas.common import blank_to_none

class EventFields(BaseModel):
    """Every mutable event field; the key is derived and never part of input"""
    name: str = Field(..., min_length=1, max_length=255)
    date: Date
    time: Optional[str] = Field(None, max_length=20)
    place: Optional[str] = Field(None, max_length=255)
    is_race: bool = Field(..., alias="isRace")
    age_limit: Optional[str] = Field(None, alias="ageLimit", max_length=20)
    max_child_age: Optional[int] = Field(None, alias="maxChildAge", ge=0)
    medical_required: bool = Field(False, alias="medicalRequired")
    team_event: bool = Field(False, alias="teamEvent")
    gender_restriction: Optional[str] = Field(None, alias="genderRestriction", max_length=50)
    description: Optional[str] = None

    class Config:
        populate_by_name = True

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator(
        "time", "place", "age_limit", "max_child_age",
        "gender_restriction", "description", mode="before"
    )
    @classmethod
    def empty_as_none(cls, value):
        return blank_to_none(value)

class EventCreate(EventFields):
    """Schema for creating an event"""
    id: Optional[str] = Field(None, max_length=64)

    @field_validator("id", mode="before")
    @classmethod
    def empty_id_as_none(cls, value):
        return blank_to_none(value)

class EventUpdate(EventFields):
    """Schema for replacing an event's fields"""

class EventSummary(BaseModel):
    """Event list entry"""
    id: str
    key: str
    name: str
    date: Date
    time: Optional[str] = None
    place: Optional[str] = None
    is_race: bool = Field(alias="isRace")
    logo_url: Optional[str] = Field(None, alias="logoUrl")

    class Config:
        from_attributes = True
        populate_by_name = True

class EventDetail(EventSummary):
    """Full event with derived logo information"""
    age_limit: Optional[str] = Field(None, alias="ageLimit")
    max_child_age: Optional[int] = Field(None, alias="maxChildAge")
    medical_required: bool = Field(False, alias="medicalRequired")
    team_event: bool = Field(False, alias="teamEvent")
    gender_restriction: Optional[str] = Field(None, alias="genderRestriction")
    description: Optional[str] = None
    logo_present: bool = Field(False, alias="logoPresent")
