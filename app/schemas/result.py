"""
Race result Pydantic schemas
"""

from typing import List, Optional
from pydantic import AliasChoices, BaseModel, Field, field_validator

from app.schemas.common import blank_to_none

class ResultItem(BaseModel):
    """One finisher inside a recorded heat"""
    participant_ref: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("participantRef", "participantId", "id"),
    )
    time: str = Field(..., min_length=1, max_length=50)

    class Config:
        populate_by_name = True

    @field_validator("participant_ref", mode="before")
    @classmethod
    def ref_as_text(cls, value):
        # legacy clients send numeric ids
        if isinstance(value, int):
            return str(value)
        return value

class ResultBatch(BaseModel):
    """A batch of results for one heat"""
    occurrence_date: Optional[str] = Field(
        None, validation_alias=AliasChoices("occurrenceDate", "date")
    )
    heat_id: Optional[int] = Field(
        None, ge=1, validation_alias=AliasChoices("heatId", "raceId")
    )
    items: List[ResultItem] = Field(
        ..., validation_alias=AliasChoices("items", "results")
    )

    class Config:
        populate_by_name = True

    @field_validator("occurrence_date", "heat_id", mode="before")
    @classmethod
    def empty_as_none(cls, value):
        return blank_to_none(value)

class ResultResponse(BaseModel):
    """Result response schema"""
    id: int
    event_key: str = Field(alias="eventKey")
    occurrence_date: str = Field(alias="occurrenceDate")
    heat_id: int = Field(alias="heatId")
    participant_ref: str = Field(alias="participantRef")
    time: str

    class Config:
        populate_by_name = True
