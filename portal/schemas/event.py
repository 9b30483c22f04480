"""
Event Request/Response Models
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import date, datetime
from enum import Enum


class EventLevel(str, Enum):
    DISTRICT = "district"
    STATE = "state"
    NATIONAL = "national"
    INTERNATIONAL = "international"


# Levels open to members from any state
JURISDICTION_FREE_LEVELS = (EventLevel.NATIONAL, EventLevel.INTERNATIONAL)


class CreateEventRequest(BaseModel):
    """Request to create an event"""
    name: str = Field(..., min_length=5, max_length=200)
    description: Optional[str] = None
    venue: str = Field(..., min_length=5, max_length=255)
    event_date: date
    reg_start_date: datetime
    reg_end_date: datetime
    state_id: int = Field(..., ge=1)
    district_id: int = Field(0, ge=0, description="0 for no district restriction")
    level: EventLevel = EventLevel.STATE
    fee: int = Field(0, ge=0, description="Fee in rupees")

    @model_validator(mode="after")
    def check_window(self):
        if self.reg_end_date < self.reg_start_date:
            raise ValueError("Registration must close after it opens")
        return self


class EventResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    venue: str
    event_date: date
    reg_start_date: datetime
    reg_end_date: datetime
    state_id: int
    district_id: int
    level: EventLevel
    fee: int
    status: str

    class Config:
        from_attributes = True


class EventRegisterRequest(BaseModel):
    member_id: Optional[int] = Field(None, description="Defaults to the caller")
    suit_size: Optional[str] = Field(None, max_length=10)


class EventRegisterResponse(BaseModel):
    status: str
    message: str
    registration_id: int
