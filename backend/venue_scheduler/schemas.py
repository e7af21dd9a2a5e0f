# backend/venue_scheduler/schemas.py
from __future__ import annotations
from typing import Annotated, Optional
import datetime as dt

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints
from pydantic.alias_generators import to_camel


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# surrounding whitespace is dropped before the length check, so "   " is rejected
EventName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Location = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


class EventIn(_Camel):
    """Request schema for event creation and full replacement (PUT)."""
    name: EventName
    date: str            # YYYY-MM-DD, checked by the scheduler
    start_time: str      # HH:mm
    end_time: str
    location: Location
    description: Optional[str] = None
    participants: list[EmailStr] = Field(default_factory=list)


class EventUpdate(_Camel):
    """Partial update (PATCH); omitted fields keep their stored values."""
    name: Optional[EventName] = None
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    location: Optional[Location] = None
    description: Optional[str] = None
    participants: Optional[list[EmailStr]] = None


class ParticipantsIn(_Camel):
    participants: list[EmailStr] = Field(min_length=1, description="Participant emails")


class ParticipantOut(_Camel):
    id: int
    email: str
    event_id: int
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class EventOut(_Camel):
    """Response schema for an event row with its live participants."""
    id: int
    name: str
    date: dt.date
    start_time: str
    end_time: str
    location: str
    description: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    participants: list[ParticipantOut] = Field(default_factory=list)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PageMeta(_Camel):
    page: int
    limit: int
    total: int


class EventPage(_Camel):
    items: list[EventOut]
    meta: PageMeta
