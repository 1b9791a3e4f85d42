from pydantic import BaseModel, Field
from typing import Optional, List
from uuid import UUID
from datetime import date, datetime

from app.modules.events.models import EventStatus


class EventCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    event_date: date
    status: EventStatus = EventStatus.ACTIVE


class EventOut(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    event_date: date
    status: EventStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class EventList(BaseModel):
    events: List[EventOut]
    total: int
