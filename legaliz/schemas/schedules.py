from typing import Optional
from pydantic import BaseModel

from ..models.models import ScheduleStatus


class EventBase(BaseModel):
    event_title: str
    # Dates stay strings here; the service accepts "YYYY-MM-DD" as well as full datetimes
    start_date: str
    end_date: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None


class EventCreate(EventBase):
    case_id: int


class EventUpdate(EventBase):
    status: ScheduleStatus
