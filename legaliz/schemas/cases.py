from typing import Optional
from pydantic import BaseModel

from ..models.models import CaseStatus


class CaseCreate(BaseModel):
    # status and progress are not accepted: new cases always start open at 0%
    title: str
    description: Optional[str] = ""
    client_id: int
    lawyer_id: int


class CaseUpdate(BaseModel):
    title: str
    description: Optional[str] = ""
    status: CaseStatus
    progress: float
    client_id: int
    lawyer_id: int
