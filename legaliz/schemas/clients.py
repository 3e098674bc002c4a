from typing import Optional
from pydantic import BaseModel, field_validator


class ClientBase(BaseModel):
    name: str
    email: Optional[str] = None
    contact: Optional[str] = None
    address: Optional[str] = None

    @field_validator('email', 'contact', 'address', mode='before')
    @classmethod
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class ClientCreate(ClientBase):
    user_id: Optional[int] = None


class ClientUpdate(ClientBase):
    pass
