from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional

from ..models.models import Role


class RegisterRequest(BaseModel):
    first_name: str
    last_name: Optional[str] = ""
    email: EmailStr
    password: str = Field(min_length=8)


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    role: str


class MeResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: EmailStr
    role: str


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    token: str
    password: str = Field(min_length=8)


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=8)

    @field_validator('first_name', 'last_name', 'password', mode='before')
    @classmethod
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class UserCreate(BaseModel):
    first_name: str
    last_name: Optional[str] = ""
    email: EmailStr
    password: str = Field(min_length=8)
    role: Role = Role.STAFF


class UserUpdate(ProfileUpdate):
    role: Optional[Role] = None
