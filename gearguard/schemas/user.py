from pydantic import BaseModel, EmailStr, Field
from uuid import UUID
from datetime import datetime
from typing import Optional

from gearguard.models.user import UserRole


class UserBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    email: EmailStr


class UserRegister(UserBase):
    password: str = Field(..., min_length=8)
    role: UserRole = UserRole.USER
    team_id: Optional[UUID] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserSummary(BaseModel):
    id: UUID
    name: str
    email: str

    class Config:
        from_attributes = True


class UserResponse(UserBase):
    id: UUID
    role: UserRole
    team_id: Optional[UUID] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
