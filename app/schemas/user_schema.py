from pydantic import BaseModel, EmailStr, Field
from enum import Enum
from datetime import datetime
from uuid import UUID


class Role(str, Enum):
    customer = "customer"
    provider = "provider"


class UserBase(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=2)
    role: Role = Role.customer


class UserCreate(UserBase):
    password: str = Field(..., min_length=8)


class UserOut(UserBase):
    id: UUID
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str
    user: UserOut
