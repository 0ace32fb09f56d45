from pydantic import EmailStr, Field
from datetime import datetime
from typing import Optional, Literal

from app.schemas.base import CamelModel

class UserCreate(CamelModel):
    name: str = Field(min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)  # limite bcrypt

class LoginRequest(CamelModel):
    email: EmailStr
    password: str

class UserSummary(CamelModel):
    id: int
    name: str
    email: str
    role: str

class UserResponse(UserSummary):
    profile_photo: Optional[str]
    cover_photo: Optional[str]
    bio: Optional[str]
    created_at: datetime

class UserEnvelope(CamelModel):
    user: UserResponse

class TokenResponse(CamelModel):
    token: str
    user: UserSummary

class UserUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6, max_length=72)
    profile_photo: Optional[str] = None
    cover_photo: Optional[str] = None
    bio: Optional[str] = Field(default=None, max_length=100)

class AdminUserUpdate(UserUpdate):
    role: Optional[Literal["free", "pro", "admin"]] = None
