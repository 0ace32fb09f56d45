"""Pydantic schemas for task request/response validation."""

from pydantic import Field
from datetime import date, datetime
from typing import Optional, Literal

from app.schemas.base import CamelModel

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

Priority = Literal["low", "medium", "high"]
Status = Literal["pending", "in_progress", "completed", "cancelled"]


class TaskCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    priority: Priority = "medium"
    status: Status = "pending"


class TaskUpdate(CamelModel):
    """Schema for updating an existing task."""
    
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    priority: Optional[Priority] = None
    status: Optional[Status] = None


class TaskResponse(CamelModel):
    """Schema for task responses from API."""
    
    id: int
    user_id: int
    title: str
    description: Optional[str]
    scheduled_date: Optional[date]
    scheduled_time: Optional[str]
    priority: str
    status: str
    created_by_agent: bool
    created_at: datetime
    updated_at: datetime
