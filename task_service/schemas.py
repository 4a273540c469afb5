from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Optional


class TaskCreate(BaseModel):
    """Schema for creating a task"""
    title: str = Field(..., min_length=1, description="Task title")
    description: Optional[str] = Field("", description="Task description")

    @field_validator('title')
    @classmethod
    def title_must_not_be_empty(cls, v: str) -> str:
        """Validate title is not just whitespace"""
        if not v.strip():
            raise ValueError('Title cannot be empty or just whitespace')
        return v

    @field_validator('description')
    @classmethod
    def description_default_empty(cls, v: Optional[str]) -> str:
        """Treat an explicit null description as absent"""
        return v if v is not None else ""


class Task(BaseModel):
    """Schema for returning a task"""
    id: str
    title: str
    description: str
    completed: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ErrorResponse(BaseModel):
    """Schema for every error body"""
    error: str
