"""API Schemas for Tasks app - Pydantic/Ninja schemas for request/response validation.

Fields are snake_case in Python and camelCase on the wire (assignedTo,
dueDate, createdAt ...), matching the stored task documents.
"""
from typing import List, Optional
from datetime import datetime
from ninja import Schema
from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

from .models import Task


class CamelSchema(Schema):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Request Schemas
# =============================================================================

class TaskCreateIn(CamelSchema):
    """
    Schema for creating a task.

    Required fields are declared optional here so that a missing field is
    reported by the service layer as a 400 with a readable message.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[datetime] = None  # ISO 8601 format
    tags: Optional[List[str]] = None
    attachments: Optional[List[str]] = None


class TaskUpdateIn(CamelSchema):
    """Schema for a partial update. Only fields sent by the client are applied."""
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[datetime] = None
    tags: Optional[List[str]] = None
    attachments: Optional[List[str]] = None


class CommentIn(CamelSchema):
    """Schema for adding a comment."""
    text: Optional[str] = None


# =============================================================================
# Response Schemas
# =============================================================================

class CommentOut(CamelSchema):
    id: str
    text: str
    user_id: str
    user_name: str
    created_at: str


class TaskOut(CamelSchema):
    id: str
    user_id: str
    title: str
    description: str
    status: str
    priority: str
    assigned_to: Optional[str] = None
    due_date: Optional[str] = None
    tags: List[str] = []
    attachments: List[str] = []
    comments: List[CommentOut] = []
    created_at: str
    updated_at: str

    @classmethod
    def from_task(cls, task: Task) -> 'TaskOut':
        return cls.model_validate(task.to_item())


class TaskStatisticsOut(CamelSchema):
    total: int
    pending: int
    in_progress: int
    completed: int
    overdue: int


class MessageOut(Schema):
    message: str


class HealthOut(Schema):
    status: str
    timestamp: str
