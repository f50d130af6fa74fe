"""
Task records as they are stored in the tasks table.

Records are plain frozen dataclasses rather than Django models: persistence
goes through a TaskStore backend (see apps.tasks.store), not the ORM.
Choices still use Django's TextChoices so labels and validation read the
same way as everywhere else in the project.
"""
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone as dt_timezone
from typing import List, Optional

from django.db import models
from django.utils import timezone
from django.utils.dateparse import parse_datetime


class TaskStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    IN_PROGRESS = 'in-progress', 'In Progress'
    COMPLETED = 'completed', 'Completed'


class TaskPriority(models.TextChoices):
    LOW = 'low', 'Low'
    MEDIUM = 'medium', 'Medium'
    HIGH = 'high', 'High'


# Attributes the store never lets a caller overwrite
IMMUTABLE_FIELDS = frozenset({'id', 'user_id', 'created_at'})

# Python attribute -> stored attribute name
ITEM_KEYS = {
    'id': 'id',
    'user_id': 'userId',
    'title': 'title',
    'description': 'description',
    'status': 'status',
    'priority': 'priority',
    'assigned_to': 'assignedTo',
    'due_date': 'dueDate',
    'tags': 'tags',
    'attachments': 'attachments',
    'comments': 'comments',
    'created_at': 'createdAt',
    'updated_at': 'updatedAt',
}


def generate_id() -> str:
    return str(uuid.uuid4())


def format_timestamp(value: datetime) -> str:
    """
    Render a datetime as a fixed-width UTC ISO-8601 string.

    Every timestamp in the table uses this format, so comparing the strings
    (as DynamoDB filter expressions do) orders them chronologically.
    """
    if timezone.is_naive(value):
        value = timezone.make_aware(value, dt_timezone.utc)
    value = value.astimezone(dt_timezone.utc)
    # isoformat zero-pads years below 1000, strftime('%Y') does not
    return value.isoformat(timespec='microseconds').replace('+00:00', 'Z')


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse a stored timestamp. Returns None for malformed values."""
    try:
        parsed = parse_datetime(value)
    except ValueError:
        return None
    if parsed is None:
        return None
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def now_timestamp(clock=None) -> str:
    return format_timestamp((clock or timezone.now)())


def unique_tags(tags) -> List[str]:
    """Drop duplicate tags, keeping the first occurrence of each."""
    seen = set()
    result = []
    for tag in tags or []:
        if tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


@dataclass(frozen=True)
class Comment:
    id: str
    text: str
    user_id: str
    user_name: str
    created_at: str

    def to_item(self) -> dict:
        return {
            'id': self.id,
            'text': self.text,
            'userId': self.user_id,
            'userName': self.user_name,
            'createdAt': self.created_at,
        }

    @classmethod
    def from_item(cls, item: dict) -> 'Comment':
        return cls(
            id=item['id'],
            text=item.get('text', ''),
            user_id=item.get('userId', ''),
            user_name=item.get('userName', ''),
            created_at=item.get('createdAt', ''),
        )


@dataclass(frozen=True)
class Task:
    """A unit of work owned by exactly one user."""
    id: str
    user_id: str
    title: str
    description: str
    status: str
    priority: str
    created_at: str
    updated_at: str
    assigned_to: Optional[str] = None
    due_date: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    attachments: List[str] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def is_overdue(self, now: datetime) -> bool:
        """Due date strictly in the past and not yet completed."""
        if not self.due_date or self.is_completed:
            return False
        due = parse_timestamp(self.due_date)
        return due is not None and due < now

    def with_changes(self, **changes) -> 'Task':
        return replace(self, **changes)

    def to_item(self) -> dict:
        """Document form used for storage and for API responses."""
        item = {
            'id': self.id,
            'userId': self.user_id,
            'title': self.title,
            'description': self.description,
            'status': self.status,
            'priority': self.priority,
            'tags': list(self.tags),
            'attachments': list(self.attachments),
            'comments': [comment.to_item() for comment in self.comments],
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }
        if self.assigned_to is not None:
            item['assignedTo'] = self.assigned_to
        if self.due_date is not None:
            item['dueDate'] = self.due_date
        return item

    @classmethod
    def from_item(cls, item: dict) -> 'Task':
        return cls(
            id=item['id'],
            user_id=item['userId'],
            title=item.get('title', ''),
            description=item.get('description', ''),
            status=item.get('status', TaskStatus.PENDING.value),
            priority=item.get('priority', TaskPriority.MEDIUM.value),
            created_at=item.get('createdAt', ''),
            updated_at=item.get('updatedAt', ''),
            assigned_to=item.get('assignedTo'),
            due_date=item.get('dueDate'),
            tags=list(item.get('tags') or []),
            attachments=list(item.get('attachments') or []),
            comments=[Comment.from_item(c) for c in item.get('comments') or []],
        )
