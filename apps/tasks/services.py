"""
Task services - validation and orchestration between the API and the store.

Validation happens here, before any store call. Store errors are
re-classified into the domain errors from apps.tasks.exceptions.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import List, Optional

from django.utils import timezone

from .analytics_service import compute_task_statistics
from .dtos import TaskFilters, TaskStatisticsDTO
from .exceptions import (
    TaskAlreadyExists, TaskNotFoundError, TaskRecordNotFound,
    TaskServiceError, TaskStoreError, TaskValidationError,
)
from .models import (
    Task, TaskPriority, TaskStatus,
    format_timestamp, generate_id, now_timestamp, unique_tags,
)
from .schemas import CommentIn, TaskCreateIn, TaskUpdateIn
from .store import get_task_store

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(action: str):
    """Translate store exceptions raised inside the block into domain errors."""
    try:
        yield
    except TaskRecordNotFound as e:
        raise TaskNotFoundError() from e
    except TaskAlreadyExists as e:
        raise TaskValidationError(str(e)) from e
    except TaskStoreError as e:
        logger.error(f"Failed to {action}: {e}")
        raise TaskServiceError(f"Failed to {action}", detail=str(e)) from e


# =============================================================================
# Validation
# =============================================================================

def validate_status(status) -> str:
    if status not in TaskStatus.values:
        raise TaskValidationError(
            f"Status must be one of: {', '.join(TaskStatus.values)}"
        )
    return status


def validate_priority(priority) -> str:
    if priority not in TaskPriority.values:
        raise TaskValidationError(
            f"Priority must be one of: {', '.join(TaskPriority.values)}"
        )
    return priority


def _validate_title(title) -> str:
    if title is None or not title.strip():
        raise TaskValidationError("Title is required and cannot be empty")
    return title


def _normalize_due_date(due_date: Optional[datetime]) -> Optional[str]:
    if due_date is None:
        return None
    try:
        return format_timestamp(due_date)
    except OverflowError as e:
        raise TaskValidationError("Due date is out of range") from e


# =============================================================================
# CRUD
# =============================================================================

def create_task(user_id: str, payload: TaskCreateIn) -> Task:
    """
    Create a task owned by user_id.

    title, description, status and priority are required. The id and both
    timestamps are assigned here; createdAt equals updatedAt on creation.
    """
    _validate_title(payload.title)
    if payload.description is None:
        raise TaskValidationError("Description is required")
    if payload.status is None:
        raise TaskValidationError(
            f"Status is required. Status must be one of: {', '.join(TaskStatus.values)}"
        )
    validate_status(payload.status)
    if payload.priority is None:
        raise TaskValidationError(
            f"Priority is required. Priority must be one of: {', '.join(TaskPriority.values)}"
        )
    validate_priority(payload.priority)

    now = now_timestamp()
    task = Task(
        id=generate_id(),
        user_id=user_id,
        title=payload.title,
        description=payload.description,
        status=payload.status,
        priority=payload.priority,
        assigned_to=payload.assigned_to,
        due_date=_normalize_due_date(payload.due_date),
        tags=unique_tags(payload.tags),
        attachments=list(payload.attachments or []),
        comments=[],
        created_at=now,
        updated_at=now,
    )

    with _store_errors('create task'):
        created = get_task_store().create(task)

    logger.info(f"Created task {created.id} for user {user_id}")
    return created


def get_task(task_id: str, user_id: str) -> Task:
    """
    Get a single task owned by user_id.

    A task owned by someone else is reported as not found.
    """
    with _store_errors('get task'):
        task = get_task_store().get_by_id(task_id, user_id)
    if task is None:
        raise TaskNotFoundError()
    return task


def list_tasks(
    user_id: str,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    assigned_to: Optional[str] = None,
    search: Optional[str] = None,
    due_before: Optional[datetime] = None,
    exclude_status: Optional[str] = None,
) -> List[Task]:
    """
    List the user's tasks with optional filtering. Filters combine with AND.

    - search: substring of title or description (case-sensitive)
    - due_before: dueDate <= this instant; tasks without a due date excluded
    """
    if status is not None:
        validate_status(status)
    if priority is not None:
        validate_priority(priority)

    filters = TaskFilters(
        status=status,
        priority=priority,
        assigned_to=assigned_to,
        search=search,
        due_before=_normalize_due_date(due_before),
        exclude_status=exclude_status,
    )

    with _store_errors('get tasks'):
        return get_task_store().list(user_id, filters)


def update_task(task_id: str, user_id: str, payload: TaskUpdateIn) -> Task:
    """
    Apply a partial update. Only fields present in the payload are
    validated and written; updatedAt is always refreshed.
    """
    changes = payload.model_dump(exclude_unset=True)

    if 'title' in changes:
        _validate_title(changes['title'])
    if 'description' in changes and changes['description'] is None:
        raise TaskValidationError("Description cannot be null")
    if 'status' in changes:
        validate_status(changes['status'])
    if 'priority' in changes:
        validate_priority(changes['priority'])
    if 'due_date' in changes:
        changes['due_date'] = _normalize_due_date(changes['due_date'])
    if 'tags' in changes:
        changes['tags'] = unique_tags(changes['tags'])

    with _store_errors('update task'):
        updated = get_task_store().update(task_id, user_id, changes)

    logger.info(f"Updated task {task_id} for user {user_id}: {sorted(changes)}")
    return updated


def delete_task(task_id: str, user_id: str) -> None:
    """Hard delete. Raises TaskNotFoundError if the user has no such task."""
    with _store_errors('delete task'):
        get_task_store().delete(task_id, user_id)
    logger.info(f"Deleted task {task_id} for user {user_id}")


def add_comment(
    task_id: str,
    user_id: str,
    payload: CommentIn,
    author_name: Optional[str] = None,
) -> Task:
    """Append a comment authored by the requesting user."""
    if payload.text is None or not payload.text.strip():
        raise TaskValidationError("Comment text is required")

    with _store_errors('add comment'):
        updated = get_task_store().append_comment(
            task_id,
            user_id,
            text=payload.text,
            author_id=user_id,
            author_name=author_name or user_id,
        )

    logger.info(f"Added comment to task {task_id} for user {user_id}")
    return updated


# =============================================================================
# Derived listings
# =============================================================================

def get_tasks_by_status(user_id: str, status: str) -> List[Task]:
    return list_tasks(user_id, status=validate_status(status))


def get_tasks_by_priority(user_id: str, priority: str) -> List[Task]:
    return list_tasks(user_id, priority=validate_priority(priority))


def search_tasks(user_id: str, query: Optional[str]) -> List[Task]:
    if query is None or not query.strip():
        raise TaskValidationError("Search query is required")
    return list_tasks(user_id, search=query)


def get_overdue_tasks(user_id: str, now: Optional[datetime] = None) -> List[Task]:
    """Tasks due at or before now that are not completed."""
    return list_tasks(
        user_id,
        due_before=now or timezone.now(),
        exclude_status=TaskStatus.COMPLETED.value,
    )


def get_task_statistics(user_id: str, now: Optional[datetime] = None) -> TaskStatisticsDTO:
    """Counts for the user's whole task list, recomputed on every call."""
    return compute_task_statistics(list_tasks(user_id), now=now)
