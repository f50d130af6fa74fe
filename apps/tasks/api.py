"""
Tasks API endpoints with JWT authentication.

Provides CRUD, comments, filtered listings and statistics for the
authenticated user's tasks. Handlers only translate between HTTP and the
service layer; domain errors are turned into responses by the exception
handlers registered on the NinjaAPI (config/urls.py).
"""
from typing import List, Optional
from datetime import datetime
from ninja import Query, Router
from django.http import HttpRequest
from django.utils import timezone

from apps.identity.security import JWTAuth
from . import services
from .models import format_timestamp
from .schemas import (
    CommentIn, HealthOut, TaskCreateIn, TaskOut, TaskStatisticsOut, TaskUpdateIn,
)

router = Router(tags=["Tasks"], auth=JWTAuth())
health_router = Router(tags=["Health"])


def _out(tasks) -> List[TaskOut]:
    return [TaskOut.from_task(task) for task in tasks]


def _filter_value(value: Optional[str]) -> Optional[str]:
    # An empty query value (?status=) means no filter
    return value or None


# =============================================================================
# Listings
# =============================================================================
# Static paths are registered before /{task_id} so they are matched first.

@router.get("", response=List[TaskOut], by_alias=True)
def list_tasks_api(
    request: HttpRequest,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    search: Optional[str] = None,
    due_date: Optional[datetime] = Query(None, alias="dueDate"),
):
    """
    List the current user's tasks with optional filtering.

    Query Parameters:
    - status: pending, in-progress, completed
    - priority: low, medium, high
    - assignedTo: exact assignee
    - search: substring of title or description
    - dueDate: only tasks due at or before this timestamp
    """
    tasks = services.list_tasks(
        request.auth.user_id,
        status=_filter_value(status),
        priority=_filter_value(priority),
        assigned_to=_filter_value(assigned_to),
        search=_filter_value(search),
        due_before=due_date,
    )
    return _out(tasks)


@router.get("/statistics", response=TaskStatisticsOut, by_alias=True)
def get_task_statistics_api(request: HttpRequest):
    """Counts of total, pending, in-progress, completed and overdue tasks."""
    stats = services.get_task_statistics(request.auth.user_id)
    return TaskStatisticsOut(
        total=stats.total,
        pending=stats.pending,
        in_progress=stats.in_progress,
        completed=stats.completed,
        overdue=stats.overdue,
    )


@router.get("/overdue", response=List[TaskOut], by_alias=True)
def get_overdue_tasks_api(request: HttpRequest):
    """Tasks due at or before now that are not completed."""
    return _out(services.get_overdue_tasks(request.auth.user_id))


@router.get("/search", response=List[TaskOut], by_alias=True)
def search_tasks_api(request: HttpRequest, q: Optional[str] = None):
    """Search title and description for the `q` substring."""
    return _out(services.search_tasks(request.auth.user_id, q))


@router.get("/status/{status}", response=List[TaskOut], by_alias=True)
def get_tasks_by_status_api(request: HttpRequest, status: str):
    return _out(services.get_tasks_by_status(request.auth.user_id, status))


@router.get("/priority/{priority}", response=List[TaskOut], by_alias=True)
def get_tasks_by_priority_api(request: HttpRequest, priority: str):
    return _out(services.get_tasks_by_priority(request.auth.user_id, priority))


# =============================================================================
# CRUD
# =============================================================================

@router.post("", response={201: TaskOut}, by_alias=True)
def create_task_api(request: HttpRequest, payload: TaskCreateIn):
    """
    Create a new task owned by the current user.

    title, description, status and priority are required.
    """
    task = services.create_task(request.auth.user_id, payload)
    return 201, TaskOut.from_task(task)


@router.get("/{task_id}", response=TaskOut, by_alias=True)
def get_task_api(request: HttpRequest, task_id: str):
    """Get a single task. Tasks of other users are reported as not found."""
    return TaskOut.from_task(services.get_task(task_id, request.auth.user_id))


@router.put("/{task_id}", response=TaskOut, by_alias=True)
def update_task_api(request: HttpRequest, task_id: str, payload: TaskUpdateIn):
    """
    Partially update a task.

    Only fields present in the body are changed. id, userId and createdAt
    cannot be changed.
    """
    task = services.update_task(task_id, request.auth.user_id, payload)
    return TaskOut.from_task(task)


@router.delete("/{task_id}", response={204: None})
def delete_task_api(request: HttpRequest, task_id: str):
    """Permanently delete a task."""
    services.delete_task(task_id, request.auth.user_id)
    return 204, None


@router.post("/{task_id}/comments", response={201: TaskOut}, by_alias=True)
def add_comment_api(request: HttpRequest, task_id: str, payload: CommentIn):
    """Add a comment to a task. Returns the updated task."""
    task = services.add_comment(
        task_id,
        request.auth.user_id,
        payload,
        author_name=request.auth.name,
    )
    return 201, TaskOut.from_task(task)


# =============================================================================
# Health
# =============================================================================

@health_router.get("", response=HealthOut, auth=None)
def health_check(request: HttpRequest):
    return {"status": "OK", "timestamp": format_timestamp(timezone.now())}
