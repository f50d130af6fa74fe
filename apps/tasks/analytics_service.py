"""
Analytics services for Tasks.
Derives per-user counts from a full task listing.
"""
from datetime import datetime
from typing import Iterable, Optional

from django.utils import timezone

from .dtos import TaskStatisticsDTO
from .models import Task, TaskStatus


def compute_task_statistics(
    tasks: Iterable[Task],
    now: Optional[datetime] = None,
) -> TaskStatisticsDTO:
    """
    Count tasks by status, plus overdue tasks.

    Overdue means a due date strictly before `now` on a task that is not
    completed. Pure function: recomputed from the listing on every call.
    """
    now = now or timezone.now()
    tasks = list(tasks)

    return TaskStatisticsDTO(
        total=len(tasks),
        pending=sum(1 for t in tasks if t.status == TaskStatus.PENDING),
        in_progress=sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS),
        completed=sum(1 for t in tasks if t.status == TaskStatus.COMPLETED),
        overdue=sum(1 for t in tasks if t.is_overdue(now)),
    )
