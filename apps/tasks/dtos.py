"""DTOs for Tasks app - Data Transfer Objects passed between service and store."""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TaskFilters:
    """
    Optional narrowing for a task listing. All set fields combine with AND.

    due_before is an inclusive upper bound on dueDate; tasks without a due
    date never match it. exclude_status drops tasks in that status.
    """
    status: Optional[str] = None
    priority: Optional[str] = None
    assigned_to: Optional[str] = None
    search: Optional[str] = None
    due_before: Optional[str] = None
    exclude_status: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not any((
            self.status, self.priority, self.assigned_to,
            self.search, self.due_before, self.exclude_status,
        ))


@dataclass(frozen=True)
class TaskStatisticsDTO:
    """Per-user task counts."""
    total: int
    pending: int
    in_progress: int
    completed: int
    overdue: int
