"""
Memory Task Store - In-process storage for development and tests.

Records live in a dict keyed by (id, user_id) and are lost on restart.
No DynamoDB or AWS credentials required.

Usage:
    Set TASK_STORE=memory in your .env file (the default).
"""

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

from apps.tasks.dtos import TaskFilters
from apps.tasks.exceptions import TaskAlreadyExists, TaskRecordNotFound
from apps.tasks.filters import task_matches
from apps.tasks.models import (
    IMMUTABLE_FIELDS, ITEM_KEYS, Comment, Task, generate_id, now_timestamp,
)
from apps.tasks.store import TaskStoreInterface

logger = logging.getLogger(__name__)


class MemoryTaskStore(TaskStoreInterface):
    """
    Keep task records in memory.

    Dict insertion order is the listing order. A lock makes each
    conditional write atomic when the dev server runs threaded.
    """

    def __init__(self, clock=None):
        self._clock = clock
        self._records: Dict[Tuple[str, str], Task] = {}
        self._lock = threading.Lock()

    def create(self, task: Task) -> Task:
        key = (task.id, task.user_id)
        with self._lock:
            if key in self._records:
                raise TaskAlreadyExists(f"Task with this ID already exists: {task.id}")
            self._records[key] = task
        logger.debug(f"[MEMORY] Created task {task.id} for user {task.user_id}")
        return task

    def get_by_id(self, task_id: str, user_id: str) -> Optional[Task]:
        return self._records.get((task_id, user_id))

    def list(self, user_id: str, filters: Optional[TaskFilters] = None) -> List[Task]:
        with self._lock:
            records = list(self._records.values())
        return [
            task for task in records
            if task.user_id == user_id and task_matches(task, filters)
        ]

    def update(self, task_id: str, user_id: str, changes: Dict[str, Any]) -> Task:
        key = (task_id, user_id)
        allowed = {
            name: value for name, value in changes.items()
            if name in ITEM_KEYS and name not in IMMUTABLE_FIELDS and name != 'updated_at'
        }
        for list_field in ('tags', 'attachments', 'comments'):
            if list_field in allowed and allowed[list_field] is None:
                allowed[list_field] = []

        with self._lock:
            existing = self._records.get(key)
            if existing is None:
                raise TaskRecordNotFound("Task not found or access denied")
            updated = existing.with_changes(
                updated_at=now_timestamp(self._clock),
                **allowed,
            )
            self._records[key] = updated
        return updated

    def delete(self, task_id: str, user_id: str) -> None:
        with self._lock:
            if self._records.pop((task_id, user_id), None) is None:
                raise TaskRecordNotFound("Task not found or access denied")

    def append_comment(
        self,
        task_id: str,
        user_id: str,
        text: str,
        author_id: str,
        author_name: str,
    ) -> Task:
        key = (task_id, user_id)
        now = now_timestamp(self._clock)
        comment = Comment(
            id=generate_id(),
            text=text,
            user_id=author_id,
            user_name=author_name,
            created_at=now,
        )
        with self._lock:
            existing = self._records.get(key)
            if existing is None:
                raise TaskRecordNotFound("Task not found or access denied")
            updated = existing.with_changes(
                comments=[*existing.comments, comment],
                updated_at=now,
            )
            self._records[key] = updated
        return updated
