"""
TaskStore - Abstraction layer for task persistence.

This module provides a storage-agnostic interface for task records.
The actual backend is determined by the TASK_STORE setting.

Usage:
    from apps.tasks.store import get_task_store

    store = get_task_store()
    task = store.get_by_id(task_id, user_id)

Environment Configuration:
    TASK_STORE=memory    # In-process dict (development/testing)
    TASK_STORE=dynamodb  # AWS DynamoDB (production)
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from django.conf import settings

from .dtos import TaskFilters
from .models import Task

logger = logging.getLogger(__name__)


class TaskStoreInterface(ABC):
    """
    Abstract interface for task record storage.

    Records are addressed by (id, user_id). A record owned by another user
    is indistinguishable from a missing one.

    Implementations:
    - MemoryTaskStore: in-process storage for development/testing
    - DynamoDBTaskStore: AWS DynamoDB for production
    """

    @abstractmethod
    def create(self, task: Task) -> Task:
        """
        Insert a new record.

        Raises:
            TaskAlreadyExists: a record with the same (id, user_id) exists
        """

    @abstractmethod
    def get_by_id(self, task_id: str, user_id: str) -> Optional[Task]:
        """Return the record, or None if the user has no such task."""

    @abstractmethod
    def list(self, user_id: str, filters: Optional[TaskFilters] = None) -> List[Task]:
        """Return every record owned by user_id that matches filters."""

    @abstractmethod
    def update(self, task_id: str, user_id: str, changes: Dict[str, Any]) -> Task:
        """
        Merge changes into an existing record and refresh updated_at.

        Keys are Task attribute names. id, user_id and created_at are
        ignored. A None value clears an optional attribute.

        Raises:
            TaskRecordNotFound: no record matches (task_id, user_id)
        """

    @abstractmethod
    def delete(self, task_id: str, user_id: str) -> None:
        """
        Remove the record.

        Raises:
            TaskRecordNotFound: no record matches (task_id, user_id)
        """

    @abstractmethod
    def append_comment(
        self,
        task_id: str,
        user_id: str,
        text: str,
        author_id: str,
        author_name: str,
    ) -> Task:
        """
        Append a comment (server-assigned id and timestamp).

        Returns:
            The updated record

        Raises:
            TaskRecordNotFound: no record matches (task_id, user_id)
        """


def _get_backend() -> TaskStoreInterface:
    """Build the configured store backend based on the TASK_STORE setting."""
    backend = getattr(settings, 'TASK_STORE', 'memory')

    if backend == 'memory':
        from apps.tasks.backends.memory_backend import MemoryTaskStore
        return MemoryTaskStore()
    elif backend == 'dynamodb':
        from apps.tasks.backends.dynamodb_backend import DynamoDBTaskStore
        return DynamoDBTaskStore.from_settings()
    else:
        raise ValueError(f"Unknown TASK_STORE: {backend}")


# One store per process: the memory backend holds the data itself, and the
# DynamoDB backend reuses its boto3 resource across Lambda invocations.
_store: Optional[TaskStoreInterface] = None


def get_task_store() -> TaskStoreInterface:
    global _store
    if _store is None:
        _store = _get_backend()
        logger.info(f"Initialized task store: {type(_store).__name__}")
    return _store


def set_task_store(store: Optional[TaskStoreInterface]) -> None:
    """Replace the process-wide store. Passing None rebuilds it on next use."""
    global _store
    _store = store
