"""Shared test helpers for the tasks app."""
from datetime import datetime, timedelta, timezone
from unittest import mock

from django.test import SimpleTestCase

from apps.tasks.backends.memory_backend import MemoryTaskStore
from apps.tasks.models import Task, format_timestamp
from apps.tasks.store import set_task_store


START = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


class StepClock:
    """Deterministic clock: every call returns a time one second later."""

    def __init__(self, start: datetime = START + timedelta(minutes=1), step: timedelta = timedelta(seconds=1)):
        self.current = start - step
        self.step = step

    def __call__(self) -> datetime:
        self.current = self.current + self.step
        return self.current


def make_task(
    task_id: str = "task-1",
    user_id: str = "user-1",
    title: str = "Write report",
    description: str = "Quarterly numbers",
    status: str = "pending",
    priority: str = "medium",
    **extra,
) -> Task:
    created = format_timestamp(START)
    return Task(
        id=task_id,
        user_id=user_id,
        title=title,
        description=description,
        status=status,
        priority=priority,
        created_at=created,
        updated_at=created,
        **extra,
    )


class TaskStoreTestCase(SimpleTestCase):
    """
    Runs each test against a fresh MemoryTaskStore with a stepping clock.

    django.utils.timezone.now is patched so that timestamps assigned by the
    service layer and by the store come from the same deterministic clock.
    """

    def setUp(self):
        super().setUp()
        self.clock = StepClock()
        patcher = mock.patch('django.utils.timezone.now', new=self.clock)
        patcher.start()
        self.addCleanup(patcher.stop)

        self.store = MemoryTaskStore()
        set_task_store(self.store)
        self.addCleanup(set_task_store, None)
