"""
Unit tests for task services.
Tests validation, defaults, error mapping and derived listings.
"""
from datetime import datetime, timezone
from unittest import mock

from django.test import SimpleTestCase

from apps.tasks import services
from apps.tasks.analytics_service import compute_task_statistics
from apps.tasks.exceptions import (
    TaskAlreadyExists, TaskNotFoundError, TaskRecordNotFound,
    TaskServiceError, TaskStoreError, TaskValidationError,
)
from apps.tasks.models import format_timestamp
from apps.tasks.schemas import CommentIn, TaskCreateIn, TaskUpdateIn
from apps.tasks.store import TaskStoreInterface, set_task_store

from .helpers import TaskStoreTestCase, make_task

PAST = datetime(2024, 1, 1, tzinfo=timezone.utc)
FUTURE = datetime(2030, 1, 1, tzinfo=timezone.utc)


def task_in(**overrides) -> TaskCreateIn:
    data = {
        'title': 'A',
        'description': 'd',
        'status': 'pending',
        'priority': 'high',
    }
    data.update(overrides)
    return TaskCreateIn(**data)


class CreateTaskTest(TaskStoreTestCase):
    """Test create_task() validation and defaults."""

    def test_create_assigns_id_and_equal_timestamps(self):
        """Test create assigns an id and equal timestamps."""
        task = services.create_task('user-1', task_in())

        self.assertTrue(task.id)
        self.assertEqual(task.user_id, 'user-1')
        self.assertEqual(task.created_at, task.updated_at)
        self.assertEqual(task.comments, [])
        self.assertEqual(self.store.get_by_id(task.id, 'user-1'), task)

    def test_create_generates_distinct_ids(self):
        """Test each create gets a fresh id."""
        first = services.create_task('user-1', task_in())
        second = services.create_task('user-1', task_in())

        self.assertNotEqual(first.id, second.id)

    def test_create_deduplicates_tags_in_order(self):
        """Test duplicate tags are dropped in order."""
        task = services.create_task('user-1', task_in(tags=['b', 'a', 'b', 'c', 'a']))

        self.assertEqual(task.tags, ['b', 'a', 'c'])

    def test_create_normalizes_due_date_to_utc(self):
        """Test due dates are stored in UTC."""
        task = services.create_task('user-1', task_in(due_date='2024-05-01T12:00:00+02:00'))

        self.assertEqual(task.due_date, '2024-05-01T10:00:00.000000Z')

    def test_invalid_status_rejected(self):
        """Test an unknown status is rejected."""
        with self.assertRaises(TaskValidationError) as ctx:
            services.create_task('user-1', task_in(status='bogus'))

        self.assertIn('Status must be', ctx.exception.message)
        self.assertIn('pending, in-progress, completed', ctx.exception.message)

    def test_invalid_priority_rejected(self):
        """Test an unknown priority is rejected."""
        with self.assertRaises(TaskValidationError) as ctx:
            services.create_task('user-1', task_in(priority='urgent'))

        self.assertEqual(ctx.exception.message, 'Priority must be one of: low, medium, high')

    def test_required_fields(self):
        """Test each required field is checked."""
        for field in ('title', 'description', 'status', 'priority'):
            with self.subTest(field=field):
                with self.assertRaises(TaskValidationError) as ctx:
                    services.create_task('user-1', task_in(**{field: None}))
                self.assertIn(field.capitalize(), ctx.exception.message)

    def test_blank_title_rejected(self):
        """Test a blank title is rejected."""
        with self.assertRaises(TaskValidationError):
            services.create_task('user-1', task_in(title='   '))

    def test_empty_description_allowed(self):
        """Test an empty description is accepted."""
        task = services.create_task('user-1', task_in(description=''))

        self.assertEqual(task.description, '')


class ValidationNeverReachesStoreTest(SimpleTestCase):
    """Invalid input must be rejected before any store call."""

    def setUp(self):
        self.store = mock.Mock(spec=TaskStoreInterface)
        set_task_store(self.store)
        self.addCleanup(set_task_store, None)

    def test_create_with_bad_status(self):
        """Test a bad status never reaches the store on create."""
        with self.assertRaises(TaskValidationError):
            services.create_task('user-1', task_in(status='bogus'))
        self.store.create.assert_not_called()

    def test_update_with_bad_priority(self):
        """Test a bad priority never reaches the store on update."""
        with self.assertRaises(TaskValidationError):
            services.update_task('t1', 'user-1', TaskUpdateIn(priority='urgent'))
        self.store.update.assert_not_called()

    def test_list_by_bad_status(self):
        """Test a bad status never reaches the store on listing."""
        with self.assertRaises(TaskValidationError):
            services.get_tasks_by_status('user-1', 'done')
        self.store.list.assert_not_called()


class StoreErrorMappingTest(SimpleTestCase):
    """Store errors are re-classified into domain errors."""

    def setUp(self):
        self.store = mock.Mock(spec=TaskStoreInterface)
        set_task_store(self.store)
        self.addCleanup(set_task_store, None)

    def test_record_not_found_becomes_not_found(self):
        """Test TaskRecordNotFound maps to TaskNotFoundError."""
        self.store.update.side_effect = TaskRecordNotFound('gone')

        with self.assertRaises(TaskNotFoundError):
            services.update_task('t1', 'user-1', TaskUpdateIn(title='x'))

    def test_already_exists_becomes_validation_error(self):
        """Test TaskAlreadyExists maps to TaskValidationError."""
        self.store.create.side_effect = TaskAlreadyExists('Task with this ID already exists')

        with self.assertRaises(TaskValidationError):
            services.create_task('user-1', task_in())

    def test_provider_failure_becomes_service_error_with_detail(self):
        """Test store failures map to TaskServiceError with detail."""
        self.store.list.side_effect = TaskStoreError('Failed to get tasks: Rate exceeded')

        with self.assertRaises(TaskServiceError) as ctx:
            services.list_tasks('user-1')

        self.assertEqual(ctx.exception.message, 'Failed to get tasks')
        self.assertIn('Rate exceeded', ctx.exception.detail)

    def test_missing_record_on_get_is_not_found(self):
        """Test a missing record on get raises TaskNotFoundError."""
        self.store.get_by_id.return_value = None

        with self.assertRaises(TaskNotFoundError):
            services.get_task('t1', 'user-1')


class UpdateTaskTest(TaskStoreTestCase):
    """Test partial updates."""

    def setUp(self):
        super().setUp()
        self.task = services.create_task('user-1', task_in(assigned_to='alice'))

    def test_update_status_refreshes_updated_at(self):
        """Test a status update refreshes updatedAt."""
        updated = services.update_task(
            self.task.id, 'user-1', TaskUpdateIn(status='completed')
        )

        self.assertEqual(updated.status, 'completed')
        self.assertGreater(updated.updated_at, self.task.updated_at)
        self.assertEqual(updated.created_at, self.task.created_at)
        self.assertEqual(updated.title, self.task.title)

    def test_only_present_fields_are_validated(self):
        """Test only fields present in the update are validated."""
        updated = services.update_task(self.task.id, 'user-1', TaskUpdateIn(title='B'))

        self.assertEqual(updated.title, 'B')
        self.assertEqual(updated.status, 'pending')

    def test_invalid_status_in_update_rejected(self):
        """Test an unknown status in an update is rejected."""
        with self.assertRaises(TaskValidationError) as ctx:
            services.update_task(self.task.id, 'user-1', TaskUpdateIn(status='bogus'))

        self.assertIn('Status must be', ctx.exception.message)

    def test_explicit_null_clears_assignee(self):
        """Test an explicit null clears the assignee."""
        updated = services.update_task(
            self.task.id, 'user-1', TaskUpdateIn(assigned_to=None)
        )

        self.assertIsNone(updated.assigned_to)

    def test_unset_fields_are_left_alone(self):
        """Test fields missing from the update keep their values."""
        updated = services.update_task(self.task.id, 'user-1', TaskUpdateIn(priority='low'))

        self.assertEqual(updated.assigned_to, 'alice')

    def test_other_user_cannot_update(self):
        """Test another user cannot update the task."""
        with self.assertRaises(TaskNotFoundError):
            services.update_task(self.task.id, 'user-2', TaskUpdateIn(title='mine'))

    def test_delete_then_get_is_not_found(self):
        """Test a deleted task is not found."""
        services.delete_task(self.task.id, 'user-1')

        with self.assertRaises(TaskNotFoundError):
            services.get_task(self.task.id, 'user-1')

    def test_delete_missing_is_not_found(self):
        """Test deleting a missing task raises TaskNotFoundError."""
        with self.assertRaises(TaskNotFoundError):
            services.delete_task('missing', 'user-1')


class CommentServiceTest(TaskStoreTestCase):

    def setUp(self):
        super().setUp()
        self.task = services.create_task('user-1', task_in())

    def test_add_comment_records_author(self):
        """Test the comment author is recorded."""
        updated = services.add_comment(
            self.task.id, 'user-1', CommentIn(text='Nice'), author_name='Alice'
        )

        self.assertEqual(updated.comments[0].text, 'Nice')
        self.assertEqual(updated.comments[0].user_id, 'user-1')
        self.assertEqual(updated.comments[0].user_name, 'Alice')
        self.assertGreater(updated.updated_at, self.task.updated_at)

    def test_blank_comment_rejected(self):
        """Test a blank comment is rejected."""
        with self.assertRaises(TaskValidationError):
            services.add_comment(self.task.id, 'user-1', CommentIn(text=' '))

    def test_comment_on_other_users_task_is_not_found(self):
        """Test commenting on another user's task is not found."""
        with self.assertRaises(TaskNotFoundError):
            services.add_comment(self.task.id, 'user-2', CommentIn(text='Hi'))


class DerivedListingTest(TaskStoreTestCase):
    """Status, priority, search and overdue listings."""

    def setUp(self):
        super().setUp()
        self.late_pending = services.create_task(
            'user-1', task_in(title='Late', status='pending', due_date=PAST))
        self.late_active = services.create_task(
            'user-1', task_in(title='Busy', status='in-progress', priority='low', due_date=PAST))
        self.late_done = services.create_task(
            'user-1', task_in(title='Done', status='completed', due_date=PAST))
        self.future = services.create_task(
            'user-1', task_in(title='Later', description='search me', due_date=FUTURE))
        services.create_task('user-2', task_in(title='Late', due_date=PAST))

    def test_status_listing_only_returns_that_status(self):
        """Test status listings only return that status."""
        for status in ('pending', 'in-progress', 'completed'):
            tasks = services.get_tasks_by_status('user-1', status)
            self.assertTrue(all(t.status == status for t in tasks))
            self.assertTrue(all(t.user_id == 'user-1' for t in tasks))

    def test_priority_listing(self):
        """Test the priority listing."""
        tasks = services.get_tasks_by_priority('user-1', 'low')

        self.assertEqual([t.id for t in tasks], [self.late_active.id])

    def test_bad_priority_listing(self):
        """Test an unknown priority listing is rejected."""
        with self.assertRaises(TaskValidationError) as ctx:
            services.get_tasks_by_priority('user-1', 'urgent')

        self.assertIn('Priority must be', ctx.exception.message)

    def test_search_title_or_description(self):
        """Test search over title and description."""
        self.assertEqual(
            [t.id for t in services.search_tasks('user-1', 'Late')],
            [self.late_pending.id, self.future.id],
        )
        self.assertEqual(
            [t.id for t in services.search_tasks('user-1', 'search me')],
            [self.future.id],
        )

    def test_search_requires_query(self):
        """Test search requires a query."""
        with self.assertRaises(TaskValidationError):
            services.search_tasks('user-1', '')

    def test_overdue_excludes_completed_and_future(self):
        """Test overdue skips completed and future tasks."""
        overdue = services.get_overdue_tasks('user-1')

        self.assertEqual(
            [t.id for t in overdue],
            [self.late_pending.id, self.late_active.id],
        )

    def test_overdue_includes_due_dates_before_year_1000(self):
        """Test due dates before year 1000 are padded and counted overdue."""
        ancient = services.create_task(
            'user-1', task_in(title='Ancient', due_date='0999-01-01T00:00:00Z'))

        self.assertEqual(ancient.due_date, '0999-01-01T00:00:00.000000Z')
        self.assertIn(ancient.id, [t.id for t in services.get_overdue_tasks('user-1')])
        self.assertEqual(services.get_task_statistics('user-1').overdue, 3)

    def test_due_date_out_of_range_rejected(self):
        """Test a due date that cannot be expressed in UTC is rejected."""
        with self.assertRaises(TaskValidationError):
            services.create_task('user-1', task_in(due_date='0001-01-01T00:00:00+02:00'))

    def test_statistics(self):
        """Test statistics for the user's whole listing."""
        stats = services.get_task_statistics('user-1')

        self.assertEqual(stats.total, 4)
        self.assertEqual(stats.pending, 2)
        self.assertEqual(stats.in_progress, 1)
        self.assertEqual(stats.completed, 1)
        self.assertEqual(stats.overdue, 2)
        self.assertEqual(stats.total, stats.pending + stats.in_progress + stats.completed)


class ComputeStatisticsTest(SimpleTestCase):
    """compute_task_statistics() is a pure function of the listing."""

    NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)

    def test_empty_listing(self):
        """Test statistics of an empty listing are all zero."""
        stats = compute_task_statistics([], now=self.NOW)

        self.assertEqual(
            (stats.total, stats.pending, stats.in_progress, stats.completed, stats.overdue),
            (0, 0, 0, 0, 0),
        )

    def test_overdue_is_strictly_before_now(self):
        """Test a task due exactly now is not overdue."""
        tasks = [
            make_task('t1', due_date='2024-06-01T00:00:00.000000Z'),
            make_task('t2', due_date='2024-05-31T23:59:59.000000Z'),
            make_task('t3'),
        ]

        stats = compute_task_statistics(tasks, now=self.NOW)

        self.assertEqual(stats.overdue, 1)

    def test_completed_tasks_are_never_overdue(self):
        """Test completed tasks are never overdue."""
        tasks = [
            make_task('t1', status='pending', due_date='2024-01-01T00:00:00.000000Z'),
            make_task('t2', status='in-progress', due_date='2024-01-01T00:00:00.000000Z'),
            make_task('t3', status='completed', due_date='2024-01-01T00:00:00.000000Z'),
        ]

        stats = compute_task_statistics(tasks, now=self.NOW)

        self.assertEqual(stats.overdue, 2)
        self.assertEqual(stats.completed, 1)

    def test_due_date_before_year_1000_counts_as_overdue(self):
        """Test a zero-padded pre-1000 due date counts as overdue."""
        due = format_timestamp(datetime(999, 1, 1, tzinfo=timezone.utc))
        tasks = [make_task('t1', due_date=due)]

        stats = compute_task_statistics(tasks, now=self.NOW)

        self.assertEqual(due, '0999-01-01T00:00:00.000000Z')
        self.assertEqual(stats.overdue, 1)

    def test_recomputed_on_every_call(self):
        """Test statistics depend on the given time."""
        tasks = [make_task('t1', due_date='2024-06-01T00:00:00.000000Z')]

        before = compute_task_statistics(tasks, now=datetime(2024, 5, 1, tzinfo=timezone.utc))
        after = compute_task_statistics(tasks, now=datetime(2024, 7, 1, tzinfo=timezone.utc))

        self.assertEqual(before.overdue, 0)
        self.assertEqual(after.overdue, 1)
