from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from apps.tasks import services
from apps.tasks.schemas import TaskCreateIn


SAMPLE_TASKS = [
    {
        'title': 'Complete project setup',
        'description': 'Set up the development environment and install dependencies',
        'status': 'completed',
        'priority': 'high',
        'tags': ['setup'],
    },
    {
        'title': 'Design user interface',
        'description': 'Create wireframes and mockups for the task management app',
        'status': 'in-progress',
        'priority': 'medium',
        'tags': ['design', 'frontend'],
        'due_in_days': 3,
    },
    {
        'title': 'Implement authentication',
        'description': 'Add user login and registration functionality',
        'status': 'pending',
        'priority': 'high',
        'tags': ['backend', 'security'],
        'due_in_days': -1,
    },
]


class Command(BaseCommand):
    help = 'Seeds the task store with sample tasks for one user'

    def add_arguments(self, parser):
        parser.add_argument('--user', required=True, help='Owning user id')

    def handle(self, *args, **options):
        user_id = options['user']
        now = timezone.now()

        self.stdout.write(f'Seeding tasks for {user_id}...')

        for sample in SAMPLE_TASKS:
            data = dict(sample)
            due_in_days = data.pop('due_in_days', None)
            if due_in_days is not None:
                data['due_date'] = now + timedelta(days=due_in_days)

            task = services.create_task(user_id, TaskCreateIn(**data))
            self.stdout.write(f'  {task.id}  [{task.status}] {task.title}')

        self.stdout.write(self.style.SUCCESS(f'Created {len(SAMPLE_TASKS)} tasks.'))
