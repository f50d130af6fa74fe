from botocore.exceptions import ClientError
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from apps.tasks.backends.dynamodb_backend import DynamoDBTaskStore


class Command(BaseCommand):
    help = 'Creates the DynamoDB tasks table and its UserIdIndex (e.g. on DynamoDB Local)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--wait',
            action='store_true',
            help='Block until the table is ACTIVE',
        )

    def handle(self, *args, **options):
        config = settings.DYNAMODB
        store = DynamoDBTaskStore.from_settings()
        dynamodb = store.table.meta.client

        table_name = config['TABLE_NAME']
        index_name = config['USER_INDEX']

        try:
            dynamodb.create_table(
                TableName=table_name,
                AttributeDefinitions=[
                    {'AttributeName': 'id', 'AttributeType': 'S'},
                    {'AttributeName': 'userId', 'AttributeType': 'S'},
                    {'AttributeName': 'createdAt', 'AttributeType': 'S'},
                ],
                KeySchema=[
                    {'AttributeName': 'id', 'KeyType': 'HASH'},
                    {'AttributeName': 'userId', 'KeyType': 'RANGE'},
                ],
                GlobalSecondaryIndexes=[
                    {
                        'IndexName': index_name,
                        'KeySchema': [
                            {'AttributeName': 'userId', 'KeyType': 'HASH'},
                            {'AttributeName': 'createdAt', 'KeyType': 'RANGE'},
                        ],
                        'Projection': {'ProjectionType': 'ALL'},
                    },
                ],
                BillingMode='PAY_PER_REQUEST',
            )
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ResourceInUseException':
                self.stdout.write(self.style.WARNING(f'Table {table_name} already exists.'))
                return
            raise CommandError(f'Failed to create table {table_name}: {e}')

        if options['wait']:
            dynamodb.get_waiter('table_exists').wait(TableName=table_name)

        self.stdout.write(self.style.SUCCESS(
            f'Created table {table_name} with index {index_name}.'
        ))
