"""
DynamoDB Task Store - Persistent storage on AWS DynamoDB.

Records live in one table keyed by (id, userId). Listings query the
UserIdIndex GSI (userId / createdAt), so results come back oldest first.

Usage:
    Set TASK_STORE=dynamodb in your .env file.
    Requires:
    - AWS credentials (IAM role on Lambda) or DYNAMODB_ENDPOINT_URL
    - The tasks table (see: python manage.py create_tasks_table)

Environment Variables:
    TASKS_TABLE_NAME: table name (default: serverless-task-manager-tasks)
    TASKS_USER_INDEX: GSI name (default: UserIdIndex)
    AWS_REGION: AWS region (default: us-east-1)
    DYNAMODB_ENDPOINT_URL: endpoint override for DynamoDB Local
"""

import logging
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from apps.tasks.dtos import TaskFilters
from apps.tasks.exceptions import TaskAlreadyExists, TaskRecordNotFound, TaskStoreError
from apps.tasks.filters import build_filter_expression
from apps.tasks.models import (
    IMMUTABLE_FIELDS, ITEM_KEYS, Comment, Task, generate_id, now_timestamp,
)
from apps.tasks.store import TaskStoreInterface
from config.dynamodb import DEFAULT_TABLE_NAME, DEFAULT_USER_INDEX

logger = logging.getLogger(__name__)

CONDITIONAL_CHECK_FAILED = 'ConditionalCheckFailedException'

# List attributes are reset to [] instead of being removed
LIST_FIELDS = frozenset({'tags', 'attachments', 'comments'})


def _error_code(error: Exception) -> str:
    if isinstance(error, ClientError):
        return error.response.get('Error', {}).get('Code', '')
    return ''


def _error_message(error: Exception) -> str:
    if isinstance(error, ClientError):
        return error.response.get('Error', {}).get('Message') or str(error)
    return str(error)


def _to_item_value(name: str, value: Any) -> Any:
    if name == 'comments':
        return [c.to_item() if isinstance(c, Comment) else c for c in value]
    return value


class DynamoDBTaskStore(TaskStoreInterface):
    """
    Store task records in a DynamoDB table.

    Existence and uniqueness checks use condition expressions, so each
    write is atomic on the DynamoDB side. No read-then-write.
    """

    def __init__(
        self,
        table_name: str = DEFAULT_TABLE_NAME,
        user_index: str = DEFAULT_USER_INDEX,
        region_name: str = 'us-east-1',
        endpoint_url: Optional[str] = None,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        client_config: Optional[Config] = None,
        table=None,
        clock=None,
    ):
        self._table_name = table_name
        self._user_index = user_index
        self._region_name = region_name
        self._endpoint_url = endpoint_url
        self._aws_access_key_id = aws_access_key_id
        self._aws_secret_access_key = aws_secret_access_key
        self._client_config = client_config
        self._table = table
        self._clock = clock

    @classmethod
    def from_settings(cls) -> 'DynamoDBTaskStore':
        config = settings.DYNAMODB
        client_config = None
        if config.get('CONNECT_TIMEOUT') or config.get('READ_TIMEOUT'):
            client_config = Config(
                connect_timeout=config.get('CONNECT_TIMEOUT', 60),
                read_timeout=config.get('READ_TIMEOUT', 60),
            )
        return cls(
            table_name=config['TABLE_NAME'],
            user_index=config['USER_INDEX'],
            region_name=config['REGION'],
            endpoint_url=config.get('ENDPOINT_URL'),
            aws_access_key_id=config.get('ACCESS_KEY_ID'),
            aws_secret_access_key=config.get('SECRET_ACCESS_KEY'),
            client_config=client_config,
        )

    @property
    def table(self):
        """Lazy initialization of the DynamoDB table resource."""
        if self._table is None:
            resource = boto3.resource(
                'dynamodb',
                region_name=self._region_name,
                endpoint_url=self._endpoint_url,
                aws_access_key_id=self._aws_access_key_id,
                aws_secret_access_key=self._aws_secret_access_key,
                config=self._client_config,
            )
            self._table = resource.Table(self._table_name)
            logger.info(
                f"[DYNAMODB] Using table {self._table_name} "
                f"(region={self._region_name}, endpoint={self._endpoint_url or 'default'})"
            )
        return self._table

    def _fail(self, action: str, error: Exception) -> TaskStoreError:
        logger.exception(f"[DYNAMODB] Failed to {action}: {_error_message(error)}")
        return TaskStoreError(f"Failed to {action}: {_error_message(error)}")

    def create(self, task: Task) -> Task:
        try:
            self.table.put_item(
                Item=task.to_item(),
                ConditionExpression='attribute_not_exists(#id)',
                ExpressionAttributeNames={'#id': 'id'},
            )
        except ClientError as e:
            if _error_code(e) == CONDITIONAL_CHECK_FAILED:
                raise TaskAlreadyExists("Task with this ID already exists") from e
            raise self._fail('create task', e) from e
        except BotoCoreError as e:
            raise self._fail('create task', e) from e

        logger.info(f"[DYNAMODB] Created task {task.id} for user {task.user_id}")
        return task

    def get_by_id(self, task_id: str, user_id: str) -> Optional[Task]:
        try:
            result = self.table.get_item(Key={'id': task_id, 'userId': user_id})
        except (ClientError, BotoCoreError) as e:
            raise self._fail('get task', e) from e

        item = result.get('Item')
        return Task.from_item(item) if item else None

    def list(self, user_id: str, filters: Optional[TaskFilters] = None) -> List[Task]:
        filter_expression, names, values = build_filter_expression(filters)
        names['#userId'] = 'userId'
        values[':userId'] = user_id

        params = {
            'IndexName': self._user_index,
            'KeyConditionExpression': '#userId = :userId',
            'ExpressionAttributeNames': names,
            'ExpressionAttributeValues': values,
        }
        if filter_expression:
            params['FilterExpression'] = filter_expression

        items = []
        try:
            # Drain every page; the API does not paginate
            while True:
                result = self.table.query(**params)
                items.extend(result.get('Items', []))
                last_key = result.get('LastEvaluatedKey')
                if not last_key:
                    break
                params['ExclusiveStartKey'] = last_key
        except (ClientError, BotoCoreError) as e:
            raise self._fail('get tasks', e) from e

        return [Task.from_item(item) for item in items]

    def update(self, task_id: str, user_id: str, changes: Dict[str, Any]) -> Task:
        set_clauses = []
        remove_clauses = []
        names = {'#id': 'id', '#updatedAt': 'updatedAt'}
        values = {':updatedAt': now_timestamp(self._clock)}

        for name, value in changes.items():
            if name not in ITEM_KEYS or name in IMMUTABLE_FIELDS or name == 'updated_at':
                continue
            attr = ITEM_KEYS[name]
            names[f'#{attr}'] = attr
            if value is None and name not in LIST_FIELDS:
                remove_clauses.append(f'#{attr}')
                continue
            set_clauses.append(f'#{attr} = :{attr}')
            values[f':{attr}'] = [] if value is None else _to_item_value(name, value)

        # Always update the updatedAt timestamp
        set_clauses.append('#updatedAt = :updatedAt')

        update_expression = 'SET ' + ', '.join(set_clauses)
        if remove_clauses:
            update_expression += ' REMOVE ' + ', '.join(remove_clauses)

        try:
            result = self.table.update_item(
                Key={'id': task_id, 'userId': user_id},
                UpdateExpression=update_expression,
                ConditionExpression='attribute_exists(#id)',
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues='ALL_NEW',
            )
        except ClientError as e:
            if _error_code(e) == CONDITIONAL_CHECK_FAILED:
                raise TaskRecordNotFound("Task not found or access denied") from e
            raise self._fail('update task', e) from e
        except BotoCoreError as e:
            raise self._fail('update task', e) from e

        return Task.from_item(result['Attributes'])

    def delete(self, task_id: str, user_id: str) -> None:
        try:
            self.table.delete_item(
                Key={'id': task_id, 'userId': user_id},
                ConditionExpression='attribute_exists(#id)',
                ExpressionAttributeNames={'#id': 'id'},
            )
        except ClientError as e:
            if _error_code(e) == CONDITIONAL_CHECK_FAILED:
                raise TaskRecordNotFound("Task not found or access denied") from e
            raise self._fail('delete task', e) from e
        except BotoCoreError as e:
            raise self._fail('delete task', e) from e

        logger.info(f"[DYNAMODB] Deleted task {task_id} for user {user_id}")

    def append_comment(
        self,
        task_id: str,
        user_id: str,
        text: str,
        author_id: str,
        author_name: str,
    ) -> Task:
        now = now_timestamp(self._clock)
        comment = Comment(
            id=generate_id(),
            text=text,
            user_id=author_id,
            user_name=author_name,
            created_at=now,
        )

        try:
            result = self.table.update_item(
                Key={'id': task_id, 'userId': user_id},
                UpdateExpression=(
                    'SET #comments = list_append(if_not_exists(#comments, :emptyList), :comment), '
                    '#updatedAt = :updatedAt'
                ),
                ConditionExpression='attribute_exists(#id)',
                ExpressionAttributeNames={
                    '#id': 'id',
                    '#comments': 'comments',
                    '#updatedAt': 'updatedAt',
                },
                ExpressionAttributeValues={
                    ':comment': [comment.to_item()],
                    ':emptyList': [],
                    ':updatedAt': now,
                },
                ReturnValues='ALL_NEW',
            )
        except ClientError as e:
            if _error_code(e) == CONDITIONAL_CHECK_FAILED:
                raise TaskRecordNotFound("Task not found or access denied") from e
            raise self._fail('add comment', e) from e
        except BotoCoreError as e:
            raise self._fail('add comment', e) from e

        return Task.from_item(result['Attributes'])
