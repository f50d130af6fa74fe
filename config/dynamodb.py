"""
DynamoDB configuration for the task manager.

Supports multiple deployment scenarios:
- Local development (DynamoDB Local via DYNAMODB_ENDPOINT_URL)
- AWS Lambda (IAM role credentials, no endpoint override)
- Traditional server (credentials from the standard AWS chain)
"""
import os


DEFAULT_TABLE_NAME = 'serverless-task-manager-tasks'
DEFAULT_USER_INDEX = 'UserIdIndex'


def get_dynamodb_config() -> dict:
    """
    Returns DynamoDB connection settings based on environment.

    Supports:
    - TASKS_TABLE_NAME / TASKS_USER_INDEX: table and GSI names
    - AWS_REGION: region (default: us-east-1)
    - DYNAMODB_ENDPOINT_URL: e.g. http://localhost:8000 for DynamoDB Local

    DynamoDB Local accepts any credentials, so dummy keys are supplied when
    an endpoint override is set and no real keys are present.
    """
    config = {
        'TABLE_NAME': os.getenv('TASKS_TABLE_NAME', DEFAULT_TABLE_NAME),
        'USER_INDEX': os.getenv('TASKS_USER_INDEX', DEFAULT_USER_INDEX),
        'REGION': os.getenv('AWS_REGION', 'us-east-1'),
        'ENDPOINT_URL': os.getenv('DYNAMODB_ENDPOINT_URL') or None,
    }

    if config['ENDPOINT_URL'] and not os.getenv('AWS_ACCESS_KEY_ID'):
        config['ACCESS_KEY_ID'] = 'local'
        config['SECRET_ACCESS_KEY'] = 'local'

    # Lambda-specific optimizations
    if os.getenv('AWS_LAMBDA_FUNCTION_NAME'):
        config['CONNECT_TIMEOUT'] = 2
        config['READ_TIMEOUT'] = 5

    return config


# =============================================================================
# Table Layout Notes
# =============================================================================
"""
Tasks table:

    Partition key: id (S)
    Sort key:      userId (S)
    GSI UserIdIndex: userId (S) / createdAt (S), projection ALL
    Billing:       PAY_PER_REQUEST

Create it locally with:

    python manage.py create_tasks_table
"""
