"""
Lambda Handlers - Entry points for AWS Lambda functions.

This module provides the Lambda handler for the task API:
Django API (via Mangum) - HTTP requests through API Gateway.

The handler uses Django's ASGI application from config.asgi.
"""

import os
import sys
import logging

# Ensure the project root is in the path for Lambda
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

# Configure Django before importing any app modules
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')
os.environ.setdefault('TASK_STORE', 'dynamodb')

from mangum import Mangum

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


# =============================================================================
# Django API Handler (Mangum)
# =============================================================================

# Lazy initialization so the container pays the Django setup cost once
_asgi_handler = None


def api_handler(event, context):
    """
    AWS Lambda handler for HTTP requests via API Gateway.

    Uses Mangum to wrap Django's ASGI application.
    """
    global _asgi_handler

    if _asgi_handler is None:
        from config.asgi import application
        _asgi_handler = Mangum(application, lifespan="off")
        logger.info("Initialized Mangum handler")

    return _asgi_handler(event, context)
