"""
ASGI config for the task manager.

Optimized for AWS Lambda deployment with Mangum (see lambda_handlers.py).
Also supports traditional ASGI servers (Daphne, Uvicorn).
"""
import os

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

# =============================================================================
# Cold Start Optimization
# =============================================================================
# Import Django and initialize BEFORE the handler is called.
# This moves initialization to container startup, not request time.

from django.core.asgi import get_asgi_application

application = get_asgi_application()
