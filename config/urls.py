"""
URL configuration for the task manager.
"""
import logging

from django.http import JsonResponse
from django.urls import path
from ninja import NinjaAPI
from ninja.errors import AuthenticationError, HttpError, ValidationError

from apps.tasks.exceptions import TaskNotFoundError, TaskServiceError, TaskValidationError

logger = logging.getLogger(__name__)

api = NinjaAPI(
    title="Task Manager API",
    version="1.0.0",
    description="Serverless task management API",
    docs_url="/docs",
)

from apps.tasks.api import router as tasks_router, health_router

api.add_router("/tasks", tasks_router)
api.add_router("/health", health_router)


# =============================================================================
# Error responses
# =============================================================================
# Every error body carries `message`; internal failures add `error`.

@api.exception_handler(TaskValidationError)
def on_task_validation_error(request, exc: TaskValidationError):
    return api.create_response(request, {"message": exc.message}, status=400)


@api.exception_handler(TaskNotFoundError)
def on_task_not_found(request, exc: TaskNotFoundError):
    return api.create_response(request, {"message": exc.message}, status=404)


@api.exception_handler(TaskServiceError)
def on_task_service_error(request, exc: TaskServiceError):
    logger.error(f"{request.method} {request.path} failed: {exc.message} ({exc.detail})")
    return api.create_response(
        request,
        {"message": exc.message, "error": exc.detail},
        status=500,
    )


@api.exception_handler(ValidationError)
def on_request_validation_error(request, exc: ValidationError):
    return api.create_response(
        request,
        {"message": "Invalid request", "errors": exc.errors},
        status=400,
    )


@api.exception_handler(AuthenticationError)
def on_authentication_error(request, exc: AuthenticationError):
    return api.create_response(request, {"message": "Authentication required"}, status=401)


@api.exception_handler(HttpError)
def on_http_error(request, exc: HttpError):
    return api.create_response(request, {"message": str(exc)}, status=exc.status_code)


urlpatterns = [
    path('api/', api.urls),
]


def not_found(request, exception=None):
    """JSON 404 for any path no route matches."""
    return JsonResponse({"message": "Route not found"}, status=404)


handler404 = not_found
