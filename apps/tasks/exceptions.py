"""
Task exceptions.

Store backends raise the TaskStoreError family. The service layer converts
those into the domain errors below, which the API maps to HTTP responses:

    TaskValidationError -> 400
    TaskNotFoundError   -> 404
    TaskServiceError    -> 500
"""


class TaskError(Exception):
    """Base class for domain-level task errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TaskValidationError(TaskError, ValueError):
    """Client-correctable input problem."""


class TaskNotFoundError(TaskError):
    """No task with that id exists for the requesting user."""

    def __init__(self, message: str = "Task not found"):
        super().__init__(message)


class TaskServiceError(TaskError):
    """Storage or provider failure. `detail` carries the underlying message."""

    def __init__(self, message: str, detail: str = ""):
        super().__init__(message)
        self.detail = detail


# =============================================================================
# Store-level errors
# =============================================================================

class TaskStoreError(Exception):
    """A store backend failed to complete an operation."""


class TaskAlreadyExists(TaskStoreError):
    """Conditional insert rejected: the (id, userId) key is taken."""


class TaskRecordNotFound(TaskStoreError):
    """No record matches (id, userId)."""
