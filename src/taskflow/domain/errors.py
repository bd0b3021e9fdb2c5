from __future__ import annotations
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    INVALID_TITLE = "INVALID_TITLE"
    TITLE_TOO_LONG = "TITLE_TOO_LONG"
    INVALID_DESCRIPTION = "INVALID_DESCRIPTION"
    DESCRIPTION_TOO_LONG = "DESCRIPTION_TOO_LONG"
    INVALID_STATUS = "INVALID_STATUS"
    INVALID_ID = "INVALID_ID"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    TASK_NOT_FOUND = "TASK_NOT_FOUND"


class TaskError(Exception):
    """
    Base class for domain errors raised by TaskService.

    Carries a machine-readable `code` and the HTTP status the transport
    layer should answer with. Anything that is not a TaskError is an
    unexpected failure (500).
    """
    status_code: int = 400

    def __init__(self, message: str, code: ErrorCode | str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = ErrorCode(code) if not isinstance(code, ErrorCode) else code
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code.value}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.value!r}, message={self.message!r})"


class TaskValidationError(TaskError):
    """Client input failed a business rule."""
    status_code = 400


class TaskNotFoundError(TaskError):
    status_code = 404

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__("Task not found", ErrorCode.TASK_NOT_FOUND)
