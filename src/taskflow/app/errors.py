from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskflow.app.envelope import error_response
from taskflow.config import Settings
from taskflow.domain.errors import TaskError

logger = logging.getLogger("taskflow.system")


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """TaskError -> 400/404, bad bodies -> 400, unknown routes -> 404, rest -> 500."""

    @app.exception_handler(TaskError)
    async def _task_error(request: Request, exc: TaskError):
        logger.info(
            "task.error",
            extra={
                "category": "tasks",
                "event": "task.error",
                "code": exc.code.value,
                "status_code": exc.status_code,
                "request_id": _request_id(request),
            },
        )
        return JSONResponse(status_code=exc.status_code, content=error_response(exc.message, exc.code.value))

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        details = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=error_response("Invalid request", "VALIDATION_ERROR", details=details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            content = error_response(
                f"Route {request.method} {request.url.path} not found", "ROUTE_NOT_FOUND"
            )
        else:
            content = error_response(str(exc.detail), "HTTP_ERROR")
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        logger.error(
            "request.failed",
            exc_info=exc,
            extra={"category": "system", "event": "request.failed", "request_id": _request_id(request)},
        )
        extra = {}
        if not settings.is_production:
            extra["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return JSONResponse(status_code=500, content=error_response("Internal server error", "INTERNAL_ERROR", **extra))
