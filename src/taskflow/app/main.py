from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskflow import __version__
from taskflow.app.errors import register_exception_handlers
from taskflow.app.middleware.access_log import AccessLogMiddleware
from taskflow.app.routes import tasks
from taskflow.config import STORE_SQLITE, Settings
from taskflow.infra.db.sqlite import make_sqlite_url, make_engine, make_sessionmaker
from taskflow.infra.db.task_repo_memory import InMemoryTaskRepo
from taskflow.infra.db.task_repo_sqlite import SQLiteTaskRepo
from taskflow.observability.logging import setup_logging
from taskflow.services.task_service import TaskService

logger = logging.getLogger("taskflow.system")


def create_app(settings: Optional[Settings] = None, service: Optional[TaskService] = None) -> FastAPI:
    """
    Composition root. Builds the store and service explicitly unless a
    service is injected (tests, embedding).
    """
    settings = settings or Settings.from_env()
    setup_logging(settings)
    logger.info(
        "system.start",
        extra={"category": "system", "event": "system.start", "env": settings.env, "store": settings.task_store},
    )

    app = FastAPI(
        title="TaskFlow API",
        version=__version__,
        description="Task management API",
        docs_url="/docs",
        openapi_url="/docs.json",
        redoc_url=None,
    )
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )
    register_exception_handlers(app, settings)

    if service is None:
        if settings.task_store == STORE_SQLITE:
            # --- SQLite wiring ---
            engine = make_engine(make_sqlite_url(settings.db_path))
            repo = SQLiteTaskRepo(make_sessionmaker(engine))

            @app.on_event("startup")
            async def _startup():
                await repo.init_schema(engine)
                logger.info(
                    "db.ready",
                    extra={"category": "system", "event": "db.ready", "db_path": str(settings.db_path)},
                )

            @app.on_event("shutdown")
            async def _shutdown():
                await engine.dispose()
        else:
            repo = InMemoryTaskRepo()
        service = TaskService(repo)

    app.state.settings = settings
    app.state.task_service = service
    app.state.started_at = time.monotonic()

    app.include_router(tasks.router, prefix=settings.api_prefix)

    @app.get("/")
    def index():
        return {
            "name": "TaskFlow API",
            "version": __version__,
            "description": "Task management API",
            "endpoints": {
                "tasks": f"{settings.api_prefix}/tasks",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health")
    def health():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "uptime": round(time.monotonic() - app.state.started_at, 3),
        }

    return app
