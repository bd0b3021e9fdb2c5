# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from taskflow.app.main import create_app
from taskflow.config import Settings
from taskflow.infra.db.task_repo_memory import InMemoryTaskRepo
from taskflow.services.task_service import TaskService


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(env="test", log_level="WARNING", db_path=tmp_path / "tasks.db")


@pytest.fixture()
def repo() -> InMemoryTaskRepo:
    return InMemoryTaskRepo()


@pytest.fixture()
def service(repo: InMemoryTaskRepo) -> TaskService:
    return TaskService(repo)


@pytest.fixture()
def client(settings: Settings, service: TaskService) -> TestClient:
    app = create_app(settings, service=service)
    return TestClient(app)
