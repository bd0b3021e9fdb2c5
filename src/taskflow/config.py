"""Settings loaded from environment variables.

One Settings object is built at the composition boundary (create_app / server)
and passed down explicitly; nothing reads the environment at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

STORE_MEMORY = "memory"
STORE_SQLITE = "sqlite"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None or v.strip() == "" else v.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Optional[Path]) -> Optional[Path]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000
    env: str = "development"
    api_prefix: str = "/api/v1"
    cors_origin: str = "*"
    log_level: str = "INFO"
    log_dir: Optional[Path] = None
    task_store: str = STORE_MEMORY
    db_path: Path = Path("./data/taskflow.db")

    @classmethod
    def from_env(cls) -> "Settings":
        store = _env("TASK_STORE", STORE_MEMORY).lower()
        if store not in (STORE_MEMORY, STORE_SQLITE):
            raise ValueError(f"TASK_STORE must be '{STORE_MEMORY}' or '{STORE_SQLITE}', got {store!r}")
        prefix = "/" + _env("API_PREFIX", cls.api_prefix).strip("/")
        return cls(
            host=_env("HOST", cls.host),
            port=_env_int("PORT", cls.port),
            env=_env("APP_ENV", cls.env).lower(),
            api_prefix=prefix.rstrip("/") or "",
            cors_origin=_env("CORS_ORIGIN", cls.cors_origin),
            log_level=_env("LOG_LEVEL", cls.log_level).upper(),
            log_dir=_env_path("LOG_DIR", None),
            task_store=store,
            db_path=_env_path("DB_PATH", cls.db_path),
        )

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def is_development(self) -> bool:
        return self.env == "development"

    @property
    def is_test(self) -> bool:
        return self.env == "test"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origin.split(",") if o.strip()]
