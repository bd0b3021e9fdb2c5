from __future__ import annotations

import uvicorn

from taskflow.config import Settings


def main() -> None:
    settings = Settings.from_env()
    uvicorn.run(
        "taskflow.app.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_config=None,  # setup_logging() owns the handlers
    )


if __name__ == "__main__":
    main()
