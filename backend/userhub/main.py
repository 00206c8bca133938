"""UserHub entry point — composition root and process runner.

Invariants:
    - build_app() is the only place collaborators are constructed and wired
    - main() owns the process: it configures logging, runs the App lifecycle on a
      fresh event loop, and exits with the status returned by App.wait_closed()
    - Startup failures propagate (non-zero exit)

Usage:
    userhub                       # console script
    python -m userhub.main
    SERVER__PORT=4000 userhub
"""

import asyncio
import sys
from typing import Any

from userhub.api.exception_filter import ExceptionFilter
from userhub.api.routes.users import UserController
from userhub.app import App
from userhub.config import Settings, get_settings
from userhub.infrastructure.memory_storage import MemoryStorage
from userhub.infrastructure.observability import setup_logging
from userhub.services.config_service import ConfigService
from userhub.services.logger_service import LoggerService


def build_app(settings: Settings | None = None, **seams: Any) -> App:
    """Wire every collaborator and return an App ready for initialize().

    `seams` are forwarded to App (http_server_factory, signal_installer).
    """
    logger_service = LoggerService()
    config_service = ConfigService(settings)
    storage = MemoryStorage(logger_service)
    return App(
        logger_service=logger_service,
        config_service=config_service,
        user_controller=UserController(storage),
        exception_filter=ExceptionFilter(logger_service),
        storage=storage,
        **seams,
    )


async def serve(app: App) -> int:
    await app.initialize()
    return await app.wait_closed()


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    sys.exit(asyncio.run(serve(build_app(settings))))


if __name__ == "__main__":
    main()
