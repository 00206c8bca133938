"""Logger Service — category-labelled facade over stdlib logging.

Invariants:
    - Category "app" logs through logger "userhub.app", "http" through "userhub.http", ...
    - The category is attached to every record as the `category` extra field
"""

import logging
from typing import Any


class LoggerService:
    """Log sink taking a category label and a formatted message."""

    def __init__(self, namespace: str = "userhub"):
        self._namespace = namespace

    def get_logger(self, category: str) -> logging.Logger:
        return logging.getLogger(f"{self._namespace}.{category}")

    def debug(self, category: str, message: str, **fields: Any) -> None:
        self._log(logging.DEBUG, category, message, fields)

    def info(self, category: str, message: str, **fields: Any) -> None:
        self._log(logging.INFO, category, message, fields)

    def warn(self, category: str, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, category, message, fields)

    def error(
        self, category: str, message: str, *, exc_info: bool = False, **fields: Any,
    ) -> None:
        self._log(logging.ERROR, category, message, fields, exc_info=exc_info)

    def _log(
        self,
        level: int,
        category: str,
        message: str,
        fields: dict[str, Any],
        exc_info: bool = False,
    ) -> None:
        self.get_logger(category).log(
            level, message, exc_info=exc_info, extra={"category": category, **fields},
        )
