"""Config Service — section-oriented read access to Settings.

Invariants:
    - get() only returns declared sections; unknown names raise ConfigurationError
    - Settings are resolved once, at construction
"""

from typing import Any

from userhub.config import Settings, get_settings
from userhub.core.errors import ConfigurationError


class ConfigService:
    """Looks up named configuration sections ("server", "log_level", ...)."""

    def __init__(self, settings: Settings | None = None):
        self._settings = settings or get_settings()

    def get(self, section: str) -> Any:
        if section not in type(self._settings).model_fields:
            raise ConfigurationError(section)
        return getattr(self._settings, section)
