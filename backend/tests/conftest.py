"""Root conftest — shared test configuration."""

import os

# Ensure tests don't pick up a developer's listener settings
os.environ.pop("SERVER__PORT", None)
os.environ.setdefault("LOG_FORMAT", "json")
