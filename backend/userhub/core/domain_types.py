"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId wraps UUID — never use bare UUID in storage signatures
    - LifecycleState is linear: no transition goes back to an earlier state

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class LifecycleState(str, Enum):
    """App lifecycle states, in the order initialize() walks them."""
    CONSTRUCTED = "constructed"
    MIDDLEWARE_REGISTERED = "middleware_registered"
    ROUTES_REGISTERED = "routes_registered"
    ERROR_HANDLER_REGISTERED = "error_handler_registered"
    STORAGE_CONNECTED = "storage_connected"
    LISTENING = "listening"
    SHUTTING_DOWN = "shutting_down"
    EXITED = "exited"
