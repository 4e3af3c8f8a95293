"""Session history storage for the assistant."""

from .store import (
    DEFAULT_HISTORY_LIMIT,
    MAX_SESSION_TURNS,
    InMemorySessionStore,
    SessionStore,
)

__all__ = [
    "SessionStore",
    "InMemorySessionStore",
    "MAX_SESSION_TURNS",
    "DEFAULT_HISTORY_LIMIT",
]
