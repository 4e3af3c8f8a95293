"""Per-session conversation history for the assistant."""

from __future__ import annotations

import csv
import io
import json
import logging
from collections import deque
from typing import Literal, Protocol, runtime_checkable

from opschat.models.chat import Role, Turn

logger = logging.getLogger(__name__)

MAX_SESSION_TURNS = 50
DEFAULT_HISTORY_LIMIT = 20

ExportFormat = Literal["json", "csv"]
EXPORT_FORMATS = ("json", "csv")


@runtime_checkable
class SessionStore(Protocol):
    """Storage for session turns; swap implementations without touching the orchestrator."""

    def append(self, session_id: str, role: Role, content: str) -> Turn: ...

    def get(self, session_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> list[Turn]: ...

    def clear(self, session_id: str) -> None: ...

    def clear_all(self) -> None: ...

    def session_count(self) -> int: ...

    def export(self, session_id: str, format: str = "json") -> str: ...


class InMemorySessionStore:
    """
    Process-local session history.

    Sessions are created on first append and keep at most ``max_turns`` turns;
    older turns are evicted first. Nothing survives a restart.
    """

    def __init__(self, max_turns: int = MAX_SESSION_TURNS) -> None:
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.max_turns = max_turns
        self._sessions: dict[str, deque[Turn]] = {}

    def append(self, session_id: str, role: Role, content: str) -> Turn:
        turn = Turn(role=role, content=content)
        history = self._sessions.get(session_id)
        if history is None:
            history = deque(maxlen=self.max_turns)
            self._sessions[session_id] = history
        history.append(turn)
        return turn

    def get(self, session_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> list[Turn]:
        history = self._sessions.get(session_id)
        if not history or limit <= 0:
            return []
        return list(history)[-limit:]

    def clear(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is not None:
            logger.info("Cleared history for session", extra={"session_id": session_id})

    def clear_all(self) -> None:
        count = len(self._sessions)
        self._sessions.clear()
        logger.info(f"Cleared history for {count} sessions", extra={"sessions": count})

    def session_count(self) -> int:
        return len(self._sessions)

    def export(self, session_id: str, format: str = "json") -> str:
        """
        Serialize the full retained history of a session.

        Raises:
            ValueError: If format is not "json" or "csv"
        """
        if format not in EXPORT_FORMATS:
            raise ValueError("Format must be json or csv")

        turns = list(self._sessions.get(session_id, ()))
        if format == "json":
            return json.dumps([turn.model_dump() for turn in turns], indent=2)
        return _turns_to_csv(turns)


def _turns_to_csv(turns: list[Turn]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(["timestamp", "role", "content"])
    for turn in turns:
        writer.writerow([turn.timestamp, turn.role, turn.content])
    return buffer.getvalue().rstrip("\n")
