"""
Store readiness: one-time database initialization shared by every request.

The initializer (connect, create tables) is started once, normally at
application startup, and memoized as an ``asyncio.Task``. Requests await the
same task, so a failed initialization is reported, never retried.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Literal

from opschat.models.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

StoreState = Literal["connected", "failed", "disconnected"]


class StoreReadiness:
    """Memoized asynchronous initialization of the business database."""

    def __init__(self, initializer: Callable[[], Awaitable[None]]):
        self._initializer = initializer
        self._task: asyncio.Task | None = None

    def start(self) -> asyncio.Task:
        """Start initialization if it has not started yet. Requires a running loop."""
        if self._task is None:
            self._task = asyncio.ensure_future(self._initializer())
            self._task.add_done_callback(self._log_outcome)
        return self._task

    async def wait(self) -> None:
        """
        Wait for initialization to finish.

        Raises:
            StoreUnavailableError: If initialization failed
        """
        task = self.start()
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
            raise StoreUnavailableError("Database initialization was cancelled") from None
        except Exception as e:
            raise StoreUnavailableError(
                f"Database failed to initialize: {e}", context={"error_type": type(e).__name__}
            ) from e

    @property
    def state(self) -> StoreState:
        if self._task is None or not self._task.done():
            return "disconnected"
        if self._task.cancelled() or self._task.exception() is not None:
            return "failed"
        return "connected"

    async def cancel(self) -> None:
        """Cancel a still-pending initialization (used on shutdown)."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    @staticmethod
    def _log_outcome(task: asyncio.Task) -> None:
        if task.cancelled():
            logger.warning("Database initialization cancelled")
        elif task.exception() is not None:
            logger.error(f"Database initialization failed: {task.exception()}")
        else:
            logger.info("Database ready")
