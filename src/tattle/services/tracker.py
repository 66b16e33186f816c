"""Background work tracking.

The host hands out a token for every piece of work that outlives the
response. ``release_when_done`` ties the token to the task running that
work and releases it once the task settles, so shutdown can wait until
every pending report has settled.
"""

from __future__ import annotations

import asyncio
import itertools
from typing import Any, Protocol

from tattle.observability import get_logger

logger = get_logger(__name__)


class CompletionTracker(Protocol):
    """What the reporter needs from a host's background-work tracker."""

    def begin(self, label: str) -> Any: ...

    def end(self, token: Any) -> None: ...


class WorkToken:
    """Handle for one pending unit of background work."""

    def __init__(self, token_id: int, label: str):
        self.token_id = token_id
        self.label = label
        self.released = False

    def __repr__(self) -> str:
        state = "released" if self.released else "pending"
        return f"WorkToken(id={self.token_id}, label={self.label!r}, {state})"


class BackgroundWorkTracker:
    """Counts outstanding background work for graceful shutdown."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._pending: dict[int, WorkToken] = {}
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def pending(self) -> int:
        """Number of tokens not yet released."""
        return len(self._pending)

    def begin(self, label: str) -> WorkToken:
        """Acquire a token; synchronous so it happens before dispatch."""
        token = WorkToken(next(self._ids), label)
        self._pending[token.token_id] = token
        self._idle.clear()
        return token

    def end(self, token: WorkToken) -> None:
        """Release a token. Releasing twice is a no-op."""
        if token.released:
            logger.warning("Background work token released twice", token=repr(token))
            return
        token.released = True
        self._pending.pop(token.token_id, None)
        if not self._pending:
            self._idle.set()

    async def wait_idle(self, timeout: float | None = None) -> bool:
        """Wait until no work is pending.

        Returns:
            True when idle, False if the timeout expired first.
        """
        try:
            await asyncio.wait_for(self._idle.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Timed out waiting for background work",
                pending=self.pending,
                labels=[t.label for t in self._pending.values()],
            )
            return False
        return True


def release_when_done(tracker: CompletionTracker, token: Any, task: asyncio.Future[Any]) -> None:
    """Release ``token`` exactly once when ``task`` settles.

    The release runs from the task's done callback, so it also happens for a
    task cancelled before its first step.
    """

    def _release(_: asyncio.Future[Any]) -> None:
        try:
            tracker.end(token)
        except Exception as e:
            logger.error(
                "Failed to release background work token",
                token=repr(token),
                error=f"{type(e).__name__}: {e}",
            )

    task.add_done_callback(_release)
