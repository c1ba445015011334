"""Session registry for per-session conversation and browser state.

Every piece of state keyed by a session id (conversation history, the
turn-scoped plan/log/action stores and the optional browser handle) lives
on a single SessionRecord, so the stores cannot drift out of sync.
"""

import asyncio
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from mira_agent.core.logging import logEvent, logForDebugging
from mira_agent.models.action import Action
from mira_agent.models.plan import Plan

if TYPE_CHECKING:
    from mira_agent.core.browser import BrowserSession

Clock = Callable[[], float]


class SessionRecord:
    """All state owned by one session id.

    The chat path holds ``turn_lock`` for the whole turn and the browser path
    holds ``browser_lock`` for each operation, so two operations of the same
    kind never interleave on one session.
    """

    def __init__(self, session_id: str, max_history: int, now: float) -> None:
        self.session_id = session_id
        self.max_history = max_history
        self.history: list[dict[str, str]] = []
        self.plan: Plan | None = None
        self.tool_log: list[str] = []
        self.actions: list[Action] = []
        self.browser: "BrowserSession | None" = None
        self.turn_lock = asyncio.Lock()
        self.browser_lock = asyncio.Lock()
        self.last_seen = now

    @property
    def busy(self) -> bool:
        """True while a turn or a browser operation is in progress."""
        return self.turn_lock.locked() or self.browser_lock.locked()

    def append_message(self, role: str, content: str) -> None:
        """Append a message to history, evicting the oldest past the bound."""
        self.history.append({"role": role, "content": content})
        overflow = len(self.history) - self.max_history
        if overflow > 0:
            del self.history[:overflow]

    def begin_turn(self) -> None:
        """Clear the turn-scoped stores."""
        self.plan = None
        self.tool_log = []
        self.actions = []

    def log(self, line: str) -> None:
        self.tool_log.append(line)

    def queue_action(self, action: Action) -> None:
        self.actions.append(action)

    def set_plan(self, plan: Plan) -> None:
        self.plan = plan

    def touch(self, now: float) -> None:
        self.last_seen = now


class SessionRegistry:
    """Process-wide registry of SessionRecords.

    Records are created on first reference and evicted by ``sweep`` once
    they have been idle longer than ``idle_ttl`` seconds.
    """

    def __init__(
        self,
        max_history: int = 36,
        idle_ttl: float = 1800.0,
        clock: Clock = time.monotonic,
    ) -> None:
        """Initialize the registry.

        Args:
            max_history: Maximum messages kept per session (2 x max turns).
            idle_ttl: Seconds of inactivity after which a session is evictable.
            clock: Monotonic time source, injectable for tests.
        """
        self._records: dict[str, SessionRecord] = {}
        self._max_history = max_history
        self._idle_ttl = idle_ttl
        self._clock = clock

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._records

    def get(self, session_id: str) -> SessionRecord:
        """Get the record for a session id, creating it on first reference.

        Args:
            session_id: Opaque, non-empty session identifier.

        Returns:
            The session's record, with its idle timer refreshed.

        Raises:
            ValueError: If session_id is empty.
        """
        if not session_id:
            raise ValueError("session_id must not be empty")

        now = self._clock()
        record = self._records.get(session_id)
        if record is None:
            record = SessionRecord(session_id, self._max_history, now)
            self._records[session_id] = record
            logForDebugging(f"Session created: {session_id}")
        else:
            record.touch(now)
        return record

    def peek(self, session_id: str) -> SessionRecord | None:
        """Get an existing record without creating it or refreshing its timer."""
        return self._records.get(session_id)

    def sweep(self, now: float | None = None) -> list[SessionRecord]:
        """Evict sessions idle longer than the TTL.

        Busy sessions are never evicted, regardless of their idle time.

        Args:
            now: Current clock value. Defaults to the registry clock.

        Returns:
            The evicted records, so callers can release their browsers.
        """
        if now is None:
            now = self._clock()

        evicted = [
            record
            for record in self._records.values()
            if not record.busy and now - record.last_seen > self._idle_ttl
        ]
        for record in evicted:
            del self._records[record.session_id]
            logEvent(
                "session_evicted",
                {"session_id": record.session_id, "idle_seconds": round(now - record.last_seen)},
            )
        return evicted

    def drain(self) -> list[SessionRecord]:
        """Remove and return every record (used at shutdown)."""
        records = list(self._records.values())
        self._records.clear()
        return records
