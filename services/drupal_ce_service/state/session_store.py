"""Per-session keyed state cells.

A `SessionState` holds named `StateCell`s (page cells `page-<path>`, menu
cells `menu-<name>`, the message queue). Cells are created on first access
from an initializer and then shared for the lifetime of the session.
The `SessionStore` is an in-memory map owned by the app container, bounded
by session count and idle time. Persistence is out of scope.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from cachetools import TTLCache

from services.drupal_ce_service.logging_utils import create_service_logger

logger = create_service_logger("drupal_ce.session_store")


@dataclass
class StateCell:
    """A mutable value slot identified by key."""

    key: str
    value: Any = None


@dataclass
class SessionState:
    """Keyed state cells of one user session."""

    session_id: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    _cells: dict[str, StateCell] = field(default_factory=dict, repr=False)

    def get_state(self, key: str, initializer: Callable[[], Any] | None = None) -> StateCell:
        """Return the cell for `key`, creating it from `initializer` if missing."""
        cell = self._cells.get(key)
        if cell is None:
            cell = StateCell(key=key, value=initializer() if initializer else None)
            self._cells[key] = cell
        return cell

    def has_state(self, key: str) -> bool:
        return key in self._cells

    def keys(self) -> list[str]:
        return list(self._cells)


class SessionStore:
    """In-memory store of session states keyed by server-issued session ID.

    Sessions expire `ttl_seconds` after their last use; beyond `max_sessions`
    the least recently used session is evicted.
    """

    def __init__(
        self,
        max_sessions: int = 10_000,
        ttl_seconds: float = 1800.0,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sessions: TTLCache = TTLCache(maxsize=max_sessions, ttl=ttl_seconds, timer=timer)

    def get_or_create(self, session_id: str | None) -> SessionState:
        """Return the live session for `session_id`.

        Unknown or expired IDs are never adopted: a new session with a freshly
        generated ID is created instead.
        """
        session = self._sessions.get(session_id) if session_id else None
        if session is None:
            session = SessionState(session_id=uuid4().hex)
            logger.debug("Created session state", session_id=session.session_id)
        # Re-inserting restarts the expiry clock
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> SessionState | None:
        return self._sessions.get(session_id)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions
