"""User-facing message queue backed by a session state cell."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel

from services.drupal_ce_service.state.session_store import SessionState

MESSAGES_STATE_KEY = "drupal-ce-messages"


class MessageType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class Message(BaseModel):
    type: MessageType
    message: str


def normalize_messages(messages: Mapping[str, Any] | None) -> list[Message]:
    """Flatten `{success: [...], error: [...]}` into Messages, errors first."""
    grouped: dict[str, Any] = {"success": [], "error": [], **(messages or {})}
    return [
        *(Message(type=MessageType.ERROR, message=str(text)) for text in grouped["error"] or []),
        *(
            Message(type=MessageType.SUCCESS, message=str(text))
            for text in grouped["success"] or []
        ),
    ]


class MessageQueue:
    """Ordered, append-only list of Messages for one session."""

    def __init__(self, session: SessionState) -> None:
        self._cell = session.get_state(MESSAGES_STATE_KEY, list)

    def get(self) -> list[Message]:
        return self._cell.value

    def push(self, messages: Mapping[str, Any] | None) -> int:
        """Append normalized messages; returns how many were added."""
        normalized = normalize_messages(messages)
        if not normalized:
            return 0
        self._cell.value.extend(normalized)
        return len(normalized)

    def append(self, message: Message) -> None:
        self._cell.value.append(message)

    def clear(self) -> None:
        self._cell.value.clear()

    def consume(self) -> list[Message]:
        """Return all queued messages and empty the queue."""
        consumed = list(self._cell.value)
        self._cell.value.clear()
        return consumed

    def __len__(self) -> int:
        return len(self._cell.value)
